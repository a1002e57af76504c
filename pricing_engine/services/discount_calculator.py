"""
优惠券折扣金额计算
"""

from decimal import Decimal

from pricing_engine.config.pricing_rules import (
    MAX_DISCOUNT_RATIO,
    PERCENTAGE_DISCOUNT_CAP,
    quantize_money,
)
from pricing_engine.models.coupon import Coupon, DiscountType


class DiscountCalculator:
    """折扣计算器"""

    def compute(self, coupon: Coupon, applicable_subtotal: Decimal) -> Decimal:
        """
        计算折扣金额

        百分比券的折扣率最多按90%计算；固定金额券直接取面额。
        两种券的折扣最终都不超过适用小计的90%。结果保留两位小数。
        """
        if applicable_subtotal <= 0:
            return Decimal("0.00")

        if coupon.discount_type == DiscountType.PERCENTAGE:
            rate = min(coupon.discount_value, PERCENTAGE_DISCOUNT_CAP)
            discount = applicable_subtotal * rate / Decimal("100")
        elif coupon.discount_type == DiscountType.FIXED_AMOUNT:
            discount = coupon.discount_value
        else:
            raise ValueError(f"未知的折扣类型: {coupon.discount_type}")

        discount = min(discount, applicable_subtotal * MAX_DISCOUNT_RATIO)
        return quantize_money(discount)


discount_calculator = DiscountCalculator()
