"""
优惠券定向匹配
把购物车拆成命中/未命中两部分，只有命中部分参与折扣计算
"""

from decimal import Decimal
from typing import Sequence

from pricing_engine.core.exceptions import reject
from pricing_engine.models.cart import CartLineItem
from pricing_engine.models.coupon import (
    AllCart, ByBrand, ByCategory, ByProduct, Combined, Coupon, TargetMatch, TargetRule
)
from pricing_engine.models.pricing import PricingErrorKind


def rule_matches(rule: TargetRule, item: CartLineItem) -> bool:
    """单个购物车行是否命中定向规则"""
    if isinstance(rule, AllCart):
        return True
    if isinstance(rule, ByCategory):
        return not rule.category_ids.isdisjoint(item.category_ids)
    if isinstance(rule, ByProduct):
        return item.product_id in rule.product_ids
    if isinstance(rule, ByBrand):
        return item.brand_id is not None and item.brand_id in rule.brand_ids
    if isinstance(rule, Combined):
        return (
            item.product_id in rule.product_ids
            or (item.brand_id is not None and item.brand_id in rule.brand_ids)
            or not rule.category_ids.isdisjoint(item.category_ids)
        )
    raise TypeError(f"未知的定向规则: {type(rule).__name__}")


class CouponTargetMatcher:
    """优惠券定向匹配器"""

    def match(self, coupon: Coupon, line_items: Sequence[CartLineItem]) -> TargetMatch:
        full_cart_subtotal = sum((item.line_subtotal for item in line_items), Decimal("0"))

        if not coupon.is_targeted:
            return TargetMatch(
                matched_subtotal=full_cart_subtotal,
                matched_count=len(line_items),
                full_cart_subtotal=full_cart_subtotal
            )

        matched = [item for item in line_items if rule_matches(coupon.target, item)]
        if not matched:
            # 有定向但一件都没命中：直接拒绝，不能当作0折扣成功
            raise reject(PricingErrorKind.NO_APPLICABLE_ITEMS)

        return TargetMatch(
            matched_subtotal=sum((item.line_subtotal for item in matched), Decimal("0")),
            matched_count=len(matched),
            full_cart_subtotal=full_cart_subtotal
        )

    def match_whole_cart(self, cart_total: Decimal) -> TargetMatch:
        """没有购物车明细时退化为整单模式"""
        return TargetMatch(
            matched_subtotal=cart_total,
            matched_count=0,
            full_cart_subtotal=cart_total
        )


coupon_target_matcher = CouponTargetMatcher()
