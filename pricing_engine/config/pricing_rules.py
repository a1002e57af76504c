"""
计价硬性规则 - 安全上限与金额精度，不随环境配置变化
"""

from decimal import Decimal, ROUND_HALF_UP

from pricing_engine.core.config import Settings, settings
from pricing_engine.models.pricing import PricingPolicy

# 百分比优惠券的折扣率上限(%)，无论后台录入多少
PERCENTAGE_DISCOUNT_CAP = Decimal("90")

# 任何优惠券的折扣都不能超过适用小计的这个比例
MAX_DISCOUNT_RATIO = Decimal("0.9")

# 金额精度：两位小数
MONEY_QUANTUM = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """金额保留两位小数，四舍五入(远离零)"""
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def get_pricing_policy(config: Settings = settings) -> PricingPolicy:
    """
    从全局配置构建计价策略

    Returns:
        PricingPolicy，供购物车汇总使用
    """
    return PricingPolicy(
        enforce_coupon_dates=config.enforce_coupon_dates,
        minimum_charge=config.minimum_charge,
        shipping_charge=config.shipping_charge,
        free_shipping_threshold=config.free_shipping_threshold,
        cod_charge=config.cod_charge,
        currency_symbol=config.currency_symbol,
    )
