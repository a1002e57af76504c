"""
服务包初始化文件
"""

from .slab_price_resolver import SlabPriceResolver, slab_price_resolver
from .flash_sale import FlashSaleOverride, flash_sale_override
from .moq_gate import MOQGate, moq_gate, resolve_moq
from .coupon_target_matcher import CouponTargetMatcher, coupon_target_matcher, rule_matches
from .discount_calculator import DiscountCalculator, discount_calculator
from .coupon_eligibility import CouponEligibilityChecker, EligibilityResult
from .cart_totals import CartTotalsAggregator

__all__ = [
    "SlabPriceResolver",
    "slab_price_resolver",
    "FlashSaleOverride",
    "flash_sale_override",
    "MOQGate",
    "moq_gate",
    "resolve_moq",
    "CouponTargetMatcher",
    "coupon_target_matcher",
    "rule_matches",
    "DiscountCalculator",
    "discount_calculator",
    "CouponEligibilityChecker",
    "EligibilityResult",
    "CartTotalsAggregator"
]
