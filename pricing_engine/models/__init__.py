"""
数据模型包初始化文件
"""

from .pricing import (
    PricingErrorKind,
    PricingRejection,
    PriceSource,
    SlabScope,
    PaymentMethod,
    PricingPolicy
)
from .catalog import MOQScope, Slab, MOQConfig, MOQSetting, Variant, FlashSale
from .coupon import (
    DiscountType,
    AllCart,
    ByCategory,
    ByProduct,
    ByBrand,
    Combined,
    TargetRule,
    build_target_rule,
    Coupon,
    CouponCreate,
    CouponUsage,
    TargetMatch,
    AppliedCouponResult
)
from .cart import LineItemRequest, PriceResolution, CartLineItem, CartTotals

__all__ = [
    "PricingErrorKind",
    "PricingRejection",
    "PriceSource",
    "SlabScope",
    "PaymentMethod",
    "PricingPolicy",
    "MOQScope",
    "Slab",
    "MOQConfig",
    "MOQSetting",
    "Variant",
    "FlashSale",
    "DiscountType",
    "AllCart",
    "ByCategory",
    "ByProduct",
    "ByBrand",
    "Combined",
    "TargetRule",
    "build_target_rule",
    "Coupon",
    "CouponCreate",
    "CouponUsage",
    "TargetMatch",
    "AppliedCouponResult",
    "LineItemRequest",
    "PriceResolution",
    "CartLineItem",
    "CartTotals"
]
