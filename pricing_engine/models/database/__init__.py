"""
数据库模型包初始化文件
"""

from .catalog_db import (
    ProductDB,
    ProductCategoryDB,
    ProductVariantDB,
    PricingSlabDB,
    MOQSettingDB,
    FlashSaleDB,
    FlashSaleProductDB
)
from .coupon_db import CouponDB, CouponCategoryDB, CouponProductDB, CouponBrandDB, CouponUsageDB
from .cart_db import CartItemDB

__all__ = [
    "ProductDB",
    "ProductCategoryDB",
    "ProductVariantDB",
    "PricingSlabDB",
    "MOQSettingDB",
    "FlashSaleDB",
    "FlashSaleProductDB",
    "CouponDB",
    "CouponCategoryDB",
    "CouponProductDB",
    "CouponBrandDB",
    "CouponUsageDB",
    "CartItemDB"
]
