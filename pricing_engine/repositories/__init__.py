"""
仓库包初始化文件 - 数据库访问层
"""

from .catalog_repository import CatalogRepository
from .coupon_repository import CouponRepository
from .cart_repository import CartRepository

__all__ = [
    "CatalogRepository",
    "CouponRepository",
    "CartRepository"
]
