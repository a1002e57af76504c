"""
优惠券数据库模型
"""

from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from pricing_engine.core.database import Base


class CouponDB(Base):
    """优惠券数据库表"""

    __tablename__ = "coupons"

    # 主键和基本信息
    coupon_id = Column(String(50), primary_key=True, comment="优惠券ID")
    code = Column(String(50), nullable=False, unique=True, index=True, comment="优惠码(大写)")
    description = Column(Text, comment="优惠券描述")

    # 折扣信息
    discount_type = Column(String(20), nullable=False, comment="折扣类型: PERCENTAGE/FIXED_AMOUNT")
    discount_value = Column(Numeric(10, 2), nullable=False, comment="折扣值")
    min_order_amount = Column(Numeric(10, 2), comment="最低消费")

    # 有效期
    start_date = Column(DateTime(timezone=True), comment="生效时间")
    end_date = Column(DateTime(timezone=True), comment="失效时间")

    # 使用限制
    max_uses = Column(Integer, comment="总使用次数上限")
    used_count = Column(Integer, nullable=False, default=0, comment="已使用次数")

    is_active = Column(Boolean, default=True, index=True, comment="是否启用")

    # 时间戳
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    # 定向关联
    categories = relationship("CouponCategoryDB", lazy="selectin", cascade="all, delete-orphan")
    products = relationship("CouponProductDB", lazy="selectin", cascade="all, delete-orphan")
    brands = relationship("CouponBrandDB", lazy="selectin", cascade="all, delete-orphan")

    __table_args__ = (
        {'comment': '优惠券信息表'}
    )


class CouponCategoryDB(Base):
    """优惠券-分类定向表"""

    __tablename__ = "coupon_categories"

    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), primary_key=True, comment="优惠券ID")
    category_id = Column(String(50), primary_key=True, comment="分类ID")


class CouponProductDB(Base):
    """优惠券-商品定向表"""

    __tablename__ = "coupon_products"

    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), primary_key=True, comment="优惠券ID")
    product_id = Column(String(50), primary_key=True, comment="商品ID")


class CouponBrandDB(Base):
    """优惠券-品牌定向表"""

    __tablename__ = "coupon_brands"

    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), primary_key=True, comment="优惠券ID")
    brand_id = Column(String(50), primary_key=True, comment="品牌ID")


class CouponUsageDB(Base):
    """优惠券核销记录表"""

    __tablename__ = "coupon_usage"

    usage_id = Column(String(50), primary_key=True, comment="核销记录ID")
    coupon_id = Column(String(50), ForeignKey("coupons.coupon_id"), nullable=False, index=True, comment="优惠券ID")
    code = Column(String(50), nullable=False, comment="优惠码")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")
    order_id = Column(String(50), comment="关联订单ID")
    discount_amount = Column(Numeric(10, 2), nullable=False, comment="折扣金额")
    used_at = Column(DateTime(timezone=True), server_default=func.now(), comment="核销时间")

    __table_args__ = (
        {'comment': '优惠券核销记录表'}
    )
