"""
商品目录数据库模型 - 定价引擎只读
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from pricing_engine.core.database import Base


class ProductDB(Base):
    """商品表"""

    __tablename__ = "products"

    product_id = Column(String(50), primary_key=True, comment="商品ID")
    product_name = Column(String(200), nullable=False, comment="商品名称")
    brand_id = Column(String(50), index=True, comment="品牌ID")
    is_active = Column(Boolean, default=True, comment="是否上架")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")

    # 关系映射
    categories = relationship("ProductCategoryDB", lazy="selectin", cascade="all, delete-orphan")
    variants = relationship("ProductVariantDB", back_populates="product")

    __table_args__ = (
        {'comment': '商品表'}
    )


class ProductCategoryDB(Base):
    """商品-分类关联表"""

    __tablename__ = "product_categories"

    product_id = Column(String(50), ForeignKey("products.product_id"), primary_key=True, comment="商品ID")
    category_id = Column(String(50), primary_key=True, index=True, comment="分类ID")


class ProductVariantDB(Base):
    """商品规格表"""

    __tablename__ = "product_variants"

    variant_id = Column(String(50), primary_key=True, comment="规格ID")
    product_id = Column(String(50), ForeignKey("products.product_id"), nullable=False, index=True, comment="商品ID")
    sku = Column(String(100), comment="SKU编码")

    # 价格与库存
    price = Column(Numeric(10, 2), nullable=False, comment="原价")
    sale_price = Column(Numeric(10, 2), comment="售价")
    quantity = Column(Integer, default=0, comment="库存")
    is_active = Column(Boolean, default=True, comment="是否可售")

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    # 关系映射
    product = relationship("ProductDB", back_populates="variants", lazy="selectin")

    __table_args__ = (
        {'comment': '商品规格表'}
    )


class PricingSlabDB(Base):
    """数量阶梯价表，variant_id为空时为商品级阶梯"""

    __tablename__ = "pricing_slabs"

    slab_id = Column(String(50), primary_key=True, comment="阶梯ID")
    product_id = Column(String(50), ForeignKey("products.product_id"), nullable=False, index=True, comment="商品ID")
    variant_id = Column(String(50), ForeignKey("product_variants.variant_id"), index=True, comment="规格ID")
    min_qty = Column(Integer, nullable=False, comment="最小数量")
    max_qty = Column(Integer, comment="最大数量，空表示不封顶")
    price = Column(Numeric(10, 2), comment="阶梯单价")

    __table_args__ = (
        {'comment': '数量阶梯价表'}
    )


class MOQSettingDB(Base):
    """起订量配置表"""

    __tablename__ = "moq_settings"

    moq_id = Column(String(50), primary_key=True, comment="配置ID")
    scope = Column(String(20), nullable=False, index=True, comment="层级: GLOBAL/PRODUCT/VARIANT")
    product_id = Column(String(50), index=True, comment="商品ID")
    variant_id = Column(String(50), index=True, comment="规格ID")
    min_quantity = Column(Integer, nullable=False, comment="最小起订量")
    is_active = Column(Boolean, default=True, comment="是否启用")

    __table_args__ = (
        {'comment': '起订量配置表'}
    )


class FlashSaleDB(Base):
    """限时抢购活动表"""

    __tablename__ = "flash_sales"

    flash_sale_id = Column(String(50), primary_key=True, comment="活动ID")
    name = Column(String(200), nullable=False, comment="活动名称")
    discount_percentage = Column(Numeric(5, 2), nullable=False, comment="折扣百分比")
    start_time = Column(DateTime(timezone=True), nullable=False, comment="开始时间")
    end_time = Column(DateTime(timezone=True), nullable=False, comment="结束时间")
    is_active = Column(Boolean, default=True, index=True, comment="是否启用")

    products = relationship("FlashSaleProductDB", lazy="selectin", cascade="all, delete-orphan")

    __table_args__ = (
        {'comment': '限时抢购活动表'}
    )


class FlashSaleProductDB(Base):
    """抢购活动-商品关联表"""

    __tablename__ = "flash_sale_products"

    flash_sale_id = Column(String(50), ForeignKey("flash_sales.flash_sale_id"), primary_key=True, comment="活动ID")
    product_id = Column(String(50), primary_key=True, index=True, comment="商品ID")
