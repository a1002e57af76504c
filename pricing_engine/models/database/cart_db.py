"""
购物车数据库模型
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from pricing_engine.core.database import Base


class CartItemDB(Base):
    """购物车行表"""

    __tablename__ = "cart_items"

    cart_item_id = Column(String(50), primary_key=True, comment="购物车行ID")
    user_id = Column(String(50), nullable=False, index=True, comment="用户ID")
    variant_id = Column(String(50), ForeignKey("product_variants.variant_id"), nullable=False, comment="规格ID")
    quantity = Column(Integer, nullable=False, default=1, comment="数量")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="加入时间")

    __table_args__ = (
        UniqueConstraint("user_id", "variant_id", name="uq_cart_user_variant"),
        {'comment': '购物车表'}
    )
