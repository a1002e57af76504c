"""
购物车计价相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from pricing_engine.models.catalog import Slab
from pricing_engine.models.coupon import AppliedCouponResult
from pricing_engine.models.pricing import PaymentMethod, PriceSource, SlabScope


class LineItemRequest(BaseModel):
    """待计价的购物车行"""

    variant_id: str = Field(..., description="规格ID")
    quantity: int = Field(..., description="购买数量")


class PriceResolution(BaseModel):
    """单价解析结果"""

    price: Decimal = Field(..., description="成交单价(未含优惠券)")
    original_price: Decimal = Field(..., description="参考价：售价或原价")
    source: PriceSource = Field(..., description="单价来源")
    matched_slab: Optional[Slab] = Field(None, description="命中的阶梯")
    slab_scope: Optional[SlabScope] = Field(None, description="阶梯层级")
    price_before_flash_sale: Optional[Decimal] = Field(None, description="抢购前单价")
    flash_sale_id: Optional[str] = Field(None, description="抢购活动ID")


class FlashSaleApplied(BaseModel):
    """购物车行上命中的抢购活动"""

    flash_sale_id: str
    name: str
    discount_percentage: Decimal
    end_time: datetime
    original_price: Decimal


class CartLineItem(BaseModel):
    """已计价的购物车行，每次请求重新计算"""

    variant_id: str
    product_id: str
    category_ids: List[str] = Field(default_factory=list)
    brand_id: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., description="优惠券前单价")
    original_price: Decimal = Field(..., description="参考价")
    price_source: PriceSource = PriceSource.DEFAULT
    applied_slab: Optional[Slab] = None
    flash_sale: Optional[FlashSaleApplied] = None

    @property
    def line_subtotal(self) -> Decimal:
        """行小计 = 单价 × 数量，不做舍入"""
        return self.unit_price * self.quantity


class CartLineView(BaseModel):
    """返回给前端的购物车行"""

    variant_id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    line_subtotal: Decimal
    price_source: PriceSource
    applied_slab: Optional[Slab] = None
    flash_sale: Optional[FlashSaleApplied] = None


class CartTotals(BaseModel):
    """购物车计价结果"""

    items: List[CartLineView] = Field(default_factory=list)
    subtotal: Decimal = Field(..., description="商品小计")
    discount: Decimal = Field(default=Decimal("0.00"), description="优惠券折扣")
    shipping_cost: Decimal = Field(default=Decimal("0.00"), description="运费")
    surcharge: Decimal = Field(default=Decimal("0.00"), description="附加费(如货到付款手续费)")
    total: Decimal = Field(..., description="应付金额")
    coupon: Optional[AppliedCouponResult] = Field(None, description="优惠券明细")


class CartPriceRequest(BaseModel):
    """购物车计价请求"""

    items: List[LineItemRequest] = Field(default_factory=list)
    coupon_code: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.PREPAID


class VariantPriceQuote(BaseModel):
    """商品详情页单价预览(不含优惠券)"""

    variant_id: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    price_source: PriceSource
    applied_slab: Optional[Slab] = None
    line_subtotal: Decimal
    min_order_quantity: int
    quantity_valid: bool
    slabs: List[Slab] = Field(default_factory=list)
