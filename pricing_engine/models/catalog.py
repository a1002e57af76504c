"""
商品目录相关数据模型 - 定价引擎只读使用
"""

from decimal import Decimal
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, validator
from enum import Enum


class MOQScope(str, Enum):
    """起订量配置层级"""
    GLOBAL = "GLOBAL"
    PRODUCT = "PRODUCT"
    VARIANT = "VARIANT"


class Slab(BaseModel):
    """数量阶梯价"""

    slab_id: Optional[str] = Field(None, description="阶梯ID")
    min_qty: int = Field(..., ge=1, description="最小数量")
    max_qty: Optional[int] = Field(None, ge=1, description="最大数量，空表示不封顶")
    price: Optional[Decimal] = Field(None, description="阶梯单价")

    def covers(self, quantity: int) -> bool:
        """数量是否落在该阶梯内"""
        return quantity >= self.min_qty and (self.max_qty is None or quantity <= self.max_qty)


class MOQConfig(BaseModel):
    """规格最终生效的起订量"""

    is_active: bool = Field(default=True, description="是否启用")
    min_quantity: int = Field(..., ge=1, description="最小起订量")


class MOQSetting(BaseModel):
    """起订量配置记录"""

    moq_id: str = Field(..., description="配置ID")
    scope: MOQScope = Field(..., description="配置层级")
    product_id: Optional[str] = Field(None, description="商品ID")
    variant_id: Optional[str] = Field(None, description="规格ID")
    min_quantity: int = Field(..., ge=1, description="最小起订量")
    is_active: bool = Field(default=True, description="是否启用")


class Variant(BaseModel):
    """可售规格(SKU)的定价快照"""

    variant_id: str = Field(..., description="规格ID")
    product_id: str = Field(..., description="商品ID")
    sku: Optional[str] = Field(None, description="SKU编码")
    base_price: Decimal = Field(..., gt=0, description="原价")
    sale_price: Optional[Decimal] = Field(None, gt=0, description="售价")
    moq: Optional[MOQConfig] = Field(None, description="起订量")
    pricing_slabs: List[Slab] = Field(default_factory=list, description="规格级阶梯价")
    product_slabs: List[Slab] = Field(default_factory=list, description="商品级阶梯价")
    stock: int = Field(default=0, ge=0, description="库存，0表示不限")
    category_ids: List[str] = Field(default_factory=list, description="所属分类ID")
    brand_id: Optional[str] = Field(None, description="品牌ID")

    @validator('sale_price')
    def validate_sale_price(cls, v, values):
        """售价必须低于原价"""
        if v is not None and 'base_price' in values and v >= values['base_price']:
            raise ValueError('售价必须低于原价')
        return v

    @property
    def reference_price(self) -> Decimal:
        """参考价：有售价取售价，否则取原价"""
        return self.sale_price if self.sale_price is not None else self.base_price


class FlashSale(BaseModel):
    """限时抢购活动"""

    flash_sale_id: str = Field(..., description="活动ID")
    name: str = Field(..., description="活动名称")
    discount_percentage: Decimal = Field(..., gt=0, le=100, description="折扣百分比")
    start_time: datetime = Field(..., description="开始时间")
    end_time: datetime = Field(..., description="结束时间")
    is_active: bool = Field(default=True, description="是否启用")
    product_ids: List[str] = Field(default_factory=list, description="参与商品ID")

    @validator('start_time', 'end_time')
    def ensure_timezone(cls, v):
        """无时区的时间按UTC处理"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_running(self, now: datetime) -> bool:
        """活动当前是否进行中"""
        return self.is_active and self.start_time <= now <= self.end_time
