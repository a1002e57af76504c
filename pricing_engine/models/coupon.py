"""
优惠券相关数据模型
"""

from decimal import Decimal
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional, Union
from pydantic import BaseModel, Field, validator
from enum import Enum


class DiscountType(str, Enum):
    """优惠券折扣类型枚举"""
    PERCENTAGE = "PERCENTAGE"  # 百分比折扣
    FIXED_AMOUNT = "FIXED_AMOUNT"  # 固定金额折扣


# ---------------------------------------------------------------------------
# 定向规则：整单 / 按分类 / 按商品 / 按品牌 / 组合
# ---------------------------------------------------------------------------

class AllCart(BaseModel):
    """不限定商品，适用于整个购物车"""

    class Config:
        frozen = True


class ByCategory(BaseModel):
    """限定分类"""

    category_ids: FrozenSet[str]

    class Config:
        frozen = True


class ByProduct(BaseModel):
    """限定商品"""

    product_ids: FrozenSet[str]

    class Config:
        frozen = True


class ByBrand(BaseModel):
    """限定品牌"""

    brand_ids: FrozenSet[str]

    class Config:
        frozen = True


class Combined(BaseModel):
    """多种定向同时存在，任一命中即适用"""

    category_ids: FrozenSet[str] = frozenset()
    product_ids: FrozenSet[str] = frozenset()
    brand_ids: FrozenSet[str] = frozenset()

    class Config:
        frozen = True


TargetRule = Union[AllCart, ByCategory, ByProduct, ByBrand, Combined]


def build_target_rule(
    category_ids=(),
    product_ids=(),
    brand_ids=()
) -> TargetRule:
    """根据三张定向关联表的数据构建最窄的定向规则"""
    categories = frozenset(category_ids or ())
    products = frozenset(product_ids or ())
    brands = frozenset(brand_ids or ())

    present = [kind for kind in (categories, products, brands) if kind]
    if not present:
        return AllCart()
    if len(present) > 1:
        return Combined(category_ids=categories, product_ids=products, brand_ids=brands)
    if categories:
        return ByCategory(category_ids=categories)
    if products:
        return ByProduct(product_ids=products)
    return ByBrand(brand_ids=brands)


# ---------------------------------------------------------------------------
# 优惠券
# ---------------------------------------------------------------------------

def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class Coupon(BaseModel):
    """优惠券基础模型"""

    coupon_id: str = Field(..., description="优惠券ID")
    code: str = Field(..., min_length=1, max_length=50, description="优惠码(大写)")
    description: Optional[str] = Field(None, description="描述")
    discount_type: DiscountType = Field(..., description="折扣类型")
    discount_value: Decimal = Field(..., gt=0, description="折扣值")
    min_order_amount: Optional[Decimal] = Field(None, ge=0, description="最低消费")
    max_uses: Optional[int] = Field(None, ge=1, description="总使用次数上限")
    used_count: int = Field(default=0, ge=0, description="已使用次数")
    start_date: Optional[datetime] = Field(None, description="生效时间")
    end_date: Optional[datetime] = Field(None, description="失效时间")
    is_active: bool = Field(default=True, description="是否启用")
    target: TargetRule = Field(default_factory=AllCart, description="定向规则")

    @validator('code')
    def normalize_code(cls, v):
        """优惠码不区分大小写，统一存大写"""
        return v.strip().upper()

    @validator('start_date', 'end_date')
    def ensure_timezone(cls, v):
        """无时区的时间按UTC处理"""
        return _as_utc(v)

    @property
    def is_targeted(self) -> bool:
        return not isinstance(self.target, AllCart)


class CouponCreate(BaseModel):
    """创建优惠券模型(管理端)"""

    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType = Field(...)
    discount_value: Decimal = Field(..., gt=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    start_date: datetime = Field(...)
    end_date: Optional[datetime] = None
    is_active: bool = True
    category_ids: List[str] = Field(default_factory=list)
    product_ids: List[str] = Field(default_factory=list)
    brand_ids: List[str] = Field(default_factory=list)

    @validator('code')
    def normalize_code(cls, v):
        return v.strip().upper()

    @validator('discount_value')
    def validate_discount_value(cls, v, values):
        """百分比折扣必须在(0, 100]之间"""
        if values.get('discount_type') == DiscountType.PERCENTAGE and v > Decimal('100'):
            raise ValueError('百分比折扣必须在1到100之间')
        return v

    @validator('end_date')
    def validate_validity_period(cls, v, values):
        """验证有效期"""
        start = values.get('start_date')
        if v is not None and start is not None and _as_utc(v) <= _as_utc(start):
            raise ValueError('结束时间必须晚于开始时间')
        return v


class CouponUsage(BaseModel):
    """优惠券核销记录"""

    usage_id: str = Field(..., description="核销记录ID")
    coupon_id: str = Field(..., description="优惠券ID")
    code: str = Field(..., description="优惠码")
    user_id: str = Field(..., description="用户ID")
    order_id: Optional[str] = Field(None, description="关联订单ID")
    discount_amount: Decimal = Field(..., ge=0, description="折扣金额")
    used_at: Optional[datetime] = Field(None, description="核销时间")


# ---------------------------------------------------------------------------
# 计算结果与接口模型
# ---------------------------------------------------------------------------

class TargetMatch(BaseModel):
    """定向匹配结果"""

    matched_subtotal: Decimal = Field(..., description="命中商品小计")
    matched_count: int = Field(..., ge=0, description="命中商品行数")
    full_cart_subtotal: Decimal = Field(..., description="整车小计")


class AppliedCouponResult(BaseModel):
    """优惠券应用结果，每次请求重新计算，不缓存"""

    coupon_id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal = Field(..., description="折扣金额")
    applicable_subtotal: Decimal = Field(..., description="适用小计")
    matched_item_count: int = Field(..., description="命中商品行数")
    final_amount: Decimal = Field(..., description="优惠后金额")


class VerifyCartItem(BaseModel):
    """校验接口中前端传入的购物车行"""

    product_id: str
    product_variant_id: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    brand_id: Optional[str] = None
    category_ids: List[str] = Field(default_factory=list)


class CouponVerifyRequest(BaseModel):
    """优惠券校验请求"""

    code: str = Field(..., min_length=1)
    cart_total: Decimal = Field(default=Decimal("0"), ge=0)
    cart_items: Optional[List[VerifyCartItem]] = None


class CouponApplyRequest(BaseModel):
    """优惠券应用请求"""

    code: str = Field(..., min_length=1)


class CouponQuote(BaseModel):
    """返回给前端的优惠券计算结果"""

    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    applicable_subtotal: Decimal
    matched_items: int
    final_amount: Decimal

    @classmethod
    def from_result(cls, result: AppliedCouponResult) -> "CouponQuote":
        return cls(
            id=result.coupon_id,
            code=result.code,
            discount_type=result.discount_type,
            discount_value=result.discount_value,
            discount_amount=result.discount_amount,
            applicable_subtotal=result.applicable_subtotal,
            matched_items=result.matched_item_count,
            final_amount=result.final_amount
        )


class CouponVerifyResponse(BaseModel):
    """优惠券校验响应"""

    valid: bool = True
    coupon: CouponQuote


class CouponApplyResponse(BaseModel):
    """优惠券应用响应"""

    valid: bool = True
    coupon: CouponQuote
    cart_total: Decimal = Field(..., description="优惠前商品小计")
