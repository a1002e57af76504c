"""
定价通用模型：拒绝类型、价格来源、计价策略
"""

from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field


class PricingErrorKind(str, Enum):
    """定价拒绝类型枚举"""
    INVALID_COUPON_CODE = "INVALID_COUPON_CODE"  # 优惠码不存在或已停用
    NO_APPLICABLE_ITEMS = "NO_APPLICABLE_ITEMS"  # 定向优惠券没有匹配的商品
    MIN_ORDER_NOT_MET = "MIN_ORDER_NOT_MET"  # 未达到最低消费
    USAGE_LIMIT_EXCEEDED = "USAGE_LIMIT_EXCEEDED"  # 使用次数已达上限
    EMPTY_CART = "EMPTY_CART"  # 购物车为空
    INVALID_QUANTITY = "INVALID_QUANTITY"  # 数量低于起订量或超出库存
    COUPON_NOT_STARTED = "COUPON_NOT_STARTED"  # 优惠券尚未生效
    COUPON_EXPIRED = "COUPON_EXPIRED"  # 优惠券已过期
    VARIANT_NOT_FOUND = "VARIANT_NOT_FOUND"  # 商品规格不存在
    INVALID_PRICING_DATA = "INVALID_PRICING_DATA"  # 价格配置异常

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES = {
    PricingErrorKind.INVALID_COUPON_CODE: "优惠券不存在或已停用",
    PricingErrorKind.NO_APPLICABLE_ITEMS: "该优惠券不适用于购物车中的商品",
    PricingErrorKind.MIN_ORDER_NOT_MET: "订单金额不满足优惠券最低消费要求",
    PricingErrorKind.USAGE_LIMIT_EXCEEDED: "优惠券使用次数已达上限",
    PricingErrorKind.EMPTY_CART: "购物车为空",
    PricingErrorKind.INVALID_QUANTITY: "购买数量不合法",
    PricingErrorKind.COUPON_NOT_STARTED: "优惠券尚未开始使用",
    PricingErrorKind.COUPON_EXPIRED: "优惠券已过期",
    PricingErrorKind.VARIANT_NOT_FOUND: "商品规格不存在或已下架",
    PricingErrorKind.INVALID_PRICING_DATA: "商品价格配置异常，无法计算价格",
}


class PricingRejection(BaseModel):
    """结构化的业务拒绝"""

    kind: PricingErrorKind = Field(..., description="拒绝类型")
    message: str = Field(..., description="面向用户的提示")


class PriceSource(str, Enum):
    """单价来源枚举"""
    SLAB = "SLAB"  # 阶梯价
    DEFAULT = "DEFAULT"  # 售价/原价
    FLASH_SALE = "FLASH_SALE"  # 限时抢购


class SlabScope(str, Enum):
    """阶梯价归属层级"""
    VARIANT = "VARIANT"
    PRODUCT = "PRODUCT"


class PaymentMethod(str, Enum):
    """支付方式枚举"""
    PREPAID = "PREPAID"  # 在线支付
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"  # 货到付款


class PricingPolicy(BaseModel):
    """计价策略 - 运费、手续费、最低应付金额等可配置项"""

    enforce_coupon_dates: bool = Field(default=True, description="是否校验优惠券有效期")
    minimum_charge: Decimal = Field(default=Decimal("1.00"), ge=0, description="最低应付金额")
    shipping_charge: Decimal = Field(default=Decimal("0"), ge=0, description="运费")
    free_shipping_threshold: Decimal = Field(default=Decimal("0"), ge=0, description="包邮门槛，0表示不包邮")
    cod_charge: Decimal = Field(default=Decimal("0"), ge=0, description="货到付款手续费")
    currency_symbol: str = Field(default="₹", description="货币符号")

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        """按商品小计计算运费"""
        if self.shipping_charge <= 0:
            return Decimal("0")
        if self.free_shipping_threshold > 0 and subtotal >= self.free_shipping_threshold:
            return Decimal("0")
        return self.shipping_charge

    def surcharge_for(self, payment_method: PaymentMethod) -> Decimal:
        """按支付方式计算附加费"""
        if payment_method == PaymentMethod.CASH_ON_DELIVERY:
            return self.cod_charge
        return Decimal("0")
