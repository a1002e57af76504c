"""
业务异常定义
定价过程中的所有可预期拒绝都以 PricingException 抛出，由API层统一转成结构化响应
"""

from typing import Optional

from pricing_engine.models.pricing import PricingErrorKind, PricingRejection


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", status_code: int = 400):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# 拒绝类型对应的HTTP状态码，未列出的一律400
_STATUS_BY_KIND = {
    PricingErrorKind.INVALID_COUPON_CODE: 404,
    PricingErrorKind.VARIANT_NOT_FOUND: 404,
    PricingErrorKind.INVALID_PRICING_DATA: 422,
}


class PricingException(BusinessException):
    """定价/优惠券业务拒绝"""

    def __init__(self, kind: PricingErrorKind, message: str):
        self.kind = kind
        super().__init__(
            message=message,
            code=kind.value,
            status_code=_STATUS_BY_KIND.get(kind, 400)
        )

    @classmethod
    def from_rejection(cls, rejection: PricingRejection) -> "PricingException":
        return cls(rejection.kind, rejection.message)

    def to_rejection(self) -> PricingRejection:
        return PricingRejection(kind=self.kind, message=self.message)


def reject(kind: PricingErrorKind, message: Optional[str] = None) -> PricingException:
    """按拒绝类型构造异常，未给出消息时使用默认文案"""
    return PricingException(kind, message or kind.default_message)
