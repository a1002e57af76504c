"""
优惠券可用性校验
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from pricing_engine.models.coupon import Coupon
from pricing_engine.models.pricing import PricingErrorKind, PricingRejection


class EligibilityResult(BaseModel):
    """校验结果：通过，或带原因的拒绝"""

    is_valid: bool
    rejection: Optional[PricingRejection] = None

    @classmethod
    def ok(cls) -> "EligibilityResult":
        return cls(is_valid=True)

    @classmethod
    def rejected(cls, kind: PricingErrorKind, message: Optional[str] = None) -> "EligibilityResult":
        return cls(
            is_valid=False,
            rejection=PricingRejection(kind=kind, message=message or kind.default_message)
        )


class CouponEligibilityChecker:
    """按顺序校验，第一个不满足的条件即为拒绝原因"""

    def __init__(self, enforce_dates: bool = True, currency_symbol: str = "₹"):
        self.enforce_dates = enforce_dates
        self.currency_symbol = currency_symbol

    def check(
        self,
        coupon: Coupon,
        applicable_subtotal: Decimal,
        now: Optional[datetime] = None
    ) -> EligibilityResult:
        if not coupon.is_active:
            return EligibilityResult.rejected(PricingErrorKind.INVALID_COUPON_CODE)

        if self.enforce_dates:
            now = now or datetime.now(timezone.utc)
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            if coupon.start_date and now < coupon.start_date:
                return EligibilityResult.rejected(PricingErrorKind.COUPON_NOT_STARTED)
            if coupon.end_date and coupon.end_date < now:
                return EligibilityResult.rejected(PricingErrorKind.COUPON_EXPIRED)

        if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
            return EligibilityResult.rejected(PricingErrorKind.USAGE_LIMIT_EXCEEDED)

        if coupon.min_order_amount is not None and applicable_subtotal < coupon.min_order_amount:
            return EligibilityResult.rejected(
                PricingErrorKind.MIN_ORDER_NOT_MET,
                f"订单金额不满足最低要求 {self.currency_symbol}{coupon.min_order_amount}"
            )

        return EligibilityResult.ok()
