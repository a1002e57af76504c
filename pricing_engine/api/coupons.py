from fastapi import APIRouter, Depends
import logging

from pricing_engine.api.dependencies import get_coupon_service, get_current_user_id, limit_coupon_verify
from pricing_engine.models.coupon import (
    CouponApplyRequest,
    CouponApplyResponse,
    CouponVerifyRequest,
    CouponVerifyResponse
)
from pricing_engine.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coupons", tags=["优惠券"])


@router.post("/verify", response_model=CouponVerifyResponse, dependencies=[Depends(limit_coupon_verify)])
async def verify_coupon(
    request: CouponVerifyRequest,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """校验优惠码并预估折扣，无需登录"""
    return await coupon_service.verify_coupon(request)


@router.post("/apply", response_model=CouponApplyResponse)
async def apply_coupon(
    request: CouponApplyRequest,
    user_id: str = Depends(get_current_user_id),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """把优惠码应用到当前用户的购物车"""
    return await coupon_service.apply_coupon(user_id, request.code)
