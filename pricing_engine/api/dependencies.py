"""
API依赖注入：数据库会话、当前用户、服务实例、限流
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.config.pricing_rules import get_pricing_policy
from pricing_engine.core.database import get_db_session
from pricing_engine.core.redis import coupon_verify_limiter
from pricing_engine.repositories.cart_repository import CartRepository
from pricing_engine.repositories.catalog_repository import CatalogRepository
from pricing_engine.repositories.coupon_repository import CouponRepository
from pricing_engine.services.coupon_service import CouponService
from pricing_engine.services.price_calculator_service import PriceCalculatorService

logger = logging.getLogger(__name__)


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """网关鉴权后写入 X-User-Id，缺失即未登录"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="请先登录")
    return x_user_id


async def limit_coupon_verify(request: Request) -> None:
    """优惠券校验接口按客户端IP限流"""
    client_ip = request.client.host if request.client else "unknown"
    if not await coupon_verify_limiter.allow(client_ip):
        raise HTTPException(status_code=429, detail="请求过于频繁，请稍后再试")


def get_price_calculator_service(
    session: AsyncSession = Depends(get_db_session)
) -> PriceCalculatorService:
    return PriceCalculatorService(
        catalog_repo=CatalogRepository(session),
        coupon_repo=CouponRepository(session),
        cart_repo=CartRepository(session),
        policy=get_pricing_policy(),
        session=session
    )


def get_coupon_service(
    session: AsyncSession = Depends(get_db_session),
    price_calculator: PriceCalculatorService = Depends(get_price_calculator_service)
) -> CouponService:
    return CouponService(
        coupon_repo=CouponRepository(session),
        price_calculator=price_calculator,
        policy=price_calculator.policy,
        session=session
    )
