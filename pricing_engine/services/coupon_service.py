"""
优惠券业务服务层
优惠券校验、应用到购物车、下单时核销
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.core.database import begin_pricing_read
from pricing_engine.core.exceptions import reject
from pricing_engine.models.cart import CartLineItem
from pricing_engine.models.coupon import (
    Coupon,
    CouponApplyResponse,
    CouponQuote,
    CouponUsage,
    CouponVerifyRequest,
    CouponVerifyResponse,
    VerifyCartItem
)
from pricing_engine.models.pricing import PaymentMethod, PricingErrorKind, PricingPolicy
from pricing_engine.repositories.coupon_repository import CouponRepository
from pricing_engine.services.cart_totals import CartTotalsAggregator
from pricing_engine.services.price_calculator_service import PriceCalculatorService
from pricing_engine.config.pricing_rules import get_pricing_policy

logger = logging.getLogger(__name__)


class CouponService:
    """优惠券业务服务 - 优惠券结果不缓存，每次请求重新计算"""

    def __init__(
        self,
        coupon_repo: CouponRepository,
        price_calculator: Optional[PriceCalculatorService] = None,
        policy: Optional[PricingPolicy] = None,
        session: Optional[AsyncSession] = None
    ):
        self.coupon_repo = coupon_repo
        self.price_calculator = price_calculator
        self.session = session
        self.aggregator = CartTotalsAggregator(policy or get_pricing_policy())

    async def get_active_coupon(self, code: str) -> Coupon:
        """按优惠码获取启用中的优惠券"""
        db_coupon = await self.coupon_repo.get_active_by_code(code)
        if db_coupon is None:
            logger.info(f"优惠码不存在或已停用: {code}")
            raise reject(PricingErrorKind.INVALID_COUPON_CODE)
        return self.coupon_repo.to_model(db_coupon)

    async def verify_coupon(
        self,
        request: CouponVerifyRequest,
        now: Optional[datetime] = None
    ) -> CouponVerifyResponse:
        """
        校验优惠码并预估折扣(无需登录)

        传了 cart_items 时按明细做定向匹配；没传时按 cart_total 整单计算。
        优惠后金额按前端传入的 cart_total 计算，cart_total 为0时用明细小计
        """
        if self.session is not None:
            await begin_pricing_read(self.session)
        coupon = await self.get_active_coupon(request.code)

        if request.cart_items:
            line_items = self._to_line_items(request.cart_items)
            cart_total = request.cart_total if request.cart_total > 0 else None
            result = self.aggregator.apply_coupon(coupon, line_items, now, cart_total=cart_total)
        else:
            if request.cart_total <= 0:
                raise reject(PricingErrorKind.EMPTY_CART)
            match = self.aggregator.matcher.match_whole_cart(request.cart_total)
            result = self.aggregator.discount_for_match(coupon, match, request.cart_total, now)

        return CouponVerifyResponse(valid=True, coupon=CouponQuote.from_result(result))

    async def apply_coupon(
        self,
        user_id: str,
        code: str,
        payment_method: PaymentMethod = PaymentMethod.PREPAID,
        now: Optional[datetime] = None
    ) -> CouponApplyResponse:
        """
        对用户已保存的购物车应用优惠券，走完整计价流程

        cart_total 是优惠前的商品小计，final_amount = cart_total - discount_amount
        """
        if self.price_calculator is None:
            raise RuntimeError("未配置价格计算服务")

        totals = await self.price_calculator.price_user_cart(
            user_id,
            coupon_code=code,
            payment_method=payment_method,
            now=now
        )
        logger.info(f"用户 {user_id} 应用优惠券 {code}，折扣 {totals.discount}")
        return CouponApplyResponse(
            valid=True,
            coupon=CouponQuote.from_result(totals.coupon),
            cart_total=totals.subtotal
        )

    async def redeem_coupon(
        self,
        coupon_id: str,
        user_id: str,
        order_id: Optional[str],
        discount_amount: Decimal
    ) -> CouponUsage:
        """
        下单时核销优惠券

        必须在下单事务里调用：条件更新失败时抛出 USAGE_LIMIT_EXCEEDED，
        调用方回滚整个订单。
        """
        db_coupon = await self.coupon_repo.get_by_coupon_id(coupon_id)
        if db_coupon is None:
            raise reject(PricingErrorKind.INVALID_COUPON_CODE)

        redeemed = await self.coupon_repo.redeem(coupon_id)
        if not redeemed:
            logger.warning(f"优惠券 {db_coupon.code} 核销失败：已停用或次数已用完")
            raise reject(PricingErrorKind.USAGE_LIMIT_EXCEEDED)

        usage = await self.coupon_repo.record_usage(
            coupon_id=coupon_id,
            code=db_coupon.code,
            user_id=user_id,
            discount_amount=discount_amount,
            order_id=order_id
        )
        logger.info(f"优惠券 {db_coupon.code} 核销成功，订单 {order_id}")
        return self.coupon_repo.usage_to_model(usage)

    async def get_user_usage_history(self, user_id: str, limit: int = 20, offset: int = 0) -> List[CouponUsage]:
        """获取用户优惠券使用历史"""
        rows = await self.coupon_repo.get_user_usage_history(user_id, limit=limit, offset=offset)
        return [self.coupon_repo.usage_to_model(row) for row in rows]

    @staticmethod
    def _to_line_items(cart_items: List[VerifyCartItem]) -> List[CartLineItem]:
        """前端传入的购物车行按传入单价计算，不重新查价"""
        return [
            CartLineItem(
                variant_id=item.product_variant_id or item.product_id,
                product_id=item.product_id,
                category_ids=item.category_ids,
                brand_id=item.brand_id,
                quantity=item.quantity,
                unit_price=item.price,
                original_price=item.price
            )
            for item in cart_items
        ]
