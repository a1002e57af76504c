"""
价格计算服务
商品详情页预览、购物车展示、结账计价共用这一套计价逻辑
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.config.pricing_rules import get_pricing_policy, quantize_money
from pricing_engine.core.database import begin_pricing_read
from pricing_engine.core.exceptions import reject
from pricing_engine.models.cart import CartTotals, LineItemRequest, VariantPriceQuote
from pricing_engine.models.coupon import Coupon
from pricing_engine.models.pricing import PaymentMethod, PricingErrorKind, PricingPolicy
from pricing_engine.repositories.cart_repository import CartRepository
from pricing_engine.repositories.catalog_repository import CatalogRepository
from pricing_engine.repositories.coupon_repository import CouponRepository
from pricing_engine.services.cart_totals import CartTotalsAggregator

logger = logging.getLogger(__name__)


class PriceCalculatorService:
    """价格计算服务 - 每次请求都从库里重新计算，不使用缓存"""

    def __init__(
        self,
        catalog_repo: CatalogRepository,
        coupon_repo: CouponRepository,
        cart_repo: Optional[CartRepository] = None,
        policy: Optional[PricingPolicy] = None,
        session: Optional[AsyncSession] = None
    ):
        self.catalog_repo = catalog_repo
        self.coupon_repo = coupon_repo
        self.cart_repo = cart_repo
        self.policy = policy or get_pricing_policy()
        self.session = session
        self.aggregator = CartTotalsAggregator(self.policy)

    async def _begin_read(self) -> None:
        if self.session is not None:
            await begin_pricing_read(self.session)

    async def preview_variant_price(
        self,
        variant_id: str,
        quantity: int,
        now: Optional[datetime] = None
    ) -> VariantPriceQuote:
        """
        商品详情页单价预览，不含优惠券

        数量不满足起订量时仍返回价格，quantity_valid 为 False，由前端提示
        """
        await self._begin_read()
        now = now or datetime.now(timezone.utc)

        variant = await self.catalog_repo.get_variant(variant_id)
        if variant is None:
            raise reject(PricingErrorKind.VARIANT_NOT_FOUND, f"商品规格 {variant_id} 不存在或已下架")

        quantity = max(quantity, 1)
        flash_sales = await self.catalog_repo.get_active_flash_sales([variant.product_id], now)

        resolution = self.aggregator.resolver.resolve(variant, quantity)
        resolution = self.aggregator.flash_sales.apply(resolution, flash_sales.get(variant.product_id), now)

        return VariantPriceQuote(
            variant_id=variant.variant_id,
            quantity=quantity,
            unit_price=quantize_money(resolution.price),
            original_price=quantize_money(resolution.original_price),
            price_source=resolution.source,
            applied_slab=resolution.matched_slab,
            line_subtotal=quantize_money(resolution.price * quantity),
            min_order_quantity=self.aggregator.moq_gate.effective_minimum(variant),
            quantity_valid=self.aggregator.moq_gate.is_valid(variant, quantity),
            slabs=variant.pricing_slabs or variant.product_slabs
        )

    async def price_cart(
        self,
        requests: Sequence[LineItemRequest],
        coupon_code: Optional[str] = None,
        payment_method: PaymentMethod = PaymentMethod.PREPAID,
        now: Optional[datetime] = None
    ) -> CartTotals:
        """
        购物车计价

        Args:
            requests: 购物车行 (规格ID, 数量)
            coupon_code: 优惠码，可选
            payment_method: 支付方式，影响货到付款手续费

        Returns:
            CartTotals，金额均保留两位小数
        """
        await self._begin_read()
        return await self._price_requests(requests, coupon_code, payment_method, now)

    async def price_user_cart(
        self,
        user_id: str,
        coupon_code: Optional[str] = None,
        payment_method: PaymentMethod = PaymentMethod.PREPAID,
        now: Optional[datetime] = None
    ) -> CartTotals:
        """对用户已保存的购物车计价，读购物车也在同一个快照里"""
        if self.cart_repo is None:
            raise RuntimeError("未配置购物车仓库")
        await self._begin_read()
        requests = await self.cart_repo.get_user_cart(user_id)
        return await self._price_requests(requests, coupon_code, payment_method, now)

    async def _price_requests(
        self,
        requests: Sequence[LineItemRequest],
        coupon_code: Optional[str],
        payment_method: PaymentMethod,
        now: Optional[datetime]
    ) -> CartTotals:
        now = now or datetime.now(timezone.utc)

        variants = await self.catalog_repo.load_variants([r.variant_id for r in requests])
        product_ids = sorted({v.product_id for v in variants.values()})
        flash_sales = await self.catalog_repo.get_active_flash_sales(product_ids, now)

        coupon = None
        if coupon_code:
            coupon = await self.get_active_coupon(coupon_code)

        totals = self.aggregator.price_cart(
            requests,
            variants,
            coupon=coupon,
            flash_sales=flash_sales,
            payment_method=payment_method,
            now=now
        )
        logger.info(
            f"购物车计价完成: {len(totals.items)} 行, 小计 {totals.subtotal}, "
            f"折扣 {totals.discount}, 应付 {totals.total}"
        )
        return totals

    async def get_active_coupon(self, code: str) -> Coupon:
        """按优惠码取启用中的优惠券，不存在或已停用时拒绝"""
        db_coupon = await self.coupon_repo.get_active_by_code(code)
        if db_coupon is None:
            logger.info(f"优惠码不存在或已停用: {code}")
            raise reject(PricingErrorKind.INVALID_COUPON_CODE)
        return self.coupon_repo.to_model(db_coupon)

