"""
PriceCalculatorService业务逻辑测试
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from pricing_engine.core.exceptions import PricingException
from pricing_engine.models.cart import LineItemRequest
from pricing_engine.models.catalog import FlashSale
from pricing_engine.models.database.coupon_db import CouponDB
from pricing_engine.models.pricing import PaymentMethod, PriceSource, PricingErrorKind, PricingPolicy
from pricing_engine.repositories.cart_repository import CartRepository
from pricing_engine.repositories.catalog_repository import CatalogRepository
from pricing_engine.repositories.coupon_repository import CouponRepository
from pricing_engine.services.price_calculator_service import PriceCalculatorService


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
class TestPriceCalculatorService:
    """PriceCalculatorService业务逻辑测试类"""

    @pytest.fixture
    def mock_catalog_repo(self, tiered_variant, moq_variant):
        repo = AsyncMock(spec=CatalogRepository)
        variants = {v.variant_id: v for v in (tiered_variant, moq_variant)}
        repo.load_variants.side_effect = lambda ids: {i: variants[i] for i in ids if i in variants}
        repo.get_variant.side_effect = lambda variant_id: variants.get(variant_id)
        repo.get_active_flash_sales.return_value = {}
        return repo

    @pytest.fixture
    def mock_coupon_repo(self):
        return AsyncMock(spec=CouponRepository)

    @pytest.fixture
    def mock_cart_repo(self):
        return AsyncMock(spec=CartRepository)

    @pytest.fixture
    def service(self, mock_catalog_repo, mock_coupon_repo, mock_cart_repo):
        return PriceCalculatorService(
            mock_catalog_repo,
            mock_coupon_repo,
            mock_cart_repo,
            policy=PricingPolicy(cod_charge=Decimal("25"))
        )

    async def test_preview_slab_price(self, service):
        """测试商品详情页阶梯价预览"""
        quote = await service.preview_variant_price("V-TEE-M", 50, now=NOW)

        assert quote.unit_price == Decimal("80.00")
        assert quote.original_price == Decimal("100.00")
        assert quote.price_source == PriceSource.SLAB
        assert quote.line_subtotal == Decimal("4000.00")
        assert quote.quantity_valid is True
        assert len(quote.slabs) == 2

    async def test_preview_below_moq_still_priced(self, service):
        """测试低于起订量时仍返回价格并标记数量不合法"""
        quote = await service.preview_variant_price("V-MUG", 11, now=NOW)

        assert quote.unit_price == Decimal("50.00")
        assert quote.min_order_quantity == 12
        assert quote.quantity_valid is False

    async def test_preview_with_flash_sale(self, service, mock_catalog_repo):
        """测试预览价包含进行中的抢购折扣"""
        mock_catalog_repo.get_active_flash_sales.return_value = {
            "P-TEE": FlashSale(
                flash_sale_id="FS-1",
                name="秒杀",
                discount_percentage=Decimal("50"),
                start_time=NOW - timedelta(hours=1),
                end_time=NOW + timedelta(hours=1),
                product_ids=["P-TEE"]
            )
        }
        quote = await service.preview_variant_price("V-TEE-M", 1, now=NOW)
        assert quote.unit_price == Decimal("50.00")
        assert quote.price_source == PriceSource.FLASH_SALE

    async def test_preview_unknown_variant(self, service):
        """测试规格不存在"""
        with pytest.raises(PricingException) as exc_info:
            await service.preview_variant_price("V-NOPE", 1)
        assert exc_info.value.kind == PricingErrorKind.VARIANT_NOT_FOUND

    async def test_price_cart_with_coupon(self, service, mock_coupon_repo, coupon_factory):
        """测试结账计价：优惠券与货到付款手续费"""
        mock_coupon_repo.get_active_by_code.return_value = CouponDB(coupon_id="CP-TEST", code="TEST")
        mock_coupon_repo.to_model.return_value = coupon_factory()

        totals = await service.price_cart(
            [LineItemRequest(variant_id="V-TEE-M", quantity=10)],
            coupon_code="test",
            payment_method=PaymentMethod.CASH_ON_DELIVERY,
            now=NOW
        )

        assert totals.subtotal == Decimal("900.00")
        assert totals.discount == Decimal("90.00")
        assert totals.surcharge == Decimal("25.00")
        assert totals.total == Decimal("835.00")

    async def test_price_cart_unknown_coupon(self, service, mock_coupon_repo):
        """测试优惠码不存在"""
        mock_coupon_repo.get_active_by_code.return_value = None

        with pytest.raises(PricingException) as exc_info:
            await service.price_cart([LineItemRequest(variant_id="V-TEE-M", quantity=1)], coupon_code="NOPE")
        assert exc_info.value.kind == PricingErrorKind.INVALID_COUPON_CODE

    async def test_price_user_cart(self, service, mock_cart_repo):
        """测试对已保存购物车计价"""
        mock_cart_repo.get_user_cart.return_value = [
            LineItemRequest(variant_id="V-MUG", quantity=12),
        ]

        totals = await service.price_user_cart("user-1", now=NOW)

        assert totals.total == Decimal("600.00")
        mock_cart_repo.get_user_cart.assert_called_once_with("user-1")

    async def test_price_user_cart_empty_with_coupon(self, service, mock_cart_repo, mock_coupon_repo, coupon_factory):
        """测试空购物车应用优惠券"""
        mock_cart_repo.get_user_cart.return_value = []
        mock_coupon_repo.get_active_by_code.return_value = CouponDB(coupon_id="CP-TEST", code="TEST")
        mock_coupon_repo.to_model.return_value = coupon_factory()

        with pytest.raises(PricingException) as exc_info:
            await service.price_user_cart("user-1", coupon_code="TEST", now=NOW)
        assert exc_info.value.kind == PricingErrorKind.EMPTY_CART

    async def test_price_user_cart_starts_pricing_read_first(
        self, mock_catalog_repo, mock_coupon_repo, mock_cart_repo
    ):
        """测试读取购物车之前先固定读取快照，且整个请求只设置一次隔离级别"""
        calls = []
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "postgresql"
        session.in_transaction.return_value = False
        session.connection = AsyncMock(side_effect=lambda **kwargs: calls.append("connection"))

        def get_user_cart(user_id):
            calls.append("cart")
            return [LineItemRequest(variant_id="V-MUG", quantity=12)]

        mock_cart_repo.get_user_cart.side_effect = get_user_cart
        service = PriceCalculatorService(
            mock_catalog_repo, mock_coupon_repo, mock_cart_repo,
            policy=PricingPolicy(), session=session
        )

        totals = await service.price_user_cart("user-1", now=NOW)

        assert totals.total == Decimal("600.00")
        assert calls == ["connection", "cart"]
        session.connection.assert_awaited_once()

    async def test_price_cart_passes_now_to_flash_sales(self, service, mock_catalog_repo):
        """测试抢购活动按同一个计价时间筛选"""
        await service.price_cart([LineItemRequest(variant_id="V-TEE-M", quantity=1)], now=NOW)

        mock_catalog_repo.get_active_flash_sales.assert_awaited_once_with(["P-TEE"], NOW)
