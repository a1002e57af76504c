"""
限时抢购覆盖价测试
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone

from pricing_engine.models.cart import PriceResolution
from pricing_engine.models.catalog import FlashSale
from pricing_engine.models.pricing import PriceSource
from pricing_engine.services.flash_sale import FlashSaleOverride


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def resolution():
    return PriceResolution(
        price=Decimal("99.99"),
        original_price=Decimal("120"),
        source=PriceSource.DEFAULT
    )


@pytest.fixture
def flash_sale():
    return FlashSale(
        flash_sale_id="FS-1",
        name="午间秒杀",
        discount_percentage=Decimal("15"),
        start_time=NOW - timedelta(hours=1),
        end_time=NOW + timedelta(hours=1),
        product_ids=["P-TEE"]
    )


class TestFlashSaleOverride:
    """FlashSaleOverride测试类"""

    def test_running_sale_applies_discount(self, resolution, flash_sale):
        result = FlashSaleOverride().apply(resolution, flash_sale, NOW)
        # 99.99 * 0.85 = 84.9915
        assert result.price == Decimal("84.99")
        assert result.source == PriceSource.FLASH_SALE
        assert result.price_before_flash_sale == Decimal("99.99")
        assert result.flash_sale_id == "FS-1"
        assert result.original_price == Decimal("120")

    def test_no_sale(self, resolution):
        assert FlashSaleOverride().apply(resolution, None, NOW) == resolution

    def test_sale_outside_window(self, resolution, flash_sale):
        result = FlashSaleOverride().apply(resolution, flash_sale, NOW + timedelta(hours=2))
        assert result.source == PriceSource.DEFAULT
        assert result.price == Decimal("99.99")

    def test_input_not_mutated(self, resolution, flash_sale):
        FlashSaleOverride().apply(resolution, flash_sale, NOW)
        assert resolution.price == Decimal("99.99")
        assert resolution.flash_sale_id is None
