"""
限时抢购覆盖价
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pricing_engine.config.pricing_rules import quantize_money
from pricing_engine.models.cart import PriceResolution
from pricing_engine.models.catalog import FlashSale
from pricing_engine.models.pricing import PriceSource


class FlashSaleOverride:
    """在阶梯价/默认价的基础上叠加进行中的抢购折扣"""

    def apply(
        self,
        resolution: PriceResolution,
        flash_sale: Optional[FlashSale],
        now: datetime
    ) -> PriceResolution:
        if flash_sale is None or not flash_sale.is_running(now):
            return resolution

        price_before = resolution.price
        discount = price_before * flash_sale.discount_percentage / Decimal("100")

        return resolution.model_copy(update={
            "price": quantize_money(price_before - discount),
            "source": PriceSource.FLASH_SALE,
            "price_before_flash_sale": price_before,
            "flash_sale_id": flash_sale.flash_sale_id,
        })


flash_sale_override = FlashSaleOverride()
