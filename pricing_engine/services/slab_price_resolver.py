"""
阶梯价解析
根据购买数量从规格的阶梯价中选出成交单价，没有命中时回落到售价/原价
"""

import logging
from typing import List, Optional, Tuple

from pricing_engine.core.exceptions import reject
from pricing_engine.models.cart import PriceResolution
from pricing_engine.models.catalog import Slab, Variant
from pricing_engine.models.pricing import PriceSource, PricingErrorKind, SlabScope

logger = logging.getLogger(__name__)


class SlabPriceResolver:
    """阶梯价解析器 - 无状态，可并发复用"""

    def resolve(self, variant: Variant, quantity: int) -> PriceResolution:
        """
        解析指定数量下的单价

        规格级阶梯优先；规格级没有命中时再看商品级阶梯；都没有命中时取参考价。
        同一层级内按最小数量倒序扫描，数量能满足的门槛最高的阶梯胜出。
        这里不做舍入，舍入只在最终展示/汇总时进行。
        """
        original_price = variant.reference_price

        for scope, slabs in (
            (SlabScope.VARIANT, variant.pricing_slabs),
            (SlabScope.PRODUCT, variant.product_slabs),
        ):
            slab = self._match(slabs, quantity, variant.variant_id)
            if slab is not None:
                return PriceResolution(
                    price=slab.price,
                    original_price=original_price,
                    source=PriceSource.SLAB,
                    matched_slab=slab,
                    slab_scope=scope
                )

        return PriceResolution(
            price=original_price,
            original_price=original_price,
            source=PriceSource.DEFAULT
        )

    def _match(self, slabs: List[Slab], quantity: int, variant_id: str) -> Optional[Slab]:
        for slab in self._ordered(slabs, variant_id):
            if slab.covers(quantity):
                return slab
        return None

    @staticmethod
    def _ordered(slabs: List[Slab], variant_id: str) -> List[Slab]:
        """校验阶梯数据并按最小数量倒序排列"""
        for slab in slabs:
            if slab.price is None or slab.price <= 0:
                logger.error(f"规格 {variant_id} 的阶梯价缺少有效单价: min_qty={slab.min_qty}")
                raise reject(PricingErrorKind.INVALID_PRICING_DATA)
        return sorted(slabs, key=_sort_key, reverse=True)


def _sort_key(slab: Slab) -> Tuple[int, int]:
    # 倒序后：最小数量相同时，有封顶的阶梯排在不封顶的前面
    return slab.min_qty, slab.max_qty if slab.max_qty is not None else 0


# 全局实例
slab_price_resolver = SlabPriceResolver()
