"""
商品目录数据库操作层 - 只读
把规格、阶梯价、起订量、分类、品牌组装成计价用的 Variant 快照
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.models.catalog import FlashSale, MOQScope, MOQSetting, Slab, Variant
from pricing_engine.models.database.catalog_db import (
    FlashSaleDB,
    MOQSettingDB,
    PricingSlabDB,
    ProductVariantDB
)
from pricing_engine.services.moq_gate import resolve_moq

logger = logging.getLogger(__name__)


class CatalogRepository:
    """商品目录数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_variant(self, variant_id: str) -> Optional[Variant]:
        """获取单个可售规格的定价快照"""
        variants = await self.load_variants([variant_id])
        return variants.get(variant_id)

    async def load_variants(self, variant_ids: Iterable[str]) -> Dict[str, Variant]:
        """
        批量加载可售规格

        下架的规格或商品不会出现在结果里，调用方据此判断 VARIANT_NOT_FOUND
        """
        ids = sorted(set(variant_ids))
        if not ids:
            return {}

        result = await self.db.execute(
            select(ProductVariantDB).where(
                and_(
                    ProductVariantDB.variant_id.in_(ids),
                    ProductVariantDB.is_active.is_(True)
                )
            )
        )
        db_variants = [v for v in result.scalars().all() if v.product is not None and v.product.is_active]
        if not db_variants:
            return {}

        product_ids = sorted({v.product_id for v in db_variants})
        slabs = await self._load_slabs(product_ids)
        moq_settings = await self._load_moq_settings(product_ids, ids)

        variants = {}
        for db_variant in db_variants:
            variant_slabs = slabs.get((db_variant.product_id, db_variant.variant_id), [])
            product_slabs = slabs.get((db_variant.product_id, None), [])
            variants[db_variant.variant_id] = self.to_model(
                db_variant,
                pricing_slabs=variant_slabs,
                product_slabs=product_slabs,
                moq_settings=moq_settings
            )
        return variants

    async def _load_slabs(self, product_ids: List[str]) -> Dict[tuple, List[Slab]]:
        """按 (商品ID, 规格ID) 分组加载阶梯价，规格ID为None表示商品级"""
        result = await self.db.execute(
            select(PricingSlabDB)
            .where(PricingSlabDB.product_id.in_(product_ids))
            .order_by(PricingSlabDB.min_qty, PricingSlabDB.slab_id)
        )
        grouped = defaultdict(list)
        for row in result.scalars().all():
            grouped[(row.product_id, row.variant_id)].append(Slab(
                slab_id=row.slab_id,
                min_qty=row.min_qty,
                max_qty=row.max_qty,
                price=row.price
            ))
        return grouped

    async def _load_moq_settings(self, product_ids: List[str], variant_ids: List[str]) -> List[MOQSetting]:
        """加载与这些商品/规格相关的起订量配置，包括全局配置"""
        result = await self.db.execute(
            select(MOQSettingDB).where(
                and_(
                    MOQSettingDB.is_active.is_(True),
                    or_(
                        MOQSettingDB.scope == MOQScope.GLOBAL.value,
                        MOQSettingDB.product_id.in_(product_ids),
                        MOQSettingDB.variant_id.in_(variant_ids)
                    )
                )
            ).order_by(MOQSettingDB.moq_id)
        )
        return [
            MOQSetting(
                moq_id=row.moq_id,
                scope=MOQScope(row.scope),
                product_id=row.product_id,
                variant_id=row.variant_id,
                min_quantity=row.min_quantity,
                is_active=row.is_active
            )
            for row in result.scalars().all()
        ]

    async def get_active_flash_sales(
        self,
        product_ids: Iterable[str],
        now: Optional[datetime] = None
    ) -> Dict[str, FlashSale]:
        """
        获取商品当前进行中的抢购活动，按商品ID索引

        先按活动时间过滤，再在进行中的活动里取折扣最大的；
        已结束或未开始的活动不参与比较
        """
        now = now or datetime.now(timezone.utc)
        wanted = set(product_ids)
        if not wanted:
            return {}

        result = await self.db.execute(
            select(FlashSaleDB)
            .where(FlashSaleDB.is_active.is_(True))
            .order_by(FlashSaleDB.flash_sale_id)
        )

        by_product = {}
        for row in result.scalars().all():
            flash_sale = FlashSale(
                flash_sale_id=row.flash_sale_id,
                name=row.name,
                discount_percentage=row.discount_percentage,
                start_time=row.start_time,
                end_time=row.end_time,
                is_active=row.is_active,
                product_ids=[p.product_id for p in row.products]
            )
            if not flash_sale.is_running(now):
                continue
            for product_id in flash_sale.product_ids:
                if product_id not in wanted:
                    continue
                current = by_product.get(product_id)
                if current is None or flash_sale.discount_percentage > current.discount_percentage:
                    by_product[product_id] = flash_sale
        return by_product

    def to_model(
        self,
        db_variant: ProductVariantDB,
        pricing_slabs: List[Slab],
        product_slabs: List[Slab],
        moq_settings: List[MOQSetting]
    ) -> Variant:
        """转换为计价快照"""
        sale_price = db_variant.sale_price
        if sale_price is not None and (sale_price <= 0 or sale_price >= db_variant.price):
            logger.warning(f"规格 {db_variant.variant_id} 售价 {sale_price} 不低于原价 {db_variant.price}，忽略售价")
            sale_price = None

        product = db_variant.product
        return Variant(
            variant_id=db_variant.variant_id,
            product_id=db_variant.product_id,
            sku=db_variant.sku,
            base_price=db_variant.price,
            sale_price=sale_price,
            moq=resolve_moq(moq_settings, db_variant.variant_id, db_variant.product_id),
            pricing_slabs=pricing_slabs,
            product_slabs=product_slabs,
            stock=db_variant.quantity or 0,
            category_ids=sorted(c.category_id for c in product.categories),
            brand_id=product.brand_id
        )
