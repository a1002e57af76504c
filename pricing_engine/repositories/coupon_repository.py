"""
优惠券数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update, and_, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.models.coupon import Coupon, CouponCreate, CouponUsage, DiscountType, build_target_rule
from pricing_engine.models.database.coupon_db import (
    CouponDB,
    CouponCategoryDB,
    CouponProductDB,
    CouponBrandDB,
    CouponUsageDB
)


class CouponRepository:
    """优惠券数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[CouponDB]:
        """根据优惠码获取优惠券，不区分大小写"""
        result = await self.db.execute(
            select(CouponDB).where(CouponDB.code == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def get_active_by_code(self, code: str) -> Optional[CouponDB]:
        """根据优惠码获取启用中的优惠券"""
        result = await self.db.execute(
            select(CouponDB).where(
                and_(
                    CouponDB.code == code.strip().upper(),
                    CouponDB.is_active.is_(True)
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_by_coupon_id(self, coupon_id: str) -> Optional[CouponDB]:
        """根据优惠券ID获取优惠券"""
        result = await self.db.execute(
            select(CouponDB).where(CouponDB.coupon_id == coupon_id)
        )
        return result.scalar_one_or_none()

    async def create_coupon(self, coupon_data: CouponCreate) -> CouponDB:
        """创建优惠券及其定向关联"""
        db_coupon = CouponDB(
            coupon_id=str(uuid.uuid4()),
            code=coupon_data.code,
            description=coupon_data.description,
            discount_type=coupon_data.discount_type.value,
            discount_value=coupon_data.discount_value,
            min_order_amount=coupon_data.min_order_amount,
            start_date=coupon_data.start_date,
            end_date=coupon_data.end_date,
            max_uses=coupon_data.max_uses,
            used_count=0,
            is_active=coupon_data.is_active
        )
        db_coupon.categories = [CouponCategoryDB(category_id=cid) for cid in coupon_data.category_ids]
        db_coupon.products = [CouponProductDB(product_id=pid) for pid in coupon_data.product_ids]
        db_coupon.brands = [CouponBrandDB(brand_id=bid) for bid in coupon_data.brand_ids]

        self.db.add(db_coupon)
        await self.db.flush()
        return db_coupon

    async def redeem(self, coupon_id: str) -> bool:
        """
        核销一次优惠券：条件更新，已用次数+1

        检查与递增在同一条UPDATE里完成，并发下 used_count 不会超过 max_uses。

        Returns:
            True 表示核销成功；False 表示优惠券已停用或次数已用完
        """
        result = await self.db.execute(
            update(CouponDB)
            .where(
                and_(
                    CouponDB.coupon_id == coupon_id,
                    CouponDB.is_active.is_(True),
                    or_(
                        CouponDB.max_uses.is_(None),
                        CouponDB.used_count < CouponDB.max_uses
                    )
                )
            )
            .values(
                used_count=CouponDB.used_count + 1,
                updated_at=datetime.now(timezone.utc)
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def record_usage(
        self,
        coupon_id: str,
        code: str,
        user_id: str,
        discount_amount: Decimal,
        order_id: Optional[str] = None
    ) -> CouponUsageDB:
        """记录核销明细"""
        usage = CouponUsageDB(
            usage_id=str(uuid.uuid4()),
            coupon_id=coupon_id,
            code=code,
            user_id=user_id,
            order_id=order_id,
            discount_amount=discount_amount,
            used_at=datetime.now(timezone.utc)
        )
        self.db.add(usage)
        await self.db.flush()
        return usage

    async def get_user_usage_history(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0
    ) -> List[CouponUsageDB]:
        """获取用户优惠券使用历史"""
        result = await self.db.execute(
            select(CouponUsageDB)
            .where(CouponUsageDB.user_id == user_id)
            .order_by(desc(CouponUsageDB.used_at))
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()

    def to_model(self, db_coupon: CouponDB) -> Coupon:
        """转换为Pydantic模型"""
        return Coupon(
            coupon_id=db_coupon.coupon_id,
            code=db_coupon.code,
            description=db_coupon.description,
            discount_type=DiscountType(db_coupon.discount_type),
            discount_value=db_coupon.discount_value,
            min_order_amount=db_coupon.min_order_amount,
            max_uses=db_coupon.max_uses,
            used_count=db_coupon.used_count or 0,
            start_date=db_coupon.start_date,
            end_date=db_coupon.end_date,
            is_active=bool(db_coupon.is_active),
            target=build_target_rule(
                category_ids=[c.category_id for c in db_coupon.categories],
                product_ids=[p.product_id for p in db_coupon.products],
                brand_ids=[b.brand_id for b in db_coupon.brands]
            )
        )

    def usage_to_model(self, db_usage: CouponUsageDB) -> CouponUsage:
        return CouponUsage(
            usage_id=db_usage.usage_id,
            coupon_id=db_usage.coupon_id,
            code=db_usage.code,
            user_id=db_usage.user_id,
            order_id=db_usage.order_id,
            discount_amount=db_usage.discount_amount,
            used_at=db_usage.used_at
        )
