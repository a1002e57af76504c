"""
优惠券Repository数据库操作测试
"""

import asyncio
import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from pricing_engine.core.database import Base
from pricing_engine.models.coupon import AllCart, ByCategory, Combined, CouponCreate, DiscountType
from pricing_engine.models.database.coupon_db import CouponDB, CouponUsageDB
from pricing_engine.repositories.coupon_repository import CouponRepository


async def used_count(session, coupon_id: str) -> int:
    """直接从库里读取已使用次数"""
    result = await session.execute(select(CouponDB.used_count).where(CouponDB.coupon_id == coupon_id))
    return result.scalar() or 0


async def usage_rows(session, coupon_id: str) -> int:
    result = await session.execute(
        select(func.count(CouponUsageDB.usage_id)).where(CouponUsageDB.coupon_id == coupon_id)
    )
    return result.scalar() or 0


@pytest.mark.asyncio
class TestCouponRepository:
    """优惠券Repository数据库操作测试类"""

    async def test_get_by_code_is_case_insensitive(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        coupon = await repo.get_by_code("save10")
        assert coupon is not None
        assert coupon.coupon_id == "CP-ALL"

    async def test_get_active_by_code_skips_disabled(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        assert await repo.get_by_code("OFF") is not None
        assert await repo.get_active_by_code("OFF") is None

    async def test_get_nonexistent_coupon(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)
        assert await repo.get_active_by_code("NONEXISTENT") is None

    async def test_to_model_builds_target_rule(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        apparel = repo.to_model(await repo.get_by_code("APPAREL50"))
        assert apparel.target == ByCategory(category_ids=frozenset({"C-APPAREL"}))
        assert apparel.discount_type == DiscountType.FIXED_AMOUNT
        assert apparel.min_order_amount == Decimal("200")
        assert apparel.start_date.tzinfo is not None

        everything = repo.to_model(await repo.get_by_code("SAVE10"))
        assert everything.target == AllCart()

    async def test_create_coupon_with_targets(self, db_session):
        repo = CouponRepository(db_session)
        start = datetime.now(timezone.utc)

        db_coupon = await repo.create_coupon(CouponCreate(
            code="mix",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("15"),
            start_date=start,
            end_date=start + timedelta(days=3),
            category_ids=["C1"],
            brand_ids=["B1"]
        ))
        await db_session.commit()

        coupon = repo.to_model(db_coupon)
        assert coupon.code == "MIX"
        assert isinstance(coupon.target, Combined)
        assert coupon.target.brand_ids == frozenset({"B1"})

    async def test_redeem_respects_max_uses(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        assert await repo.redeem("CP-ONCE") is True
        assert await repo.redeem("CP-ONCE") is False
        await seeded_coupons.commit()

        assert await used_count(seeded_coupons, "CP-ONCE") == 1

    async def test_redeem_unlimited_coupon(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        for _ in range(3):
            assert await repo.redeem("CP-APPAREL") is True
        assert await used_count(seeded_coupons, "CP-APPAREL") == 3

    async def test_redeem_disabled_coupon(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)
        assert await repo.redeem("CP-OFF") is False
        assert await used_count(seeded_coupons, "CP-OFF") == 0

    async def test_record_usage(self, seeded_coupons):
        repo = CouponRepository(seeded_coupons)

        usage = await repo.record_usage(
            coupon_id="CP-ALL",
            code="SAVE10",
            user_id="user-1",
            discount_amount=Decimal("12.50"),
            order_id="O-1"
        )
        await seeded_coupons.commit()

        assert await usage_rows(seeded_coupons, "CP-ALL") == 1
        history = await repo.get_user_usage_history("user-1")
        assert [h.usage_id for h in history] == [usage.usage_id]
        assert repo.usage_to_model(history[0]).discount_amount == Decimal("12.50")


@pytest.mark.asyncio
class TestCouponRedeemRace:
    """并发核销测试 - 文件数据库，每个请求独立连接"""

    async def test_concurrent_redeem_single_use(self, tmp_path):
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'race.db'}",
            connect_args={"timeout": 30}
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_maker() as session:
            session.add(CouponDB(
                coupon_id="CP-RACE", code="RACE", discount_type="FIXED_AMOUNT",
                discount_value=Decimal("10"), max_uses=1, used_count=0, is_active=True
            ))
            await session.commit()

        async def attempt() -> bool:
            async with session_maker() as session:
                redeemed = await CouponRepository(session).redeem("CP-RACE")
                await session.commit()
                return redeemed

        try:
            results = await asyncio.gather(*[attempt() for _ in range(8)])

            assert results.count(True) == 1
            async with session_maker() as session:
                assert await used_count(session, "CP-RACE") == 1
        finally:
            await engine.dispose()
