"""
测试配置文件 - pytest fixtures和共用配置
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from pricing_engine.core.database import Base
from pricing_engine.models.catalog import MOQConfig, Slab, Variant
from pricing_engine.models.coupon import AllCart, Coupon, DiscountType
from pricing_engine.models.database.catalog_db import (
    ProductDB,
    ProductCategoryDB,
    ProductVariantDB,
    PricingSlabDB,
    MOQSettingDB
)
from pricing_engine.models.database.coupon_db import CouponDB, CouponCategoryDB
from pricing_engine.models.database.cart_db import CartItemDB  # noqa: F401


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """测试数据库引擎 - 内存SQLite，每个测试独立"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    # 创建表结构
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db_engine) -> AsyncSession:
    """测试数据库会话"""
    async_session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest_asyncio.fixture
async def seeded_catalog(db_session):
    """
    示例商品目录

    P-TEE (品牌 B-BASIC, 分类 C-APPAREL): 规格 V-TEE-M 原价120 售价100，阶梯 10-49:90, 50+:80
    P-MUG (品牌 B-HOME, 分类 C-KITCHEN): 规格 V-MUG 原价50，商品级阶梯 20+:40，商品级起订量 12
    P-OLD: 已下架
    """
    tee = ProductDB(product_id="P-TEE", product_name="纯棉T恤", brand_id="B-BASIC", is_active=True)
    tee.categories = [ProductCategoryDB(category_id="C-APPAREL")]
    mug = ProductDB(product_id="P-MUG", product_name="陶瓷杯", brand_id="B-HOME", is_active=True)
    mug.categories = [ProductCategoryDB(category_id="C-KITCHEN")]
    old = ProductDB(product_id="P-OLD", product_name="旧款", brand_id="B-BASIC", is_active=False)
    db_session.add_all([tee, mug, old])
    await db_session.flush()

    db_session.add_all([
        ProductVariantDB(variant_id="V-TEE-M", product_id="P-TEE", sku="TEE-M",
                         price=Decimal("120.00"), sale_price=Decimal("100.00"), quantity=0, is_active=True),
        ProductVariantDB(variant_id="V-MUG", product_id="P-MUG", sku="MUG",
                         price=Decimal("50.00"), quantity=100, is_active=True),
        ProductVariantDB(variant_id="V-OLD", product_id="P-OLD", sku="OLD",
                         price=Decimal("10.00"), quantity=0, is_active=True),
    ])
    await db_session.flush()

    db_session.add_all([
        PricingSlabDB(slab_id="S-1", product_id="P-TEE", variant_id="V-TEE-M",
                      min_qty=10, max_qty=49, price=Decimal("90.00")),
        PricingSlabDB(slab_id="S-2", product_id="P-TEE", variant_id="V-TEE-M",
                      min_qty=50, max_qty=None, price=Decimal("80.00")),
        PricingSlabDB(slab_id="S-3", product_id="P-MUG", variant_id=None,
                      min_qty=20, max_qty=None, price=Decimal("40.00")),
        MOQSettingDB(moq_id="M-1", scope="PRODUCT", product_id="P-MUG", min_quantity=12, is_active=True),
        MOQSettingDB(moq_id="M-2", scope="GLOBAL", min_quantity=1, is_active=True),
    ])
    await db_session.commit()
    db_session.expunge_all()
    return db_session


@pytest_asyncio.fixture
async def seeded_coupons(db_session):
    """示例优惠券：整单九折、服装分类券、已停用券、限用一次的券"""
    now = datetime.now(timezone.utc)

    all_cart = CouponDB(
        coupon_id="CP-ALL", code="SAVE10", discount_type="PERCENTAGE", discount_value=Decimal("10"),
        start_date=now - timedelta(days=1), end_date=now + timedelta(days=30),
        max_uses=100, used_count=0, is_active=True
    )
    apparel = CouponDB(
        coupon_id="CP-APPAREL", code="APPAREL50", discount_type="FIXED_AMOUNT", discount_value=Decimal("50"),
        min_order_amount=Decimal("200"), start_date=now - timedelta(days=1),
        max_uses=None, used_count=0, is_active=True
    )
    apparel.categories = [CouponCategoryDB(category_id="C-APPAREL")]
    disabled = CouponDB(
        coupon_id="CP-OFF", code="OFF", discount_type="PERCENTAGE", discount_value=Decimal("20"),
        used_count=0, is_active=False
    )
    once = CouponDB(
        coupon_id="CP-ONCE", code="ONCE", discount_type="FIXED_AMOUNT", discount_value=Decimal("5"),
        max_uses=1, used_count=0, is_active=True
    )
    db_session.add_all([all_cart, apparel, disabled, once])
    await db_session.commit()
    db_session.expunge_all()
    return db_session


# ---------------------------------------------------------------------------
# 领域对象工厂
# ---------------------------------------------------------------------------

@pytest.fixture
def tiered_variant():
    """阶梯 10-49:90, 50+:80，售价100"""
    return Variant(
        variant_id="V-TEE-M",
        product_id="P-TEE",
        base_price=Decimal("120"),
        sale_price=Decimal("100"),
        pricing_slabs=[
            Slab(slab_id="S-1", min_qty=10, max_qty=49, price=Decimal("90")),
            Slab(slab_id="S-2", min_qty=50, max_qty=None, price=Decimal("80")),
        ],
        category_ids=["C-APPAREL"],
        brand_id="B-BASIC"
    )


@pytest.fixture
def moq_variant():
    """起订量12"""
    return Variant(
        variant_id="V-MUG",
        product_id="P-MUG",
        base_price=Decimal("50"),
        moq=MOQConfig(is_active=True, min_quantity=12),
        stock=100,
        category_ids=["C-KITCHEN"],
        brand_id="B-HOME"
    )


def make_coupon(**overrides) -> Coupon:
    """构造优惠券，默认整单10%"""
    data = {
        "coupon_id": "CP-TEST",
        "code": "TEST",
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "target": AllCart(),
    }
    data.update(overrides)
    return Coupon(**data)


@pytest.fixture
def coupon_factory():
    return make_coupon
