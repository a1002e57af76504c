"""
定价系统数据库表创建脚本

运行方式:
python scripts/create_pricing_tables.py
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy import text
from pricing_engine.core.config import settings
from pricing_engine.core.database import Base

# 导入所有数据库模型以确保表被注册
from pricing_engine.models.database.catalog_db import (
    ProductDB,
    ProductCategoryDB,
    ProductVariantDB,
    PricingSlabDB,
    MOQSettingDB
)
from pricing_engine.models.database.coupon_db import CouponDB, CouponCategoryDB
from pricing_engine.models.database.cart_db import CartItemDB  # noqa: F401


async def create_database_if_not_exists():
    """创建数据库（如果不存在）"""
    # 连接到PostgreSQL服务器（不指定数据库）
    server_url = settings.database_url_computed.replace(f"/{settings.db_name}", "/postgres")

    engine = create_async_engine(server_url, isolation_level="AUTOCOMMIT")

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": settings.db_name}
        )

        if not result.fetchone():
            await conn.execute(text(f"CREATE DATABASE {settings.db_name}"))
            print(f"数据库 '{settings.db_name}' 创建成功")
        else:
            print(f"数据库 '{settings.db_name}' 已存在")

    await engine.dispose()


async def create_tables(engine):
    """创建所有数据表"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        print("所有数据表创建成功")


async def create_indexes(engine):
    """创建额外的索引"""
    indexes = [
        "CREATE INDEX IF NOT EXISTS idx_pricing_slabs_lookup ON pricing_slabs(product_id, variant_id, min_qty);",
        "CREATE INDEX IF NOT EXISTS idx_coupons_validity ON coupons(start_date, end_date);",
        "CREATE INDEX IF NOT EXISTS idx_coupon_usage_user_time ON coupon_usage(user_id, used_at);",
        "CREATE INDEX IF NOT EXISTS idx_flash_sales_window ON flash_sales(start_time, end_time);"
    ]

    async with engine.begin() as conn:
        for index_sql in indexes:
            await conn.execute(text(index_sql))
        print("所有索引创建成功")


async def insert_sample_data(engine):
    """插入示例商品、阶梯价和优惠券"""
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    now = datetime.now(timezone.utc)

    async with session_maker() as session:
        existing = await session.execute(text("SELECT 1 FROM products WHERE product_id = 'P-TEE'"))
        if existing.fetchone():
            print("示例数据已存在")
            return

        product = ProductDB(product_id="P-TEE", product_name="纯棉T恤", brand_id="B-BASIC", is_active=True)
        product.categories = [ProductCategoryDB(category_id="C-APPAREL")]
        session.add(product)
        await session.flush()

        session.add_all([
            ProductVariantDB(
                variant_id="V-TEE-M", product_id="P-TEE", sku="TEE-M",
                price=Decimal("120.00"), sale_price=Decimal("100.00"), quantity=500, is_active=True
            ),
            PricingSlabDB(slab_id="S-1", product_id="P-TEE", variant_id="V-TEE-M",
                          min_qty=10, max_qty=49, price=Decimal("90.00")),
            PricingSlabDB(slab_id="S-2", product_id="P-TEE", variant_id="V-TEE-M",
                          min_qty=50, max_qty=None, price=Decimal("80.00")),
            MOQSettingDB(moq_id="M-1", scope="PRODUCT", product_id="P-TEE", min_quantity=2, is_active=True),
        ])

        coupon = CouponDB(
            coupon_id="welcome", code="WELCOME10", description="新用户九折券",
            discount_type="PERCENTAGE", discount_value=Decimal("10"),
            min_order_amount=Decimal("200.00"), start_date=now, end_date=now + timedelta(days=30),
            max_uses=1000, used_count=0, is_active=True
        )
        coupon.categories = [CouponCategoryDB(category_id="C-APPAREL")]
        session.add(coupon)

        await session.commit()
        print("示例数据插入成功")


async def main():
    """主函数"""
    print("开始创建定价系统数据库表...")

    try:
        await create_database_if_not_exists()

        engine = create_async_engine(settings.database_url_computed)
        try:
            await create_tables(engine)
            await create_indexes(engine)
            await insert_sample_data(engine)
        finally:
            await engine.dispose()

        print("定价系统数据库初始化完成！")

    except Exception as e:
        print(f"数据库初始化失败: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
