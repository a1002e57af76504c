"""
购物车Repository测试
"""

import pytest

from pricing_engine.repositories.cart_repository import CartRepository


@pytest.mark.asyncio
class TestCartRepository:
    """购物车Repository测试类"""

    async def test_set_and_get_cart(self, seeded_catalog):
        repo = CartRepository(seeded_catalog)

        await repo.set_item("user-1", "V-TEE-M", 10)
        await repo.set_item("user-1", "V-MUG", 12)
        await repo.set_item("user-1", "V-TEE-M", 20)
        await seeded_catalog.commit()

        cart = await repo.get_user_cart("user-1")
        assert {(item.variant_id, item.quantity) for item in cart} == {("V-TEE-M", 20), ("V-MUG", 12)}
        assert await repo.get_user_cart("user-2") == []

    async def test_clear(self, seeded_catalog):
        repo = CartRepository(seeded_catalog)
        await repo.set_item("user-1", "V-MUG", 12)

        assert await repo.clear("user-1") == 1
        assert await repo.get_user_cart("user-1") == []
