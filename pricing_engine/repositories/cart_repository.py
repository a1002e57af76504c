"""
购物车数据库操作层
"""

import uuid
from typing import List

from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.models.cart import LineItemRequest
from pricing_engine.models.database.cart_db import CartItemDB


class CartRepository:
    """购物车数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_cart(self, user_id: str) -> List[LineItemRequest]:
        """获取用户购物车，按加入顺序返回"""
        result = await self.db.execute(
            select(CartItemDB)
            .where(CartItemDB.user_id == user_id)
            .order_by(CartItemDB.created_at, CartItemDB.cart_item_id)
        )
        return [
            LineItemRequest(variant_id=row.variant_id, quantity=row.quantity)
            for row in result.scalars().all()
        ]

    async def set_item(self, user_id: str, variant_id: str, quantity: int) -> CartItemDB:
        """加入购物车或修改数量"""
        result = await self.db.execute(
            select(CartItemDB).where(
                and_(CartItemDB.user_id == user_id, CartItemDB.variant_id == variant_id)
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            item = CartItemDB(
                cart_item_id=str(uuid.uuid4()),
                user_id=user_id,
                variant_id=variant_id,
                quantity=quantity
            )
            self.db.add(item)
        else:
            item.quantity = quantity
        await self.db.flush()
        return item

    async def clear(self, user_id: str) -> int:
        """清空购物车"""
        result = await self.db.execute(
            delete(CartItemDB).where(CartItemDB.user_id == user_id)
        )
        return result.rowcount
