# crud/purchase.py — purchase ledger (append only)
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Purchase

CART_SIZE = 10

async def get_purchases_for_user(db: AsyncSession, user_id: int, limit: int | None = None) -> List[Purchase]:
    """Newest first, with the book loaded."""
    stmt = (
        select(Purchase)
        .options(selectinload(Purchase.book))
        .where(Purchase.user_id == user_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()

async def get_cart(db: AsyncSession, user_id: int) -> List[Purchase]:
    # There is no paid/unpaid flag yet, so the cart is the most recent purchases
    return await get_purchases_for_user(db, user_id, limit=CART_SIZE)
