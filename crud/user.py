# crud/user.py — account store
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User

async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()

async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    # Emails are not unique; the oldest account wins
    result = await db.execute(
        select(User).where(User.email == email).order_by(User.id).limit(1)
    )
    return result.scalar_one_or_none()

async def login_or_create(db: AsyncSession, name: str, email: str) -> User:
    """Find the account for this email or register it. A changed name is saved."""
    user = await find_user_by_email(db, email)
    if user is None:
        user = User(name=name, email=email, total_spent=0)
        db.add(user)
    elif user.name != name:
        user.name = name
    await db.commit()
    await db.refresh(user)
    return user
