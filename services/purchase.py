"""Buying books.

``purchase_book`` runs one buy action:

1. take the copies off the shelf with a single conditional UPDATE (committed
   on its own, this is what prevents overselling);
2. find the buyer by id, then by email, else start a new account;
3. work out the loyalty discount from the spend *before* this purchase;
4. price the order;
5. write the ledger entry and the new lifetime spend in one transaction.

Steps 2-5 commit together. If they fail the copies stay reserved and a
``PersistenceError(stock_reserved=True)`` is raised; that needs manual
reconciliation. Nothing here retries.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crud.book import reserve_stock
from crud.user import get_user, find_user_by_email
from models import Purchase, User
from services.errors import InvalidArgument, InsufficientStock, PersistenceError
from services.pricing import compute_total, discount_rate, parse_quantity, to_decimal

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest"


@dataclass
class BuyerIdentity:
    """Who is buying, as resolved by the caller (login session, form fields...)."""
    user_id: Any = None
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass
class PurchaseResult:
    purchase: Purchase
    new_stock: int
    user_total_spent: Decimal


def coerce_id(value: Any) -> Optional[int]:
    """Turn an id from the wire into an int, or None if it can't be one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


async def resolve_buyer(db: AsyncSession, buyer: BuyerIdentity) -> User:
    """Existing account by id, else by email, else a new unsaved account.

    Read then maybe create, not atomic: two first purchases with the same new
    email can produce two accounts.
    """
    user = None
    user_pk = coerce_id(buyer.user_id)
    if user_pk is not None:
        user = await get_user(db, user_pk)
    if user is None and buyer.email:
        user = await find_user_by_email(db, buyer.email)
    if user is None:
        user = User(name=buyer.name or GUEST_NAME, email=buyer.email or None, total_spent=Decimal("0"))
    return user


async def purchase_book(db: AsyncSession, book_id: Any, quantity: Any, buyer: BuyerIdentity) -> PurchaseResult:
    if book_id is None or book_id == "":
        raise InvalidArgument("Missing bookId")
    book_pk = coerce_id(book_id)
    if book_pk is None:
        raise InvalidArgument(f"Invalid bookId: {book_id!r}")
    qty = parse_quantity(quantity)

    try:
        book = await reserve_stock(db, book_pk, qty)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceError("Could not reserve stock") from exc
    if book is None:
        logger.info("Purchase rejected: book %s has fewer than %s copies or does not exist", book_pk, qty)
        raise InsufficientStock("Not enough stock")

    try:
        user = await resolve_buyer(db, buyer)
        spent = to_decimal(user.total_spent)
        rate = discount_rate(spent)
        total = compute_total(book.price, qty, rate)

        purchase = Purchase(
            user=user,
            book=book,
            quantity=qty,
            total_price=total,
            discount_applied=rate,
        )
        user.total_spent = spent + total
        db.add(user)
        db.add(purchase)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Stock reserved without a purchase record: book=%s quantity=%s buyer=%r. "
            "Reconcile manually.", book_pk, qty, buyer,
        )
        raise PersistenceError("Purchase could not be saved", stock_reserved=True) from exc

    logger.info(
        "Purchase %s: user %s bought %s x book %s for %s (discount %s)",
        purchase.id, user.id, qty, book.id, total, rate,
    )
    return PurchaseResult(purchase=purchase, new_stock=book.number_in_stock, user_total_spent=user.total_spent)
