# crud/book.py — catalog store: queries, CRUD, ISBN upsert and stock reservation
from typing import List, Optional

from sqlalchemy import select, or_, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Book
from services.errors import InvalidArgument

async def get_books(
    db: AsyncSession,
    search: str = "",
    title: str | None = None,
    author: str | None = None,
    category: str | None = None,
) -> List[Book]:
    """Free-text ``search`` ORs title/author/category; otherwise the per-field filters AND together."""
    stmt = select(Book)
    if search:
        stmt = stmt.where(or_(
            Book.title.ilike(f"%{search}%"),
            Book.author.ilike(f"%{search}%"),
            Book.category.ilike(f"%{search}%"),
        ))
    else:
        if title:
            stmt = stmt.where(Book.title.ilike(f"%{title}%"))
        if author:
            stmt = stmt.where(Book.author.ilike(f"%{author}%"))
        if category:
            stmt = stmt.where(Book.category.ilike(f"%{category}%"))
    # id breaks ties so equal titles always come back in the same order
    result = await db.execute(stmt.order_by(Book.title, Book.id))
    return result.scalars().all()

async def get_book(db: AsyncSession, book_id: int) -> Optional[Book]:
    result = await db.execute(select(Book).where(Book.id == book_id))
    return result.scalar_one_or_none()

async def find_book_by_isbn(db: AsyncSession, isbn: str) -> Optional[Book]:
    if not isbn:
        return None
    result = await db.execute(select(Book).where(Book.isbn == isbn))
    return result.scalar_one_or_none()

async def count_books(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Book))
    return result.scalar_one()

async def create_book(db: AsyncSession, book_data: dict) -> Book:
    new_book = Book(**book_data)
    db.add(new_book)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidArgument(f"A book with ISBN {book_data.get('isbn')} already exists")
    await db.refresh(new_book)
    return new_book

async def update_book(db: AsyncSession, book_id: int, book_data: dict) -> Optional[Book]:
    """Partial update. Returns None when the book does not exist."""
    book = await get_book(db, book_id)
    if book is None:
        return None
    for key, value in book_data.items():
        setattr(book, key, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidArgument("Update rejected: duplicate ISBN or invalid value")
    await db.refresh(book)
    return book

async def delete_book(db: AsyncSession, book_id: int) -> bool:
    result = await db.execute(delete(Book).where(Book.id == book_id))
    await db.commit()
    return result.rowcount > 0

async def upsert_by_isbn(db: AsyncSession, book_data: dict) -> Book:
    """Update the book with this ISBN, or create it"""
    existing = await find_book_by_isbn(db, book_data["isbn"])

    if existing:
        for key, value in book_data.items():
            setattr(existing, key, value)
        await db.commit()
        await db.refresh(existing)
        return existing
    else:
        new_book = Book(**book_data)
        db.add(new_book)
        await db.commit()
        await db.refresh(new_book)
        return new_book

async def reserve_stock(db: AsyncSession, book_id: int, quantity: int) -> Optional[Book]:
    """Take ``quantity`` copies off the shelf in one conditional UPDATE.

    The row only changes when it still holds at least ``quantity`` copies, so
    concurrent buyers can never push the count below zero. Commits on success.
    Returns the book with its new stock, or None when the book is missing or
    short.
    """
    result = await db.execute(
        update(Book)
        .where(Book.id == book_id, Book.number_in_stock >= quantity)
        .values(number_in_stock=Book.number_in_stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        return None
    book = await db.get(Book, book_id, populate_existing=True)
    await db.commit()
    return book
