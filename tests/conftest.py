"""Fixtures: a throwaway SQLite file per test and an ASGI client bound to it."""
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import get_db, init_db, make_engine
from main import app
from models import Book


@pytest.fixture
async def engine(tmp_path):
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def add_book(session_factory):
    async def _add(**overrides) -> Book:
        data = {
            "title": "Dune",
            "author": "Frank Herbert",
            "isbn": "9780441172719",
            "category": "Science Fiction",
            "price": Decimal("20.00"),
            "number_in_stock": 5,
        }
        data.update(overrides)
        async with session_factory() as session:
            book = Book(**data)
            session.add(book)
            await session.commit()
            await session.refresh(book)
            return book
    return _add


@pytest.fixture
def stock_of(session_factory):
    """Read a book's stock through a fresh session."""
    async def _stock(book_id: int) -> int:
        async with session_factory() as session:
            result = await session.execute(select(Book.number_in_stock).where(Book.id == book_id))
            return result.scalar_one()
    return _stock


@pytest.fixture
def count_rows(session_factory):
    async def _count(model) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()
    return _count
