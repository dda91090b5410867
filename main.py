# main.py — Bookstore API: catalog, accounts and purchases
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Depends, HTTPException, Body
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

import config
from database import init_db, get_db, engine, AsyncSessionLocal
from crud.book import get_books, get_book, create_book, update_book, delete_book
from crud.purchase import get_purchases_for_user, get_cart
from crud.user import get_user, login_or_create
from schemas import (
    Book as BookOut, BookUpdate, User as UserOut, LoginRequest, LoginResponse,
    Purchase as PurchaseOut, PurchaseRequest, PurchaseResponse, ImportResult,
)
from services.errors import InvalidArgument, InsufficientStock, PersistenceError
from services.importer import auto_import, import_books, load_books_file, to_book_create
from services.purchase import BuyerIdentity, purchase_book, coerce_id

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    config.setup_logging()
    await init_db()
    if config.AUTO_IMPORT:
        async with AsyncSessionLocal() as db:
            await auto_import(db, config.BOOKS_JSON_PATH)
    logger.info("Bookstore API started")
    yield
    await engine.dispose()

app = FastAPI(title="Bookstore API", version="1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _id_or_404(value: str, what: str) -> int:
    pk = coerce_id(value)
    if pk is None:
        raise HTTPException(404, f"{what} not found")
    return pk

@app.get("/")
async def root():
    return {"status": "Bookstore API", "version": "1.0"}

# ─────────────────────── BOOKS ───────────────────────
@app.get("/api/books", response_model=List[BookOut])
async def list_books(
    search: str = "",
    title: str | None = None,
    author: str | None = None,
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await get_books(db, search=search, title=title, author=author, category=category)

@app.post("/api/books/import", response_model=ImportResult)
async def import_books_route(
    books: Optional[List[Dict[str, Any]]] = Body(None),
    db: AsyncSession = Depends(get_db),
):
    # No body: re-read the seed file
    if books is None:
        try:
            books = load_books_file(config.BOOKS_JSON_PATH)
        except (OSError, ValueError, InvalidArgument) as e:
            logger.error("Import from %s failed: %s", config.BOOKS_JSON_PATH, e)
            raise HTTPException(500, f"Could not read {config.BOOKS_JSON_PATH}: {e}")
    imported = await import_books(db, books)
    return ImportResult(imported=imported)

@app.get("/api/books/{book_id}", response_model=BookOut)
async def get_book_route(book_id: str, db: AsyncSession = Depends(get_db)):
    book = await get_book(db, _id_or_404(book_id, "Book"))
    if not book:
        raise HTTPException(404, "Book not found")
    return book

@app.post("/api/books", response_model=BookOut, status_code=201)
async def create_book_route(data: Dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    # Same normalization as the import, so both casings are accepted
    try:
        book_data = to_book_create(data)
        return await create_book(db, book_data.model_dump())
    except InvalidArgument as e:
        raise HTTPException(400, str(e))

@app.put("/api/books/{book_id}", response_model=BookOut)
async def update_book_route(book_id: str, updates: BookUpdate, db: AsyncSession = Depends(get_db)):
    try:
        book = await update_book(db, _id_or_404(book_id, "Book"), updates.model_dump(exclude_unset=True))
    except InvalidArgument as e:
        raise HTTPException(400, str(e))
    if not book:
        raise HTTPException(404, "Book not found")
    return book

@app.delete("/api/books/{book_id}")
async def delete_book_route(book_id: str, db: AsyncSession = Depends(get_db)):
    if not await delete_book(db, _id_or_404(book_id, "Book")):
        raise HTTPException(404, "Book not found")
    return {"success": True}

# ─────────────────────── PURCHASES ───────────────────────
@app.get("/api/purchases/user/{user_id}", response_model=List[PurchaseOut])
async def user_purchases(user_id: str, db: AsyncSession = Depends(get_db)):
    pk = coerce_id(user_id)
    return await get_purchases_for_user(db, pk) if pk is not None else []

@app.get("/api/purchases/cart/{user_id}", response_model=List[PurchaseOut])
async def user_cart(user_id: str, db: AsyncSession = Depends(get_db)):
    pk = coerce_id(user_id)
    return await get_cart(db, pk) if pk is not None else []

@app.post("/api/purchases", response_model=PurchaseResponse)
async def create_purchase(request: PurchaseRequest, db: AsyncSession = Depends(get_db)):
    buyer = BuyerIdentity(user_id=request.user_id, email=request.email, name=request.name)
    try:
        result = await purchase_book(db, request.book_id, request.quantity, buyer)
    except (InvalidArgument, InsufficientStock) as e:
        raise HTTPException(400, str(e))
    except PersistenceError as e:
        if e.stock_reserved:
            raise HTTPException(500, f"{e}. Stock was reserved; contact support before retrying.")
        raise HTTPException(500, str(e))
    return PurchaseResponse(
        purchase=PurchaseOut.model_validate(result.purchase),
        new_stock=result.new_stock,
        user_total_spent=result.user_total_spent,
    )

# ─────────────────────── USERS ───────────────────────
@app.post("/api/users/login", response_model=LoginResponse)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    if not request.name or not request.email:
        raise HTTPException(400, "Name and email are required")
    user = await login_or_create(db, request.name, request.email)
    return LoginResponse(user=UserOut.model_validate(user))

@app.get("/api/users/{user_id}", response_model=UserOut)
async def get_user_route(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await get_user(db, _id_or_404(user_id, "User"))
    if not user:
        raise HTTPException(404, "User not found")
    return user

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
