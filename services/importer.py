# services/importer.py — bulk catalog import from loosely typed records
import json
import logging
from typing import Dict, Iterable, List

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from crud.book import count_books, upsert_by_isbn
from schemas import BookCreate
from services.errors import InvalidArgument

logger = logging.getLogger(__name__)

# canonical field -> spellings seen in the wild, preferred first
FIELD_NAMES = {
    "title": ("title", "Title"),
    "isbn": ("isbn", "ISBN"),
    "author": ("author", "Author"),
    "category": ("category", "Category"),
    "price": ("price", "Price"),
    "number_in_stock": ("numberInStock", "NumberInStock", "number_in_stock"),
}

def _pick(item: Dict, names) -> object:
    for name in names:
        value = item.get(name)
        if value is not None and value != "":
            return value
    return None

def normalize_record(item: Dict) -> Dict:
    """Map an external record (either casing) to the catalog's field names.

    Pure function; does not validate.
    """
    doc = {field: _pick(item, names) for field, names in FIELD_NAMES.items()}
    if doc["isbn"] is not None:
        doc["isbn"] = str(doc["isbn"]).strip()
    if doc["number_in_stock"] is None:
        doc["number_in_stock"] = 0
    return doc

def to_book_create(item: Dict) -> BookCreate:
    """Normalize and validate one record. Raises InvalidArgument."""
    try:
        return BookCreate.model_validate(normalize_record(item))
    except ValidationError as e:
        raise InvalidArgument(f"Invalid book record: {e.errors()[0]['loc']} {e.errors()[0]['msg']}")

def load_books_file(path: str) -> List[Dict]:
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise InvalidArgument(f"{path} must hold a JSON array of books")
    return data

async def import_books(db: AsyncSession, records: Iterable[Dict]) -> int:
    """Upsert every record by ISBN. Invalid records are skipped; returns how many were saved."""
    count = 0
    for item in records:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object import record: %r", item)
            continue
        try:
            book = to_book_create(item)
        except InvalidArgument as e:
            logger.warning("Skipping import record %r: %s", item.get("isbn") or item.get("ISBN"), e)
            continue
        await upsert_by_isbn(db, book.model_dump())
        count += 1
    logger.info("Imported %d books", count)
    return count

async def auto_import(db: AsyncSession, path: str) -> int:
    """Seed an empty catalog from ``path``; a populated catalog is left alone."""
    existing = await count_books(db)
    if existing > 0:
        logger.info("Database already has %d books. Skipping auto-import.", existing)
        return 0
    try:
        records = load_books_file(path)
    except FileNotFoundError:
        logger.warning("No seed file at %s. Starting with an empty catalog.", path)
        return 0
    return await import_books(db, records)
