# import_books.py — one-off: upsert the catalog from a JSON file by ISBN
#   python import_books.py [path/to/books.json]
import asyncio
import sys

import config
from database import AsyncSessionLocal, engine, init_db
from services.importer import import_books, load_books_file

async def main(path: str) -> int:
    await init_db()
    records = load_books_file(path)
    async with AsyncSessionLocal() as db:
        count = await import_books(db, records)
    await engine.dispose()
    return count

if __name__ == "__main__":
    config.setup_logging()
    path = sys.argv[1] if len(sys.argv) > 1 else config.BOOKS_JSON_PATH
    print(f"Imported {asyncio.run(main(path))} books")
