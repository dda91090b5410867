# config.py — environment-driven settings
import logging
import os
import sys

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./bookstore.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

# Seed file for the catalog
BOOKS_JSON_PATH = os.getenv("BOOKS_JSON_PATH", "books.json")
AUTO_IMPORT = os.getenv("AUTO_IMPORT", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "8000"))


def setup_logging(level: str = LOG_LEVEL):
    """Send application logs to stdout. No-op if logging is already configured."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
