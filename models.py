# models.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (CheckConstraint("number_in_stock >= 0", name="ck_books_stock_non_negative"),)
    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=False, index=True)
    isbn = Column(String, nullable=False, unique=True, index=True)
    category = Column(String, nullable=True)
    price = Column(Numeric(12, 4), nullable=False)
    number_in_stock = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=True)
    # Not unique: duplicate accounts per email are tolerated
    email = Column(String, nullable=True, index=True)
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Purchase(Base):
    __tablename__ = "purchases"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    discount_applied = Column(Numeric(4, 2), default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    book = relationship("Book", lazy="raise")
    user = relationship("User", lazy="raise")
