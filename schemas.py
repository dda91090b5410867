from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def camel(*names):
    """Accept the camelCase wire name as well as the python name."""
    return AliasChoices(*names)


class BookBase(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: str = Field(..., min_length=1)
    category: Optional[str] = None
    price: float = Field(..., ge=0)
    number_in_stock: int = Field(0, ge=0, validation_alias=camel("numberInStock", "number_in_stock"))

class BookCreate(BookBase):
    pass

class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    isbn: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    number_in_stock: Optional[int] = Field(None, ge=0, validation_alias=camel("numberInStock", "number_in_stock"))

class Book(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    author: str
    isbn: str
    category: Optional[str] = None
    price: float
    number_in_stock: int = Field(alias="numberInStock")


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    total_spent: float = Field(alias="totalSpent")

class LoginRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None

class LoginResponse(BaseModel):
    success: bool = True
    user: User


class PurchaseRequest(BaseModel):
    # Loosely typed on purpose: bad ids and quantities are rejected by the
    # purchase service with a 400, not by request validation
    book_id: Any = Field(None, validation_alias=camel("bookId", "book_id"))
    quantity: Any = None
    user_id: Any = Field(None, validation_alias=camel("userId", "user_id"))
    name: Optional[str] = None
    email: Optional[str] = None

class Purchase(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    book_id: Optional[int] = Field(None, alias="bookId")
    quantity: int
    total_price: float = Field(alias="totalPrice")
    discount_applied: float = Field(alias="discountApplied")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    book: Optional[Book] = None

class PurchaseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    purchase: Purchase
    new_stock: int = Field(alias="newStock")
    user_total_spent: float = Field(alias="userTotalSpent")


class ImportResult(BaseModel):
    imported: int
