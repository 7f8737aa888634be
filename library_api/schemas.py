from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# camelCase on the wire, snake_case in python
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# secrets (password, refresh token hash) are never part of it
class UserRead(CamelModel):
    id: int
    email: str
    name: str
    role: str
    token_family_id: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BookRead(CamelModel):
    id: int
    title: str
    author: str
    isbn: str
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    total_stock: int
    available_stock: int
    created_at: datetime
    updated_at: datetime


class LoanRead(CamelModel):
    id: int
    user_id: int
    book_id: int
    borrow_date: datetime
    due_date: datetime
    return_date: Optional[datetime] = None
    status: str
    created_at: datetime
    updated_at: datetime
    book: Optional[BookRead] = None
    user: Optional[UserRead] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BookPage(CamelModel):
    data: List[BookRead]
    pagination: Pagination


class LoanPage(CamelModel):
    data: List[LoanRead]
    pagination: Pagination


class Message(CamelModel):
    message: str
