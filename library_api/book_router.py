from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from .book_service import BookService
from .database import get_db
from .role import admin_required
from .schemas import BookPage, BookRead, CamelModel, Message
from .storage import CoverStorage


def _check_isbn(v):
    # Remove hyphens for validation
    isbn = v.replace('-', '')
    if not (len(isbn) == 10 or len(isbn) == 13) or not isbn.isdigit():
        raise ValueError('ISBN must be a 10 or 13 digit number (hyphens allowed)')
    return v


# pydantic schemas
class BookCreate(CamelModel):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    isbn: str
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    total_stock: int = Field(ge=0)

    @field_validator('isbn')
    @classmethod
    def validate_isbn(cls, v):
        return _check_isbn(v)


class BookUpdate(CamelModel):
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    published_year: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    total_stock: Optional[int] = Field(default=None, ge=0)
    available_stock: Optional[int] = Field(default=None, ge=0)

    @field_validator('isbn')
    @classmethod
    def validate_isbn(cls, v):
        if v is None:
            return v
        return _check_isbn(v)


class CoverUploaded(CamelModel):
    cover_url: str


def get_book_service(db: Session = Depends(get_db)) -> BookService:
    return BookService(db)


def get_cover_storage(request: Request) -> CoverStorage:
    return request.app.state.cover_storage


# router
book_router = APIRouter(prefix="/api/books", tags=["books"])


@book_router.get("/", response_model=BookPage)  # get all the books
def list_books(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    books: BookService = Depends(get_book_service),
):
    return books.get_all(search=search, category=category, page=page, limit=limit)


@book_router.get("/{id}", response_model=BookRead)  # get book by id
def get_book(id: int, books: BookService = Depends(get_book_service)):
    return books.get_by_id(id)


@book_router.post("/", response_model=BookRead, status_code=201, dependencies=[Depends(admin_required)])
def create_book(book: BookCreate, books: BookService = Depends(get_book_service)):
    return books.create(book.model_dump())


@book_router.patch("/{id}", response_model=BookRead, dependencies=[Depends(admin_required)])  # update book by id
def update_book(id: int, book_update: BookUpdate, books: BookService = Depends(get_book_service)):
    # only the fields the client sent, and never a null
    data = {k: v for k, v in book_update.model_dump(exclude_unset=True).items() if v is not None}
    return books.update(id, data)


@book_router.delete("/{id}", response_model=Message, dependencies=[Depends(admin_required)])  # delete book by id
def delete_book(id: int, books: BookService = Depends(get_book_service)):
    books.delete(id)
    return {"message": "Book deleted successfully"}


@book_router.post("/{id}/cover", response_model=CoverUploaded, dependencies=[Depends(admin_required)])
def upload_cover(
    id: int,
    file: UploadFile = File(...),
    books: BookService = Depends(get_book_service),
    storage: CoverStorage = Depends(get_cover_storage),
):
    books.get_by_id(id)
    cover_url = storage.save(id, file.filename, file.file)
    books.set_cover(id, cover_url)
    return {"cover_url": cover_url}
