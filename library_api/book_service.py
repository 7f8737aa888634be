import logging
import math

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .errors import ActiveLoansPreventDeletion, BookNotFound, BookUnavailable, DuplicateISBN, InvalidStock
from .models import Book, Loan, LOAN_ACTIVE, utcnow

logger = logging.getLogger("library_api.books")


def paginate(query, page: int, limit: int) -> dict:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }


class BookService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, search=None, category=None, page: int = 1, limit: int = 10) -> dict:
        query = self.db.query(Book)
        # filters the books by search text and category
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Book.title.ilike(pattern), Book.author.ilike(pattern), Book.isbn.ilike(pattern)))
        if category:
            query = query.filter(Book.category == category)
        return paginate(query.order_by(Book.id), page, limit)

    def get_by_id(self, book_id: int) -> Book:
        book = self.db.query(Book).filter(Book.id == book_id).first()
        if not book:
            raise BookNotFound()
        return book

    def create(self, data: dict) -> Book:
        if self.db.query(Book).filter(Book.isbn == data["isbn"]).first():
            raise DuplicateISBN()
        now = utcnow()
        book = Book(**data, created_at=now, updated_at=now)
        # every copy starts on the shelf
        book.available_stock = book.total_stock
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        logger.info("book %s created (isbn %s)", book.id, book.isbn)
        return book

    def update(self, book_id: int, data: dict) -> Book:
        book = self.get_by_id(book_id)

        isbn = data.get("isbn")
        if isbn is not None and isbn != book.isbn:
            if self.db.query(Book).filter(Book.isbn == isbn, Book.id != book_id).first():
                raise DuplicateISBN()

        total = data.get("total_stock", book.total_stock)
        available = data.get("available_stock", book.available_stock)
        if not 0 <= available <= total:
            raise InvalidStock()
        # copies out on loan still count towards the total
        if "total_stock" in data and total < self._active_loans(book_id):
            raise InvalidStock("Total stock cannot be lower than the number of active loans")

        for field, value in data.items():
            setattr(book, field, value)
        book.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(book)
        return book

    def _active_loans(self, book_id: int) -> int:
        return self.db.query(Loan).filter(Loan.book_id == book_id, Loan.status == LOAN_ACTIVE).count()

    def delete(self, book_id: int) -> bool:
        if self._active_loans(book_id) > 0:
            raise ActiveLoansPreventDeletion()

        book = self.get_by_id(book_id)
        self.db.delete(book)
        self.db.commit()
        logger.info("book %s deleted", book_id)
        return True

    def set_cover(self, book_id: int, cover_url: str) -> Book:
        return self.update(book_id, {"cover_image": cover_url})

    # stock changes used by loans; the caller commits
    def reserve_copy(self, book_id: int) -> None:
        taken = self.db.query(Book).filter(Book.id == book_id, Book.available_stock > 0).update(
            {Book.available_stock: Book.available_stock - 1, Book.updated_at: utcnow()},
            synchronize_session=False,
        )
        if taken == 0:
            raise BookUnavailable()

    def release_copy(self, book_id: int) -> None:
        released = self.db.query(Book).filter(Book.id == book_id, Book.available_stock < Book.total_stock).update(
            {Book.available_stock: Book.available_stock + 1, Book.updated_at: utcnow()},
            synchronize_session=False,
        )
        if released == 0:
            # book deleted, or every copy already counted as available
            logger.warning("stock of book %s not incremented on return", book_id)
