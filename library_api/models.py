from datetime import datetime, UTC

from sqlalchemy import Column, Integer, String, Text, DateTime, Index, text
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"

LOAN_ACTIVE = "active"
LOAN_RETURNED = "returned"
LOAN_RETURNED_LATE = "returned_late"


# naive UTC, the way every timestamp is stored
def utcnow():
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value):
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


# table for user model
class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_MEMBER)  # 'member' or 'admin'

    # refresh token state, only the hash of the token is kept
    refresh_token = Column(String)
    token_family_id = Column(String)
    token_family_created_at = Column(DateTime)
    refresh_token_expires_at = Column(DateTime)
    last_login_at = Column(DateTime)
    last_token_refresh_at = Column(DateTime)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)



# table for book model
class Book(Base):
    __tablename__ = 'books'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False)
    isbn = Column(String, unique=True, index=True, nullable=False)
    publisher = Column(String)
    published_year = Column(Integer)
    category = Column(String, index=True)
    description = Column(Text)
    cover_image = Column(String)
    total_stock = Column(Integer, nullable=False, default=0)
    available_stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)



# table for loan model
# user_id and book_id are plain ids, deleting a user or book does not touch its loans
class Loan(Base):
    __tablename__ = 'loans'
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    book_id = Column(Integer, nullable=False, index=True)
    borrow_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime)
    status = Column(String, nullable=False, default=LOAN_ACTIVE)  # active, returned, returned_late
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    book = relationship('Book', primaryjoin='foreign(Loan.book_id) == Book.id', viewonly=True)
    user = relationship('User', primaryjoin='foreign(Loan.user_id) == User.id', viewonly=True)

    __table_args__ = (
        # one active loan per (user, book)
        Index(
            'ix_loans_one_active_per_user_book',
            'user_id', 'book_id',
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )
