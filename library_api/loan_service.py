import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .book_service import BookService, paginate
from .config import Settings
from .errors import (
    BookUnavailable,
    DuplicateActiveLoan,
    Forbidden,
    InvalidDueDate,
    LibraryError,
    LoanNotActive,
    LoanNotFound,
    OverdueLoansExist,
)
from .models import (
    Loan,
    LOAN_ACTIVE,
    LOAN_RETURNED,
    LOAN_RETURNED_LATE,
    ROLE_ADMIN,
    as_naive_utc,
    utcnow,
)

logger = logging.getLogger("library_api.loans")


def _can_access(loan: Loan, current_user) -> bool:
    return current_user.role == ROLE_ADMIN or loan.user_id == current_user.user_id


class LoanService:
    """Borrowing and returning books.

    A loan is created ``active`` and moves exactly once to ``returned`` or
    ``returned_late``. Each transition changes the book's available stock by
    one in the same transaction as the loan write.
    """

    def __init__(self, db: Session, settings: Settings, clock=utcnow):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.book_service = BookService(db)

    def _joined(self):
        return self.db.query(Loan).options(joinedload(Loan.book), joinedload(Loan.user))

    def get_all(self, current_user, status=None, page: int = 1, limit: int = 10) -> dict:
        query = self._joined()
        # members only ever see their own loans
        if current_user.role != ROLE_ADMIN:
            query = query.filter(Loan.user_id == current_user.user_id)
        if status:
            query = query.filter(Loan.status == status)
        return paginate(query.order_by(Loan.created_at.desc(), Loan.id.desc()), page, limit)

    def get_by_id(self, loan_id: int, current_user) -> Loan:
        loan = self._joined().filter(Loan.id == loan_id).first()
        if not loan:
            raise LoanNotFound()
        if not _can_access(loan, current_user):
            raise Forbidden()
        return loan

    def get_user_loans(self, user_id: int):
        return (
            self._joined()
            .filter(Loan.user_id == user_id)
            .order_by(Loan.created_at.desc(), Loan.id.desc())
            .all()
        )

    def create(self, book_id: int, current_user, due_date=None) -> Loan:
        book = self.book_service.get_by_id(book_id)

        if book.available_stock <= 0:
            raise BookUnavailable()

        # checks if the user already borrowed this book
        active_loan = self.db.query(Loan).filter(
            Loan.user_id == current_user.user_id,
            Loan.book_id == book_id,
            Loan.status == LOAN_ACTIVE,
        ).first()
        if active_loan:
            raise DuplicateActiveLoan()

        now = self.clock()

        # any overdue loan blocks new borrowing
        overdue = self.db.query(Loan).filter(
            Loan.user_id == current_user.user_id,
            Loan.status == LOAN_ACTIVE,
            Loan.due_date < now,
        ).count()
        if overdue > 0:
            raise OverdueLoansExist()

        due_date = as_naive_utc(due_date) or now + timedelta(days=self.settings.loan_period_days)
        if due_date <= now:
            raise InvalidDueDate()

        loan = Loan(
            user_id=current_user.user_id,
            book_id=book_id,
            borrow_date=now,
            due_date=due_date,
            return_date=None,
            status=LOAN_ACTIVE,
            created_at=now,
            updated_at=now,
        )

        # stock decrement and loan insert commit together or not at all
        try:
            self.book_service.reserve_copy(book_id)
            self.db.add(loan)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateActiveLoan()
        except LibraryError:
            self.db.rollback()
            raise

        logger.info("loan %s created: user %s borrowed book %s", loan.id, loan.user_id, book_id)
        return self.get_by_id(loan.id, current_user)

    def return_book(self, loan_id: int, current_user) -> Loan:
        loan = self.db.query(Loan).filter(Loan.id == loan_id).first()
        if not loan:
            raise LoanNotFound()

        if not _can_access(loan, current_user):
            raise Forbidden()

        if loan.status != LOAN_ACTIVE:
            raise LoanNotActive()

        return_date = self.clock()
        status = LOAN_RETURNED_LATE if return_date > loan.due_date else LOAN_RETURNED
        book_id = loan.book_id

        # only the request that flips the status gives the copy back
        flipped = self.db.query(Loan).filter(Loan.id == loan_id, Loan.status == LOAN_ACTIVE).update(
            {Loan.return_date: return_date, Loan.status: status, Loan.updated_at: return_date},
            synchronize_session=False,
        )
        if flipped == 0:
            self.db.rollback()
            raise LoanNotActive()

        self.book_service.release_copy(book_id)
        self.db.commit()

        logger.info("loan %s %s", loan_id, status)
        return self.get_by_id(loan_id, current_user)
