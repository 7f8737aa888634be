from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .config import Settings
from .database import get_db
from .loan_service import LoanService
from .role import CurrentUser, get_current_user_jwt, get_settings, self_or_admin
from .schemas import CamelModel, LoanPage, LoanRead


class LoanCreate(CamelModel):
    book_id: int
    due_date: Optional[datetime] = None


def get_loan_service(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> LoanService:
    return LoanService(db, settings)


loan_router = APIRouter(prefix="/api/loans", tags=["loans"])


@loan_router.get("/", response_model=LoanPage)
def list_loans(
    status: Optional[Literal["active", "returned", "returned_late"]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user_jwt),
    loans: LoanService = Depends(get_loan_service),
):
    return loans.get_all(user, status=status, page=page, limit=limit)


@loan_router.get("/user/{user_id}", response_model=List[LoanRead])
def user_loans(
    user_id: int,
    user: CurrentUser = Depends(get_current_user_jwt),
    loans: LoanService = Depends(get_loan_service),
):
    self_or_admin(user_id, user)
    return loans.get_user_loans(user_id)


@loan_router.get("/{id}", response_model=LoanRead)
def get_loan(id: int, user: CurrentUser = Depends(get_current_user_jwt), loans: LoanService = Depends(get_loan_service)):
    return loans.get_by_id(id, user)


# borrow a book
@loan_router.post("/", response_model=LoanRead, status_code=201)
def borrow_book(
    body: LoanCreate,
    user: CurrentUser = Depends(get_current_user_jwt),
    loans: LoanService = Depends(get_loan_service),
):
    return loans.create(body.book_id, user, due_date=body.due_date)


# return the book
@loan_router.patch("/{id}/return", response_model=LoanRead)
def return_book(id: int, user: CurrentUser = Depends(get_current_user_jwt), loans: LoanService = Depends(get_loan_service)):
    return loans.return_book(id, user)
