from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from .database import get_db
from .role import CurrentUser, admin_required, get_current_user_jwt, self_or_admin
from .schemas import CamelModel, Message, UserRead
from .user_service import UserService


# name is the only field a user may change
class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=3)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


user_router = APIRouter(prefix="/api/users", tags=["users"])


@user_router.get("/", response_model=List[UserRead], dependencies=[Depends(admin_required)])
def list_users(users: UserService = Depends(get_user_service)):
    return users.get_all()


@user_router.get("/{id}", response_model=UserRead, dependencies=[Depends(get_current_user_jwt)])
def get_user(id: int, users: UserService = Depends(get_user_service)):
    return users.get_by_id(id)


@user_router.patch("/{id}", response_model=UserRead)
def update_user(
    id: int,
    body: UserUpdate,
    user: CurrentUser = Depends(get_current_user_jwt),
    users: UserService = Depends(get_user_service),
):
    self_or_admin(id, user)
    return users.update(id, name=body.name)


@user_router.delete("/{id}", response_model=Message, dependencies=[Depends(admin_required)])
def delete_user(id: int, users: UserService = Depends(get_user_service)):
    users.delete(id)
    return {"message": "User deleted successfully"}
