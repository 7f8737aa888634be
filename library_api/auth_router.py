from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from .auth_service import AuthService
from .config import Settings
from .database import get_db
from .role import (
    CurrentUser,
    admin_secret_required,
    get_current_user_jwt,
    get_refresh_identity,
    get_settings,
    get_tokens,
)
from .schemas import CamelModel, Message, UserRead
from .tokens import TokenUtils


# auth schemas
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=3)


class CreateAdminRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=3)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenUtils = Depends(get_tokens),
) -> AuthService:
    return AuthService(db, settings, tokens)


# auth router
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.register(body.email, body.password, body.name)


@router.post("/login")
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.login(body.email, body.password)


@router.post("/refresh")
def refresh(
    body: RefreshRequest,
    user: CurrentUser = Depends(get_refresh_identity),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.refresh_token(user.user_id, body.refresh_token)


@router.post("/logout", response_model=Message)
def logout(user: CurrentUser = Depends(get_current_user_jwt), auth: AuthService = Depends(get_auth_service)):
    return auth.logout(user.user_id)


@router.get("/me", response_model=UserRead)
def me(user: CurrentUser = Depends(get_current_user_jwt), auth: AuthService = Depends(get_auth_service)):
    return auth.get_current_user(user.user_id)


@router.post("/create-admin", status_code=201, dependencies=[Depends(admin_secret_required)])
def create_admin(body: CreateAdminRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.create_admin(body.email, body.password, body.name)
