import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .config import Settings
from .errors import Forbidden
from .models import ROLE_ADMIN
from .tokens import TokenUtils

bearer_scheme = HTTPBearer(auto_error=False)


# identity taken from a verified access token
class CurrentUser(BaseModel):
    user_id: int
    email: str
    role: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenUtils:
    return request.app.state.tokens


def _unauthorized(detail: str = "Unauthorized"):
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _identity(credentials, tokens: TokenUtils, verify_exp: bool) -> CurrentUser:
    if credentials is None:
        raise _unauthorized()
    try:
        payload = tokens.decode_access_token(credentials.credentials, verify_exp=verify_exp)
        return CurrentUser(user_id=int(payload["sub"]), email=payload.get("email", ""), role=payload.get("role", ""))
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise _unauthorized()


# Dependency to get current user from JWT
def get_current_user_jwt(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    tokens: TokenUtils = Depends(get_tokens),
) -> CurrentUser:
    return _identity(credentials, tokens, verify_exp=True)


# refresh exchanges an expired access token, the signature must still be valid
def get_refresh_identity(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    tokens: TokenUtils = Depends(get_tokens),
) -> CurrentUser:
    return _identity(credentials, tokens, verify_exp=False)


# Role-based dependencies
def admin_required(user: CurrentUser = Depends(get_current_user_jwt)) -> CurrentUser:
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return user


def self_or_admin(user_id: int, user: CurrentUser):
    if user.role != ROLE_ADMIN and user.user_id != user_id:
        raise Forbidden()


def admin_secret_required(
    x_admin_secret: str = Header(None),
    settings: Settings = Depends(get_settings),
):
    if not settings.admin_secret_key or x_admin_secret != settings.admin_secret_key:
        raise HTTPException(status_code=401, detail="Invalid or missing admin secret")
