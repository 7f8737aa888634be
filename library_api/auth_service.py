import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from .config import Settings
from .errors import (
    InvalidCredentials,
    InvalidRefreshToken,
    NoRefreshToken,
    RefreshTokenExpired,
    TokenFamilyExpired,
    UserNotFound,
)
from .models import ROLE_ADMIN, ROLE_MEMBER, utcnow
from .tokens import TokenUtils
from .user_service import UserService

logger = logging.getLogger("library_api.auth")


@dataclass
class RefreshTokenData:
    token: str
    hashed_token: str
    family_id: str
    expires_at: datetime


class AuthService:
    """Registration, login and the refresh-token lifecycle.

    Each login starts a token family. With rotation enabled every refresh
    replaces the stored hash, keeping the family id. Presenting a token that
    does not match the stored hash (a replayed, already-rotated token) ends
    the whole family, so a stolen token is only good until either party
    uses it a second time.
    """

    def __init__(self, db: Session, settings: Settings, tokens: TokenUtils, clock=utcnow):
        self.users = UserService(db)
        self.settings = settings
        self.tokens = tokens
        self.clock = clock

    def register(self, email: str, password: str, name: str) -> dict:
        user = self.users.insert(email, self.tokens.hash_password(password), name, role=ROLE_MEMBER)
        logger.info("registered user %s", user.id)
        return {"message": "User registered successfully", "userId": user.id}

    def create_admin(self, email: str, password: str, name: str) -> dict:
        user = self.users.insert(email, self.tokens.hash_password(password), name, role=ROLE_ADMIN)
        logger.info("created admin user %s", user.id)
        return {"message": "Admin user created successfully", "userId": user.id, "role": ROLE_ADMIN}

    def login(self, email: str, password: str) -> dict:
        user = self.users.find_by_email(email)
        # same error for unknown email and wrong password
        if not user or not self.tokens.verify_password(password, user.password):
            logger.warning("failed login attempt")
            raise InvalidCredentials()

        access_token = self.tokens.create_access_token(user.id, user.email, user.role)
        refresh = self.create_refresh_token()
        self.users.store_session(user.id, refresh.hashed_token, refresh.family_id, refresh.expires_at, self.clock())
        logger.info("user %s logged in, token family %s", user.id, refresh.family_id)

        return {
            "accessToken": access_token,
            "refreshToken": refresh.token,
            "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
        }

    def refresh_token(self, user_id, presented_token: str) -> dict:
        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFound()

        if not user.refresh_token:
            raise NoRefreshToken()

        stored_hash = user.refresh_token
        family_id = user.token_family_id

        if not self.tokens.verify_refresh_token(presented_token, stored_hash):
            # possible reuse of a rotated token: end the whole family
            self.users.clear_session(user.id)
            logger.warning("refresh token mismatch for user %s, token family %s terminated", user.id, family_id)
            raise InvalidRefreshToken()

        now = self.clock()

        if user.refresh_token_expires_at and user.refresh_token_expires_at < now:
            self.users.clear_session(user.id)
            logger.info("refresh token expired for user %s", user.id)
            raise RefreshTokenExpired()

        if user.token_family_created_at:
            family_age = now - user.token_family_created_at
            if family_age > timedelta(days=self.settings.max_token_family_age_days):
                self.users.clear_session(user.id)
                logger.info("token family %s of user %s expired", family_id, user.id)
                raise TokenFamilyExpired()

        result = {"accessToken": self.tokens.create_access_token(user.id, user.email, user.role)}

        if self.settings.refresh_token_rotation_enabled:
            rotated = self.create_refresh_token()
            swapped = self.users.rotate_refresh_token(
                user.id, stored_hash, rotated.hashed_token, rotated.expires_at, now
            )
            if not swapped:
                # a concurrent refresh already consumed this token
                self.users.clear_session(user.id)
                logger.warning("concurrent refresh for user %s, token family %s terminated", user.id, family_id)
                raise InvalidRefreshToken()
            result["refreshToken"] = rotated.token

        return result

    def logout(self, user_id) -> dict:
        self.users.clear_session(user_id)
        logger.info("user %s logged out", user_id)
        return {"message": "Logged out successfully"}

    def get_current_user(self, user_id):
        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFound()
        return user

    def create_refresh_token(self) -> RefreshTokenData:
        token = self.tokens.generate_refresh_token()
        return RefreshTokenData(
            token=token,
            hashed_token=self.tokens.hash_refresh_token(token),
            family_id=self.tokens.generate_token_family(),
            expires_at=self.clock() + timedelta(days=self.settings.refresh_token_expiry_days),
        )
