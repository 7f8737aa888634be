import secrets
import uuid
from datetime import datetime, timedelta, UTC

import jwt
from passlib.context import CryptContext


class TokenUtils:
    """Password and token primitives.

    Refresh tokens are opaque random strings; only their bcrypt hash is ever
    stored. Access tokens are signed JWTs carrying the user id (``sub``),
    email and role.
    """

    def __init__(self, jwt_secret: str, jwt_algorithm: str = "HS256",
                 access_token_minutes: int = 15, bcrypt_rounds: int = 10):
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.access_token_minutes = access_token_minutes
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=bcrypt_rounds)

    @classmethod
    def from_settings(cls, settings) -> "TokenUtils":
        return cls(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            access_token_minutes=settings.jwt_expiry_minutes,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    # passwords
    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        return self.pwd_context.verify(password, hashed)

    # refresh tokens
    @staticmethod
    def generate_refresh_token() -> str:
        return secrets.token_hex(32)

    def hash_refresh_token(self, token: str) -> str:
        return self.pwd_context.hash(token)

    def verify_refresh_token(self, token: str, hashed_token: str) -> bool:
        try:
            return self.pwd_context.verify(token, hashed_token)
        except ValueError:
            # stored value is not a bcrypt hash
            return False

    @staticmethod
    def generate_token_family() -> str:
        return str(uuid.uuid4())

    # access tokens
    def create_access_token(self, user_id, email: str, role: str) -> str:
        issued_at = datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.access_token_minutes),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def decode_access_token(self, token: str, verify_exp: bool = True) -> dict:
        # raises jwt.InvalidTokenError (ExpiredSignatureError included)
        return jwt.decode(
            token,
            self.jwt_secret,
            algorithms=[self.jwt_algorithm],
            options={"verify_exp": verify_exp, "require": ["sub", "exp"]},
        )
