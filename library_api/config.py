import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in ("false", "0", "no")


# application settings, read from the environment (and .env)
class Settings(BaseModel):
    database_url: str = "sqlite:///./library.db"

    # access token (JWT)
    jwt_secret: str = "super-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 15

    # refresh token lifecycle
    refresh_token_expiry_days: int = 7
    refresh_token_rotation_enabled: bool = True
    max_token_family_age_days: int = 30

    admin_secret_key: str = ""
    bcrypt_rounds: int = 10

    loan_period_days: int = 14

    # cover uploads
    upload_dir: str = "uploads"
    max_upload_size: int = 2 * 1024 * 1024

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./library.db"),
            jwt_secret=os.getenv("JWT_SECRET", "super-secret-key"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expiry_minutes=int(os.getenv("JWT_EXPIRY_MINUTES", "15")),
            refresh_token_expiry_days=int(os.getenv("REFRESH_TOKEN_EXPIRY_DAYS", "7")),
            refresh_token_rotation_enabled=_env_bool("REFRESH_TOKEN_ROTATION_ENABLED", "true"),
            max_token_family_age_days=int(os.getenv("MAX_TOKEN_FAMILY_AGE_DAYS", "30")),
            admin_secret_key=os.getenv("ADMIN_SECRET_KEY", ""),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            loan_period_days=int(os.getenv("LOAN_PERIOD_DAYS", "14")),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_upload_size=int(os.getenv("MAX_UPLOAD_SIZE", str(2 * 1024 * 1024))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
