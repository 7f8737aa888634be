import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from library_api.config import Settings
from library_api.database import Database
from library_api.main import create_app
from library_api.role import CurrentUser
from library_api.tokens import TokenUtils

ADMIN_SECRET = "test-admin-secret"


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'library.db'}",
        jwt_secret="test-jwt-secret",
        admin_secret_key=ADMIN_SECRET,
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        log_level="WARNING",
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db(settings):
    database = Database(settings.database_url).init()
    session = database.session()
    yield session
    session.close()
    database.close()


@pytest.fixture
def tokens(settings):
    return TokenUtils.from_settings(settings)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 9, 0, 0))


def as_current_user(user):
    return CurrentUser(user_id=user.id, email=user.email, role=user.role)
