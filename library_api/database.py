import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .models import Base

logger = logging.getLogger("library_api.database")


class Database:
    """Owns the engine and session factory for one database URL.

    Created by the application factory; ``init()`` runs at startup and
    ``close()`` at shutdown.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine = None
        self.SessionLocal = None

    def init(self) -> "Database":
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self.engine = create_engine(self.url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(self.engine)
        logger.info("database ready at %s", self.engine.url.render_as_string(hide_password=True))
        return self

    def session(self):
        if self.SessionLocal is None:
            raise RuntimeError("Database not initialized")
        return self.SessionLocal()

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("database connection closed")
        self.engine = None
        self.SessionLocal = None


# get the database session
def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
