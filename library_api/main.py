import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .auth_router import router
from .book_router import book_router
from .config import Settings, configure_logging
from .database import Database
from .errors import LibraryError
from .loan_router import loan_router
from .storage import CoverStorage
from .tokens import TokenUtils
from .user_router import user_router

logger = logging.getLogger("library_api")


async def library_error_handler(request: Request, exc: LibraryError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    database = Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        os.makedirs(settings.upload_dir, exist_ok=True)
        database.init()
        logger.info("library api started")
        yield
        database.close()

    app = FastAPI(title="Library API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.tokens = TokenUtils.from_settings(settings)
    app.state.cover_storage = CoverStorage(settings.upload_dir, settings.max_upload_size)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.add_exception_handler(LibraryError, library_error_handler)

    app.include_router(router)
    app.include_router(book_router)
    app.include_router(user_router)
    app.include_router(loan_router)

    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    @app.get("/")
    def root():
        return {"name": "Library API", "status": "ok"}

    return app
