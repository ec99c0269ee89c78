"""FastAPI application for the library catalog.

The database handle is created explicitly in the application lifespan (or
passed in by the caller) and shared through ``app.state``; there is no
module-level client.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import Config
from ..db.sqlite import Database
from ..results import FieldError
from .envelope import failure, success, validation_failure
from .routes import router as books_router
from .uploads import URL_PREFIX, UploadError, UploadStore

logger = logging.getLogger(__name__)

# Location markers pydantic/FastAPI prepend to error paths
_LOCATION_MARKERS = {"body", "query", "path", "header", "cookie"}


def _field_errors(errors: list[dict]) -> list[FieldError]:
    """Flatten pydantic error dicts into field/message pairs."""
    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_MARKERS]
        fields.append(FieldError(field=".".join(loc) or "body", message=error.get("msg", "")))
    return fields


def register_error_handlers(app: FastAPI, config: Config) -> None:
    """Map exceptions raised outside the core onto the response envelope."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return validation_failure(_field_errors(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return validation_failure(_field_errors(exc.errors()))

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError):
        return failure(str(exc), 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return failure(f"Route {request.method} {request.url.path} not found", 404)
        return failure(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Internal server error" if config.is_production else str(exc)
        return failure(message, 500)


def create_app(config: Config, database: Optional[Database] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Application configuration
        database: Pre-built database to use instead of opening ``config.db_path``.
            A database passed in is left open on shutdown; the caller owns it.

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(config.db_path)
        db.create_tables()
        app.state.db = db
        logger.info("Database ready at %s", config.db_path if database is None else db.db_path)
        try:
            yield
        finally:
            if database is None:
                db.dispose()
                logger.info("Database connections closed")

    app = FastAPI(title="Home Library API", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.uploads = UploadStore(config.upload_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    register_error_handlers(app, config)

    @app.get("/api/health")
    def health(request: Request):
        return success(
            {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "version": __version__,
                "database": request.app.state.db.ping(),
            },
            "Library API is running",
        )

    @app.get("/")
    def index():
        return success(
            {
                "version": __version__,
                "endpoints": {
                    "health": "/api/health",
                    "books": "/api/books",
                    "stats": "/api/books/stats",
                    "overdue": "/api/books/overdue",
                },
            },
            "Home Library API",
        )

    app.include_router(books_router, prefix="/api")
    app.mount(URL_PREFIX, StaticFiles(directory=config.upload_dir), name="uploads")

    return app
