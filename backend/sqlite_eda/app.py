import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from sqlite_eda.api.routes import router
from sqlite_eda.core.config import Settings, get_settings
from sqlite_eda.core.database import SQLiteDatabase, create_database
from sqlite_eda.core.errors import ErrorCodes, get_error_response
from sqlite_eda.core.logging import configure_logging
from sqlite_eda.core.middleware import CorrelationIDMiddleware, TimeoutMiddleware

logger = logging.getLogger(__name__)


# Custom rate limit exception handler with structured error response
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded with structured error response."""
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    error_info = get_error_response(ErrorCodes.RATE_LIMIT_EXCEEDED)
    error_info['correlation_id'] = correlation_id
    return JSONResponse(
        status_code=429,
        content=error_info,
        headers={
            "Retry-After": str(exc.retry_after) if hasattr(exc, 'retry_after') else "60",
            "X-Correlation-ID": correlation_id
        }
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if app.state.database is not None:
        app.state.database.close()


def create_app(settings: Optional[Settings] = None, database: Optional[SQLiteDatabase] = None) -> FastAPI:
    """
    Build the API application.

    When no database is given, one is opened from ``settings.database_path``
    if that is set. Without a database the data endpoints answer 503.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    if database is None and settings.database_path:
        database = create_database(settings.database_type, settings.database_path)

    app = FastAPI(
        title="SQLite EDA API",
        description="Exploratory data analysis for SQLite databases",
        version="1.0.0",
        lifespan=lifespan
    )

    # Store limiter, settings and database in app state for use in routes
    app.state.limiter = Limiter(key_func=get_remote_address)
    app.state.settings = settings
    app.state.database = database

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    # Add middleware in order (last added is first executed)
    # 1. Request timeout middleware
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    # 2. Compression middleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # 3. CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
        expose_headers=["X-Correlation-ID"]
    )

    # 4. Correlation ID middleware (outermost, so every log line carries the ID)
    app.add_middleware(CorrelationIDMiddleware)

    logger.info(f"CORS allowed origins: {settings.allowed_origins_list}")

    app.include_router(router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": "SQLite EDA API is running"}

    if database is None:
        logger.warning("No database configured; data endpoints will return 503")
    logger.info("Application started successfully")
    return app


