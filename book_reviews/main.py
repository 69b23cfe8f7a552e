"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests import the module-level `app` and override dependencies

2. Lifespan Events
   - startup: verify the database is reachable; refuse to start otherwise
   - shutdown: release pooled connections

3. Exception Handlers
   - Service errors (book_reviews.exceptions) -> {"error", "detail"} JSON
   - Request validation errors -> validation_error, one message per field
   - Database and unexpected errors -> internal_error, details logged
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from book_reviews.config import get_settings
from book_reviews.database import check_database_connection, engine
from book_reviews.dependencies import DbSession
from book_reviews.exceptions import BookReviewsError, InternalError, ValidationError
from book_reviews.routers import auth_router, books_router, reviews_router
from book_reviews.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")

    try:
        check_database_connection()
    except SQLAlchemyError:
        logger.critical("Database unreachable at startup", exc_info=True)
        raise

    yield

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    engine.dispose()


# =============================================================================
# Error Formatting
# =============================================================================
def _field_messages(exc: RequestValidationError) -> list[str]:
    """One readable message per failing field."""
    messages = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix from the location
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return messages


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Reviews API

Browse a catalogue of books and share ratings and reviews.

### Features
- **Books**: Add, update, delete and search books
- **Reviews**: One review per user per book; each book keeps a live
  average rating and review count

### Authentication
Register, then log in at `/api/v1/auth/login` and send
`Authorization: Bearer <token>` on write requests.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(BookReviewsError)
    async def service_exception_handler(
        request: Request,
        exc: BookReviewsError,
    ) -> JSONResponse:
        """Render a service error with its kind and status."""
        logger.info(
            f"{request.method} {request.url.path} -> "
            f"{exc.status_code} {exc.kind}: {exc.message}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Render request validation failures as a validation_error."""
        error = ValidationError(_field_messages(exc))
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        error = InternalError("A database error occurred. Please try again later.")
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In debug mode the message is returned to the client.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        error = InternalError(str(exc) if settings.debug else None)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API and its database are reachable.",
    )
    def health_check(db: DbSession):
        """Used by load balancers and container orchestrators."""
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Health check: database unavailable", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "unhealthy",
                    "app": settings.app_name,
                    "database": "unavailable",
                },
            )

        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "database": "connected",
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to the {settings.app_name}!",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn book_reviews.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m book_reviews.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "book_reviews.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
