"""
Database Configuration Module

SQLAlchemy 2.0 setup for the Book Reviews API.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives -> create a new session
2. Use session for all database operations in that request
3. Services commit on success, roll back on failure
4. Close session when request ends

Concurrency correctness (one review per user per book, unique title/author)
rests on the database constraints declared on the models, not on anything
held in process memory.
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from book_reviews.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# - pool_pre_ping: Test connection health before using
# - echo: Log all SQL statements in debug mode
#
# SQLite (used by the test suite) does not take pool sizing arguments and
# needs a single shared connection when running in memory.

if settings.is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=settings.debug,
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, code after yield closes it,
    even if the route raised.

    Usage in Routes:
        @router.get("/books")
        def list_books(db: Session = Depends(get_db)):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def check_database_connection() -> None:
    """
    Verify the database is reachable.

    Called once at startup; an unreachable store is the one failure that
    should stop the process.

    Raises:
        sqlalchemy.exc.OperationalError: If the database cannot be reached
    """
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    logger.info("Database connection verified")


def create_tables() -> None:
    """
    Create all database tables.

    WARNING: In production, use Alembic migrations instead!
    """
    Base.metadata.create_all(bind=engine)

