"""
pytest Fixtures for Book Reviews API Tests

Shared fixtures used across all test files.

FIXTURE SCOPES:
- Every fixture here is function-scoped: each test gets its own in-memory
  SQLite database, so services can commit and roll back freely (the
  duplicate-review race test relies on a real rollback) without leaking
  state into other tests.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from book_reviews.database import Base, get_db
from book_reviews.main import app
from book_reviews.models import Book, Review, User
from book_reviews.services.security import hash_password


def make_user(db: Session, username: str, password: str = "SecurePass123") -> User:
    """Insert a user directly, bypassing the registration endpoint."""
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory: fast, isolated, no external database needed.
# StaticPool keeps the single connection alive, otherwise the in-memory
# database would disappear between connections.


@pytest.fixture
def engine():
    """Create a fresh SQLite in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Database session bound to the test engine."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    The get_db dependency is overridden so requests share the test session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """The owner of sample_book."""
    return make_user(db_session, "testuser")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """A second user for ownership scenarios."""
    return make_user(db_session, "seconduser", "SecurePass456")


@pytest.fixture
def sample_book(db_session: Session, sample_user: User) -> Book:
    """A book added by sample_user, with no reviews."""
    book = Book(
        title="Dune",
        author="Herbert",
        genre="Science Fiction",
        publication_year=1965,
        description="A desert planet and the spice it hides.",
        added_by=sample_user.id,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """
    A 4-star review of sample_book by sample_user.

    Inserted directly, so the book's aggregates are set by hand to match.
    """
    review = Review(
        book_id=sample_book.id,
        user_id=sample_user.id,
        rating=4,
        comment="Great world building.",
    )
    db_session.add(review)
    sample_book.average_rating = 4.0
    sample_book.num_reviews = 1
    db_session.commit()
    db_session.refresh(review)
    return review


@pytest.fixture
def user_factory(db_session: Session):
    """Create extra users on demand: user_factory("reader1")."""

    def _make(username: str) -> User:
        return make_user(db_session, username)

    return _make
