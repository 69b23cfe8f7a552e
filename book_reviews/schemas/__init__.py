"""
Pydantic Schemas Package

Request/response validation, kept separate from the SQLAlchemy models so
the API controls exactly what is exposed (no password hashes) and which
fields clients may write (never the rating aggregates).

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
- XxxSummary: Minimal data for nesting in other responses
"""

from book_reviews.schemas.book import (
    BookCreate,
    BookDetailResponse,
    BookResponse,
    BookSummary,
    BookUpdate,
)
from book_reviews.schemas.review import (
    BookRatingStats,
    ReviewCreate,
    ReviewDetailResponse,
    ReviewResponse,
    ReviewUpdate,
)
from book_reviews.schemas.user import (
    TokenResponse,
    UserCreate,
    UserResponse,
    UserSummary,
)

__all__ = [
    # Book schemas
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookDetailResponse",
    "BookSummary",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewDetailResponse",
    "BookRatingStats",
    # User schemas
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "TokenResponse",
]
