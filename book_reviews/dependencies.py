"""
FastAPI Dependencies Module

Reusable components injected into route handlers:
- DbSession: per-request database session
- BookId / ReviewId: path identifiers parsed into integer ids
- CurrentUser: the acting user, from the bearer token

Route signatures stay short:

    def delete_book(book_id: BookId, db: DbSession, current_user: CurrentUser):
        ...
"""

import re
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from book_reviews.config import get_settings
from book_reviews.database import get_db
from book_reviews.exceptions import InvalidIdentifier, Unauthenticated
from book_reviews.models import User
from book_reviews.services.security import verify_access_token

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Path Identifiers
# =============================================================================
# Ids are taken from the path as strings so that a malformed id is reported
# as InvalidIdentifier (400) rather than a generic field validation error.

_ID_PATTERN = re.compile(r"[1-9][0-9]{0,17}")


def parse_id(raw: str, resource: str) -> int:
    """
    Parse a path identifier into a positive integer id.

    Args:
        raw: The identifier as it appeared in the URL
        resource: Resource name used in the error ("Book", "Review")

    Raises:
        InvalidIdentifier: If raw is not a positive integer
    """
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidIdentifier(f"Invalid {resource} ID")
    return int(raw)


def get_book_id(book_id: str) -> int:
    return parse_id(book_id, "Book")


def get_review_id(review_id: str) -> int:
    return parse_id(review_id, "Review")


BookId = Annotated[int, Depends(get_book_id)]
ReviewId = Annotated[int, Depends(get_review_id)]


# =============================================================================
# JWT Authentication
# =============================================================================
# auto_error=False: a missing header reaches get_current_user as None and is
# reported as our own Unauthenticated error, with the same body shape as
# every other error.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"/api/{settings.api_version}/auth/login",
    auto_error=False,
)


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the acting user from the bearer token.

    1. Extracts the token from the Authorization header
    2. Decodes and validates the JWT
    3. Looks up the user in the database

    Raises:
        Unauthenticated: If the token is missing, invalid, expired, or
            names a user that no longer exists
    """
    if not token:
        raise Unauthenticated("Not authorized, no token")

    payload = verify_access_token(token)
    if payload is None:
        raise Unauthenticated("Not authorized, token failed")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated("Not authorized, token failed")

    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("Not authorized, user not found")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
