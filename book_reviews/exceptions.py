"""
Service Exceptions

Errors raised by the service layer. Each class carries the error kind and
the HTTP status the API boundary maps it to; main.py registers a single
handler that renders them as:

    {"error": "<kind>", "detail": "<message>"}

Services never build HTTP responses themselves, so they can be called from
scripts and tests without a request in flight.
"""

from collections.abc import Iterable

from fastapi import status


class BookReviewsError(Exception):
    """Base class for all errors surfaced to API clients."""

    kind = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An internal error occurred."
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotFound(BookReviewsError):
    """A book, review or user does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Forbidden(BookReviewsError):
    """Authenticated, but not the owner of the resource."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to modify this resource"


class Unauthenticated(BookReviewsError):
    """Missing or invalid credentials."""

    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class Conflict(BookReviewsError):
    """Duplicate review, duplicate book, or duplicate username/email."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class ValidationError(BookReviewsError):
    """
    One or more field constraints failed.

    Keeps one message per failing field; the rendered detail joins them.
    """

    kind = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid data"

    def __init__(self, messages: str | Iterable[str] | None = None) -> None:
        if messages is None:
            self.messages = []
        elif isinstance(messages, str):
            self.messages = [messages]
        else:
            self.messages = list(messages)
        super().__init__(", ".join(self.messages) or None)


class InvalidIdentifier(BookReviewsError):
    """A path identifier is not a well-formed id."""

    kind = "invalid_identifier"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid ID"


class InternalError(BookReviewsError):
    """Store unavailable or another unexpected failure."""
