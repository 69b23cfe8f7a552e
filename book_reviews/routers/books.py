"""
Books Router

CRUD and search endpoints for books.

Endpoints:
- GET /books/ - List all books
- GET /books/search?q= - Whole-word search on title or author
- GET /books/{book_id} - Get a book with its owner
- POST /books/ - Add a book (authenticated)
- PUT /books/{book_id} - Update a book (owner only)
- DELETE /books/{book_id} - Delete a book and its reviews (owner only)

Handlers only translate between HTTP and services.books; all rules live
in the service.
"""

from fastapi import APIRouter, Query, Request, status

from book_reviews.config import get_settings
from book_reviews.dependencies import BookId, CurrentUser, DbSession
from book_reviews.schemas import (
    BookCreate,
    BookDetailResponse,
    BookResponse,
    BookUpdate,
)
from book_reviews.services import books as book_service
from book_reviews.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=list[BookResponse],
    summary="List all books",
    description="Get every book in the catalogue, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
) -> list[BookResponse]:
    """List all books with their rating aggregates."""
    books = book_service.list_books(db)
    return [BookResponse.model_validate(book) for book in books]


# /search must be registered before /{book_id}
@router.get(
    "/search",
    response_model=list[BookDetailResponse],
    summary="Search books",
    description=(
        "Case-insensitive whole-word search on title or author. "
        "Returns 404 when nothing matches."
    ),
)
@limiter.limit(settings.rate_limit_search)
def search_books(
    request: Request,
    db: DbSession,
    q: str | None = Query(
        default=None,
        max_length=100,
        description="Search term",
        examples=["dune", "herbert"],
    ),
) -> list[BookDetailResponse]:
    """
    Search books by title or author.

    Examples:
        GET /api/v1/books/search?q=dune
        GET /api/v1/books/search?q=herbert
    """
    books = book_service.search_books(db, q)
    return [BookDetailResponse.model_validate(book) for book in books]


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book by ID",
    description="Retrieve a book with its rating aggregates and owner.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: BookId,
    db: DbSession,
) -> BookDetailResponse:
    """
    Get a single book by its ID.

    Raises:
        NotFound: 404 if the book does not exist
        InvalidIdentifier: 400 if the ID is malformed
    """
    book = book_service.get_book(db, book_id)
    return BookDetailResponse.model_validate(book)


# =============================================================================
# Write Endpoints
# =============================================================================


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book",
    description="Add a book to the catalogue. The caller becomes its owner.",
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> BookResponse:
    """
    Create a new book owned by the authenticated user.

    Raises:
        Conflict: 409 if a book with this title and author exists
    """
    book = book_service.create_book(db, current_user, book_data)
    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update your own book. Omitted or empty fields are left unchanged.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: BookId,
    book_data: BookUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> BookResponse:
    """
    Update an existing book.

    Raises:
        NotFound: 404 if the book does not exist
        Forbidden: 403 if the caller is not the owner
    """
    book = book_service.update_book(db, book_id, current_user, book_data)
    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete your own book. All of its reviews are deleted with it.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: BookId,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """
    Delete a book and its reviews.

    Raises:
        NotFound: 404 if the book does not exist
        Forbidden: 403 if the caller is not the owner
    """
    book_service.delete_book(db, book_id, current_user)
