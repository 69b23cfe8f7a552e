"""
Reviews Router

Endpoints:
- GET /books/{book_id}/reviews - List reviews for a book
- POST /books/{book_id}/reviews - Create a review (authenticated)
- GET /books/{book_id}/rating - Live rating statistics for a book
- GET /reviews/{review_id} - Get a specific review
- PUT /reviews/{review_id} - Update a review (owner only)
- DELETE /reviews/{review_id} - Delete a review (owner only)

Business Rules:
- One review per user per book (enforced by database constraint)
- Only the review author can update or delete their review
- The book's average_rating/num_reviews follow every successful change
"""

from fastapi import APIRouter, Request, status

from book_reviews.config import get_settings
from book_reviews.dependencies import BookId, CurrentUser, DbSession, ReviewId
from book_reviews.schemas import (
    BookRatingStats,
    ReviewCreate,
    ReviewDetailResponse,
    ReviewResponse,
    ReviewUpdate,
)
from book_reviews.services import reviews as review_service
from book_reviews.services.books import get_book
from book_reviews.services.rate_limiter import limiter
from book_reviews.services.ratings import (
    compute_rating_summary,
    get_rating_distribution,
)

settings = get_settings()

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


# =============================================================================
# Book Review Endpoints
# =============================================================================


@router.get(
    "/books/{book_id}/reviews",
    response_model=list[ReviewDetailResponse],
    summary="List reviews for a book",
    description="Get all reviews for a specific book, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: BookId,
    db: DbSession,
) -> list[ReviewDetailResponse]:
    """
    List all reviews for a specific book.

    Raises:
        NotFound: 404 if the book does not exist
    """
    reviews = review_service.list_book_reviews(db, book_id)
    return [ReviewDetailResponse.model_validate(r) for r in reviews]


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Review a book. Requires authentication. One review per book per user.",
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    book_id: BookId,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Create a new review for a book.

    Raises:
        NotFound: 404 if the book does not exist
        Conflict: 409 if the user already reviewed this book
    """
    review = review_service.create_review(db, book_id, current_user, review_data)
    return ReviewResponse.model_validate(review)


@router.get(
    "/books/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Rating statistics computed directly from the book's reviews.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(
    request: Request,
    book_id: BookId,
    db: DbSession,
) -> BookRatingStats:
    """
    Get rating statistics for a book.

    Returns:
        - Average rating
        - Total review count
        - Rating distribution (count of each rating 1-5)
    """
    get_book(db, book_id)

    summary = compute_rating_summary(db, book_id)

    return BookRatingStats(
        book_id=book_id,
        average_rating=summary.average_rating,
        num_reviews=summary.num_reviews,
        rating_distribution=get_rating_distribution(db, book_id),
    )


# =============================================================================
# Individual Review Endpoints
# =============================================================================


@router.get(
    "/reviews/{review_id}",
    response_model=ReviewDetailResponse,
    summary="Get a review by ID",
    description="Retrieve a specific review with user and book information.",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: ReviewId,
    db: DbSession,
) -> ReviewDetailResponse:
    """Get a single review by ID."""
    review = review_service.get_review(db, review_id)
    return ReviewDetailResponse.model_validate(review)


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Update your own review. Omitted or empty fields are left unchanged.",
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: ReviewId,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Update an existing review.

    Raises:
        NotFound: 404 if the review does not exist
        Forbidden: 403 if the caller did not write the review
    """
    review = review_service.update_review(db, review_id, current_user, review_data)
    return ReviewResponse.model_validate(review)


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    description="Delete your own review.",
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: ReviewId,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """
    Delete a review.

    Raises:
        NotFound: 404 if the review does not exist
        Forbidden: 403 if the caller did not write the review
    """
    review_service.delete_review(db, review_id, current_user)
