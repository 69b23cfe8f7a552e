"""
Reviews Service

Review reads and the review mutation guard.

Business Rules:
- One review per user per book: checked up front, and the database
  unique constraint catches the race between check and insert
- Only the review author can update or delete their review
- Only rating and comment can change; the book never does

Every successful create, rating change and delete is followed by an
explicit call to ratings.recalculate_book_rating once the review change
has been committed. Failed validation or authorization returns before any
write, so no recalculation happens.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from book_reviews.exceptions import Conflict, Forbidden, NotFound
from book_reviews.models import Book, Review, User
from book_reviews.schemas.review import ReviewCreate, ReviewUpdate
from book_reviews.services.books import get_book
from book_reviews.services.ratings import recalculate_book_rating

logger = logging.getLogger(__name__)

ALREADY_REVIEWED_MESSAGE = "You have already reviewed this book"


# =============================================================================
# Reads
# =============================================================================


def get_review(db: Session, review_id: int) -> Review:
    """
    Get a review by ID with user and book loaded.

    Raises:
        NotFound: If no review has this ID
    """
    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(Review.id == review_id)
    )
    review = db.execute(stmt).scalar_one_or_none()

    if review is None:
        raise NotFound("Review not found")

    return review


def list_book_reviews(db: Session, book_id: int) -> list[Review]:
    """
    List all reviews of a book, newest first.

    Raises:
        NotFound: If the book does not exist
    """
    if db.get(Book, book_id) is None:
        raise NotFound("Book not found for the given ID")

    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def find_user_review(db: Session, book_id: int, user_id: int) -> Review | None:
    """Return the user's review of a book, if they wrote one."""
    stmt = select(Review).where(
        Review.book_id == book_id,
        Review.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


# =============================================================================
# Mutations
# =============================================================================


def create_review(
    db: Session,
    book_id: int,
    user: User,
    data: ReviewCreate,
) -> Review:
    """
    Create a review of a book by the acting user.

    Args:
        db: Database session
        book_id: ID of the book to review
        user: Authenticated user writing the review
        data: Rating and optional comment

    Returns:
        The created review

    Raises:
        NotFound: If the book does not exist
        Conflict: If the user already reviewed this book
    """
    book = get_book(db, book_id)
    user_id = user.id

    if find_user_review(db, book.id, user_id) is not None:
        raise Conflict(ALREADY_REVIEWED_MESSAGE)

    review = Review(
        book_id=book.id,
        user_id=user_id,
        rating=data.rating,
        comment=data.comment,
    )
    db.add(review)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # A concurrent request inserted the same (user, book) pair after
        # our pre-check, or deleted the book under us.
        if find_user_review(db, book_id, user_id) is not None:
            raise Conflict(ALREADY_REVIEWED_MESSAGE)
        if db.get(Book, book_id) is None:
            raise NotFound("Book not found")
        raise

    db.refresh(review)
    logger.info(f"Review {review.id} created for book {book_id} by user {user_id}")

    recalculate_book_rating(db, book_id)

    return review


def update_review(
    db: Session,
    review_id: int,
    user: User,
    data: ReviewUpdate,
) -> Review:
    """
    Update the acting user's review.

    Missing or empty values keep the stored rating/comment.

    Raises:
        NotFound: If the review does not exist
        Forbidden: If the acting user did not write the review
    """
    review = get_review(db, review_id)

    if review.user_id != user.id:
        raise Forbidden("Not authorized to update this review")

    new_rating = data.rating or review.rating
    rating_changed = new_rating != review.rating

    review.rating = new_rating
    review.comment = data.comment or review.comment

    db.commit()
    db.refresh(review)

    logger.info(f"Review {review.id} updated by user {review.user_id}")

    if rating_changed:
        recalculate_book_rating(db, review.book_id)

    return review


def delete_review(db: Session, review_id: int, user: User) -> None:
    """
    Delete the acting user's review.

    The book ID is captured before the delete so the aggregate can be
    recalculated afterwards.

    Raises:
        NotFound: If the review does not exist
        Forbidden: If the acting user did not write the review
    """
    review = get_review(db, review_id)

    if review.user_id != user.id:
        raise Forbidden("Not authorized to delete this review")

    book_id = review.book_id

    db.delete(review)
    db.commit()

    logger.info(f"Review {review_id} deleted by user {user.id}")

    recalculate_book_rating(db, book_id)
