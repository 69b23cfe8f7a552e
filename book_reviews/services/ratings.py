"""
Ratings Service

Maintains the denormalized rating fields on the Book model:
- average_rating: The mean of all review ratings (0 with no reviews)
- num_reviews: Total number of reviews

Every recalculation locks the book row (SELECT ... FOR UPDATE), re-derives
both values from a full scan of the book's current reviews and writes them
with a single UPDATE, all in one transaction. Concurrent recalculations of
the same book run one after the other, and the later one scans a review set
that includes every review committed before it took the lock, so the stored
aggregate ends on the latest review set. There is no increment/decrement
arithmetic, so a missed or failed update is repaired by the next one.

SQLite has no row locks and ignores FOR UPDATE; it serializes writers on
the whole database instead.

Failure Policy
==============
The review row is the source of truth; the aggregate is derived state.
recalculate_book_rating therefore never raises: store errors are logged and
the session rolled back, leaving the already-committed review mutation in
place. The next mutation of that book (or scripts/recalculate_ratings.py)
brings the aggregate back in line.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from book_reviews.models import Book, Review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    """Mean rating and review count for one book."""

    average_rating: float
    num_reviews: int


def compute_rating_summary(db: Session, book_id: int) -> RatingSummary:
    """
    Aggregate the current reviews of a book.

    An empty review set yields (0.0, 0) rather than a NULL average.

    Args:
        db: Database session
        book_id: ID of the book to aggregate

    Returns:
        RatingSummary with the unrounded mean and the count
    """
    stmt = select(
        func.avg(Review.rating),
        func.count(Review.id),
    ).where(Review.book_id == book_id)

    avg_rating, review_count = db.execute(stmt).one()

    if not review_count:
        return RatingSummary(average_rating=0.0, num_reviews=0)

    return RatingSummary(
        average_rating=float(avg_rating),
        num_reviews=review_count,
    )


def recalculate_book_rating(db: Session, book_id: int) -> RatingSummary | None:
    """
    Recalculate and store a book's rating aggregates.

    Called by the review service after a review create, rating change or
    delete has been committed. The book row is locked before the reviews
    are aggregated, so the scan and the write happen in one transaction
    and a concurrent recalculation of the same book waits for this one.

    Args:
        db: Database session
        book_id: ID of the book to update

    Returns:
        The stored RatingSummary, or None if the write did not happen
        (book no longer exists, or the store failed)

    Note:
        This function commits the changes to the database.
    """
    try:
        locked = db.execute(
            select(Book.id).where(Book.id == book_id).with_for_update()
        ).scalar_one_or_none()

        if locked is None:
            db.rollback()
            logger.warning(f"Book {book_id} not found; rating not stored")
            return None

        summary = compute_rating_summary(db, book_id)

        db.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(
                average_rating=summary.average_rating,
                num_reviews=summary.num_reviews,
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to update rating aggregates for book {book_id}")
        return None

    logger.debug(
        f"Book {book_id} rating: {summary.average_rating} "
        f"over {summary.num_reviews} review(s)"
    )
    return summary


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Recalculate rating aggregations for all books.

    Useful for data migrations or repairing drift after failed updates.

    Args:
        db: Database session

    Returns:
        Number of books successfully updated
    """
    book_ids = db.execute(select(Book.id)).scalars().all()

    updated = 0
    for book_id in book_ids:
        if recalculate_book_rating(db, book_id) is not None:
            updated += 1

    return updated


def get_rating_distribution(db: Session, book_id: int) -> dict[int, int]:
    """
    Count reviews per star value.

    Returns:
        Mapping of rating (1-5) to number of reviews, zero-filled
    """
    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    stmt = (
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id)
        .group_by(Review.rating)
    )
    for rating, count in db.execute(stmt).all():
        distribution[rating] = count

    return distribution
