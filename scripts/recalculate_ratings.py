#!/usr/bin/env python3
"""
Rating Recalculation Script

Re-derives every book's average_rating and num_reviews from its reviews.
Run it after restoring a backup, after bulk-editing reviews by hand, or to
repair aggregates left stale by a failed update.

Usage:
    # From project root with venv activated:
    python scripts/recalculate_ratings.py

    # Options:
    python scripts/recalculate_ratings.py --book-id 42   # One book only
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from book_reviews.database import SessionLocal
from book_reviews.services.ratings import (
    recalculate_all_book_ratings,
    recalculate_book_rating,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def recalculate(book_id: int | None = None) -> int:
    """
    Recalculate rating aggregates.

    Args:
        book_id: Only recalculate this book; all books when None

    Returns:
        Number of books whose aggregates were written
    """
    db = SessionLocal()

    try:
        if book_id is not None:
            summary = recalculate_book_rating(db, book_id)
            if summary is None:
                logger.error(f"Book {book_id} was not updated")
                return 0
            logger.info(
                f"Book {book_id}: average {summary.average_rating} "
                f"over {summary.num_reviews} review(s)"
            )
            return 1

        logger.info("Recalculating ratings for all books...")
        updated = recalculate_all_book_ratings(db)
        logger.info(f"Updated {updated} book(s)")
        return updated

    finally:
        db.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recalculate book rating aggregates from their reviews"
    )
    parser.add_argument(
        "--book-id",
        type=int,
        default=None,
        help="Recalculate a single book instead of all books"
    )

    args = parser.parse_args()

    updated = recalculate(book_id=args.book_id)
    if args.book_id is not None and updated == 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
