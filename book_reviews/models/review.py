"""
Review Model

Represents a user's rating and optional comment for a book.

Business Rules:
- One review per user per book (unique constraint, not just a pre-check)
- Rating must be 1-5
- Users can only edit/delete their own reviews
- A review never moves to another book
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from book_reviews.database import Base

if TYPE_CHECKING:
    from book_reviews.models.book import Book
    from book_reviews.models.user import User


class Review(Base):
    """
    Review model for book reviews.

    Attributes:
        id: Primary key
        book_id: Foreign key to books table
        user_id: Foreign key to users table
        rating: 1-5 star rating
        comment: Optional text, up to 500 characters
        created_at: When the review was created
        updated_at: When the review was last updated
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Foreign keys
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Review content
    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )
    comment: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Optional review comment",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="reviews")
    user: Mapped["User"] = relationship("User", back_populates="reviews")

    __table_args__ = (
        # One review per user per book
        UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),
        # Rating must be 1-5
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, rating={self.rating})>"
