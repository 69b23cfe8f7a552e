"""
Book Model

The central model of the catalogue.

Denormalized Rating Fields
==========================
average_rating and num_reviews duplicate data derivable from the reviews
table. They are a materialized view maintained by
services.ratings.recalculate_book_rating and are never edited directly by
the book endpoints. Keeping them on the row lets book listings show a
rating without an AVG/COUNT subquery per book.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from book_reviews.database import Base

if TYPE_CHECKING:
    from book_reviews.models.review import Review
    from book_reviews.models.user import User


class Book(Base):
    """
    Book model representing books in the catalogue.

    Table: books

    Fields:
    - title, author: Required; the pair is unique
    - genre: Free-text genre
    - publication_year: Year of publication
    - description: Summary (max 1000 chars)
    - average_rating: Mean review rating, 0 when there are no reviews
    - num_reviews: Number of reviews
    - added_by: Owning user

    Relationships:
    - owner: The user who added the book
    - reviews: One-to-Many with Review

    Example:
        book = Book(
            title="Dune",
            author="Frank Herbert",
            genre="Science Fiction",
            publication_year=1965,
            added_by=user.id,
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author name"
    )

    genre: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Book genre"
    )

    publication_year: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Year of publication"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    # -------------------------------------------------------------------------
    # Rating Aggregates (derived from reviews)
    # -------------------------------------------------------------------------
    average_rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        server_default="0",
        nullable=False,
        comment="Mean review rating (0-5), 0 if no reviews"
    )

    num_reviews: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of reviews for this book"
    )

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------
    added_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="User who added the book"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="books",
    )

    # Reviews are removed with an explicit bulk DELETE in
    # services.books.delete_book before the book row goes.
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("title", "author", name="uq_book_title_author"),
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5",
            name="ck_book_average_rating_range",
        ),
        CheckConstraint("num_reviews >= 0", name="ck_book_num_reviews_positive"),
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', author='{self.author}')"
