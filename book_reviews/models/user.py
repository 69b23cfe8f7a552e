"""
User Model

Represents a registered user. Users are the acting identity behind every
book and review mutation; the review core only ever reads their id.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from book_reviews.database import Base

if TYPE_CHECKING:
    from book_reviews.models.book import Book
    from book_reviews.models.review import Review


class User(Base):
    """
    User model representing registered users in the system.

    Table: users

    Relationships:
    - books: Books this user added (One-to-Many)
    - reviews: Reviews this user wrote (One-to-Many)

    Indexes:
    - email: Unique index for login lookups
    - username: Unique index

    Example:
        user = User(
            email="john@example.com",
            username="johndoe",
            hashed_password=hash_password("secret123"),
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique username"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address (used for login)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="owner",
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}', username='{self.username}')"
