"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Create a new review
- ReviewUpdate: Update an existing review (rating/comment only)
- ReviewResponse: Review data for API responses
- ReviewDetailResponse: Review with nested user and book
- BookRatingStats: Aggregated rating statistics for a book

Business Rules:
- Rating must be 1-5 (validated here and by a database CHECK)
- One review per user per book (enforced at database level)
- book_id is taken from the URL on create and cannot be updated
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from book_reviews.schemas.book import BookSummary
from book_reviews.schemas.user import UserSummary


def _zero_as_none(v):
    if v == 0 and not isinstance(v, bool):
        return None
    return v


def _strip_comment(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            return None
    return v


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 4,
        "comment": "Sprawling but rewarding."
    }
    """

    rating: int = Field(
        ...,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )

    comment: str | None = Field(
        default=None,
        max_length=500,
        description="Optional review comment",
        examples=["Sprawling but rewarding."],
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        """Treat a whitespace-only comment as no comment."""
        return _strip_comment(v)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Both fields are optional. A missing or empty value (including a
    rating of 0) keeps the stored value.
    """

    rating: int | None = Field(
        default=None,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
    )

    comment: str | None = Field(
        default=None,
        max_length=500,
        description="Review comment",
    )

    @field_validator("rating", mode="before")
    @classmethod
    def zero_rating_means_unchanged(cls, v):
        return _zero_as_none(v)

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        return _strip_comment(v)


class ReviewResponse(BaseModel):
    """Schema for review responses."""

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    model_config = ConfigDict(from_attributes=True)


class ReviewDetailResponse(ReviewResponse):
    """
    Review response with nested relationships.

    Includes who wrote the review and which book it is about.
    """

    user: UserSummary = Field(..., description="User who wrote the review")
    book: BookSummary = Field(..., description="Book being reviewed")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 4,
                "comment": "Sprawling but rewarding.",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "user": {"id": 7, "username": "booklover"},
                "book": {"id": 42, "title": "Dune", "author": "Frank Herbert"},
            }
        },
    )


class BookRatingStats(BaseModel):
    """
    Aggregated rating statistics for a book.

    Computed live from the reviews table, so it also serves as a check on
    the denormalized fields stored on the book.
    """

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)"
    )
    num_reviews: int = Field(..., ge=0, description="Total number of reviews")
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )
