"""
Book Pydantic Schemas

Schemas:
- BookCreate: Fields required when adding a book
- BookUpdate: All fields optional; empty values keep the stored value
- BookResponse: Book with its rating aggregates
- BookDetailResponse: BookResponse plus the owning user
- BookSummary: Minimal book info embedded in review responses

average_rating and num_reviews appear only in responses: clients can never
write them.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from book_reviews.schemas.user import UserSummary


def _strip_optional(v: str | None) -> str | None:
    """Trim whitespace; a blank string counts as not provided."""
    if v is None:
        return None
    v = v.strip()
    return v or None


def _zero_as_none(v):
    """0 in an update means "not provided", like a blank string."""
    if v == 0 and not isinstance(v, bool):
        return None
    return v


def _check_publication_year(v: int | None) -> int | None:
    if v is not None and v > date.today().year:
        raise ValueError("Publication year cannot be in the future")
    return v


class BookCreate(BaseModel):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "genre": "Science Fiction",
        "publication_year": 1965
    }
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["Dune", "Pride and Prejudice"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["Frank Herbert"],
    )

    genre: str | None = Field(
        default=None,
        max_length=100,
        description="Genre",
        examples=["Science Fiction"],
    )

    publication_year: int | None = Field(
        default=None,
        ge=1000,
        description="Year of publication",
        examples=[1965],
    )

    description: str | None = Field(
        default=None,
        max_length=1000,
        description="Book description or summary",
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please add a book title")
        return v.strip()

    @field_validator("author")
    @classmethod
    def author_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please add an author")
        return v.strip()

    @field_validator("genre", "description")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("publication_year")
    @classmethod
    def year_not_in_future(cls, v: int | None) -> int | None:
        return _check_publication_year(v)


class BookUpdate(BaseModel):
    """
    Schema for updating a book.

    All fields are optional. A missing, null or blank value (or a
    publication_year of 0) leaves the stored value unchanged.
    """

    title: str | None = Field(default=None, max_length=500)
    author: str | None = Field(default=None, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    publication_year: int | None = Field(default=None, ge=1000)
    description: str | None = Field(default=None, max_length=1000)

    @field_validator("title", "author", "genre", "description")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("publication_year", mode="before")
    @classmethod
    def zero_year_means_unchanged(cls, v):
        return _zero_as_none(v)

    @field_validator("publication_year")
    @classmethod
    def year_not_in_future(cls, v: int | None) -> int | None:
        return _check_publication_year(v)


class BookResponse(BaseModel):
    """Schema for book responses."""

    id: int = Field(..., description="Unique book identifier")
    title: str
    author: str
    genre: str | None = None
    publication_year: int | None = None
    description: str | None = None
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Mean review rating (0 means no reviews)",
    )
    num_reviews: int = Field(..., ge=0, description="Number of reviews")
    added_by: int = Field(..., description="ID of the user who added the book")
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Dune",
                "author": "Frank Herbert",
                "genre": "Science Fiction",
                "publication_year": 1965,
                "description": "A desert planet and its spice.",
                "average_rating": 3.0,
                "num_reviews": 2,
                "added_by": 7,
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookDetailResponse(BookResponse):
    """Book response with the owning user embedded."""

    owner: UserSummary = Field(..., description="User who added the book")


class BookSummary(BaseModel):
    """Minimal book info for embedding in review responses."""

    id: int = Field(..., description="Book ID")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Author name")

    model_config = ConfigDict(from_attributes=True)
