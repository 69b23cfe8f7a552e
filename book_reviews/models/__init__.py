"""
SQLAlchemy Models Package

Model Relationships:
- User -> Book: One-to-Many (a user owns the books they added)
- User -> Review: One-to-Many (a user writes many reviews, one per book)
- Book -> Review: One-to-Many (deleting a book deletes its reviews)

Import all models here so they are available as
`from book_reviews.models import Book, Review, User` and so Alembic
discovers them for migrations.
"""

from book_reviews.models.user import User
from book_reviews.models.book import Book
from book_reviews.models.review import Review

__all__ = [
    "User",
    "Book",
    "Review",
]
