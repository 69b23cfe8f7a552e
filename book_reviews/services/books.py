"""
Books Service

Catalogue reads, the book mutation guard, and title/author search.

Ownership Rules:
- The acting user becomes the owner (added_by) of a book they create
- Only the owner may update or delete a book
- Deleting a book deletes its reviews first, in the same transaction
"""

import logging
import re

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from book_reviews.exceptions import Conflict, Forbidden, NotFound, ValidationError
from book_reviews.models import Book, Review, User
from book_reviews.schemas.book import BookCreate, BookUpdate

logger = logging.getLogger(__name__)

DUPLICATE_BOOK_MESSAGE = "A book with this title and author already exists."


# =============================================================================
# Reads
# =============================================================================


def get_book(db: Session, book_id: int) -> Book:
    """
    Get a book by ID with its owner loaded.

    Raises:
        NotFound: If no book has this ID
    """
    stmt = (
        select(Book)
        .options(selectinload(Book.owner))
        .where(Book.id == book_id)
    )
    book = db.execute(stmt).scalar_one_or_none()

    if book is None:
        raise NotFound("Book not found")

    return book


def list_books(db: Session) -> list[Book]:
    """Return every book, newest first."""
    stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
    return list(db.execute(stmt).scalars().all())


def _find_duplicate(
    db: Session,
    title: str,
    author: str,
    exclude_id: int | None = None,
) -> Book | None:
    stmt = select(Book).where(Book.title == title, Book.author == author)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    return db.execute(stmt).scalars().first()


# =============================================================================
# Mutations
# =============================================================================


def create_book(db: Session, user: User, data: BookCreate) -> Book:
    """
    Add a book owned by the acting user.

    Raises:
        Conflict: If a book with the same title and author exists
    """
    if _find_duplicate(db, data.title, data.author) is not None:
        raise Conflict(DUPLICATE_BOOK_MESSAGE)

    book = Book(
        title=data.title,
        author=data.author,
        genre=data.genre,
        publication_year=data.publication_year,
        description=data.description,
        added_by=user.id,
    )
    db.add(book)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_BOOK_MESSAGE)
    db.refresh(book)

    logger.info(f"Book {book.id} '{book.title}' added by user {book.added_by}")
    return book


def update_book(db: Session, book_id: int, user: User, data: BookUpdate) -> Book:
    """
    Update a book owned by the acting user.

    Empty or missing fields keep their stored value.

    Raises:
        NotFound: If the book does not exist
        Forbidden: If the acting user is not the owner
        Conflict: If the new title/author pair belongs to another book
    """
    book = get_book(db, book_id)

    if book.added_by != user.id:
        raise Forbidden("Not authorized to update this book")

    title = data.title or book.title
    author = data.author or book.author
    if (title, author) != (book.title, book.author):
        if _find_duplicate(db, title, author, exclude_id=book.id) is not None:
            raise Conflict(DUPLICATE_BOOK_MESSAGE)

    book.title = title
    book.author = author
    book.genre = data.genre or book.genre
    book.publication_year = data.publication_year or book.publication_year
    book.description = data.description or book.description

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_BOOK_MESSAGE)
    db.refresh(book)

    logger.info(f"Book {book.id} updated by user {user.id}")
    return book


def delete_book(db: Session, book_id: int, user: User) -> None:
    """
    Delete a book owned by the acting user, together with its reviews.

    The reviews are removed first and both deletes commit together, so no
    review is ever left pointing at a missing book. No rating recalculation
    follows: the aggregate lived on the deleted row.

    Raises:
        NotFound: If the book does not exist
        Forbidden: If the acting user is not the owner
    """
    book = get_book(db, book_id)

    if book.added_by != user.id:
        raise Forbidden("Not authorized to delete this book")

    result = db.execute(delete(Review).where(Review.book_id == book.id))
    db.delete(book)
    db.commit()

    logger.info(
        f"Book {book_id} deleted by user {user.id} "
        f"along with {result.rowcount} review(s)"
    )


# =============================================================================
# Search
# =============================================================================


def build_search_pattern(term: str) -> re.Pattern:
    """
    Compile a case-insensitive whole-word pattern for a search term.

    The term is escaped, so characters like '.', '*' or '(' match
    literally.

    Example:
        >>> bool(build_search_pattern("the").search("Amortized"))
        False
        >>> bool(build_search_pattern("the").search("The Hobbit"))
        True
    """
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_books(db: Session, term: str | None) -> list[Book]:
    """
    Find books whose title or author contains the term as a whole word.

    The database narrows candidates with a case-insensitive substring
    match; the word-boundary check runs on the candidates.

    Raises:
        ValidationError: If the term is missing or blank
        NotFound: If nothing matches
    """
    term = (term or "").strip()
    if not term:
        raise ValidationError("Search term (q) is required")

    # PostgreSQL ILIKE folds case for all letters. SQLite (tests, local
    # development) renders ILIKE as lower() LIKE lower(), which folds ASCII
    # only, so there "émile" does not find "Émile".
    like = f"%{_escape_like(term)}%"
    stmt = (
        select(Book)
        .options(selectinload(Book.owner))
        .where(
            or_(
                Book.title.ilike(like, escape="\\"),
                Book.author.ilike(like, escape="\\"),
            )
        )
        .order_by(Book.created_at.desc(), Book.id.desc())
    )
    candidates = db.execute(stmt).scalars().all()

    pattern = build_search_pattern(term)
    books = [
        book
        for book in candidates
        if pattern.search(book.title) or pattern.search(book.author)
    ]

    if not books:
        raise NotFound("No books found matching your search")

    return books
