#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development and testing.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears existing data (optional)
3. Creates sample users, books, and reviews
4. Goes through the service layer, so every book ends up with
   aggregates that match its reviews

All sample users share the password "SecurePass123".
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from book_reviews.database import SessionLocal, create_tables
from book_reviews.models import Book, Review, User
from book_reviews.schemas import BookCreate, ReviewCreate, UserCreate
from book_reviews.services.books import create_book
from book_reviews.services.reviews import create_review
from book_reviews.services.users import create_user

SAMPLE_PASSWORD = "SecurePass123"


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Review))
    db.execute(delete(Book))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> dict[str, User]:
    """Create sample users."""
    print("Creating users...")
    usernames = ["alice", "bob", "carol", "dave"]

    users = {}
    for username in usernames:
        users[username] = create_user(
            db,
            UserCreate(
                username=username,
                email=f"{username}@example.com",
                password=SAMPLE_PASSWORD,
            ),
        )

    print(f"Created {len(users)} users.")
    return users


def create_books(db: Session, users: dict[str, User]) -> dict[str, Book]:
    """Create sample books, each owned by one of the users."""
    print("Creating books...")

    books_data = [
        ("alice", {
            "title": "Dune",
            "author": "Frank Herbert",
            "genre": "Science Fiction",
            "publication_year": 1965,
            "description": "A noble family takes control of the desert planet Arrakis.",
        }),
        ("alice", {
            "title": "The Left Hand of Darkness",
            "author": "Ursula K. Le Guin",
            "genre": "Science Fiction",
            "publication_year": 1969,
        }),
        ("bob", {
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "genre": "Romance",
            "publication_year": 1813,
            "description": "Elizabeth Bennet and the proud Mr. Darcy.",
        }),
        ("bob", {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "genre": "Fantasy",
            "publication_year": 1937,
        }),
        ("carol", {
            "title": "Murder on the Orient Express",
            "author": "Agatha Christie",
            "genre": "Mystery",
            "publication_year": 1934,
        }),
        ("carol", {
            "title": "The Old Man and the Sea",
            "author": "Ernest Hemingway",
            "genre": "Literary Fiction",
            "publication_year": 1952,
        }),
    ]

    books = {}
    for owner, data in books_data:
        book = create_book(db, users[owner], BookCreate(**data))
        books[book.title] = book

    print(f"Created {len(books)} books.")
    return books


def create_reviews(
    db: Session,
    users: dict[str, User],
    books: dict[str, Book],
) -> list[Review]:
    """Create sample reviews; aggregates are recalculated per review."""
    print("Creating reviews...")

    reviews_data = [
        ("bob", "Dune", 5, "The best world building in the genre."),
        ("carol", "Dune", 4, "Slow start, huge payoff."),
        ("dave", "Dune", 3, None),
        ("carol", "The Left Hand of Darkness", 5, "Quietly radical."),
        ("alice", "Pride and Prejudice", 4, "Sharper than I remembered."),
        ("dave", "Pride and Prejudice", 5, None),
        ("alice", "The Hobbit", 5, "A perfect adventure."),
        ("dave", "Murder on the Orient Express", 4, "Did not see the ending coming."),
    ]

    reviews = []
    for username, title, rating, comment in reviews_data:
        review = create_review(
            db,
            books[title].id,
            users[username],
            ReviewCreate(rating=rating, comment=comment),
        )
        reviews.append(review)

    print(f"Created {len(reviews)} reviews.")
    return reviews


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    # Create tables if they don't exist
    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        books = create_books(db, users)
        reviews = create_reviews(db, users, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Reviews: {len(reviews)}")
        print(f"\nSample login: alice@example.com / {SAMPLE_PASSWORD}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
