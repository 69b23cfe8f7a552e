"""
Test Suite for the Book Reviews API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_auth.py: Registration, login and /me
- test_books.py: Tests for /api/v1/books endpoints
- test_search.py: Tests for /api/v1/books/search
- test_reviews.py: Tests for review endpoints and live aggregates
- test_review_service.py: Duplicate race and aggregation failure paths
- test_ratings.py: The ratings service against the database

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=book_reviews --cov-report=html

    # Run specific file
    pytest tests/test_reviews.py

    # Run with verbose output
    pytest -v
"""
