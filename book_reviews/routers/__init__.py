"""
API Routers Package

Router Structure:
- auth.py: /api/v1/auth/* endpoints (registration, login, current user)
- books.py: /api/v1/books/* endpoints
- reviews.py: /api/v1/books/{book_id}/reviews and /api/v1/reviews/* endpoints

Each router is imported and registered in main.py.
"""

from book_reviews.routers.auth import router as auth_router
from book_reviews.routers.books import router as books_router
from book_reviews.routers.reviews import router as reviews_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
]
