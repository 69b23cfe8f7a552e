"""
Services Package

Business logic kept separate from HTTP handling, so it can be called from
routers, scripts and tests alike. Services raise book_reviews.exceptions
errors; they never build responses.

Current services:
- books.py: Catalogue reads, book mutation guard, title/author search
- rate_limiter.py: Rate limiting with slowapi
- ratings.py: Book rating aggregation (average_rating, num_reviews)
- reviews.py: Review reads and review mutation guard
- security.py: Password hashing and JWT utilities
- users.py: User registration and credential checks
"""
