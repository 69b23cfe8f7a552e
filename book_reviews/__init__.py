"""
Book Reviews API Package

A catalogue of books with user ratings and reviews.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- exceptions.py: Error kinds raised by services and rendered by the API
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions (session, acting user, ids)
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (rating aggregation, mutation guards, auth)
"""

__version__ = "0.1.0"
