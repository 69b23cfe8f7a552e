"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (email, username, password)
- UserResponse: User data returned to the owner (never exposes password)
- UserSummary: Minimal user info embedded in book and review responses
- TokenResponse: Bearer token returned by login
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Username and email must be unique; the password is hashed with bcrypt
    before storage.
    """

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (3-50 characters, alphanumeric and underscores)",
        examples=["johndoe", "jane_doe123"],
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["john@example.com"],
    )

    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (min 8 chars, must include uppercase, lowercase and number)",
        examples=["SecurePass123"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """Username must start with a letter; letters, digits and underscores only."""
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9_]*$", v):
            raise ValueError(
                "Username must start with a letter and contain only "
                "letters, numbers, and underscores"
            )
        return v.lower()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """
        Validate password strength.

        Requirements:
        - At least 8 characters (enforced by min_length)
        - At least 1 uppercase letter
        - At least 1 lowercase letter
        - At least 1 number
        """
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        return v


class UserResponse(BaseModel):
    """
    Schema for user responses.

    SECURITY: Never includes the password hash.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1, 42])
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="User's email address")
    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "username": "johndoe",
                "email": "john@example.com",
                "created_at": "2024-01-01T00:00:00Z",
            }
        },
    )


class UserSummary(BaseModel):
    """Minimal user info for embedding in book and review responses."""

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """
    Response returned by the login endpoint.

    Usage:
        Authorization: Bearer <access_token>
    """

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_in: int = Field(..., description="Token lifetime in seconds")
