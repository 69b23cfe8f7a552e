"""
Authentication Router

Handles user authentication endpoints:
- Registration (email/password)
- Login (email/password -> JWT access token)
- Get current user (from JWT token)

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Access tokens expire after ACCESS_TOKEN_EXPIRE_MINUTES (10 hours default)
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from book_reviews.config import get_settings
from book_reviews.dependencies import CurrentUser, DbSession
from book_reviews.exceptions import Unauthenticated
from book_reviews.schemas import TokenResponse, UserCreate, UserResponse
from book_reviews.services.rate_limiter import limiter
from book_reviews.services.security import create_access_token
from book_reviews.services.users import authenticate_user, create_user

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email/username already exists)"},
    },
)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new user account with email and password.

    **Password Requirements:**
    - Minimum 8 characters
    - At least 1 uppercase letter
    - At least 1 lowercase letter
    - At least 1 number
    """,
)
@limiter.limit("5/minute")
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    """
    Register a new user with email and password.

    Raises:
        Conflict: 409 if the email or username is taken
    """
    user = create_user(db, user_data)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="""
    Authenticate with email and password to receive a JWT access token.

    **Usage:**
    Include the access token in the Authorization header:
    ```
    Authorization: Bearer <access_token>
    ```

    **Note:** Use the email address in the 'username' field (OAuth2 standard).
    """,
)
@limiter.limit("10/minute")
def login(
    request: Request,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> TokenResponse:
    """
    Authenticate user and return a JWT access token.

    Raises:
        Unauthenticated: 401 if the email or password is wrong
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if user is None:
        raise Unauthenticated("Invalid credentials")

    access_token = create_access_token({"sub": str(user.id)})

    logger.info(f"User logged in: {user.email}")

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the currently authenticated user's profile.",
)
def get_me(
    current_user: CurrentUser,
) -> UserResponse:
    """Return the current authenticated user's profile."""
    return UserResponse.model_validate(current_user)
