"""
Security Service

Password hashing and JWT access tokens.

Usage:
    from book_reviews.services.security import hash_password, verify_password

    hashed = hash_password("SecurePass123")
    is_valid = verify_password("SecurePass123", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from book_reviews.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# deprecated="auto" upgrades old hashes transparently on verify
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------------
# JWT Token Configuration
# -------------------------------------------------------------------------
ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token ({"sub": "<user id>"})
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "type": ACCESS_TOKEN_TYPE})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=ALGORITHM,
    )


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_access_token(token: str) -> dict | None:
    """
    Decode a token and check that it is an access token.

    Returns:
        Decoded payload if valid, None otherwise
    """
    payload = decode_token(token)

    if payload is None:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        logger.warning("Token type mismatch: expected access token")
        return None

    return payload
