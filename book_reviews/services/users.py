"""
Users Service

The identity store: create users, look them up, check passwords.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from book_reviews.exceptions import Conflict
from book_reviews.models import User
from book_reviews.schemas.user import UserCreate
from book_reviews.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with that email or username already exists"


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == email.lower())
    return db.execute(stmt).scalar_one_or_none()


def create_user(db: Session, data: UserCreate) -> User:
    """
    Register a new user.

    Raises:
        Conflict: If the email or username is already taken
    """
    stmt = select(User).where(
        or_(User.email == data.email, User.username == data.username)
    )
    if db.execute(stmt).first() is not None:
        raise Conflict(DUPLICATE_USER_MESSAGE)

    user = User(
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise Conflict(DUPLICATE_USER_MESSAGE)
    db.refresh(user)

    logger.info(f"New user registered: {user.email}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """
    Return the user if the email/password pair is valid, else None.

    Callers report both failure cases with the same message so the
    response does not reveal which emails are registered.
    """
    user = get_user_by_email(db, email)

    if user is None:
        logger.warning(f"Login failed: user not found for {email}")
        return None

    if not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed: incorrect password for {email}")
        return None

    return user
