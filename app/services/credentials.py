"""Credential store: create and look up accounts, verify passwords."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.security import (
    hash_password,
    normalize_username,
    password_errors,
    username_errors,
    verify_password,
)
from app.models import AuthState, User
from app.services.errors import AlreadyExistsError, CredentialValidationError, PersistenceError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["create_user", "find_user", "validate_credentials", "verify_password"]


def validate_credentials(username: str, password: str) -> str:
    """
    Check registration rules and return the normalized username.

    Raises CredentialValidationError listing every rule that is broken.
    """
    username = normalize_username(username)
    errors = username_errors(username) + password_errors(password)
    if errors:
        raise CredentialValidationError(errors)
    return username


def create_user(session: Session, username: str, password: str, settings: "Settings") -> User:
    """
    Persist a new account and its initial throttle record in one transaction.

    The unique index on users.username decides concurrent registrations of the
    same name; the loser gets AlreadyExistsError.
    """
    username = validate_credentials(username, password)
    user = User(
        username=username,
        password_hash=hash_password(password, rounds=settings.BCRYPT_ROUNDS),
    )
    try:
        session.add(user)
        session.flush()
        session.add(AuthState(username=username, failed_attempts=0, locked_until=None, version=0))
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise AlreadyExistsError(f"User '{username}' already exists.", cause=e) from e
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError("Could not store the new user.", cause=e) from e

    logger.info("User registered", extra={"username": username})
    return user


def find_user(session: Session, username: str) -> User | None:
    """Exact (case-sensitive) lookup by username."""
    return session.execute(
        select(User).where(User.username == username)
    ).scalar_one_or_none()
