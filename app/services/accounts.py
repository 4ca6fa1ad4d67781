"""
Register and login operations as seen by the HTTP layer and the CLI.

Every failure below this module is recovered into an AccountResult; callers
never see an exception from register() or login().
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.security import normalize_username
from app.schemas.auth import AccountResult, AuthResponse, LoginOutcome, ResultStatus
from app.services.credentials import create_user
from app.services.errors import AlreadyExistsError, CredentialValidationError, PersistenceError
from app.services.lockout import Clock, LockoutPolicy, attempt_login, utcnow

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Internal server error. Please try again later."


def _result(status: ResultStatus, ok: bool, message: str, **extra: object) -> AccountResult:
    return AccountResult(status=status, body=AuthResponse(ok=ok, message=message, **extra))


def register(session: Session, username: str, password: str, settings: "Settings") -> AccountResult:
    """Create an account: CREATED, REJECTED (format rules), CONFLICT (taken) or SERVER_ERROR."""
    try:
        user = create_user(session, username, password, settings)
    except CredentialValidationError as e:
        return _result(ResultStatus.REJECTED, False, e.message)
    except AlreadyExistsError:
        return _result(ResultStatus.CONFLICT, False, "Username is already taken.")
    except PersistenceError as e:
        logger.exception("Registration failed: %s", e.message)
        return _result(ResultStatus.SERVER_ERROR, False, SERVER_ERROR_MESSAGE)
    return _result(ResultStatus.CREATED, True, f"User '{user.username}' registered.")


def login(
    session: Session,
    username: str,
    password: str,
    settings: "Settings",
    clock: Clock = utcnow,
) -> AccountResult:
    """Run one login attempt: ALLOWED, DENIED, LOCKED or SERVER_ERROR."""
    username = normalize_username(username)
    try:
        decision = attempt_login(
            session,
            username,
            password,
            LockoutPolicy.from_settings(settings),
            clock=clock,
            max_write_retries=settings.AUTH_MAX_WRITE_RETRIES,
        )
    except PersistenceError as e:
        logger.exception("Login failed: %s", e.message)
        return _result(ResultStatus.SERVER_ERROR, False, SERVER_ERROR_MESSAGE)

    if decision.outcome == LoginOutcome.ALLOW:
        return _result(ResultStatus.ALLOWED, True, "Access granted.")
    if decision.outcome == LoginOutcome.LOCKED:
        until = decision.locked_until.isoformat() if decision.locked_until else "later"
        return _result(
            ResultStatus.LOCKED,
            False,
            f"Account is locked until {until}.",
            locked_until=decision.locked_until,
        )
    if decision.attempts_remaining is None:
        # Unknown username: denied without a remaining-attempts count.
        return _result(ResultStatus.DENIED, False, "Access denied: user not found.")
    return _result(
        ResultStatus.DENIED,
        False,
        f"Access denied: invalid password. {decision.attempts_remaining} attempt(s) remaining.",
        attempts_remaining=decision.attempts_remaining,
    )
