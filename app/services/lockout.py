"""
Login throttling state machine backed by the auth_states table.

Per user the record is in one of three states:

  Clear         failed_attempts == 0, locked_until is None
  Accumulating  0 < failed_attempts < max_failed, locked_until is None
  Locked        locked_until in the future

Every attempt re-reads the row and writes its result with a conditional
UPDATE on the version it read. If another attempt wrote in between, the
UPDATE matches no row, the transaction is rolled back and the attempt is
decided again from fresh state. No in-process locks are involved, so this
holds across threads, workers and processes sharing the database.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import AuthState
from app.schemas.auth import LoginDecision, LoginOutcome
from app.services.credentials import find_user, verify_password
from app.services.errors import PersistenceError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_MAX_WRITE_RETRIES = 16


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class LockoutPolicy:
    """Threshold and duration of the temporary lockout."""

    max_failed: int = 5
    lock_duration: timedelta = timedelta(minutes=5)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LockoutPolicy":
        return cls(
            max_failed=settings.MAX_FAILED,
            lock_duration=timedelta(seconds=settings.LOCK_DURATION_SECONDS),
        )


@dataclass(frozen=True)
class AuthSnapshot:
    """Values of one auth_states row as read at a point in time."""

    failed_attempts: int
    locked_until: datetime | None
    version: int

    def is_locked(self, now: datetime) -> bool:
        return self.locked_until is not None and self.locked_until > now


class WriteConflict(Exception):
    """The row changed after it was read; the attempt must be decided again."""


def ensure_auth_state(session: Session, username: str) -> bool:
    """
    Insert the default (0, None) record for username unless one exists.

    Existing rows are never touched. Returns True when a row was inserted.
    Does not commit.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(AuthState)
    elif dialect == "sqlite":
        stmt = sqlite.insert(AuthState)
    else:
        raise PersistenceError(f"Unsupported database backend: {dialect}")
    stmt = stmt.values(
        username=username,
        failed_attempts=0,
        locked_until=None,
        version=0,
    ).on_conflict_do_nothing(index_elements=["username"])
    result = session.execute(stmt)
    return result.rowcount == 1


def load_auth_state(session: Session, username: str) -> AuthSnapshot | None:
    """Read the current row straight from the database (never from the identity map)."""
    row = session.execute(
        select(
            AuthState.failed_attempts,
            AuthState.locked_until,
            AuthState.version,
        ).where(AuthState.username == username)
    ).one_or_none()
    if row is None:
        return None
    return AuthSnapshot(
        failed_attempts=row.failed_attempts,
        locked_until=row.locked_until,
        version=row.version,
    )


def _swap(
    session: Session,
    username: str,
    observed: AuthSnapshot,
    failed_attempts: int,
    locked_until: datetime | None,
    now: datetime,
) -> AuthSnapshot:
    """
    Write (failed_attempts, locked_until) if the row is still at observed.version, and commit.

    Raises WriteConflict (after rolling back) when another writer got there first.
    """
    result = session.execute(
        update(AuthState)
        .where(
            AuthState.username == username,
            AuthState.version == observed.version,
        )
        .values(
            failed_attempts=failed_attempts,
            locked_until=locked_until,
            version=observed.version + 1,
            updated_at=now,
        )
    )
    if result.rowcount != 1:
        session.rollback()
        raise WriteConflict(username)
    session.commit()
    return AuthSnapshot(
        failed_attempts=failed_attempts,
        locked_until=locked_until,
        version=observed.version + 1,
    )


def attempt_login(
    session: Session,
    username: str,
    password: str,
    policy: LockoutPolicy,
    clock: Clock = utcnow,
    max_write_retries: int = DEFAULT_MAX_WRITE_RETRIES,
) -> LoginDecision:
    """
    Decide one login attempt and record its effect on the throttle state.

    Unknown users are denied without touching any state. Raises
    PersistenceError when the database fails or the row stays contended for
    max_write_retries rounds; in both cases nothing from this attempt is kept.
    """
    try:
        user = find_user(session, username)
        if user is None:
            session.rollback()
            return LoginDecision(outcome=LoginOutcome.DENY, reason="user not found")
        password_hash = user.password_hash

        if ensure_auth_state(session, username):
            logger.info("Created missing auth state", extra={"username": username})
        session.commit()

        password_ok: bool | None = None
        for _ in range(max_write_retries):
            state = load_auth_state(session, username)
            if state is None:
                raise PersistenceError(f"Auth state for '{username}' disappeared.")
            now = clock()

            if state.is_locked(now):
                session.rollback()
                return LoginDecision(
                    outcome=LoginOutcome.LOCKED,
                    reason="account locked",
                    locked_until=state.locked_until,
                )

            try:
                if state.locked_until is not None:
                    state = _swap(session, username, state, 0, None, now)
                    logger.info("Lockout expired", extra={"username": username})

                if password_ok is None:
                    password_ok = verify_password(password, password_hash)

                if password_ok:
                    _swap(session, username, state, 0, None, now)
                    return LoginDecision(outcome=LoginOutcome.ALLOW, reason="ok")

                new_failed = state.failed_attempts + 1
                if new_failed >= policy.max_failed:
                    locked_until = now + policy.lock_duration
                    _swap(session, username, state, new_failed, locked_until, now)
                    logger.warning(
                        "Account locked after repeated failures",
                        extra={
                            "username": username,
                            "failed_attempts": new_failed,
                            "locked_until": locked_until.isoformat(),
                        },
                    )
                    return LoginDecision(
                        outcome=LoginOutcome.LOCKED,
                        reason="too many failed attempts",
                        locked_until=locked_until,
                    )

                _swap(session, username, state, new_failed, None, now)
                return LoginDecision(
                    outcome=LoginOutcome.DENY,
                    reason="invalid password",
                    attempts_remaining=policy.max_failed - new_failed,
                )
            except WriteConflict:
                logger.debug("Auth state changed concurrently; retrying", extra={"username": username})
                continue
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError("Login state could not be read or written.", cause=e) from e
    except PersistenceError:
        session.rollback()
        raise

    raise PersistenceError(
        f"Auth state for '{username}' stayed contended after {max_write_retries} attempts."
    )
