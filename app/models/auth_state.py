"""ORM model for per-user login throttling state."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String

from app.models.base import Base
from app.models.types import UTCTimestamp


class AuthState(Base):
    """
    Failed-attempt counter and lockout expiry for one username.

    version is bumped on every write; updates are conditional on the version
    that was read, so concurrent attempts cannot overwrite each other.
    """

    __tablename__ = "auth_states"
    __table_args__ = (
        CheckConstraint("failed_attempts >= 0", name="ck_auth_states_failed_attempts"),
    )

    username = Column(
        String(32),
        ForeignKey("users.username"),
        primary_key=True,
    )
    failed_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(UTCTimestamp, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(UTCTimestamp, nullable=True)
