"""Request/response schemas for registration and login."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Credentials for a new account; format rules are checked by the service."""

    username: str = Field(..., max_length=256, description="Username (3-32 chars of [A-Za-z0-9._-])")
    password: str = Field(..., max_length=256, description="Password (6-72 chars)")


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., max_length=256, description="Username")
    password: str = Field(..., max_length=256, description="Password")


class LoginOutcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    LOCKED = "locked"


class LoginDecision(BaseModel):
    """Result of one pass through the lockout state machine."""

    outcome: LoginOutcome
    reason: str = ""
    locked_until: datetime | None = None
    attempts_remaining: int | None = None


class ResultStatus(str, Enum):
    """Outcome kinds of the account operations; the HTTP layer maps them to status codes."""

    CREATED = "created"
    ALLOWED = "allowed"
    REJECTED = "rejected"
    CONFLICT = "conflict"
    DENIED = "denied"
    LOCKED = "locked"
    SERVER_ERROR = "server_error"


class AuthResponse(BaseModel):
    """Body returned by /register and /login."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    message: str
    locked_until: datetime | None = Field(
        default=None,
        alias="lockedUntil",
        description="Lockout expiry (UTC) when the account is locked",
    )
    attempts_remaining: int | None = Field(
        default=None,
        alias="attemptsRemaining",
        description="Failed attempts left before lockout",
    )


class AccountResult(BaseModel):
    """Status kind plus response body of register/login."""

    status: ResultStatus
    body: AuthResponse
