"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccountResult,
    AuthResponse,
    LoginDecision,
    LoginOutcome,
    LoginRequest,
    RegisterRequest,
    ResultStatus,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AccountResult",
    "AuthResponse",
    "HealthResponse",
    "LoginDecision",
    "LoginOutcome",
    "LoginRequest",
    "RegisterRequest",
    "ResultStatus",
]
