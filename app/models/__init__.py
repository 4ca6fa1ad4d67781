"""SQLAlchemy ORM models."""

from app.models.auth_state import AuthState
from app.models.base import Base
from app.models.user import User

__all__ = ["AuthState", "Base", "User"]
