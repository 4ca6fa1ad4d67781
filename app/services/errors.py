"""Errors raised by the account services and recovered by app.services.accounts."""


class AuthServiceError(Exception):
    """Base class for account service failures."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class CredentialValidationError(AuthServiceError):
    """Raised when a username or password breaks a format rule. Nothing was read or written."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(" ".join(self.errors))


class AlreadyExistsError(AuthServiceError):
    """Raised when registering a username that is already taken."""


class PersistenceError(AuthServiceError):
    """Raised when the database fails or a write could not be applied; prior state is unchanged."""
