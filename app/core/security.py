"""Password hashing and credential format rules."""

import re

import bcrypt

# Default bcrypt cost (rounds); Settings.BCRYPT_ROUNDS overrides it per deployment.
BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 32
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 72


def normalize_username(username: str) -> str:
    """Usernames are case-sensitive; only surrounding whitespace is dropped."""
    return username.strip()


def username_errors(username: str) -> list[str]:
    """Return the username rules that a (normalized) username breaks."""
    errors: list[str] = []
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        errors.append(
            f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters long."
        )
    if username and not USERNAME_PATTERN.match(username):
        errors.append(
            "Username may only contain letters, digits, dots, underscores and hyphens."
        )
    return errors


def password_errors(password: str) -> list[str]:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        return [f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters long."]
    return []


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False
