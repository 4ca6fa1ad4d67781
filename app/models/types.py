"""Custom column types."""

from datetime import UTC, datetime

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

# Fixed-width so that lexical order equals chronological order.
ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class UTCTimestamp(TypeDecorator):
    """
    Timezone-aware datetime stored as ISO 8601 UTC text.

    Values read back are always aware (UTC), on SQLite and PostgreSQL alike,
    so comparisons against datetime.now(UTC) are well defined after restarts.
    Naive datetimes are rejected rather than guessed.
    """

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCTimestamp requires a timezone-aware datetime")
        return value.astimezone(UTC).strftime(ISO_UTC_FORMAT)

    def process_result_value(self, value: str | None, dialect) -> datetime | None:
        if value is None:
            return None
        return datetime.strptime(value, ISO_UTC_FORMAT).replace(tzinfo=UTC)
