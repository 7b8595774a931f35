"""Column conversions shared by the SQLite stores.

Decimals are stored as TEXT and datetimes as UTC ISO-8601 TEXT with
microseconds, so lexical order matches chronological order.
"""

from datetime import UTC, datetime
from decimal import Decimal


def dec_to_db(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def dec_from_db(value: str | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def dt_to_db(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def dt_from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
