"""Clock implementations."""

from datetime import UTC, datetime

from ranch_inventory.core.interfaces.notification import IClock


class SystemClock(IClock):
    """Current UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(IClock):
    """Always returns the same instant. Used for as-of reports."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
