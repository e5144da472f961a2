"""
Server clock and calendar-day helpers.

All day bucketing happens in the configured server timezone. Timestamps read
back from storage may be naive (SQLite drops the offset); those are UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo

from worktrack.core.config import settings


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a stored timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Clock:
    """Current time in the server timezone. Swapped for a fixed clock in tests."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz or settings.tz

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def localize(self, dt: datetime) -> datetime:
        """Interpret client input: naive values are server-local wall time."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.tz)
        return dt.astimezone(self.tz)

    def to_local(self, stored: datetime) -> datetime:
        return ensure_utc(stored).astimezone(self.tz)

    def day_of(self, dt: datetime) -> date:
        return self.localize(dt).date()

    def start_of_day(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.tz)
