"""
Day-boundary policy.

The aggregator never reads the ambient clock or timezone; it is handed a
calendar that knows how to truncate an instant to its calendar day.
"""

from datetime import datetime, date
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_TIMEZONE = 'UTC'


class DayCalendar(Protocol):
    def truncate_to_day(self, instant: datetime) -> date:
        ...

    def localize(self, instant: datetime) -> datetime:
        ...


class ZoneCalendar:
    """Calendar days as observed in one IANA timezone."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"Invalid timezone '{tz_name}'. Use IANA timezone identifiers."
            )
        self.tz_name = tz_name

    def truncate_to_day(self, instant: datetime) -> date:
        # Naive instants are already local wall-clock time
        if instant.tzinfo is None:
            return instant.date()
        return instant.astimezone(self.tz).date()

    def localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.tz)
        return instant.astimezone(self.tz)

    def __repr__(self):
        return f"ZoneCalendar({self.tz_name!r})"
