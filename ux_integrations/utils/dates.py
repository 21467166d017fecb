"""Date window helpers for time-series providers."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utcnow().date()


@dataclass(frozen=True)
class DateRange:
    """Inclusive sample window passed to time-series providers."""
    start: str
    end: str

    @classmethod
    def for_today(cls) -> "DateRange":
        day = today().isoformat()
        return cls(start=day, end=day)

    @classmethod
    def last_days(cls, days: int, end: Optional[date] = None) -> "DateRange":
        end = end or today()
        return cls(start=(end - timedelta(days=days)).isoformat(), end=end.isoformat())

    def __post_init__(self):
        start = date.fromisoformat(self.start)
        end = date.fromisoformat(self.end)
        if start > end:
            raise ValueError(f"Date range start {self.start} is after end {self.end}")
