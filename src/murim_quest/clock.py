"""Calendar helpers and the clock seam used by every time-gated rule.

Weekdays follow Python's convention: Monday is 0 and Sunday is 6.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta

MONDAY = 0
WEDNESDAY = 2


class Clock:
    """Wall-clock source. Subclass and override ``now`` to pin time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()

    def today_str(self) -> str:
        return self.today().isoformat()

    def day_of_week(self, day: date | None = None) -> int:
        return (day or self.today()).weekday()

    def hour_of_day(self) -> int:
        return self.now().hour


class FixedClock(Clock):
    """Clock pinned to a single instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs: float) -> None:
        self.instant = self.instant + timedelta(**kwargs)


def parse_date(value: str | date) -> date:
    """Parse a YYYY-MM-DD string. Dates pass through unchanged."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def days_between(first: str | date, second: str | date) -> int:
    """Absolute whole-day distance between two calendar dates, rounded up."""
    a = datetime.combine(parse_date(first), time.min)
    b = datetime.combine(parse_date(second), time.min)
    return math.ceil(abs((b - a).total_seconds()) / 86400)


def midnight(moment: datetime) -> date:
    """Truncate a timestamp to its calendar date."""
    return moment.date()


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def is_weekday(day: date, weekday: int) -> bool:
    return day.weekday() == weekday
