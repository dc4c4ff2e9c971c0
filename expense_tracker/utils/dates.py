"""Timezone-aware date helpers shared by the filter, summary and export code."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Callable
from zoneinfo import ZoneInfo

__all__ = ["Clock", "end_of_day", "start_of_day", "utc_now"]

Clock = Callable[[], datetime]

# Inclusive upper bound of a calendar day, at millisecond precision.
_END_OF_DAY: time = time(23, 59, 59, 999000)


def utc_now() -> datetime:
    """Default clock injected into services and repositories."""
    return datetime.now(timezone.utc)


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, _END_OF_DAY, tzinfo=tz)

