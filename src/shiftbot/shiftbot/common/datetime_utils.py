from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol

from ..core.exceptions import ValidationError


class Clock(Protocol):
    def now(self) -> int:
        """Current time as epoch seconds."""

        raise NotImplementedError


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock.

    Note: Used by tests and the example script to make duration math exact.
    """

    def __init__(self, start: int = 0):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> None:
        self._now = int(ts)

    def advance(self, seconds: int) -> int:
        self._now += int(seconds)
        return self._now


def parse_before_date(value: str) -> int:
    """Parse YYYY-MM-DD into epoch seconds at UTC midnight."""
    try:
        day = datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        raise ValidationError("Invalid date, expected YYYY-MM-DD")
    return int(day.replace(tzinfo=timezone.utc).timestamp())


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds or 0))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


def format_ts(ts: int | None, *, with_time: bool = True) -> str:
    if not ts:
        return "-"
    dt = datetime.fromtimestamp(int(ts), tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M UTC") if with_time else dt.strftime("%Y-%m-%d")
