"""Injectable time sources for allocation timestamps and identifiers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Deterministic clock; advances by ``tick`` after every read."""

    def __init__(self, start: datetime, tick: timedelta = timedelta(0)) -> None:
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._current = start
        self._tick = tick

    def now(self) -> datetime:
        current = self._current
        self._current = current + self._tick
        return current


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
