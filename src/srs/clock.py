from __future__ import annotations

import datetime as dt
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Injected time source. Implementations must return timezone-aware datetimes."""

    def now(self) -> dt.datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)


class FixedClock:
    """
    Deterministic clock for tests and batch replays.

    The current instant only changes when `set` or `advance` is called.
    """

    def __init__(self, current: dt.datetime) -> None:
        self._current = current

    def now(self) -> dt.datetime:
        return self._current

    def set(self, current: dt.datetime) -> None:
        self._current = current

    def advance(self, *, days: float = 0, hours: float = 0, minutes: float = 0) -> None:
        self._current = self._current + dt.timedelta(days=days, hours=hours, minutes=minutes)
