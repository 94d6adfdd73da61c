"""A clock that only advances when explicitly told to.

Mostly useful in tests: create one with ``new()``, hand it to the code under
test in place of a live clock, and move time with ``add()``/``set()``.
"""

from __future__ import annotations

from datetime import datetime

from timetravel.config import ManualClockConfig
from timetravel.manual.clock import ManualClock
from timetravel.manual.events import ManualTicker, ManualTimer
from timetravel.manual.quiescence import ParkingLot, QuiescenceBarrier


def new(start: datetime | None = None, config: ManualClockConfig | None = None) -> ManualClock:
    """Return a manual clock set to ``start``, or to the current UTC time."""
    return ManualClock(start=start, config=config)


__all__ = [
    "ManualClock",
    "ManualClockConfig",
    "ManualTicker",
    "ManualTimer",
    "ParkingLot",
    "QuiescenceBarrier",
    "new",
]
