"""The Clock interface shared by live and manual clocks.

Code that needs the time, sleeps, or schedules timers should accept a
``Clock`` instead of calling ``time``/``threading`` directly. Production code
passes a live clock; tests pass a ManualClock and move time explicitly.

Durations may be ``timedelta`` objects or numbers of seconds.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from timetravel.channel import Channel
from timetravel.live import LiveClock
from timetravel.utils.durations import DurationLike


@runtime_checkable
class Timer(Protocol):
    """A one-shot timer.

    Conceptually identical to a standard timer: the fire time is delivered on
    ``channel``, and ``stop``/``reset`` report whether the timer was active.
    """

    @property
    def channel(self) -> Channel[datetime]: ...

    def stop(self) -> bool: ...

    def reset(self, duration: DurationLike) -> bool: ...


@runtime_checkable
class Ticker(Protocol):
    """A repeating ticker delivering tick times on ``channel``."""

    @property
    def channel(self) -> Channel[datetime]: ...

    def stop(self) -> None: ...


@runtime_checkable
class Clock(Protocol):
    """Everything time-passage dependent, behind one interface."""

    def add(self, duration: DurationLike) -> None:
        """Move the clock forward. Only effective on manual clocks."""
        ...

    def set(self, t: datetime) -> None:
        """Move the clock to ``t``. Only effective on manual clocks."""
        ...

    def now(self) -> datetime: ...

    def sleep(self, duration: DurationLike) -> None:
        """Block until ``duration`` has elapsed on this clock."""
        ...

    def after(self, duration: DurationLike) -> Channel[datetime]:
        """Return a channel that receives the fire time once ``duration`` has elapsed."""
        ...

    def after_func(self, duration: DurationLike, fn: Callable[[], None]) -> Timer:
        """Call ``fn`` once ``duration`` has elapsed."""
        ...

    def new_timer(self, duration: DurationLike) -> Timer: ...

    def tick(self, duration: DurationLike) -> Channel[datetime]:
        """Return the channel of a ticker that cannot be stopped."""
        ...

    def new_ticker(self, duration: DurationLike) -> Ticker: ...


def new() -> Clock:
    """Return a live clock."""
    return LiveClock()
