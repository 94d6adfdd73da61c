"""Pass-through clock backed by the real wall clock.

LiveClock satisfies the same interface as ManualClock so code can be written
against ``Clock`` and run for real in production. ``add()`` and ``set()`` are
no-ops: real time cannot be moved.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime

from timetravel.channel import Channel
from timetravel.utils.durations import DurationLike, ticker_interval, timer_duration

logger = logging.getLogger(__name__)


def _wall_now() -> datetime:
    return datetime.now(UTC)


class LiveTimer:
    """A one-shot timer running on a ``threading.Timer``.

    A callback timer runs ``fn`` on the timer thread; otherwise the fire time
    is offered on ``channel``.
    """

    def __init__(self, duration: DurationLike, fn: Callable[[], None] | None = None):
        self._channel: Channel[datetime] = Channel(name="live-timer")
        self._fn = fn
        self._lock = threading.Lock()
        self._generation = 0
        self._active = False
        self._timer: threading.Timer | None = None
        with self._lock:
            self._start(timer_duration(duration).total_seconds())

    @property
    def channel(self) -> Channel[datetime]:
        return self._channel

    def _start(self, seconds: float) -> None:
        self._generation += 1
        self._active = True
        self._timer = threading.Timer(seconds, self._fire, args=(self._generation,))
        self._timer.daemon = True
        self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # a reset or stop raced with this expiry
            if generation != self._generation or not self._active:
                return
            self._active = False

        if self._fn is not None:
            self._fn()
        else:
            self._channel.offer(_wall_now())

    def stop(self) -> bool:
        """Prevent the timer from firing. Returns whether it was active."""
        with self._lock:
            active = self._active
            self._active = False
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
        return active

    def reset(self, duration: DurationLike) -> bool:
        """Restart the timer to fire ``duration`` from now. Returns whether it was active."""
        seconds = timer_duration(duration).total_seconds()
        with self._lock:
            active = self._active
            if self._timer is not None:
                self._timer.cancel()
            self._start(seconds)
        return active


class LiveTicker:
    """A repeating ticker driven by a daemon thread.

    Ticks keep their phase: a tick the receiver is too slow for is dropped,
    and if the thread itself falls behind, missed ticks are skipped rather
    than delivered in a burst.
    """

    def __init__(self, duration: DurationLike):
        self._interval = ticker_interval(duration).total_seconds()
        self._channel: Channel[datetime] = Channel(name="live-ticker")
        self._cond = threading.Condition()
        self._stopped = False
        self._thread = threading.Thread(target=self._run, name="timetravel-ticker", daemon=True)
        self._thread.start()

    @property
    def channel(self) -> Channel[datetime]:
        return self._channel

    def _run(self) -> None:
        interval = self._interval
        next_at = time.monotonic() + interval
        with self._cond:
            while not self._stopped:
                remaining = next_at - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                if not self._channel.offer(_wall_now()):
                    logger.debug("Live tick dropped: receiver has not drained the previous tick")
                behind = time.monotonic() - next_at
                next_at += interval * (math.floor(behind / interval) + 1)

    def stop(self) -> None:
        """Turn off the ticker. No further ticks are delivered."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()


class LiveClock:
    """Clock that reads and waits on real wall-clock time."""

    def add(self, duration: DurationLike) -> None:
        """No-op: a live clock cannot be moved."""

    def set(self, t: datetime) -> None:
        """No-op: a live clock cannot be moved."""

    def now(self) -> datetime:
        return _wall_now()

    def sleep(self, duration: DurationLike) -> None:
        time.sleep(timer_duration(duration).total_seconds())

    def after(self, duration: DurationLike) -> Channel[datetime]:
        return self.new_timer(duration).channel

    def after_func(self, duration: DurationLike, fn: Callable[[], None]) -> LiveTimer:
        return LiveTimer(duration, fn=fn)

    def new_timer(self, duration: DurationLike) -> LiveTimer:
        return LiveTimer(duration)

    def tick(self, duration: DurationLike) -> Channel[datetime]:
        return self.new_ticker(duration).channel

    def new_ticker(self, duration: DurationLike) -> LiveTicker:
        return LiveTicker(duration)

    def __repr__(self) -> str:
        return "LiveClock()"
