"""Timer and ticker state driven by a manual clock.

An EventRecord is the engine's view of one outstanding timer or ticker. The
handles given to consumers, ManualTimer and ManualTicker, wrap the same record
and only expose stop/reset and the delivery channel.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from itertools import count
from typing import TYPE_CHECKING

from timetravel.channel import Channel
from timetravel.utils.durations import ZERO, DurationLike, timer_duration

if TYPE_CHECKING:
    from timetravel.manual.clock import ManualClock

logger = logging.getLogger(__name__)

_record_counter = count()


class Delivery(Enum):
    """Outcome of playing an event."""

    SKIPPED = "skipped"  # already stopped, nothing delivered
    CALLED = "called"
    SENT = "sent"
    DROPPED = "dropped"  # channel still held the previous value


class EventRecord:
    """Mutable state of one outstanding timer or ticker.

    ``next``, ``stopped`` and ``removed`` are guarded by ``lock``. The engine
    owns the record while it sits in the registry; consumers reach it only
    through a ManualTimer/ManualTicker.

    Attributes:
        next: When the event is next due.
        interval: Time between ticks; zero for one-shot timers.
        fn: Callback for ``after_func`` timers, None for channel delivery.
        stopped: Whether the event has fired (one-shot) or been stopped.
        removed: Whether the engine has taken the record out of its list.
        seq: Creation order, used to break ties between simultaneous events.
    """

    __slots__ = (
        "channel",
        "clock",
        "fn",
        "interval",
        "lock",
        "next",
        "removed",
        "seq",
        "stopped",
    )

    def __init__(
        self,
        clock: ManualClock,
        next_fire: datetime,
        channel: Channel[datetime],
        *,
        interval: timedelta = ZERO,
        fn: Callable[[], None] | None = None,
    ):
        self.clock = clock
        self.next = next_fire
        self.channel = channel
        self.interval = interval
        self.fn = fn
        self.stopped = False
        self.removed = False
        self.seq = next_seq = _record_counter.__next__()
        self.lock = threading.Lock()

        if channel.name is None:
            channel.name = f"{self.kind}-{next_seq}"

    @property
    def event_id(self) -> str:
        return format(self.seq, "012X")

    @property
    def kind(self) -> str:
        if self.interval:
            return "ticker"
        return "func" if self.fn is not None else "timer"

    def next_fire_time(self) -> datetime:
        with self.lock:
            return self.next

    def sort_key(self) -> tuple[datetime, int]:
        with self.lock:
            return self.next, self.seq

    def is_stopped(self) -> bool:
        with self.lock:
            return self.stopped

    def play(self, now: datetime) -> Delivery:
        """Fire the event at ``now``.

        One-shot events stop; repeating events are rescheduled one interval
        after ``now``. The callback, if any, runs on the calling thread after
        the record lock is released so it may reset or stop its own timer.
        """
        with self.lock:
            if self.stopped:
                return Delivery.SKIPPED
            fn = self.fn
            if self.interval:
                self.next = now + self.interval
            else:
                self.stopped = True

        if fn is not None:
            fn()
            return Delivery.CALLED
        if self.channel.offer(now):
            return Delivery.SENT
        return Delivery.DROPPED

    def __repr__(self) -> str:
        state = "stopped" if self.is_stopped() else "active"
        return f"EventRecord({self.kind}#{self.seq}, next={self.next_fire_time().isoformat()}, {state})"


class ManualTimer:
    """A one-shot timer controlled by a manual clock.

    Mirrors the standard timer contract: ``stop()`` and ``reset()`` report
    whether the timer was active, and the fire time is delivered on
    ``channel`` unless the timer was created with a callback.
    """

    __slots__ = ("_record",)

    def __init__(self, record: EventRecord):
        self._record = record

    @property
    def channel(self) -> Channel[datetime]:
        """The channel fire times are delivered on."""
        return self._record.channel

    def stop(self) -> bool:
        """Prevent the timer from firing.

        Returns:
            True if the timer was active, False if it had already fired or
            been stopped.
        """
        record = self._record
        with record.lock:
            active = not record.stopped
            record.stopped = True
        return active

    def reset(self, duration: DurationLike) -> bool:
        """Reschedule the timer to fire ``duration`` after the clock's current time.

        Reactivates a timer that was stopped or has already fired.

        Returns:
            True if the timer was active before the reset.
        """
        d = timer_duration(duration)
        record = self._record
        clock = record.clock
        with record.lock:
            record.next = next_fire = clock.now() + d
            active = not record.stopped
            record.stopped = False
            if record.removed:
                record.removed = False
                clock._registry.add_pending(record)
            else:
                clock._registry.mark_reordered()
        logger.debug("Reset %s to fire at %s (was active: %s)", record.event_id, next_fire, active)
        return active

    def __repr__(self) -> str:
        return f"ManualTimer({self._record!r})"


class ManualTicker:
    """A repeating ticker controlled by a manual clock."""

    __slots__ = ("_record",)

    def __init__(self, record: EventRecord):
        self._record = record

    @property
    def channel(self) -> Channel[datetime]:
        """The channel tick times are delivered on."""
        return self._record.channel

    def stop(self) -> None:
        """Turn off the ticker. No further ticks are delivered."""
        record = self._record
        with record.lock:
            record.stopped = True

    def __repr__(self) -> str:
        return f"ManualTicker({self._record!r})"
