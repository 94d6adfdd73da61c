"""A clock that only advances when explicitly told to.

ManualClock implements the full Clock interface on virtual time. Timers and
tickers created from it never fire on their own; ``add()`` and ``set()`` move
the clock and replay, in chronological order, every event that falls due in
the interval.

Replay is deterministic even though consumers run on their own threads. After
each delivery the advancing thread waits until every consumer that was
blocked on the clock before the delivery is blocked again (see
``timetravel.manual.quiescence``), so anything a consumer does in reaction,
such as resetting a timer or creating a new one, is visible before the next
event is considered.

Example::

    clock = ManualClock(start=datetime(2024, 1, 1, tzinfo=UTC))
    ticks = []

    def consume():
        for tick_time in clock.tick(5):
            ticks.append(tick_time)

    threading.Thread(target=consume, daemon=True).start()
    clock.wait_for_parked()
    clock.add(12)
    # ticks == [00:00:05, 00:00:10]

Usage constraints:
    - Only one thread may advance a clock at a time. Calling ``add``/``set``
      from a timer callback or from a consumer reacting to this clock
      deadlocks.
    - Consumers must block through the clock (its channels, ``sleep()`` or
      ``idle()``) for the clock to know they are done. A consumer that busy
      waits or blocks on something else stalls the advance.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta

from timetravel.channel import Channel
from timetravel.config import ManualClockConfig
from timetravel.manual.events import Delivery, EventRecord, ManualTicker, ManualTimer
from timetravel.manual.quiescence import ParkingLot, QuiescenceBarrier
from timetravel.manual.registry import EventRegistry
from timetravel.utils.durations import (
    ZERO,
    DurationLike,
    ticker_interval,
    timer_duration,
    to_timedelta,
)

logger = logging.getLogger(__name__)


class ManualClock:
    """Clock whose time changes only through ``add()`` and ``set()``.

    Args:
        start: Initial time. Defaults to the current UTC time.
        config: Polling, timeout and tracing settings. Defaults to
            ``ManualClockConfig.from_env()``, so ``TT_POLL_INTERVAL`` and
            ``TT_QUIESCENCE_TIMEOUT`` apply unless a config is passed.
    """

    def __init__(
        self,
        start: datetime | None = None,
        config: ManualClockConfig | None = None,
    ):
        self._config = config or ManualClockConfig.from_env()
        self._now = start if start is not None else datetime.now(UTC)
        self._now_lock = threading.Lock()
        self._advance_lock = threading.Lock()
        self._registry = EventRegistry()
        self._lot = ParkingLot()
        self._barrier = QuiescenceBarrier(
            self._lot,
            poll_interval=self._config.poll_interval,
            timeout=self._config.quiescence_timeout,
        )

    @property
    def config(self) -> ManualClockConfig:
        return self._config

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Return the current virtual time."""
        with self._now_lock:
            return self._now

    def _set_now(self, t: datetime) -> None:
        with self._now_lock:
            self._now = t

    def add(self, duration: DurationLike) -> None:
        """Move the clock forward by ``duration``, firing every event due on the way."""
        self.set(self.now() + to_timedelta(duration))

    def set(self, t: datetime) -> None:
        """Move the clock to ``t``, firing every event due at or before ``t``.

        Events fire one at a time in chronological order, and the clock reads
        each event's own fire time while it is delivered. When the call
        returns the clock reads exactly ``t``. Moving the clock backwards is
        allowed; it fires nothing.

        Exceptions raised by ``after_func`` callbacks propagate to the caller
        once the clock has been set to ``t``. Events that were still due stay
        scheduled and fire on the next advance.

        Raises:
            TypeError: If ``t`` is not a datetime, or is naive where the clock
                is timezone-aware (or the other way round). The clock is left
                untouched.
            QuiescenceTimeoutError: If a quiescence timeout is configured and
                consumers did not settle in time.
        """
        if not isinstance(t, datetime):
            raise TypeError(f"set() needs a datetime, got {type(t).__name__}")
        if (t.tzinfo is None) != (self.now().tzinfo is None):
            raise TypeError(
                f"cannot mix naive and timezone-aware times: clock reads {self.now()!r}, got {t!r}"
            )
        with self._advance_lock:
            try:
                self._advance(t)
            finally:
                self._set_now(t)

    def _advance(self, target: datetime) -> None:
        registry = self._registry
        recorder = self._config.trace_recorder

        recorder.record(
            time=self.now(),
            kind="advance.start",
            target=target,
            tracked=len(registry),
            pending=registry.pending_count,
        )

        fired = 0
        record = registry.begin(target)
        while record is not None:
            if not record.is_stopped():
                fired += self._fire(record)

            if registry.discard_if_stopped(record):
                recorder.record(
                    time=self.now(),
                    kind="event.remove",
                    event_id=record.event_id,
                    event_type=record.kind,
                )

            record = registry.refresh()

        recorder.record(time=target, kind="advance.end", fired=fired)
        if fired:
            logger.debug("Advance to %s fired %d event(s)", target, fired)

    def _fire(self, record: EventRecord) -> int:
        """Deliver one due event and wait for consumers to settle.

        Returns:
            1 if something was delivered (or dropped on a full channel),
            0 if the record turned out to be stopped.
        """
        recorder = self._config.trace_recorder
        fire_time = record.next_fire_time()
        self._set_now(fire_time)

        watched = self._barrier.snapshot()
        delivery = record.play(fire_time)
        if delivery is Delivery.SKIPPED:
            return 0

        kind = "event.drop" if delivery is Delivery.DROPPED else "event.fire"
        recorder.record(
            time=fire_time,
            kind=kind,
            event_id=record.event_id,
            event_type=record.kind,
            delivery=delivery.value,
        )
        if delivery is Delivery.DROPPED:
            logger.debug("Dropped %s %s at %s: channel full", record.kind, record.event_id, fire_time)
        else:
            logger.debug("Fired %s %s at %s", record.kind, record.event_id, fire_time)

        elapsed = self._barrier.wait()
        if watched:
            recorder.record(
                time=fire_time,
                kind="quiescence.wait",
                event_id=record.event_id,
                watched=len(watched),
                elapsed=elapsed,
            )
        return 1

    # ------------------------------------------------------------------
    # Consumers
    # ------------------------------------------------------------------

    def sleep(self, duration: DurationLike) -> None:
        """Block the calling thread until the clock has advanced by ``duration``.

        Another thread must advance the clock. A zero duration returns
        immediately.
        """
        d = timer_duration(duration)
        if d == ZERO:
            return
        self.after(d).get()

    @contextmanager
    def idle(self) -> Iterator[None]:
        """Mark the calling thread as waiting while it blocks outside the clock.

        Wrap waits on primitives the clock does not know about (queues,
        events, locks) so that an advance does not wait for this thread::

            with clock.idle():
                job = work_queue.get()

        The whole block counts as waiting. Blocks may nest, and a clock
        channel read inside one is busy only until the value is received.
        """
        with self._lot.parked():
            yield

    def wait_for_parked(self, count: int = 1, timeout: float | None = None) -> bool:
        """Block until at least ``count`` other threads are waiting on this clock.

        Lets a test hand control to its consumer threads before advancing.

        Returns:
            False if ``timeout`` seconds of real time passed first.
        """
        return self._lot.wait_for(count, timeout)

    def outstanding(self) -> int:
        """Number of timers and tickers that are scheduled and not stopped."""
        return sum(1 for record in self._registry.records() if not record.is_stopped())

    # ------------------------------------------------------------------
    # Timers and tickers
    # ------------------------------------------------------------------

    def _schedule(
        self,
        d: timedelta,
        *,
        interval: timedelta = ZERO,
        fn: Callable[[], None] | None = None,
    ) -> EventRecord:
        record = EventRecord(
            self,
            self.now() + d,
            Channel(lot=self._lot),
            interval=interval,
            fn=fn,
        )
        self._registry.add_pending(record)
        return record

    def after(self, duration: DurationLike) -> Channel[datetime]:
        """Return a channel that receives the fire time once ``duration`` has elapsed."""
        return self.new_timer(duration).channel

    def after_func(self, duration: DurationLike, fn: Callable[[], None]) -> ManualTimer:
        """Call ``fn`` once ``duration`` has elapsed.

        ``fn`` runs synchronously on the thread advancing the clock, which
        reads the scheduled fire time while it runs. The returned timer's
        channel never receives anything.
        """
        return ManualTimer(self._schedule(timer_duration(duration), fn=fn))

    def new_timer(self, duration: DurationLike) -> ManualTimer:
        """Create a timer that delivers its fire time on its channel."""
        return ManualTimer(self._schedule(timer_duration(duration)))

    def tick(self, duration: DurationLike) -> Channel[datetime]:
        """Return the channel of a new ticker that cannot be stopped."""
        return self.new_ticker(duration).channel

    def new_ticker(self, duration: DurationLike) -> ManualTicker:
        """Create a ticker delivering every ``duration``.

        Ticks nobody has received yet are dropped, never queued.
        """
        d = ticker_interval(duration)
        return ManualTicker(self._schedule(d, interval=d))

    def __repr__(self) -> str:
        return f"ManualClock(now={self.now().isoformat()}, outstanding={self.outstanding()})"
