"""Detecting when consumer threads have settled after a delivery.

After a manual clock fires an event it must not fire the next one until every
consumer the delivery may have woken has finished reacting. Consumers are
arbitrary code, so they are not asked to signal completion. Instead the clock
watches where threads block:

- A thread is *parked* while it waits inside a clock-aware primitive: a
  ``Channel.get()`` on one of the clock's channels, ``ManualClock.sleep()``,
  or any code wrapped in ``ManualClock.idle()``.
- ``idle()`` blocks nest. A clock wait inside one makes the thread busy when
  a value is handed to it and parked again as soon as the wait returns.
- Before each delivery the engine snapshots the parked threads. Afterwards it
  waits until each of them is parked again or has exited.

A thread that is running when the snapshot is taken is not watched. A thread
that never parks again blocks the advance forever unless a timeout is
configured.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager

from timetravel.config import DEFAULT_POLL_INTERVAL
from timetravel.errors import QuiescenceTimeoutError

logger = logging.getLogger(__name__)


class ParkingLot:
    """The set of threads currently blocked in clock-aware waits."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._parked: set[threading.Thread] = set()
        self._idle: Counter[threading.Thread] = Counter()

    def park(self, thread: threading.Thread | None = None) -> None:
        """Mark ``thread`` (default: the calling thread) as waiting."""
        with self._cond:
            self._parked.add(thread or threading.current_thread())
            self._cond.notify_all()

    def unpark(self, thread: threading.Thread | None = None) -> None:
        """Mark ``thread`` (default: the calling thread) as running again."""
        with self._cond:
            self._parked.discard(thread or threading.current_thread())

    def resume(self, thread: threading.Thread | None = None) -> None:
        """Settle ``thread`` after a clock wait has returned.

        The thread stays parked if it is inside a ``parked()`` block, and is
        running otherwise.
        """
        thread = thread or threading.current_thread()
        with self._cond:
            if self._idle[thread]:
                self._parked.add(thread)
                self._cond.notify_all()
            else:
                self._parked.discard(thread)

    @contextmanager
    def parked(self) -> Iterator[None]:
        """Treat the calling thread as waiting for the duration of the block.

        Blocks may nest, and clock waits inside one leave the thread parked
        when they return.
        """
        thread = threading.current_thread()
        with self._cond:
            self._idle[thread] += 1
            self._parked.add(thread)
            self._cond.notify_all()
        try:
            yield
        finally:
            with self._cond:
                self._idle[thread] -= 1
                if not self._idle[thread]:
                    del self._idle[thread]
                    self._parked.discard(thread)

    def is_parked(self, thread: threading.Thread) -> bool:
        with self._cond:
            return thread in self._parked

    def snapshot(self, exclude: threading.Thread | None = None) -> frozenset[threading.Thread]:
        """Return the parked threads, leaving out ``exclude``."""
        with self._cond:
            return frozenset(t for t in self._parked if t is not exclude)

    def wait_for(self, count: int, timeout: float | None = None) -> bool:
        """Block until at least ``count`` threads other than the caller are parked.

        Returns:
            True once enough threads are parked, False if ``timeout`` seconds
            of real time pass first.
        """
        me = threading.current_thread()
        with self._cond:
            return self._cond.wait_for(
                lambda: sum(1 for t in self._parked if t is not me and t.is_alive()) >= count,
                timeout,
            )

    def wait_settled(
        self,
        watch: frozenset[threading.Thread],
        poll_interval: float,
        deadline: float | None = None,
    ) -> list[threading.Thread]:
        """Block until every thread in ``watch`` is parked or dead.

        Wakes on every park and otherwise every ``poll_interval`` seconds, the
        latter to notice threads that exit without parking.

        Returns:
            The threads still running when ``deadline`` (a ``time.monotonic()``
            value) passed, or an empty list once everything has settled.
        """
        with self._cond:
            while True:
                busy = [t for t in watch if t.is_alive() and t not in self._parked]
                if not busy:
                    return []
                wait = poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return busy
                    wait = min(wait, remaining)
                self._cond.wait(wait)

    def __len__(self) -> int:
        with self._cond:
            return len(self._parked)


class QuiescenceBarrier:
    """Waits for the threads parked at the start of a step to park again.

    Args:
        lot: The ParkingLot shared with the clock's channels.
        poll_interval: Seconds between checks for exited threads.
        timeout: Seconds to wait before raising QuiescenceTimeoutError.
            None waits indefinitely.
    """

    def __init__(
        self,
        lot: ParkingLot,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
    ):
        self._lot = lot
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._watch: frozenset[threading.Thread] = frozenset()

    def snapshot(self) -> frozenset[threading.Thread]:
        """Capture the threads that are parked right now, except the caller."""
        self._watch = self._lot.snapshot(exclude=threading.current_thread())
        return self._watch

    def wait(self) -> float:
        """Block until every captured thread is parked again or has exited.

        Returns:
            Seconds of real time spent waiting.

        Raises:
            QuiescenceTimeoutError: If a timeout is configured and some
                captured thread is still running when it expires.
        """
        started = time.monotonic()
        if not self._watch:
            return 0.0

        deadline = started + self._timeout if self._timeout is not None else None
        busy = self._lot.wait_settled(self._watch, self._poll_interval, deadline)
        if busy:
            names = sorted(t.name for t in busy)
            logger.warning("Consumers still busy after %ss: %s", self._timeout, names)
            raise QuiescenceTimeoutError(self._timeout, names)

        return time.monotonic() - started
