"""Capacity-1 delivery channel used by timers and tickers.

A Channel behaves like the receive side of a one-slot buffered queue:
producers ``offer()`` a value without ever blocking, and the value is dropped
when the slot is already full. Consumers block in ``get()``.

When a channel belongs to a manual clock it reports blocked receivers to the
clock's ParkingLot. A receiver is parked for as long as it waits and is
unparked by the producer at the moment a value is handed to it, so the clock
never mistakes a woken-but-not-yet-scheduled consumer for an idle one. When
the wait returns inside ``ManualClock.idle()`` the receiver is parked again.
"""

from __future__ import annotations

import queue
import threading
from collections import deque
from collections.abc import Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from timetravel.manual.quiescence import ParkingLot

T = TypeVar("T")


class _Waiter:
    __slots__ = ("event", "ready", "thread", "value")

    def __init__(self, thread: threading.Thread):
        self.thread = thread
        self.event = threading.Event()
        self.ready = False
        self.value = None


class Channel(Generic[T]):
    """A one-slot channel with drop-if-full delivery.

    Values offered while a receiver is waiting go straight to the longest
    waiting receiver. Otherwise the value occupies the slot until someone
    receives it, and further offers are dropped.

    Args:
        lot: ParkingLot to report blocked receivers to, or None.
        name: Label used in reprs and log messages.
    """

    def __init__(self, lot: ParkingLot | None = None, name: str | None = None):
        self._lock = threading.Lock()
        self._slot: deque[T] = deque(maxlen=1)
        self._waiters: deque[_Waiter] = deque()
        self._lot = lot
        self.name = name

    def offer(self, value: T) -> bool:
        """Deliver ``value`` without blocking.

        Returns:
            True if the value was handed to a receiver or stored, False if it
            was dropped because the slot was already full.
        """
        with self._lock:
            if self._waiters:
                waiter = self._waiters.popleft()
                waiter.value = value
                waiter.ready = True
                if self._lot is not None:
                    self._lot.unpark(waiter.thread)
                waiter.event.set()
                return True
            if self._slot:
                return False
            self._slot.append(value)
            return True

    def get(self, timeout: float | None = None) -> T:
        """Receive the next value, blocking until one is available.

        Args:
            timeout: Seconds of real time to wait. None waits forever.

        Raises:
            queue.Empty: If the timeout expires before a value arrives.
        """
        with self._lock:
            if self._slot:
                return self._slot.popleft()
            waiter = _Waiter(threading.current_thread())
            self._waiters.append(waiter)
            if self._lot is not None:
                self._lot.park(waiter.thread)

        waiter.event.wait(timeout)

        with self._lock:
            ready = waiter.ready
            if not ready:
                self._waiters.remove(waiter)
            if self._lot is not None:
                self._lot.resume(waiter.thread)
        if ready:
            return waiter.value
        raise queue.Empty

    def get_nowait(self) -> T:
        """Receive a value that is already waiting in the slot.

        Raises:
            queue.Empty: If the slot is empty.
        """
        with self._lock:
            if self._slot:
                return self._slot.popleft()
        raise queue.Empty

    def empty(self) -> bool:
        with self._lock:
            return not self._slot

    def __len__(self) -> int:
        with self._lock:
            return len(self._slot)

    def __iter__(self) -> Iterator[T]:
        """Receive values forever. Pair with ``break`` or a stopping ticker."""
        while True:
            yield self.get()

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        state = "full" if self._slot else "empty"
        return f"<Channel{label} {state}, waiters={len(self._waiters)}>"
