"""The set of outstanding events owned by a manual clock.

Records live in ``active``, a list sorted by descending fire time so the
soonest event sits at the tail and can be popped cheaply. Records created
while an advance is running cannot be inserted into ``active`` directly (the
advancing thread is iterating it), so they land in ``pending`` and are merged
at well-defined points: at the start of an advance and after every fired
event.

During an advance the list is split at ``boundary``::

    active = [ not due (next > horizon) ... | due ... soonest ]
                                            ^ boundary

Only the due suffix is re-sorted after each fired event. Newly merged records
are appended to the suffix, so the not-yet-due prefix stays sorted without
being touched. A ``reset`` on a record that is still in ``active`` can move it
anywhere, so it flags the registry for a full re-sort instead.
"""

from __future__ import annotations

import threading
from datetime import datetime

from timetravel.manual.events import EventRecord


def _sort_key(record: EventRecord) -> tuple[datetime, int]:
    return record.sort_key()


class EventRegistry:
    def __init__(self) -> None:
        self._active: list[EventRecord] = []
        self._pending: list[EventRecord] = []
        self._pending_lock = threading.Lock()
        self._reordered = False
        self._boundary = 0
        self._horizon: datetime | None = None

    # -- any thread --

    def add_pending(self, record: EventRecord) -> None:
        """Queue ``record`` for the next merge. Safe from any thread."""
        with self._pending_lock:
            self._pending.append(record)

    def mark_reordered(self) -> None:
        """Request a full re-sort at the next merge."""
        with self._pending_lock:
            self._reordered = True

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def __len__(self) -> int:
        with self._pending_lock:
            return len(self._active) + len(self._pending)

    def records(self) -> list[EventRecord]:
        """All tracked records, active first then pending."""
        with self._pending_lock:
            return list(self._active) + list(self._pending)

    # -- advancing thread only --

    def _merge(self) -> bool:
        """Move pending records into ``active``.

        Returns:
            Whether a full re-sort was requested since the last merge.
        """
        with self._pending_lock:
            self._active.extend(self._pending)
            self._pending.clear()
            reordered = self._reordered
            self._reordered = False
        return reordered

    def begin(self, horizon: datetime) -> EventRecord | None:
        """Start an advance towards ``horizon``.

        Merges pending records, sorts everything and locates the due suffix.

        Returns:
            The soonest due record, or None if nothing is due at or before
            ``horizon``.
        """
        self._horizon = horizon
        self._merge()
        self._active.sort(key=_sort_key, reverse=True)
        self._boundary = 0
        return self._seek()

    def refresh(self) -> EventRecord | None:
        """Re-establish ordering after a record was played.

        Returns:
            The next due record, or None when the advance is complete.
        """
        if self._merge():
            self._active.sort(key=_sort_key, reverse=True)
            self._boundary = 0
        else:
            # the prefix cannot have changed; ``boundary`` may now be past the end
            self._boundary = min(self._boundary, len(self._active))
            self._active[self._boundary:] = sorted(
                self._active[self._boundary:], key=_sort_key, reverse=True
            )
        return self._seek()

    def _seek(self) -> EventRecord | None:
        active = self._active
        horizon = self._horizon
        while self._boundary < len(active) and active[self._boundary].next_fire_time() > horizon:
            self._boundary += 1
        if self._boundary < len(active):
            return active[-1]
        return None

    def discard_if_stopped(self, record: EventRecord) -> bool:
        """Remove ``record`` from the tail of ``active`` if it is stopped.

        The stopped check and the ``removed`` flag are updated under the
        record lock so a concurrent ``reset`` either sees the record as still
        tracked or re-adds it, never neither.

        Returns:
            Whether the record was removed.
        """
        with record.lock:
            if not record.stopped:
                return False
            if self._active and self._active[-1] is record:
                self._active.pop()
            else:
                self._active.remove(record)
            record.removed = True
        return True

    @property
    def due_count(self) -> int:
        """Number of records in the current due suffix."""
        return len(self._active) - self._boundary
