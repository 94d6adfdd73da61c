"""Trace recorders for engine-level manual clock instrumentation.

Spans are recorded by the thread running an advance. Span kinds:

    advance.start    an advance began (data: target, tracked, pending)
    event.fire       an event was delivered (data: delivery)
    event.drop       a channel delivery was dropped because the channel was full
    event.remove     a stopped event was taken out of the active list
    quiescence.wait  the engine waited for consumers (data: watched, elapsed)
    advance.end      the advance finished (data: fired)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd


@runtime_checkable
class TraceRecorder(Protocol):
    """Protocol for recording engine-level trace spans.

    Implementations can store traces in memory, write to files,
    send to external systems, or simply discard them.
    """

    def record(
        self,
        *,
        time: datetime,
        kind: str,
        event_id: str | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        """Record an engine-level trace span.

        Args:
            time: Virtual time when the span occurred.
            kind: Category of span (e.g., "event.fire", "quiescence.wait").
            event_id: ID of the associated clock event.
            event_type: "timer", "ticker" or "func".
            **data: Additional structured data for the span.
        """


@dataclass
class InMemoryTraceRecorder:
    """Stores engine traces in memory for later inspection.

    Useful for testing and debugging clock-driven code. Appends are guarded
    by a lock so a recorder may be shared between clocks.
    """

    spans: list[dict[str, Any]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(
        self,
        *,
        time: datetime,
        kind: str,
        event_id: str | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        span: dict[str, Any] = {
            "time": time,
            "kind": kind,
        }
        if event_id is not None:
            span["event_id"] = event_id
        if event_type is not None:
            span["event_type"] = event_type
        if data:
            span["data"] = data
        with self._lock:
            self.spans.append(span)

    def clear(self) -> None:
        """Clear all recorded spans."""
        with self._lock:
            self.spans.clear()

    def filter_by_kind(self, kind: str) -> list[dict[str, Any]]:
        """Return spans matching the given kind."""
        return [s for s in self.spans if s["kind"] == kind]

    def filter_by_event(self, event_id: str) -> list[dict[str, Any]]:
        """Return spans for a specific event ID."""
        return [s for s in self.spans if s.get("event_id") == event_id]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the recorded spans as a DataFrame, one row per span.

        Columns are ``time``, ``kind``, ``event_id`` and ``event_type``, plus
        one column per key found in any span's data.
        """
        import pandas as pd

        columns = ["time", "kind", "event_id", "event_type"]
        rows = []
        with self._lock:
            spans = list(self.spans)
        for span in spans:
            row = {key: span.get(key) for key in columns}
            for key, value in span.get("data", {}).items():
                if key not in columns:
                    columns.append(key)
                row[key] = value
            rows.append(row)
        return pd.DataFrame(rows, columns=columns)


@dataclass
class NullTraceRecorder:
    """No-op recorder that discards all traces.

    Use when tracing is disabled for performance.
    """

    def record(
        self,
        *,
        time: datetime,
        kind: str,
        event_id: str | None = None,
        event_type: str | None = None,
        **data: Any,
    ) -> None:
        pass
