"""Tracing infrastructure for manual clock instrumentation.

Engine-level spans describe what an advance did: which events fired, which
deliveries were dropped, and how long the engine waited for consumers.
"""

from timetravel.tracing.recorder import (
    InMemoryTraceRecorder,
    NullTraceRecorder,
    TraceRecorder,
)

__all__ = [
    "TraceRecorder",
    "InMemoryTraceRecorder",
    "NullTraceRecorder",
]
