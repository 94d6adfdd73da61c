"""Configuration for manual clocks.

Values can be given directly or read from the environment. A ManualClock
created without a config reads the environment through
``ManualClockConfig.from_env()``:

    TT_POLL_INTERVAL: Seconds between quiescence polls (default 0.001).
    TT_QUIESCENCE_TIMEOUT: Seconds before an advance gives up waiting for
        consumers to settle. Unset or empty means wait forever.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

from timetravel.tracing.recorder import NullTraceRecorder, TraceRecorder

DEFAULT_POLL_INTERVAL = 0.001

POLL_INTERVAL_ENV = "TT_POLL_INTERVAL"
QUIESCENCE_TIMEOUT_ENV = "TT_QUIESCENCE_TIMEOUT"


@dataclass(frozen=True)
class ManualClockConfig:
    """Tuning knobs for a ManualClock.

    Attributes:
        poll_interval: Seconds between checks while waiting for consumer
            threads to settle after a delivery.
        quiescence_timeout: Upper bound in seconds on each quiescence wait.
            None waits indefinitely.
        trace_recorder: Receives engine-level spans for every advance.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL
    quiescence_timeout: float | None = None
    trace_recorder: TraceRecorder = field(default_factory=NullTraceRecorder)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.quiescence_timeout is not None and self.quiescence_timeout <= 0:
            raise ValueError(
                f"quiescence_timeout must be > 0 or None, got {self.quiescence_timeout}"
            )

    def with_recorder(self, recorder: TraceRecorder) -> ManualClockConfig:
        """Return a copy of this config that records into ``recorder``."""
        return replace(self, trace_recorder=recorder)

    @classmethod
    def from_env(cls, **overrides) -> ManualClockConfig:
        """Build a config from environment variables.

        Keyword overrides win over the environment.

        Raises:
            ValueError: If a variable is set to something that is not a number.
        """
        values: dict = {}

        poll = os.environ.get(POLL_INTERVAL_ENV, "").strip()
        if poll:
            values["poll_interval"] = _parse_seconds(POLL_INTERVAL_ENV, poll)

        timeout = os.environ.get(QUIESCENCE_TIMEOUT_ENV, "").strip()
        if timeout:
            values["quiescence_timeout"] = _parse_seconds(QUIESCENCE_TIMEOUT_ENV, timeout)

        values.update(overrides)
        return cls(**values)


def _parse_seconds(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
