"""timetravel: time travel (sort of) for threaded Python code.

The ``Clock`` interface groups everything that depends on the passage of
time: reading the time, sleeping, one-shot timers and repeating tickers.

- ``timetravel.new()`` returns a live clock passing straight through to the
  wall clock.
- ``timetravel.manual.new()`` returns a manual clock that only moves when told
  to, replaying every timer and ticker due in between.

The library is silent by default. Enable logging with
``timetravel.enable_console_logging()`` or ``timetravel.configure_from_env()``.
"""

import logging

from timetravel.channel import Channel
from timetravel.clock import Clock, Ticker, Timer, new
from timetravel.config import ManualClockConfig
from timetravel.errors import QuiescenceTimeoutError, TimeTravelError
from timetravel.live import LiveClock, LiveTicker, LiveTimer
from timetravel.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_file_logging,
    enable_json_logging,
    enable_timed_file_logging,
    set_level,
    set_module_level,
)
from timetravel.manual import ManualClock, ManualTicker, ManualTimer
from timetravel.tracing import InMemoryTraceRecorder, NullTraceRecorder, TraceRecorder

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Interface
    "Clock",
    "Timer",
    "Ticker",
    "Channel",
    "new",
    # Implementations
    "LiveClock",
    "LiveTimer",
    "LiveTicker",
    "ManualClock",
    "ManualTimer",
    "ManualTicker",
    "ManualClockConfig",
    # Errors
    "TimeTravelError",
    "QuiescenceTimeoutError",
    # Tracing
    "TraceRecorder",
    "InMemoryTraceRecorder",
    "NullTraceRecorder",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]
