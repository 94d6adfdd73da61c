"""
Shared pytest fixtures for timetravel tests.
"""

import logging
import threading
from datetime import UTC, datetime

import pytest

from timetravel import InMemoryTraceRecorder, ManualClock, ManualClockConfig

T0 = datetime(2024, 1, 1, 9, 30, tzinfo=UTC)

# Real-time bound for joins and parking waits, so a broken test fails instead of hanging
JOIN_TIMEOUT = 5.0


@pytest.fixture
def start() -> datetime:
    """The time every manual clock in the suite starts at."""
    return T0


@pytest.fixture
def recorder() -> InMemoryTraceRecorder:
    return InMemoryTraceRecorder()


@pytest.fixture
def clock(start, recorder) -> ManualClock:
    """A manual clock at ``start`` that traces into ``recorder``.

    A quiescence timeout is configured so a consumer that never parks fails
    the test with QuiescenceTimeoutError instead of hanging the suite.
    """
    config = ManualClockConfig(quiescence_timeout=JOIN_TIMEOUT, trace_recorder=recorder)
    return ManualClock(start=start, config=config)


@pytest.fixture
def spawn():
    """Start daemon consumer threads and join them when the test ends.

    Example usage:
        def test_consumer(clock, spawn):
            spawn(lambda: received.append(clock.after(1).get()))
            clock.wait_for_parked()
            clock.add(1)
    """
    threads: list[threading.Thread] = []

    def _spawn(target, *args, name: str | None = None) -> threading.Thread:
        thread = threading.Thread(target=target, args=args, name=name, daemon=True)
        threads.append(thread)
        thread.start()
        return thread

    yield _spawn

    for thread in threads:
        thread.join(JOIN_TIMEOUT)


@pytest.fixture(autouse=True)
def reset_timetravel_logging():
    """Reset logging state before each test.

    Ensures tests start with a clean logging configuration:
    - Removes all handlers except NullHandler
    - Resets level to NOTSET (inherit from parent)
    """
    logger = logging.getLogger("timetravel")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()
