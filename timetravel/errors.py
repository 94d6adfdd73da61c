"""Exceptions raised by timetravel clocks.

Clock operations either succeed or block, so the taxonomy is small. Invalid
arguments raise the built-in ``ValueError``/``TypeError``; the classes here
cover conditions specific to the manual clock.
"""

__all__ = ["QuiescenceTimeoutError", "TimeTravelError"]


class TimeTravelError(Exception):
    """Base exception for timetravel-specific failures."""


class QuiescenceTimeoutError(TimeTravelError, TimeoutError):
    """Raised when consumer threads fail to settle within the configured timeout.

    Only raised when ``ManualClockConfig.quiescence_timeout`` is set. Without a
    timeout, an advance waits indefinitely for consumers to park again.
    """

    def __init__(self, timeout: float, busy: list[str]) -> None:
        """Initialize the error.

        Args:
            timeout: The timeout that was exceeded, in seconds.
            busy: Names of the threads that were still running.
        """
        super().__init__(
            f"consumer threads did not settle within {timeout}s: {', '.join(busy) or '<none>'}"
        )
        self.timeout = timeout
        self.busy = busy
