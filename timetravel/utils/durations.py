"""Coercion and validation for durations passed into clock APIs.

Every public clock method accepts either a ``timedelta`` or a plain number of
seconds. Numbers are converted with microsecond resolution, the finest
``timedelta`` can represent.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Union

DurationLike = Union[timedelta, int, float]

ZERO = timedelta(0)


def to_timedelta(duration: DurationLike) -> timedelta:
    """Convert a duration-like value to a ``timedelta``.

    Args:
        duration: A ``timedelta`` or a number of seconds.

    Returns:
        The equivalent ``timedelta``.

    Raises:
        TypeError: If the value is neither a ``timedelta`` nor a real number.
    """
    if isinstance(duration, timedelta):
        return duration

    # bool is an int subclass; True seconds is never what the caller meant
    if isinstance(duration, bool):
        raise TypeError("duration must be a timedelta or a number of seconds, not bool")

    if isinstance(duration, (int, float)):
        return timedelta(seconds=duration)

    raise TypeError(
        f"duration must be a timedelta or a number of seconds, got {type(duration).__name__}"
    )


def timer_duration(duration: DurationLike) -> timedelta:
    """Coerce a one-shot timer duration, rejecting negative values.

    A zero duration is allowed: the timer is due immediately and fires on the
    next advance of a manual clock.

    Raises:
        ValueError: If the duration is negative.
    """
    d = to_timedelta(duration)
    if d < ZERO:
        raise ValueError(f"timer duration must not be negative, got {d!r}")
    return d


def ticker_interval(duration: DurationLike) -> timedelta:
    """Coerce a ticker interval, rejecting zero and negative values.

    Raises:
        ValueError: If the interval is not strictly positive.
    """
    d = to_timedelta(duration)
    if d <= ZERO:
        raise ValueError(f"ticker interval must be positive, got {d!r}")
    return d
