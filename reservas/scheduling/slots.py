"""
Slot generation.

Produces the candidate start times of a working day for a given total
service duration. Conflicts are not considered here.
"""

from datetime import time

DEFAULT_GRANULARITY_MINUTES = 15


def _to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def generate_candidates(
    open_time: time | None,
    close_time: time | None,
    total_duration_minutes: int,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> list[time]:
    """
    Every start ``t`` in ``[open_time, close_time)`` stepped by
    ``granularity_minutes`` such that ``t + total_duration_minutes <= close_time``.

    Returns an empty list when either bound is missing or ``close_time`` is
    not after ``open_time``.
    """
    if total_duration_minutes < 1:
        raise ValueError('total_duration_minutes must be at least 1.')
    if granularity_minutes < 1:
        raise ValueError('granularity_minutes must be at least 1.')

    if open_time is None or close_time is None or close_time <= open_time:
        return []

    opening = _to_minutes(open_time)
    closing = _to_minutes(close_time)
    latest_start = closing - total_duration_minutes

    return [
        _from_minutes(start)
        for start in range(opening, latest_start + 1, granularity_minutes)
    ]
