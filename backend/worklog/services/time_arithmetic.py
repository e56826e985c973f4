"""
Working-time arithmetic.

Derives gross, break and net minutes from a start/end clock pair. Spans that
end before they start are treated as overnight (22:00–02:00 = 240 minutes).
"""

from __future__ import annotations

import re
from datetime import time
from typing import NamedTuple

_MINUTES_PER_DAY = 24 * 60
_clock_re = re.compile(r"^(\d{1,2}):(\d{2})$")


class TimeBreakdown(NamedTuple):
    gross_minutes: int
    break_minutes: int
    net_minutes: int


ZERO = TimeBreakdown(0, 0, 0)


def parse_clock(value: str | time) -> time:
    """Accept a ``time`` or an ``HH:MM`` string; seconds are ignored."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _clock_re.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid clock time '{value}', expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Clock time '{value}' is out of range")
    return time(hour, minute)


def _minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def calculate_times(
    start: str | time | None,
    end: str | time | None,
    break_threshold_hours: float,
    break_duration_minutes: int,
) -> TimeBreakdown:
    """
    Compute (gross, break, net) minutes for one entry.

    Absence entries carry no clock times and yield zeros. The break is
    deducted when gross reaches the threshold; the boundary is inclusive.
    """
    if start is None or end is None:
        return ZERO

    start_min = _minute_of_day(parse_clock(start))
    end_min = _minute_of_day(parse_clock(end))
    if end_min < start_min:
        end_min += _MINUTES_PER_DAY

    gross = end_min - start_min
    if gross < 0:
        raise ValueError(f"Negative gross duration ({gross} min) for {start}–{end}")

    break_minutes = break_duration_minutes if gross >= break_threshold_hours * 60 else 0
    return TimeBreakdown(gross, break_minutes, gross - break_minutes)
