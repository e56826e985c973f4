"""
Working-time arithmetic tests.

Tests:
  - test_day_shift_with_break        : 08:00–16:00 → 480 / 30 / 450
  - test_overnight_wraps             : 22:00–02:00 → 240 gross, below threshold
  - test_threshold_is_inclusive      : exactly 6 h gets the break, 5:59 does not
  - test_missing_time_yields_zeros   : absence entries carry no minutes
  - test_string_and_time_inputs_agree
  - test_invalid_clock_rejected
"""

from __future__ import annotations

from datetime import time

import pytest

from worklog.services.time_arithmetic import ZERO, calculate_times, parse_clock


def test_day_shift_with_break():
    result = calculate_times("08:00", "16:00", 6, 30)
    assert result == (480, 30, 450)
    assert result.net_minutes == result.gross_minutes - result.break_minutes


def test_overnight_wraps():
    result = calculate_times("22:00", "02:00", 6, 30)
    assert result.gross_minutes == 240
    assert result.break_minutes == 0
    assert result.net_minutes == 240


def test_overnight_long_shift_gets_break():
    assert calculate_times("20:00", "04:30", 6, 30) == (510, 30, 480)


def test_threshold_is_inclusive():
    assert calculate_times("08:00", "14:00", 6, 30) == (360, 30, 330)
    assert calculate_times("08:00", "13:59", 6, 30) == (359, 0, 359)


def test_fractional_threshold():
    assert calculate_times("09:00", "13:30", 4.5, 15) == (270, 15, 255)


@pytest.mark.parametrize(
    "start, end",
    [(None, "16:00"), ("08:00", None), (None, None)],
)
def test_missing_time_yields_zeros(start, end):
    assert calculate_times(start, end, 6, 30) == ZERO


def test_same_start_and_end_is_zero_length():
    assert calculate_times("09:00", "09:00", 6, 30) == (0, 0, 0)


def test_string_and_time_inputs_agree():
    assert calculate_times(time(7, 15), time(15, 45), 6, 30) == calculate_times(
        "07:15", "15:45", 6, 30
    )


def test_seconds_are_ignored():
    assert parse_clock(time(8, 0, 59)) == time(8, 0)


@pytest.mark.parametrize("value", ["8", "24:00", "12:60", "ab:cd", "08:00:00", ""])
def test_invalid_clock_rejected(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_early_shift():
    assert calculate_times("05:00", "13:00", 6, 30) == (480, 30, 450)
