"""
Anomaly reports over time entries.

Three independent, read-only analyses:

- ``weekday_pattern``  absence counts per weekday with rule-based flags
- ``period_baseline``  KPIs of a date range against the whole-history rate
- ``task_intervals``   spacing between recurring entries of one category

All functions are pure: they take ``EntryFact`` rows already loaded from the
store and return response models. Multi-employee results are ordered by
ascending employee id.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from worklog.db.models import ABSENCE_CATEGORIES, Category, TimeEntry
from worklog.schemas.reports import (
    BaselineFinding,
    BaselineKPIs,
    Deviations,
    PeriodBaselineReport,
    PeriodKPIs,
    PeriodWindow,
    TaskIntervalEntry,
    TaskIntervalReport,
    WeekdayBucket,
    WeekdayPatternReport,
)

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
MONDAY, FRIDAY = 1, 5

# Weekday pattern thresholds
SICK_RULE_MIN_TOTAL = 3
SICK_RULE_SHARE_PCT = 40
WEEKDAY_RULE_MIN_TOTAL = 4
WEEKDAY_RULE_SHARE_PCT = 50

# Period baseline thresholds
MIN_EXPECTED = 0.5
DEVIATION_THRESHOLD_PCT = 15


@dataclass(frozen=True)
class EntryFact:
    employee_id: int
    employee_name: str
    date: date
    category: Category
    net_minutes: int = 0
    description: str | None = None

    @classmethod
    def from_entry(cls, entry: TimeEntry, employee_name: str) -> EntryFact:
        return cls(
            employee_id=entry.employee_id,
            employee_name=employee_name,
            date=entry.date,
            category=entry.category,
            net_minutes=entry.net_minutes or 0,
            description=entry.description,
        )


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _sunday_first(d: date) -> int:
    return (d.weekday() + 1) % 7


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole > 0 else 0


def _inclusive_days(first: date, last: date) -> int:
    return max(1, (last - first).days + 1)


def _group_by_employee(facts: Iterable[EntryFact]) -> list[tuple[int, str, list[EntryFact]]]:
    grouped: dict[int, list[EntryFact]] = defaultdict(list)
    for fact in facts:
        grouped[fact.employee_id].append(fact)
    return [
        (employee_id, grouped[employee_id][0].employee_name, grouped[employee_id])
        for employee_id in sorted(grouped)
    ]


# ---------------------------------------------------------------------------
# Weekday pattern
# ---------------------------------------------------------------------------


def _weekday_report(employee_id: int, name: str, facts: list[EntryFact]) -> WeekdayPatternReport:
    sick = [0] * 7
    vacation = [0] * 7
    for fact in facts:
        idx = _sunday_first(fact.date)
        if fact.category == Category.SICK_LEAVE:
            sick[idx] += 1
        else:
            vacation[idx] += 1

    combined = [s + v for s, v in zip(sick, vacation)]
    total = sum(combined)
    sick_total = sum(sick)
    percents = [_percent(count, total) for count in combined]

    anomalies: list[str] = []

    if sick_total >= SICK_RULE_MIN_TOTAL:
        for idx in (MONDAY, FRIDAY):
            share = _percent(sick[idx], sick_total)
            if share >= SICK_RULE_SHARE_PCT:
                anomalies.append(
                    f"{name} is on sick leave on {WEEKDAY_NAMES[idx]} in {share}% of "
                    f"sick days ({sick[idx]} of {sick_total})."
                )

    if total >= WEEKDAY_RULE_MIN_TOTAL:
        for idx, share in enumerate(percents):
            if share >= WEEKDAY_RULE_SHARE_PCT:
                anomalies.append(
                    f"{name} has {share}% of all absences on {WEEKDAY_NAMES[idx]} "
                    f"({combined[idx]} of {total})."
                )

    return WeekdayPatternReport(
        employee_id=employee_id,
        employee_name=name,
        total_absences=total,
        sick_days=sick_total,
        vacation_days=sum(vacation),
        weekdays=[
            WeekdayBucket(
                weekday=idx,
                name=WEEKDAY_NAMES[idx],
                sick=sick[idx],
                vacation=vacation[idx],
                total=combined[idx],
                percent=percents[idx],
            )
            for idx in range(7)
        ],
        anomalies=anomalies,
        no_anomalies=not anomalies,
    )


def weekday_pattern(facts: Iterable[EntryFact]) -> list[WeekdayPatternReport]:
    """Per-employee weekday histogram of sick leave and vacation."""
    absences = (f for f in facts if f.category in ABSENCE_CATEGORIES)
    return [
        _weekday_report(employee_id, name, rows)
        for employee_id, name, rows in _group_by_employee(absences)
    ]


# ---------------------------------------------------------------------------
# Period vs. baseline
# ---------------------------------------------------------------------------

# metric -> (label, unit, exceeding the baseline is a warning)
_METRICS: dict[str, tuple[str, str, bool]] = {
    "sick_days": ("Sick leave", "days", True),
    "vacation_days": ("Vacation", "days", False),
    "hours": ("Working hours", "h", True),
}


def deviation_pct(actual: float, expected: float) -> int | None:
    """Percent deviation, or None when the expectation is too small to compare."""
    if expected < MIN_EXPECTED:
        return None
    return round_half_up((actual - expected) / expected * 100)


def _totals(facts: list[EntryFact]) -> tuple[float, int, int]:
    hours = sum(f.net_minutes for f in facts) / 60
    sick = sum(1 for f in facts if f.category == Category.SICK_LEAVE)
    vacation = sum(1 for f in facts if f.category == Category.VACATION)
    return hours, sick, vacation


def _finding(metric: str, actual: float, expected: float) -> BaselineFinding | None:
    pct = deviation_pct(actual, expected)
    if pct is None or abs(pct) < DEVIATION_THRESHOLD_PCT:
        return None
    label, unit, higher_is_warning = _METRICS[metric]
    direction = "higher" if pct > 0 else "lower"
    return BaselineFinding(
        metric=metric,
        severity="warning" if (pct > 0) == higher_is_warning else "info",
        deviation_pct=pct,
        actual=round(actual, 2),
        expected=round(expected, 2),
        message=(
            f"{label} is {abs(pct)}% {direction} than the baseline in this period "
            f"({actual:.1f} {unit} vs. expected {expected:.1f} {unit})."
        ),
    )


def period_baseline(
    facts: Iterable[EntryFact],
    date_from: date,
    date_to: date,
    employee_id: int | None = None,
) -> PeriodBaselineReport:
    """
    Compare a date range against the per-day rate of the whole history.

    ``facts`` is the baseline universe: every entry of the (optionally
    filtered) employee(s), inside and outside the period. The baseline span
    falls back to the period length when there is no data at all, or when
    no entry lies outside the period.
    """
    if date_from > date_to:
        raise ValueError("date_from must not be after date_to")

    universe = list(facts)
    period = [f for f in universe if date_from <= f.date <= date_to]
    period_days = _inclusive_days(date_from, date_to)

    outside = [f for f in universe if not date_from <= f.date <= date_to]
    if universe and outside:
        dates = [f.date for f in universe]
        baseline_days = _inclusive_days(min(dates), max(dates))
    else:
        baseline_days = period_days

    period_hours, period_sick, period_vacation = _totals(period)
    all_hours, all_sick, all_vacation = _totals(universe)

    rate_hours = all_hours / baseline_days
    rate_sick = all_sick / baseline_days
    rate_vacation = all_vacation / baseline_days

    expected = {
        "sick_days": rate_sick * period_days,
        "vacation_days": rate_vacation * period_days,
        "hours": rate_hours * period_days,
    }
    actual = {
        "sick_days": float(period_sick),
        "vacation_days": float(period_vacation),
        "hours": period_hours,
    }

    findings = [
        finding
        for metric in _METRICS
        if (finding := _finding(metric, actual[metric], expected[metric])) is not None
    ]

    if findings:
        status = "deviations"
        summary = f"{len(findings)} metric(s) deviate from the baseline by {DEVIATION_THRESHOLD_PCT}% or more."
    elif universe:
        status = "nominal"
        summary = "All metrics are within the normal range."
    else:
        status = "insufficient_data"
        summary = "No baseline data available for comparison."

    work_days = len(
        {f.date for f in period if f.net_minutes > 0 or f.category != Category.SICK_LEAVE}
    )

    return PeriodBaselineReport(
        employee_id=employee_id,
        period=PeriodWindow(date_from=date_from, date_to=date_to, days=period_days),
        period_kpis=PeriodKPIs(
            hours=round(period_hours, 2),
            sick_days=period_sick,
            vacation_days=period_vacation,
            work_days=work_days,
        ),
        baseline=BaselineKPIs(
            days=baseline_days,
            has_data=bool(universe),
            hours_per_day=round(rate_hours, 2),
            sick_days_per_day=round(rate_sick, 3),
            vacation_days_per_day=round(rate_vacation, 3),
            expected_hours=round(expected["hours"], 1),
            expected_sick_days=round(expected["sick_days"], 1),
            expected_vacation_days=round(expected["vacation_days"], 1),
        ),
        deviations=Deviations(
            hours=deviation_pct(actual["hours"], expected["hours"]),
            sick_days=deviation_pct(actual["sick_days"], expected["sick_days"]),
            vacation_days=deviation_pct(actual["vacation_days"], expected["vacation_days"]),
        ),
        findings=findings,
        status=status,
        summary=summary,
    )


# ---------------------------------------------------------------------------
# Task intervals
# ---------------------------------------------------------------------------


def _interval_report(
    employee_id: int, name: str, category: Category, facts: list[EntryFact]
) -> TaskIntervalReport:
    rows = sorted(facts, key=lambda f: f.date)
    gaps = [(rows[i].date - rows[i - 1].date).days for i in range(1, len(rows))]
    total_hours = sum(f.net_minutes for f in rows) / 60

    entries = [
        TaskIntervalEntry(
            date=fact.date,
            description=fact.description or None,
            hours=round(fact.net_minutes / 60, 2) if fact.net_minutes else None,
            gap_days=gaps[i - 1] if i > 0 else None,
            is_first=i == 0,
        )
        for i, fact in enumerate(rows)
    ]

    if gaps:
        avg_gap = round_half_up(sum(gaps) / len(gaps))
        min_gap, max_gap = min(gaps), max(gaps)
        summary = (
            f'"{category.value}" was recorded {len(rows)} times, on average every '
            f"{avg_gap} days (min {min_gap}, max {max_gap} days)."
        )
    else:
        avg_gap = min_gap = max_gap = None
        summary = (
            f'"{category.value}" was recorded {len(rows)} time(s); '
            "not enough data to compute intervals."
        )

    return TaskIntervalReport(
        employee_id=employee_id,
        employee_name=name,
        category=category,
        count=len(rows),
        total_hours=round(total_hours, 2),
        intervals_available=bool(gaps),
        avg_gap_days=avg_gap,
        min_gap_days=min_gap,
        max_gap_days=max_gap,
        summary=summary,
        entries=entries,
    )


def task_intervals(facts: Iterable[EntryFact], category: Category) -> list[TaskIntervalReport]:
    """Per-employee spacing between entries of ``category``."""
    matching = (f for f in facts if f.category == category)
    return [
        _interval_report(employee_id, name, category, rows)
        for employee_id, name, rows in _group_by_employee(matching)
    ]
