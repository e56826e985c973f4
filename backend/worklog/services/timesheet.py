"""
Monthly timesheet with the hourly allowance.

Every calendar day of the month gets at least one row so the sheet can be
printed as-is; days with several entries get one row per entry. The
allowance of a row is its net hours times the configured rate.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta

from worklog.db.models import TimeEntry
from worklog.schemas.reports import TimesheetReport, TimesheetRow
from worklog.services.anomalies import WEEKDAY_NAMES


def _row(day: date, entry: TimeEntry | None, name: str | None, rate: float) -> TimesheetRow:
    weekday = (day.weekday() + 1) % 7
    row = TimesheetRow(date=day, weekday=WEEKDAY_NAMES[weekday], is_weekend=weekday in (0, 6))
    if entry is None:
        return row

    net_hours = (entry.net_minutes or 0) / 60
    row.entry_id = entry.id
    row.employee_name = name
    row.category = entry.category
    row.description = entry.description
    row.start_time = entry.start_time
    row.end_time = entry.end_time
    row.net_hours = round(net_hours, 2)
    row.allowance = round(net_hours * rate, 2)
    row.gratuity = entry.gratuity or 0.0
    return row


def build_timesheet(
    rows: list[tuple[TimeEntry, str]],
    month: str,
    first: date,
    last: date,
    rate: float,
    employee_id: int | None = None,
) -> TimesheetReport:
    by_day: dict[date, list[tuple[TimeEntry, str]]] = defaultdict(list)
    for entry, name in rows:
        by_day[entry.date].append((entry, name))

    sheet: list[TimesheetRow] = []
    net_minutes = 0
    gratuity = 0.0
    day = first
    while day <= last:
        entries = sorted(by_day.get(day, []), key=lambda pair: (pair[1], pair[0].id))
        if not entries:
            sheet.append(_row(day, None, None, rate))
        for entry, name in entries:
            sheet.append(_row(day, entry, name, rate))
            net_minutes += entry.net_minutes or 0
            gratuity += entry.gratuity or 0.0
        day += timedelta(days=1)

    return TimesheetReport(
        month=month,
        employee_id=employee_id,
        allowance_rate=rate,
        days=(last - first).days + 1,
        rows=sheet,
        total_net_hours=round(net_minutes / 60, 2),
        total_allowance=round(net_minutes / 60 * rate, 2),
        total_gratuity=round(gratuity, 2),
    )
