"""
Analytics API routes.

Reports are recomputed on every call from the entries currently stored;
nothing here writes to the database.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from worklog.core.middleware import get_entry_store
from worklog.db.models import ABSENCE_CATEGORIES, Category
from worklog.schemas.reports import (
    PeriodBaselineReport,
    TaskIntervalReport,
    TimesheetReport,
    WeekdayPatternReport,
)
from worklog.services.anomalies import EntryFact, period_baseline, task_intervals, weekday_pattern
from worklog.services.app_settings import get_allowance_rate
from worklog.services.entry_store import EntryStore, month_bounds
from worklog.services.timesheet import build_timesheet

router = APIRouter()


async def _load_facts(
    store: EntryStore,
    employee_id: int | None,
    categories: tuple[Category, ...] | None = None,
) -> list[EntryFact]:
    rows = await store.list_entries(employee_id=employee_id, categories=categories)
    return [EntryFact.from_entry(entry, name) for entry, name in rows]


@router.get(
    "/weekday-pattern",
    response_model=list[WeekdayPatternReport],
    summary="Sick leave and vacation per weekday, with pattern flags",
)
async def get_weekday_pattern(
    employee_id: int | None = Query(default=None),
    store: EntryStore = Depends(get_entry_store),
) -> list[WeekdayPatternReport]:
    facts = await _load_facts(store, employee_id, ABSENCE_CATEGORIES)
    return weekday_pattern(facts)


@router.get(
    "/period-baseline",
    response_model=PeriodBaselineReport,
    summary="Compare a period's KPIs against the historical baseline",
)
async def get_period_baseline(
    date_from: date = Query(..., alias="from", description="ISO date YYYY-MM-DD"),
    date_to: date = Query(..., alias="to", description="ISO date YYYY-MM-DD"),
    employee_id: int | None = Query(default=None),
    store: EntryStore = Depends(get_entry_store),
) -> PeriodBaselineReport:
    if date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'from' must not be after 'to'",
        )
    facts = await _load_facts(store, employee_id)
    return period_baseline(facts, date_from, date_to, employee_id=employee_id)


@router.get(
    "/task-intervals",
    response_model=list[TaskIntervalReport],
    summary="Spacing between recurring entries of one category",
)
async def get_task_intervals(
    category: Category = Query(...),
    employee_id: int | None = Query(default=None),
    store: EntryStore = Depends(get_entry_store),
) -> list[TaskIntervalReport]:
    facts = await _load_facts(store, employee_id, (category,))
    return task_intervals(facts, category)


@router.get(
    "/timesheet",
    response_model=TimesheetReport,
    summary="Day-by-day month sheet with net hours and hourly allowance",
)
async def get_timesheet(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    employee_id: int | None = Query(default=None),
    store: EntryStore = Depends(get_entry_store),
) -> TimesheetReport:
    try:
        first, last = month_bounds(month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    rows = await store.list_entries(employee_id=employee_id, date_from=first, date_to=last)
    rate = await get_allowance_rate(store.db)
    return build_timesheet(rows, month, first, last, rate, employee_id=employee_id)
