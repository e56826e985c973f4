from datetime import date, time
from typing import Literal

from pydantic import BaseModel

from worklog.db.models import Category


class WeekdayBucket(BaseModel):
    weekday: int  # 0 = Sunday … 6 = Saturday
    name: str
    sick: int
    vacation: int
    total: int
    percent: int


class WeekdayPatternReport(BaseModel):
    employee_id: int
    employee_name: str
    total_absences: int
    sick_days: int
    vacation_days: int
    weekdays: list[WeekdayBucket]
    anomalies: list[str]
    no_anomalies: bool


class PeriodWindow(BaseModel):
    date_from: date
    date_to: date
    days: int


class PeriodKPIs(BaseModel):
    hours: float
    sick_days: int
    vacation_days: int
    work_days: int


class BaselineKPIs(BaseModel):
    days: int
    has_data: bool
    hours_per_day: float
    sick_days_per_day: float
    vacation_days_per_day: float
    expected_hours: float
    expected_sick_days: float
    expected_vacation_days: float


class Deviations(BaseModel):
    """Percent deviation from the baseline; null when no comparison is possible."""

    hours: int | None
    sick_days: int | None
    vacation_days: int | None


class BaselineFinding(BaseModel):
    metric: Literal["hours", "sick_days", "vacation_days"]
    severity: Literal["warning", "info"]
    deviation_pct: int
    actual: float
    expected: float
    message: str


class PeriodBaselineReport(BaseModel):
    employee_id: int | None
    period: PeriodWindow
    period_kpis: PeriodKPIs
    baseline: BaselineKPIs
    deviations: Deviations
    findings: list[BaselineFinding]
    status: Literal["deviations", "nominal", "insufficient_data"]
    summary: str


class TaskIntervalEntry(BaseModel):
    date: date
    description: str | None
    hours: float | None
    gap_days: int | None
    is_first: bool


class TaskIntervalReport(BaseModel):
    employee_id: int
    employee_name: str
    category: Category
    count: int
    total_hours: float
    intervals_available: bool
    avg_gap_days: int | None
    min_gap_days: int | None
    max_gap_days: int | None
    summary: str
    entries: list[TaskIntervalEntry]


class TimesheetRow(BaseModel):
    date: date
    weekday: str
    is_weekend: bool
    entry_id: int | None = None
    employee_name: str | None = None
    category: Category | None = None
    description: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    net_hours: float = 0.0
    allowance: float = 0.0
    gratuity: float = 0.0


class TimesheetReport(BaseModel):
    month: str
    employee_id: int | None
    allowance_rate: float
    days: int
    rows: list[TimesheetRow]
    total_net_hours: float
    total_allowance: float
    total_gratuity: float
