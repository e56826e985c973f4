"""
Entry mutations: derive minutes, stamp, persist.

Every write goes through ``_apply`` so that derived minutes and the
integrity hash can never drift from the fields they are computed from.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import AuditAction, Employee, TimeEntry
from worklog.schemas.entry import EntryCreate, EntryFields
from worklog.services.app_settings import BreakPolicy, get_break_policy, get_or_create_secret
from worklog.services.audit_trail import AuditTrail, snapshot
from worklog.services.entry_store import EntryStore
from worklog.services.integrity import compute_integrity_hash
from worklog.services.time_arithmetic import TimeBreakdown, calculate_times

logger = logging.getLogger(__name__)

ENTRY_TABLE = "entries"
ENTRY_AUDIT_FIELDS = (
    "employee_id",
    "date",
    "start_time",
    "end_time",
    "category",
    "is_outside",
    "gratuity",
    "description",
    "gross_minutes",
    "break_minutes",
    "net_minutes",
    "integrity_hash",
)


class EmployeeNotFoundError(LookupError):
    pass


def derive_times(fields: EntryFields, policy: BreakPolicy) -> TimeBreakdown:
    return calculate_times(
        fields.start_time,
        fields.end_time,
        policy.threshold_hours,
        policy.duration_minutes,
    )


def _apply(
    entry: TimeEntry,
    fields: EntryFields,
    times: TimeBreakdown,
    secret: str,
    now: datetime,
) -> None:
    entry.date = fields.date
    entry.start_time = fields.start_time
    entry.end_time = fields.end_time
    entry.category = fields.category
    entry.is_outside = fields.is_outside
    entry.gratuity = fields.gratuity
    entry.description = fields.description
    entry.gross_minutes, entry.break_minutes, entry.net_minutes = times
    entry.updated_at = now
    # employee_id and created_at are whatever the stored row already holds
    entry.integrity_hash = compute_integrity_hash(entry, secret)


def new_entry(
    employee_id: int,
    fields: EntryFields,
    times: TimeBreakdown,
    secret: str,
) -> TimeEntry:
    now = datetime.now(timezone.utc)
    entry = TimeEntry(employee_id=employee_id, created_at=now)
    _apply(entry, fields, times, secret, now)
    return entry


def restamp(entry: TimeEntry, fields: EntryFields, times: TimeBreakdown, secret: str) -> None:
    _apply(entry, fields, times, secret, datetime.now(timezone.utc))


async def _require_employee(db: AsyncSession, employee_id: int) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFoundError(employee_id)
    return employee


async def submit_entry(db: AsyncSession, payload: EntryCreate) -> TimeEntry:
    """Create a stamped entry. Caller commits."""
    await _require_employee(db, payload.employee_id)
    policy = await get_break_policy(db)
    secret = await get_or_create_secret(db)

    entry = new_entry(payload.employee_id, payload, derive_times(payload, policy), secret)
    await EntryStore(db).insert(entry)
    logger.info(
        "Entry %s saved: employee=%s date=%s category=%s net=%d min",
        entry.id, entry.employee_id, entry.date, entry.category.value, entry.net_minutes,
    )
    return entry


async def replace_entry(
    db: AsyncSession,
    entry: TimeEntry,
    fields: EntryFields,
    audit: AuditTrail,
    times: TimeBreakdown | None = None,
) -> TimeEntry:
    """Replace the mutable fields of ``entry`` and record the change. Caller commits."""
    if times is None:
        times = derive_times(fields, await get_break_policy(db))
    secret = await get_or_create_secret(db)

    before = snapshot(entry, ENTRY_AUDIT_FIELDS)
    restamp(entry, fields, times, secret)
    await EntryStore(db).update(entry)
    await audit.record(
        AuditAction.UPDATE, ENTRY_TABLE, entry.id,
        before=before, after=snapshot(entry, ENTRY_AUDIT_FIELDS),
    )
    logger.info("Entry %s replaced: net=%d min", entry.id, entry.net_minutes)
    return entry


async def remove_entry(db: AsyncSession, entry: TimeEntry, audit: AuditTrail) -> None:
    """Delete ``entry`` and record it. Caller commits."""
    before = snapshot(entry, ENTRY_AUDIT_FIELDS)
    entry_id = entry.id
    await EntryStore(db).delete(entry)
    await audit.record(AuditAction.DELETE, ENTRY_TABLE, entry_id, before=before)
    logger.info("Entry %s deleted", entry_id)
