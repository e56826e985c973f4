"""
Bulk import of normalized candidate records.

Spreadsheet parsing happens upstream; this module receives one employee's
rows, derives minutes, stamps them and upserts by (employee, date). A row
whose date already has an entry replaces that entry, keeping its original
creation timestamp inside the hash.

Minutes always come from the clock pair. A source ``hours`` value is only
accepted alongside both times, and a date repeated within one batch is
rejected after its first occurrence.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Category, ImportHistory
from worklog.schemas.entry import EntryFields
from worklog.schemas.imports import CandidateRecord, ImportResultResponse
from worklog.services.app_settings import BreakPolicy, get_break_policy, get_or_create_secret
from worklog.services.audit_trail import AuditTrail
from worklog.services.entries import derive_times, new_entry, replace_entry
from worklog.services.entry_store import EntryStore
from worklog.services.time_arithmetic import TimeBreakdown

logger = logging.getLogger(__name__)

# Checked in order; "company closure" must win over plain "vacation"-like words
_CATEGORY_KEYWORDS: list[tuple[tuple[str, ...], Category]] = [
    (("sick",), Category.SICK_LEAVE),
    (("closure", "company holiday"), Category.COMPANY_CLOSURE),
    (("vacation", "leave"), Category.VACATION),
    (("public holiday", "holiday"), Category.PUBLIC_HOLIDAY),
    (("training", "course", "seminar"), Category.TRAINING),
    (("office",), Category.OFFICE),
]


def guess_category(description: str | None) -> Category:
    """Category from free text; unrecognised work defaults to an outdoor round."""
    text = (description or "").lower()
    for keywords, category in _CATEGORY_KEYWORDS:
        if any(word in text for word in keywords):
            return category
    return Category.OUTDOOR_ROUND


def _to_fields(record: CandidateRecord) -> EntryFields:
    category = record.category or guess_category(record.description)
    is_outside = (
        record.is_outside if record.is_outside is not None else category == Category.OUTDOOR_ROUND
    )
    return EntryFields(
        date=record.date,
        start_time=record.start_time,
        end_time=record.end_time,
        category=category,
        is_outside=is_outside,
        gratuity=record.gratuity,
        description=record.description,
    )


def _times_for(record: CandidateRecord, fields: EntryFields, policy: BreakPolicy) -> TimeBreakdown:
    if record.hours and (fields.start_time is None or fields.end_time is None):
        raise ValueError("hours given without start and end time")
    return derive_times(fields, policy)


async def import_records(
    db: AsyncSession,
    employee_id: int,
    records: list[CandidateRecord],
    source: str,
    audit: AuditTrail,
) -> ImportResultResponse:
    """Upsert candidate rows for one employee. Caller commits."""
    policy = await get_break_policy(db)
    secret = await get_or_create_secret(db)
    store = EntryStore(db)
    existing = await store.find_by_date(employee_id)

    inserted = 0
    updated = 0
    errors: list[str] = []
    seen: set[date] = set()

    for record in records:
        if record.date in seen:
            errors.append(f"{record.date.isoformat()}: duplicate date in batch")
            logger.warning("Import [%s] row %s rejected: duplicate date", source, record.date)
            continue
        seen.add(record.date)

        try:
            fields = _to_fields(record)
            times = _times_for(record, fields, policy)
        except ValueError as exc:
            errors.append(f"{record.date.isoformat()}: {exc}")
            logger.warning("Import [%s] row %s rejected: %s", source, record.date, exc)
            continue

        current = existing.get(record.date)
        if current is not None:
            await replace_entry(db, current, fields, audit, times=times)
            updated += 1
        else:
            entry = new_entry(employee_id, fields, times, secret)
            await store.insert(entry)
            existing[record.date] = entry
            inserted += 1

    total = len(records)
    if inserted + updated == 0 and total > 0:
        import_status = "failed"
    elif errors:
        import_status = "partial"
    else:
        import_status = "success"

    logger.info(
        "Import finished [%s]: employee=%s status=%s total=%d inserted=%d updated=%d errors=%d",
        source, employee_id, import_status, total, inserted, updated, len(errors),
    )

    db.add(
        ImportHistory(
            employee_id=employee_id,
            source=source,
            imported_at=datetime.now(timezone.utc),
            status=import_status,
            logs={
                "total": total,
                "inserted": inserted,
                "updated": updated,
                "errors": errors[:100],
            },
        )
    )
    await db.flush()

    return ImportResultResponse(
        source=source,
        employee_id=employee_id,
        total=total,
        inserted_count=inserted,
        updated_count=updated,
        error_count=len(errors),
        errors=errors,
        status=import_status,
    )
