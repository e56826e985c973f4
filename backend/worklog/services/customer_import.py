"""
Bulk import of customer records.

Rows arrive already read from the source file. A row without a name or last
name is reported, not fatal. Rows whose customer number is already taken are
either skipped silently or reported, depending on ``skip_duplicates``.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Customer
from worklog.schemas.customer import CustomerImportResponse, CustomerRecord

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 100


def new_customer(record: CustomerRecord, name: str) -> Customer:
    now = datetime.now(timezone.utc)
    return Customer(
        customer_number=record.customer_number,
        name=name,
        first_name=record.first_name,
        last_name=record.last_name,
        street=record.street,
        house_number=record.house_number,
        postal_code=record.postal_code,
        city=record.city,
        phone=record.phone,
        email=record.email,
        notes=record.notes,
        created_at=now,
        updated_at=now,
    )


async def import_customers(
    db: AsyncSession,
    records: list[CustomerRecord],
    skip_duplicates: bool = True,
) -> CustomerImportResponse:
    """Insert new customers. Caller commits."""
    result = await db.execute(
        select(Customer.customer_number).where(Customer.customer_number.is_not(None))
    )
    taken = set(result.scalars().all())

    imported = 0
    skipped = 0
    errors: list[str] = []

    for row_no, record in enumerate(records, start=1):
        name = record.display_name()
        if name is None:
            errors.append(f"Row {row_no}: no name found")
            continue

        if record.customer_number is not None and record.customer_number in taken:
            if skip_duplicates:
                skipped += 1
            else:
                errors.append(f"Row {row_no}: customer number {record.customer_number} already exists")
            continue

        db.add(new_customer(record, name))
        if record.customer_number is not None:
            taken.add(record.customer_number)
        imported += 1

    await db.flush()
    logger.info(
        "Customer import finished: total=%d imported=%d skipped=%d errors=%d",
        len(records), imported, skipped, len(errors),
    )
    return CustomerImportResponse(
        total=len(records),
        imported=imported,
        skipped=skipped,
        errors=errors[:MAX_REPORTED_ERRORS],
    )
