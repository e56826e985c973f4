"""
Field tickets raised by employees, optionally tied to an entry, tour or customer.

A ticket is opened with status ``open`` and closed by setting it to ``done``,
which stamps ``closed_at``. Reopening clears both closing fields.

The ``release_*`` / ``detach_*`` helpers keep ticket references consistent when
the referenced rows are deleted. They run as explicit statements so the
outcome does not depend on the database enforcing ``ON DELETE`` rules.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Customer, Employee, Ticket, TicketStatus, TimeEntry, Tour
from worklog.schemas.ticket import TicketCreate, TicketResponse, TicketUpdate

logger = logging.getLogger(__name__)


class ReferenceNotFoundError(LookupError):
    def __init__(self, kind: str, ref_id: int):
        super().__init__(f"{kind} {ref_id} not found")
        self.kind = kind
        self.ref_id = ref_id


class TicketNotFoundError(LookupError):
    pass


async def _require(db: AsyncSession, model, ref_id: int | None, kind: str):
    if ref_id is None:
        return None
    row = await db.get(model, ref_id)
    if row is None:
        raise ReferenceNotFoundError(kind, ref_id)
    return row


def _query() -> Select:
    return (
        select(Ticket, Employee.name, Customer, Tour.name)
        .outerjoin(Employee, Employee.id == Ticket.employee_id)
        .outerjoin(Customer, Customer.id == Ticket.customer_id)
        .outerjoin(Tour, Tour.id == Ticket.tour_id)
    )


def _address(customer: Customer | None) -> str | None:
    if customer is None:
        return None
    street = " ".join(p for p in (customer.street, customer.house_number) if p)
    place = " ".join(p for p in (customer.postal_code, customer.city) if p)
    return ", ".join(p for p in (street, place) if p) or None


def to_response(row) -> TicketResponse:
    ticket, employee_name, customer, tour_name = row
    response = TicketResponse.model_validate(ticket)
    response.employee_name = employee_name
    response.customer_name = customer.name if customer is not None else None
    response.customer_address = _address(customer)
    response.tour_name = tour_name
    return response


async def list_tickets(
    db: AsyncSession,
    status: TicketStatus | None = None,
    employee_id: int | None = None,
) -> list[TicketResponse]:
    """Tickets newest first, optionally filtered."""
    stmt = _query()
    if status is not None:
        stmt = stmt.where(Ticket.status == status)
    if employee_id is not None:
        stmt = stmt.where(Ticket.employee_id == employee_id)
    stmt = stmt.order_by(Ticket.created_at.desc(), Ticket.id.desc())
    result = await db.execute(stmt)
    return [to_response(row) for row in result.all()]


async def get_ticket(db: AsyncSession, ticket_id: int) -> TicketResponse:
    result = await db.execute(_query().where(Ticket.id == ticket_id))
    row = result.one_or_none()
    if row is None:
        raise TicketNotFoundError(ticket_id)
    return to_response(row)


async def open_ticket(db: AsyncSession, body: TicketCreate) -> Ticket:
    """Validate references and insert an open ticket. Caller commits."""
    await _require(db, Employee, body.employee_id, "Employee")
    entry = await _require(db, TimeEntry, body.entry_id, "Entry")
    if entry is not None and entry.employee_id != body.employee_id:
        raise ValueError("Entry belongs to a different employee")
    await _require(db, Tour, body.tour_id, "Tour")
    await _require(db, Customer, body.customer_id, "Customer")

    ticket = Ticket(
        employee_id=body.employee_id,
        entry_id=body.entry_id,
        tour_id=body.tour_id,
        customer_id=body.customer_id,
        event_title=body.event_title,
        event_address=body.event_address,
        event_at=body.event_at,
        ticket_type=body.ticket_type,
        note=body.note,
        status=TicketStatus.OPEN,
        created_at=datetime.now(timezone.utc),
    )
    db.add(ticket)
    await db.flush()
    logger.info(
        "Ticket %s opened: employee=%s type=%s entry=%s",
        ticket.id, ticket.employee_id, ticket.ticket_type.value, ticket.entry_id,
    )
    return ticket


async def update_ticket(db: AsyncSession, ticket_id: int, body: TicketUpdate) -> Ticket:
    """Apply the fields present in ``body``; closing stamps ``closed_at``. Caller commits."""
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None:
        raise TicketNotFoundError(ticket_id)

    given = body.model_fields_set
    if "ticket_type" in given and body.ticket_type is not None:
        ticket.ticket_type = body.ticket_type
    if "note" in given:
        ticket.note = body.note
    if "finding" in given:
        ticket.finding = body.finding

    if body.status == TicketStatus.DONE:
        await _require(db, Employee, body.closed_by, "Employee")
        if ticket.status != TicketStatus.DONE:
            ticket.closed_at = datetime.now(timezone.utc)
        ticket.status = TicketStatus.DONE
        if "closed_by" in given:
            ticket.closed_by = body.closed_by
    elif body.status == TicketStatus.OPEN:
        ticket.status = TicketStatus.OPEN
        ticket.closed_at = None
        ticket.closed_by = None

    await db.flush()
    logger.info("Ticket %s updated: status=%s", ticket.id, ticket.status.value)
    return ticket


async def delete_ticket(db: AsyncSession, ticket_id: int) -> None:
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None:
        raise TicketNotFoundError(ticket_id)
    await db.delete(ticket)
    await db.flush()


async def detach_entry(db: AsyncSession, entry_id: int) -> None:
    await db.execute(update(Ticket).where(Ticket.entry_id == entry_id).values(entry_id=None))


async def release_employee(db: AsyncSession, employee_id: int) -> int:
    """Drop the employee's tickets and clear them as closer elsewhere."""
    await db.execute(
        update(Ticket)
        .where(Ticket.entry_id.in_(select(TimeEntry.id).where(TimeEntry.employee_id == employee_id)))
        .values(entry_id=None)
    )
    await db.execute(update(Ticket).where(Ticket.closed_by == employee_id).values(closed_by=None))
    result = await db.execute(delete(Ticket).where(Ticket.employee_id == employee_id))
    return result.rowcount or 0


async def detach_tour(db: AsyncSession, tour_id: int) -> None:
    await db.execute(update(Ticket).where(Ticket.tour_id == tour_id).values(tour_id=None))


async def detach_customer(db: AsyncSession, customer_id: int) -> None:
    await db.execute(
        update(Ticket).where(Ticket.customer_id == customer_id).values(customer_id=None)
    )
