"""
Tours and their ordered customer stops.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Customer, Employee, Tour, TourStop
from worklog.schemas.tour import TourDetailResponse, TourResponse, TourStopResponse
from worklog.services.tickets import detach_tour

logger = logging.getLogger(__name__)


async def unknown_employees(db: AsyncSession, employee_ids: list[int]) -> list[int]:
    if not employee_ids:
        return []
    result = await db.execute(select(Employee.id).where(Employee.id.in_(employee_ids)))
    known = set(result.scalars().all())
    return [eid for eid in employee_ids if eid not in known]


async def list_stops(db: AsyncSession, tour_id: int) -> list[TourStopResponse]:
    result = await db.execute(
        select(TourStop, Customer)
        .join(Customer, Customer.id == TourStop.customer_id)
        .where(TourStop.tour_id == tour_id)
        .order_by(TourStop.position, TourStop.id)
    )
    return [
        TourStopResponse(
            customer_id=customer.id,
            position=stop.position,
            name=customer.name,
            street=customer.street,
            house_number=customer.house_number,
            postal_code=customer.postal_code,
            city=customer.city,
        )
        for stop, customer in result.all()
    ]


async def tour_detail(db: AsyncSession, tour: Tour) -> TourDetailResponse:
    base = TourResponse.model_validate(tour)
    return TourDetailResponse(**base.model_dump(), stops=await list_stops(db, tour.id))


async def set_stop(db: AsyncSession, tour_id: int, customer_id: int, position: int) -> TourStop:
    """Assign a customer to a tour, or move it if already assigned. Caller commits."""
    result = await db.execute(
        select(TourStop).where(TourStop.tour_id == tour_id, TourStop.customer_id == customer_id)
    )
    stop = result.scalar_one_or_none()
    if stop is None:
        stop = TourStop(tour_id=tour_id, customer_id=customer_id, position=position)
        db.add(stop)
    else:
        stop.position = position
    await db.flush()
    return stop


async def remove_stop(db: AsyncSession, tour_id: int, customer_id: int) -> bool:
    result = await db.execute(
        delete(TourStop).where(TourStop.tour_id == tour_id, TourStop.customer_id == customer_id)
    )
    return bool(result.rowcount)


async def delete_tour(db: AsyncSession, tour: Tour) -> None:
    await db.execute(delete(TourStop).where(TourStop.tour_id == tour.id))
    await detach_tour(db, tour.id)
    await db.delete(tour)
    await db.flush()


async def drop_customer_stops(db: AsyncSession, customer_id: int) -> None:
    await db.execute(delete(TourStop).where(TourStop.customer_id == customer_id))


async def unassign_employee(db: AsyncSession, employee_id: int) -> None:
    """Remove an employee id from every tour crew list."""
    result = await db.execute(select(Tour))
    for tour in result.scalars().all():
        if employee_id in (tour.employee_ids or []):
            tour.employee_ids = [eid for eid in tour.employee_ids if eid != employee_id]
    await db.flush()
