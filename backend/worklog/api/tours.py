import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Customer, Tour
from worklog.db.session import get_db
from worklog.schemas.tour import TourDetailResponse, TourFields, TourResponse, TourStopCreate
from worklog.services.tours import (
    delete_tour,
    remove_stop,
    set_stop,
    tour_detail,
    unknown_employees,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_or_404(db: AsyncSession, tour_id: int) -> Tour:
    tour = await db.get(Tour, tour_id)
    if tour is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tour not found",
        )
    return tour


async def _check_crew(db: AsyncSession, employee_ids: list[int]) -> None:
    missing = await unknown_employees(db, employee_ids)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown employee ids: {missing}",
        )


@router.get(
    "/",
    response_model=list[TourResponse],
    summary="List tours by name",
)
async def list_tours(db: AsyncSession = Depends(get_db)) -> list[TourResponse]:
    result = await db.execute(select(Tour).order_by(Tour.name, Tour.id))
    return [TourResponse.model_validate(t) for t in result.scalars().all()]


@router.get(
    "/{tour_id}",
    response_model=TourDetailResponse,
    summary="Get a tour with its customer stops in order",
)
async def get_tour(tour_id: int, db: AsyncSession = Depends(get_db)) -> TourDetailResponse:
    return await tour_detail(db, await _get_or_404(db, tour_id))


@router.post(
    "/",
    response_model=TourResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tour",
)
async def create_tour(body: TourFields, db: AsyncSession = Depends(get_db)) -> TourResponse:
    await _check_crew(db, body.employee_ids)
    now = datetime.now(timezone.utc)
    tour = Tour(
        name=body.name,
        description=body.description,
        frequency=body.frequency,
        employee_ids=body.employee_ids,
        created_at=now,
        updated_at=now,
    )
    db.add(tour)
    await db.commit()
    await db.refresh(tour)
    logger.info("Tour created: id=%s name='%s'", tour.id, tour.name)
    return TourResponse.model_validate(tour)


@router.put(
    "/{tour_id}",
    response_model=TourResponse,
    summary="Replace a tour's fields",
)
async def update_tour(
    tour_id: int,
    body: TourFields,
    db: AsyncSession = Depends(get_db),
) -> TourResponse:
    tour = await _get_or_404(db, tour_id)
    await _check_crew(db, body.employee_ids)

    tour.name = body.name
    tour.description = body.description
    tour.frequency = body.frequency
    tour.employee_ids = body.employee_ids
    tour.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(tour)
    return TourResponse.model_validate(tour)


@router.delete(
    "/{tour_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a tour and its stops",
)
async def remove_tour(tour_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    tour = await _get_or_404(db, tour_id)
    await delete_tour(db, tour)
    await db.commit()
    logger.info("Tour %s deleted", tour_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{tour_id}/customers",
    response_model=TourDetailResponse,
    summary="Add a customer to a tour, or move it to a new position",
)
async def add_customer(
    tour_id: int,
    body: TourStopCreate,
    db: AsyncSession = Depends(get_db),
) -> TourDetailResponse:
    tour = await _get_or_404(db, tour_id)
    if await db.get(Customer, body.customer_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    await set_stop(db, tour_id, body.customer_id, body.position)
    await db.commit()
    return await tour_detail(db, tour)


@router.delete(
    "/{tour_id}/customers/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a customer from a tour",
)
async def remove_customer(
    tour_id: int,
    customer_id: int,
    db: AsyncSession = Depends(get_db),
) -> Response:
    await _get_or_404(db, tour_id)
    if not await remove_stop(db, tour_id, customer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer is not on this tour",
        )
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
