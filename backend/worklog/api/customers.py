import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Customer
from worklog.db.session import get_db
from worklog.schemas.customer import (
    CustomerFields,
    CustomerImportRequest,
    CustomerImportResponse,
    CustomerResponse,
)
from worklog.services.customer_import import import_customers, new_customer
from worklog.services.tickets import detach_customer
from worklog.services.tours import drop_customer_stops

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_or_404(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer


async def _ensure_number_free(
    db: AsyncSession, number: str | None, exclude_id: int | None = None
) -> None:
    if number is None:
        return
    q = select(Customer.id).where(Customer.customer_number == number)
    if exclude_id is not None:
        q = q.where(Customer.id != exclude_id)
    existing = await db.execute(q)
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Customer number '{number}' already exists",
        )


@router.get(
    "/",
    response_model=list[CustomerResponse],
    summary="List customers by name",
)
async def list_customers(db: AsyncSession = Depends(get_db)) -> list[CustomerResponse]:
    result = await db.execute(select(Customer).order_by(Customer.name, Customer.last_name))
    return [CustomerResponse.model_validate(c) for c in result.scalars().all()]


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get a single customer",
)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)) -> CustomerResponse:
    return CustomerResponse.model_validate(await _get_or_404(db, customer_id))


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
)
async def create_customer(
    body: CustomerFields,
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    await _ensure_number_free(db, body.customer_number)
    customer = new_customer(body, body.display_name())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    logger.info("Customer created: id=%s number=%s", customer.id, customer.customer_number)
    return CustomerResponse.model_validate(customer)


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Replace a customer's fields",
)
async def update_customer(
    customer_id: int,
    body: CustomerFields,
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    customer = await _get_or_404(db, customer_id)
    await _ensure_number_free(db, body.customer_number, exclude_id=customer_id)

    customer.customer_number = body.customer_number
    customer.name = body.display_name()
    customer.first_name = body.first_name
    customer.last_name = body.last_name
    customer.street = body.street
    customer.house_number = body.house_number
    customer.postal_code = body.postal_code
    customer.city = body.city
    customer.phone = body.phone
    customer.email = body.email
    customer.notes = body.notes
    customer.updated_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(customer)
    return CustomerResponse.model_validate(customer)


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a customer; tours lose the stop, tickets keep a blank reference",
)
async def delete_customer(customer_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    customer = await _get_or_404(db, customer_id)
    await drop_customer_stops(db, customer_id)
    await detach_customer(db, customer_id)
    await db.delete(customer)
    await db.commit()
    logger.info("Customer %s deleted", customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/import",
    response_model=CustomerImportResponse,
    summary="Import customer records read from a customer list",
)
async def upload_customers(
    body: CustomerImportRequest,
    db: AsyncSession = Depends(get_db),
) -> CustomerImportResponse:
    result = await import_customers(db, body.records, skip_duplicates=body.skip_duplicates)
    await db.commit()
    return result
