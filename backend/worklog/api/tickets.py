from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import TicketStatus
from worklog.db.session import get_db
from worklog.schemas.ticket import TicketCreate, TicketResponse, TicketUpdate
from worklog.services.tickets import (
    ReferenceNotFoundError,
    TicketNotFoundError,
    delete_ticket,
    get_ticket,
    list_tickets,
    open_ticket,
    update_ticket,
)

router = APIRouter()


def _ticket_404() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")


@router.get(
    "/",
    response_model=list[TicketResponse],
    summary="List tickets, newest first",
)
async def get_tickets(
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    employee_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[TicketResponse]:
    return await list_tickets(db, status=status_filter, employee_id=employee_id)


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a single ticket",
)
async def get_one(ticket_id: int, db: AsyncSession = Depends(get_db)) -> TicketResponse:
    try:
        return await get_ticket(db, ticket_id)
    except TicketNotFoundError:
        raise _ticket_404()


@router.post(
    "/",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a ticket",
)
async def create_ticket(body: TicketCreate, db: AsyncSession = Depends(get_db)) -> TicketResponse:
    try:
        ticket = await open_ticket(db, body)
    except ReferenceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await db.commit()
    return await get_ticket(db, ticket.id)


@router.put(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Update a ticket; status 'done' closes it",
)
async def put_ticket(
    ticket_id: int,
    body: TicketUpdate,
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    try:
        await update_ticket(db, ticket_id, body)
    except TicketNotFoundError:
        raise _ticket_404()
    except ReferenceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    await db.commit()
    return await get_ticket(db, ticket_id)


@router.delete(
    "/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a ticket",
)
async def remove_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    try:
        await delete_ticket(db, ticket_id)
    except TicketNotFoundError:
        raise _ticket_404()
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
