from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.middleware import get_audit_trail, get_entry_store
from worklog.db.models import Employee, TimeEntry
from worklog.db.session import get_db
from worklog.schemas.entry import EntryCreate, EntryResponse, EntryUpdate, IntegrityCheckResponse
from worklog.services.app_settings import get_or_create_secret
from worklog.services.audit_trail import AuditTrail
from worklog.services.entries import EmployeeNotFoundError, remove_entry, replace_entry, submit_entry
from worklog.services.entry_store import EntryNotFoundError, EntryStore, month_bounds
from worklog.services.integrity import verify_integrity

router = APIRouter()


def _to_response(entry: TimeEntry, employee_name: str | None) -> EntryResponse:
    response = EntryResponse.model_validate(entry)
    response.employee_name = employee_name
    return response


async def _get_or_404(store: EntryStore, entry_id: int) -> TimeEntry:
    try:
        return await store.get(entry_id)
    except EntryNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found",
        )


async def _employee_name(db: AsyncSession, employee_id: int) -> str | None:
    employee = await db.get(Employee, employee_id)
    return employee.name if employee is not None else None


@router.get(
    "/",
    response_model=list[EntryResponse],
    summary="List entries, optionally by month, employee or date range",
)
async def list_entries(
    month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    employee_id: int | None = Query(default=None),
    date_from: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    date_to: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    store: EntryStore = Depends(get_entry_store),
) -> list[EntryResponse]:
    if month is not None:
        try:
            date_from, date_to = month_bounds(month)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    rows = await store.list_entries(employee_id=employee_id, date_from=date_from, date_to=date_to)
    return [_to_response(entry, name) for entry, name in rows]


@router.post(
    "/",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a new time entry",
)
async def create_entry(
    body: EntryCreate,
    db: AsyncSession = Depends(get_db),
) -> EntryResponse:
    try:
        entry = await submit_entry(db, body)
    except EmployeeNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await db.commit()
    return _to_response(entry, await _employee_name(db, entry.employee_id))


@router.get(
    "/{entry_id}",
    response_model=EntryResponse,
    summary="Get a single entry",
)
async def get_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    store: EntryStore = Depends(get_entry_store),
) -> EntryResponse:
    entry = await _get_or_404(store, entry_id)
    return _to_response(entry, await _employee_name(db, entry.employee_id))


@router.put(
    "/{entry_id}",
    response_model=EntryResponse,
    summary="Replace the mutable fields of an entry (audited)",
)
async def update_entry(
    entry_id: int,
    body: EntryUpdate,
    db: AsyncSession = Depends(get_db),
    store: EntryStore = Depends(get_entry_store),
    audit: AuditTrail = Depends(get_audit_trail),
) -> EntryResponse:
    entry = await _get_or_404(store, entry_id)
    try:
        await replace_entry(db, entry, body, audit)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await db.commit()
    return _to_response(entry, await _employee_name(db, entry.employee_id))


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an entry (audited)",
)
async def delete_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    store: EntryStore = Depends(get_entry_store),
    audit: AuditTrail = Depends(get_audit_trail),
) -> Response:
    entry = await _get_or_404(store, entry_id)
    await remove_entry(db, entry, audit)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{entry_id}/integrity",
    response_model=IntegrityCheckResponse,
    summary="Check an entry's stored hash against its current fields",
)
async def check_integrity(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    store: EntryStore = Depends(get_entry_store),
) -> IntegrityCheckResponse:
    entry = await _get_or_404(store, entry_id)
    secret = await get_or_create_secret(db)
    return IntegrityCheckResponse(
        entry_id=entry.id,
        valid=verify_integrity(entry, entry.integrity_hash, secret),
    )
