import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.middleware import get_audit_trail, get_entry_store
from worklog.db.models import AuditAction, Employee
from worklog.db.session import get_db
from worklog.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from worklog.services.audit_trail import AuditTrail, field_diff, snapshot
from worklog.services.entry_store import EntryStore
from worklog.services.tickets import release_employee
from worklog.services.tours import unassign_employee

logger = logging.getLogger(__name__)

router = APIRouter()

EMPLOYEE_TABLE = "employees"
EMPLOYEE_AUDIT_FIELDS = ("name", "first_name", "last_name", "birth_date", "is_admin")


async def _get_or_404(db: AsyncSession, employee_id: int) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    return employee


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    q = select(Employee.id).where(Employee.name == name)
    if exclude_id is not None:
        q = q.where(Employee.id != exclude_id)
    existing = await db.execute(q)
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Employee '{name}' already exists",
        )


@router.post(
    "/",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an employee (audited)",
)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
) -> EmployeeResponse:
    await _ensure_name_free(db, body.name)

    employee = Employee(
        name=body.name,
        first_name=body.first_name,
        last_name=body.last_name,
        birth_date=body.birth_date,
        is_admin=body.is_admin,
    )
    db.add(employee)
    await db.flush()
    await audit.record(
        AuditAction.INSERT, EMPLOYEE_TABLE, employee.id,
        after=snapshot(employee, EMPLOYEE_AUDIT_FIELDS),
    )
    await db.commit()
    await db.refresh(employee)
    logger.info("Employee created: id=%s name='%s'", employee.id, employee.name)
    return EmployeeResponse.model_validate(employee)


@router.get(
    "/",
    response_model=list[EmployeeResponse],
    summary="List all employees by name",
)
async def list_employees(
    db: AsyncSession = Depends(get_db),
) -> list[EmployeeResponse]:
    result = await db.execute(select(Employee).order_by(Employee.name))
    return [EmployeeResponse.model_validate(e) for e in result.scalars().all()]


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Get a single employee",
)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
) -> EmployeeResponse:
    return EmployeeResponse.model_validate(await _get_or_404(db, employee_id))


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Update an employee (audited)",
)
async def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
) -> EmployeeResponse:
    employee = await _get_or_404(db, employee_id)
    before = snapshot(employee, EMPLOYEE_AUDIT_FIELDS)

    if body.name is not None and body.name != employee.name:
        await _ensure_name_free(db, body.name, exclude_id=employee_id)
        employee.name = body.name
    if body.first_name is not None:
        employee.first_name = body.first_name
    if body.last_name is not None:
        employee.last_name = body.last_name
    if body.birth_date is not None:
        employee.birth_date = body.birth_date

    after = snapshot(employee, EMPLOYEE_AUDIT_FIELDS)
    if not field_diff(before, after):
        return EmployeeResponse.model_validate(employee)

    await db.flush()
    await audit.record(
        AuditAction.UPDATE, EMPLOYEE_TABLE, employee.id, before=before, after=after,
    )
    await db.commit()
    await db.refresh(employee)
    return EmployeeResponse.model_validate(employee)


@router.delete(
    "/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an employee and their entries (audited)",
)
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    store: EntryStore = Depends(get_entry_store),
    audit: AuditTrail = Depends(get_audit_trail),
) -> Response:
    employee = await _get_or_404(db, employee_id)
    before = snapshot(employee, EMPLOYEE_AUDIT_FIELDS)

    await release_employee(db, employee_id)
    await unassign_employee(db, employee_id)
    removed = await store.delete_for_employee(employee_id)
    await db.delete(employee)
    await db.flush()
    await audit.record(AuditAction.DELETE, EMPLOYEE_TABLE, employee_id, before=before)
    await db.commit()

    logger.info("Employee %s deleted together with %d entries", employee_id, removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
