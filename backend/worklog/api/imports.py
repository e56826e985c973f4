import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.middleware import get_audit_trail
from worklog.db.models import Employee, ImportHistory
from worklog.db.session import get_db
from worklog.schemas.imports import ImportRequest, ImportResultResponse
from worklog.services.audit_trail import AuditTrail
from worklog.services.entry_import import import_records
from worklog.services.fuzzy_matcher import find_employee

logger = logging.getLogger(__name__)

router = APIRouter()


async def _resolve_employee(body: ImportRequest, db: AsyncSession) -> int:
    if body.employee_id is not None:
        if await db.get(Employee, body.employee_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Employee not found",
            )
        return body.employee_id

    employee_id = await find_employee(body.employee_name or "", db)
    if employee_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No employee matches '{body.employee_name}'",
        )
    return employee_id


@router.post(
    "/records",
    response_model=ImportResultResponse,
    summary="Import normalized candidate records for one employee",
)
async def upload_records(
    body: ImportRequest,
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
) -> ImportResultResponse:
    employee_id = await _resolve_employee(body, db)
    logger.info(
        "Import [%s]: %d candidate records for employee %s",
        body.source, len(body.records), employee_id,
    )

    result = await import_records(db, employee_id, body.records, body.source, audit)
    await db.commit()
    return result


@router.get(
    "/history",
    summary="List import history (paginated)",
)
async def list_history(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict:
    stmt = (
        select(ImportHistory, Employee.name)
        .outerjoin(Employee, Employee.id == ImportHistory.employee_id)
        .order_by(ImportHistory.imported_at.desc(), ImportHistory.id.desc())
    )
    result = await db.execute(stmt)
    all_rows = result.all()
    total = len(all_rows)
    offset = (page - 1) * per_page
    page_rows = all_rows[offset : offset + per_page]

    items = [
        {
            "id": h.id,
            "source": h.source,
            "employee_id": h.employee_id,
            "employee_name": name,
            "imported_at": h.imported_at.isoformat(),
            "status": h.status,
            "logs": h.logs,
        }
        for h, name in page_rows
    ]

    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": items,
    }
