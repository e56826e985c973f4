from fastapi import APIRouter, Depends, Query

from worklog.core.middleware import get_audit_trail
from worklog.db.models import AuditRecord
from worklog.schemas.audit import AuditRecordResponse, FieldChange
from worklog.services.audit_trail import AuditTrail, field_diff

router = APIRouter()


def _to_response(record: AuditRecord) -> AuditRecordResponse:
    return AuditRecordResponse(
        id=record.id,
        ts=record.ts,
        action=record.action,
        table_name=record.table_name,
        record_id=record.record_id,
        changed_by=record.changed_by,
        before=record.before,
        after=record.after,
        changes={
            field: FieldChange(**change)
            for field, change in field_diff(record.before, record.after).items()
        },
    )


@router.get(
    "/",
    response_model=list[AuditRecordResponse],
    summary="Most recent audit records, newest first",
)
async def list_audit(
    limit: int | None = Query(default=None, ge=1, le=1000),
    audit: AuditTrail = Depends(get_audit_trail),
) -> list[AuditRecordResponse]:
    return [_to_response(r) for r in await audit.recent(limit)]


@router.get(
    "/{table_name}/{record_id}",
    response_model=list[AuditRecordResponse],
    summary="Audit history of a single record",
)
async def subject_history(
    table_name: str,
    record_id: int,
    audit: AuditTrail = Depends(get_audit_trail),
) -> list[AuditRecordResponse]:
    return [_to_response(r) for r in await audit.for_subject(table_name, record_id)]
