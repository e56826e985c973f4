from datetime import datetime
from typing import Any

from pydantic import BaseModel

from worklog.db.models import AuditAction


class FieldChange(BaseModel):
    before: Any = None
    after: Any = None


class AuditRecordResponse(BaseModel):
    id: int
    ts: datetime
    action: AuditAction
    table_name: str
    record_id: int | None
    changed_by: str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    changes: dict[str, FieldChange]
