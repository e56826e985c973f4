"""
Append-only audit trail for administrative mutations.

Records are written in the caller's session, so they commit or roll back
together with the mutation they describe. A failed audit write is never
swallowed: it is logged and re-raised as ``AuditWriteError``.
"""

from __future__ import annotations

import enum
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.config import settings
from worklog.db.models import AuditAction, AuditRecord

logger = logging.getLogger(__name__)


class AuditWriteError(RuntimeError):
    """The audit record could not be written; the mutation must not stand."""


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def snapshot(obj: Any, fields: Iterable[str]) -> dict[str, Any]:
    """Plain JSON-ready dict of the named attributes of ``obj``."""
    return {name: _jsonable(getattr(obj, name)) for name in fields}


def field_diff(
    before: dict[str, Any] | None, after: dict[str, Any] | None
) -> dict[str, dict[str, Any]]:
    """Changed fields only, as ``{field: {"before": old, "after": new}}``."""
    before = before or {}
    after = after or {}
    changes: dict[str, dict[str, Any]] = {}
    for key in sorted(set(before) | set(after)):
        old, new = before.get(key), after.get(key)
        if old != new:
            changes[key] = {"before": old, "after": new}
    return changes


class AuditTrail:
    def __init__(self, db: AsyncSession, actor: str | None = None):
        self.db = db
        self.actor = actor or settings.ADMIN_ACTOR

    async def record(
        self,
        action: AuditAction,
        table_name: str,
        record_id: int | None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> AuditRecord:
        if action == AuditAction.INSERT and before is not None:
            raise ValueError("INSERT audit records carry no before-snapshot")
        if action == AuditAction.DELETE and after is not None:
            raise ValueError("DELETE audit records carry no after-snapshot")
        if action == AuditAction.UPDATE and (before is None or after is None):
            raise ValueError("UPDATE audit records need both snapshots")

        audit = AuditRecord(
            ts=datetime.now(timezone.utc),
            action=action,
            table_name=table_name,
            record_id=record_id,
            changed_by=self.actor,
            before=before,
            after=after,
        )
        try:
            self.db.add(audit)
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception(
                "Audit write failed: action=%s table=%s record_id=%s",
                action.value, table_name, record_id,
            )
            raise AuditWriteError(
                f"Audit record for {action.value} {table_name}#{record_id} could not be written"
            ) from exc

        logger.info(
            "Audit: %s %s#%s by %s", action.value, table_name, record_id, self.actor
        )
        return audit

    async def recent(self, limit: int | None = None) -> list[AuditRecord]:
        """Most recent records, newest first."""
        result = await self.db.execute(
            select(AuditRecord)
            .order_by(AuditRecord.ts.desc(), AuditRecord.id.desc())
            .limit(limit or settings.AUDIT_LOG_DEFAULT_LIMIT)
        )
        return list(result.scalars().all())

    async def for_subject(self, table_name: str, record_id: int) -> list[AuditRecord]:
        result = await self.db.execute(
            select(AuditRecord)
            .where(
                AuditRecord.table_name == table_name,
                AuditRecord.record_id == record_id,
            )
            .order_by(AuditRecord.ts.desc(), AuditRecord.id.desc())
        )
        return list(result.scalars().all())
