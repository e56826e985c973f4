import logging

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.config import settings
from worklog.db.session import get_db
from worklog.services.audit_trail import AuditTrail, AuditWriteError
from worklog.services.entry_store import EntryStore

logger = logging.getLogger(__name__)


async def get_audit_trail(db: AsyncSession = Depends(get_db)) -> AuditTrail:
    """Audit trail bound to the request session, acting as the admin principal."""
    return AuditTrail(db, actor=settings.ADMIN_ACTOR)


async def get_entry_store(db: AsyncSession = Depends(get_db)) -> EntryStore:
    return EntryStore(db)


async def audit_write_error_handler(request: Request, exc: AuditWriteError) -> JSONResponse:
    # The session is discarded without commit, so the mutation is rolled back too
    logger.error("Request %s %s aborted: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "audit_write_failed", "message": str(exc)},
    )
