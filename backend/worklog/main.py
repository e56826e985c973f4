import logging
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worklog.api.audit import router as audit_router
from worklog.api.customers import router as customers_router
from worklog.api.employees import router as employees_router
from worklog.api.entries import router as entries_router
from worklog.api.imports import router as imports_router
from worklog.api.settings import router as settings_router
from worklog.api.stats import router as stats_router
from worklog.api.tickets import router as tickets_router
from worklog.api.tours import router as tours_router
from worklog.core.config import settings
from worklog.core.middleware import audit_write_error_handler
from worklog.services.audit_trail import AuditWriteError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run Alembic migrations on startup."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        logger.info("Running Alembic migrations...")
        try:
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                capture_output=True,
                text=True,
                cwd=settings.ALEMBIC_WORKDIR,
            )
            if result.returncode != 0:
                logger.error("Alembic migration failed:\n%s", result.stderr)
            else:
                logger.info("Migrations applied successfully:\n%s", result.stdout)
        except OSError as exc:
            logger.exception("Failed to run migrations: %s", exc)

    yield

    logger.info("Shutting down Worklog backend.")


app = FastAPI(
    title="Worklog API",
    description="Work and absence records with tamper-evident entries, audit trail and anomaly reports.",
    version="0.3.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AuditWriteError, audit_write_error_handler)

app.include_router(employees_router, prefix="/api/employees", tags=["Employees"])
app.include_router(entries_router, prefix="/api/entries", tags=["Entries"])
app.include_router(audit_router, prefix="/api/audit", tags=["Audit"])
app.include_router(settings_router, prefix="/api/settings", tags=["Settings"])
app.include_router(imports_router, prefix="/api/imports", tags=["Imports"])
app.include_router(stats_router, prefix="/api/stats", tags=["Stats"])
app.include_router(customers_router, prefix="/api/customers", tags=["Customers"])
app.include_router(tours_router, prefix="/api/tours", tags=["Tours"])
app.include_router(tickets_router, prefix="/api/tickets", tags=["Tickets"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
