"""
Key/value runtime configuration stored in the ``settings`` table.

Break policy and allowance values fall back to the environment defaults from
``core.config`` until an administrator overrides them. The HMAC secret is
created on first use with an atomic insert-if-absent, so concurrent first
calls converge on a single persisted value.
"""

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.core.config import settings
from worklog.db.models import AppSetting

logger = logging.getLogger(__name__)

BREAK_THRESHOLD_KEY = "break_threshold_hours"
BREAK_DURATION_KEY = "break_duration_minutes"
ALLOWANCE_RATE_KEY = "daily_allowance_rate"
SECRET_KEY = "secret"

PUBLIC_KEYS = (BREAK_THRESHOLD_KEY, BREAK_DURATION_KEY, ALLOWANCE_RATE_KEY)

_SECRET_BYTES = 32


@dataclass(frozen=True)
class BreakPolicy:
    threshold_hours: float
    duration_minutes: int


def _insert(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(AppSetting)
    if dialect == "sqlite":
        return sqlite.insert(AppSetting)
    raise RuntimeError(f"Unsupported database dialect '{dialect}'")


async def _read(db: AsyncSession, key: str) -> str | None:
    result = await db.execute(select(AppSetting.value).where(AppSetting.key == key))
    return result.scalar_one_or_none()


async def get_or_create_secret(db: AsyncSession) -> str:
    """Return the persisted HMAC secret, creating it if absent."""
    existing = await _read(db, SECRET_KEY)
    if existing is not None:
        return existing

    candidate = secrets.token_hex(_SECRET_BYTES)
    stmt = (
        _insert(db)
        .values(key=SECRET_KEY, value=candidate)
        .on_conflict_do_nothing(index_elements=["key"])
    )
    result = await db.execute(stmt)
    if result.rowcount:
        logger.info("Generated new integrity secret")

    # Whoever won the insert race, the stored value is the one to use
    stored = await _read(db, SECRET_KEY)
    if stored is None:
        raise RuntimeError("Integrity secret could not be persisted")
    return stored


async def get_break_policy(db: AsyncSession) -> BreakPolicy:
    values = await get_public_settings(db)
    return BreakPolicy(
        threshold_hours=float(values[BREAK_THRESHOLD_KEY]),
        duration_minutes=int(values[BREAK_DURATION_KEY]),
    )


async def get_allowance_rate(db: AsyncSession) -> float:
    values = await get_public_settings(db)
    return float(values[ALLOWANCE_RATE_KEY])


async def get_public_settings(db: AsyncSession) -> dict[str, str]:
    """All settings except the secret, with defaults filled in."""
    values = {
        BREAK_THRESHOLD_KEY: str(settings.BREAK_THRESHOLD_HOURS),
        BREAK_DURATION_KEY: str(settings.BREAK_DURATION_MINUTES),
        ALLOWANCE_RATE_KEY: str(settings.DAILY_ALLOWANCE_RATE),
    }
    result = await db.execute(
        select(AppSetting.key, AppSetting.value).where(AppSetting.key.in_(PUBLIC_KEYS))
    )
    values.update({key: value for key, value in result.all()})
    return values


async def update_settings(db: AsyncSession, updates: dict[str, str]) -> None:
    """Upsert the given public keys. Caller commits."""
    for key, value in updates.items():
        if key not in PUBLIC_KEYS:
            raise KeyError(key)
        stmt = _insert(db).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=["key"], set_={"value": value})
        await db.execute(stmt)
        logger.info("Setting '%s' updated to '%s'", key, value)
