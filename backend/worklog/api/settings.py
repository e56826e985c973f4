from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.session import get_db
from worklog.schemas.settings import SettingsResponse, SettingsUpdate
from worklog.services.app_settings import (
    ALLOWANCE_RATE_KEY,
    BREAK_DURATION_KEY,
    BREAK_THRESHOLD_KEY,
    get_allowance_rate,
    get_break_policy,
    update_settings,
)

router = APIRouter()


async def _current(db: AsyncSession) -> SettingsResponse:
    policy = await get_break_policy(db)
    return SettingsResponse(
        break_threshold_hours=policy.threshold_hours,
        break_duration_minutes=policy.duration_minutes,
        daily_allowance_rate=await get_allowance_rate(db),
    )


@router.get(
    "/",
    response_model=SettingsResponse,
    summary="Current break policy and allowance rate",
)
async def get_settings(db: AsyncSession = Depends(get_db)) -> SettingsResponse:
    return await _current(db)


@router.put(
    "/",
    response_model=SettingsResponse,
    summary="Update settings; applies to subsequent mutations and reports only",
)
async def put_settings(
    body: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    updates: dict[str, str] = {}
    if body.break_threshold_hours is not None:
        updates[BREAK_THRESHOLD_KEY] = str(body.break_threshold_hours)
    if body.break_duration_minutes is not None:
        updates[BREAK_DURATION_KEY] = str(body.break_duration_minutes)
    if body.daily_allowance_rate is not None:
        updates[ALLOWANCE_RATE_KEY] = str(body.daily_allowance_rate)

    if updates:
        await update_settings(db, updates)
        await db.commit()
    return await _current(db)
