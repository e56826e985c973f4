"""
Settings tests.

Tests:
  - test_defaults_without_overrides
  - test_partial_update
  - test_invalid_values_rejected
  - test_allowance_rate_update
  - test_secret_is_created_once_and_never_exposed
"""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import AppSetting
from worklog.services.app_settings import SECRET_KEY, get_or_create_secret


async def test_defaults_without_overrides(client: AsyncClient):
    resp = await client.get("/api/settings/")
    assert resp.status_code == 200
    assert resp.json() == {
        "break_threshold_hours": 6.0,
        "break_duration_minutes": 30,
        "daily_allowance_rate": 1.27,
    }


async def test_partial_update(client: AsyncClient):
    resp = await client.put("/api/settings/", json={"break_duration_minutes": 45})
    assert resp.status_code == 200
    assert resp.json()["break_duration_minutes"] == 45
    assert resp.json()["break_threshold_hours"] == 6.0

    resp = await client.put("/api/settings/", json={"break_threshold_hours": 5.5})
    assert resp.json()["break_threshold_hours"] == 5.5
    assert resp.json()["break_duration_minutes"] == 45

    assert (await client.get("/api/settings/")).json()["break_threshold_hours"] == 5.5


async def test_invalid_values_rejected(client: AsyncClient):
    assert (await client.put("/api/settings/", json={"break_threshold_hours": 0})).status_code == 422
    assert (await client.put("/api/settings/", json={"break_duration_minutes": -1})).status_code == 422


async def test_secret_is_created_once_and_never_exposed(client: AsyncClient, db: AsyncSession):
    first = await get_or_create_secret(db)
    await db.commit()
    second = await get_or_create_secret(db)

    assert first == second
    assert len(first) == 64

    rows = (await db.execute(select(AppSetting).where(AppSetting.key == SECRET_KEY))).scalars().all()
    assert len(rows) == 1

    assert first not in (await client.get("/api/settings/")).text


async def test_allowance_rate_update(client: AsyncClient):
    resp = await client.put("/api/settings/", json={"daily_allowance_rate": 2.5})
    assert resp.status_code == 200
    assert resp.json()["daily_allowance_rate"] == 2.5
    assert resp.json()["break_duration_minutes"] == 30

    assert (await client.put("/api/settings/", json={"daily_allowance_rate": -1})).status_code == 422
