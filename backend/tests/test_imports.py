"""
Candidate-record import tests.

Tests:
  - test_import_by_fuzzy_name      : reordered name resolves to the employee
  - test_category_inference        : description keywords → categories
  - test_hours_without_times_is_rejected : minutes only ever come from a clock pair
  - test_duplicate_date_in_batch_is_row_error
  - test_reimport_replaces_by_date : second batch updates and is audited
  - test_unknown_name_is_404       : imports never create employees
  - test_history_is_recorded
"""

from __future__ import annotations

from httpx import AsyncClient

from worklog.db.models import Category
from worklog.services.entry_import import guess_category


def _records() -> list[dict]:
    return [
        {"date": "2025-03-03", "start_time": "08:00", "end_time": "16:00", "description": "Round A"},
        {"date": "2025-03-04", "description": "Sick"},
        {"date": "2025-03-05", "start_time": "08:00", "end_time": "16:00", "hours": 7.5, "description": "Office work"},
    ]


async def test_import_by_fuzzy_name(client: AsyncClient, employee: dict):
    resp = await client.post(
        "/api/imports/records",
        json={"employee_name": "berger  anna", "source": "march.xlsx", "records": _records()},
    )
    assert resp.status_code == 200, resp.text
    result = resp.json()
    assert result["employee_id"] == employee["id"]
    assert result["inserted_count"] == 3
    assert result["updated_count"] == 0
    assert result["status"] == "success"

    rows = (await client.get("/api/entries/", params={"employee_id": employee["id"]})).json()
    by_date = {r["date"]: r for r in rows}
    assert by_date["2025-03-03"]["category"] == "outdoor-round"
    assert by_date["2025-03-03"]["is_outside"] is True
    assert by_date["2025-03-03"]["net_minutes"] == 450
    assert by_date["2025-03-04"]["category"] == "sick-leave"
    assert by_date["2025-03-05"]["category"] == "office"
    assert by_date["2025-03-05"]["net_minutes"] == 450
    assert by_date["2025-03-05"]["break_minutes"] == 30


def test_category_inference():
    assert guess_category("Sick, doctor's note") == Category.SICK_LEAVE
    assert guess_category("Company closure between holidays") == Category.COMPANY_CLOSURE
    assert guess_category("Annual leave") == Category.VACATION
    assert guess_category("Public holiday") == Category.PUBLIC_HOLIDAY
    assert guess_category("First aid training") == Category.TRAINING
    assert guess_category("Office day") == Category.OFFICE
    assert guess_category("") == Category.OUTDOOR_ROUND
    assert guess_category(None) == Category.OUTDOOR_ROUND


async def test_hours_without_times_is_rejected(client: AsyncClient, employee: dict):
    resp = await client.post(
        "/api/imports/records",
        json={
            "employee_id": employee["id"],
            "records": [
                {"date": "2025-03-03", "start_time": "08:00", "end_time": "16:00"},
                {"date": "2025-03-05", "hours": 8},
            ],
        },
    )
    result = resp.json()
    assert result["status"] == "partial"
    assert result["inserted_count"] == 1
    assert result["error_count"] == 1
    assert result["errors"][0].startswith("2025-03-05")

    rows = (await client.get("/api/entries/", params={"month": "2025-03"})).json()
    assert [r["date"] for r in rows] == ["2025-03-03"]
    for row in rows:
        if row["start_time"] is None or row["end_time"] is None:
            assert (row["gross_minutes"], row["break_minutes"], row["net_minutes"]) == (0, 0, 0)


async def test_hours_are_ignored_when_times_present(client: AsyncClient, employee: dict):
    resp = await client.post(
        "/api/imports/records",
        json={
            "employee_id": employee["id"],
            "records": [{"date": "2025-03-05", "start_time": "06:00", "end_time": "14:00", "hours": 8}],
        },
    )
    assert resp.json()["status"] == "success"

    [row] = (await client.get("/api/entries/", params={"employee_id": employee["id"]})).json()
    assert (row["gross_minutes"], row["break_minutes"], row["net_minutes"]) == (480, 30, 450)


async def test_duplicate_date_in_batch_is_row_error(client: AsyncClient, employee: dict):
    resp = await client.post(
        "/api/imports/records",
        json={
            "employee_id": employee["id"],
            "records": [
                {"date": "2025-03-03", "start_time": "08:00", "end_time": "16:00"},
                {"date": "2025-03-03", "start_time": "09:00", "end_time": "12:00"},
            ],
        },
    )
    result = resp.json()
    assert result["inserted_count"] == 1
    assert result["updated_count"] == 0
    assert result["error_count"] == 1
    assert "duplicate" in result["errors"][0]
    assert result["status"] == "partial"

    [row] = (await client.get("/api/entries/", params={"employee_id": employee["id"]})).json()
    assert row["net_minutes"] == 450
    assert (await client.get("/api/audit/")).json() == []


async def test_reimport_replaces_by_date(client: AsyncClient, employee: dict):
    first = await client.post(
        "/api/imports/records", json={"employee_id": employee["id"], "records": _records()}
    )
    assert first.status_code == 200
    original = {
        r["date"]: r
        for r in (await client.get("/api/entries/", params={"employee_id": employee["id"]})).json()
    }["2025-03-03"]

    resp = await client.post(
        "/api/imports/records",
        json={
            "employee_id": employee["id"],
            "records": [
                {"date": "2025-03-03", "start_time": "09:00", "end_time": "12:00", "description": "Round B"},
                {"date": "2025-03-06", "description": "Vacation"},
            ],
        },
    )
    result = resp.json()
    assert result["inserted_count"] == 1
    assert result["updated_count"] == 1

    rows = (await client.get("/api/entries/", params={"employee_id": employee["id"]})).json()
    assert len(rows) == 4
    replaced = next(r for r in rows if r["date"] == "2025-03-03")
    assert replaced["id"] == original["id"]
    assert replaced["net_minutes"] == 180
    assert replaced["created_at"] == original["created_at"]

    records = (await client.get(f"/api/audit/entries/{original['id']}")).json()
    assert [r["action"] for r in records] == ["UPDATE"]

    check = (await client.get(f"/api/entries/{original['id']}/integrity")).json()
    assert check["valid"] is True


async def test_unknown_name_is_404(client: AsyncClient, employee: dict):
    resp = await client.post(
        "/api/imports/records",
        json={"employee_name": "Totally Different Person", "records": _records()},
    )
    assert resp.status_code == 404

    employees = (await client.get("/api/employees/")).json()
    assert len(employees) == 1


async def test_unknown_employee_id_is_404(client: AsyncClient):
    resp = await client.post("/api/imports/records", json={"employee_id": 42, "records": _records()})
    assert resp.status_code == 404


async def test_employee_reference_required(client: AsyncClient):
    resp = await client.post("/api/imports/records", json={"records": _records()})
    assert resp.status_code == 422

    resp = await client.post("/api/imports/records", json={"employee_id": 1, "records": []})
    assert resp.status_code == 422


async def test_history_is_recorded(client: AsyncClient, employee: dict):
    await client.post(
        "/api/imports/records",
        json={"employee_id": employee["id"], "source": "march.xlsx", "records": _records()},
    )

    resp = await client.get("/api/imports/history", params={"per_page": 10})
    assert resp.status_code == 200
    history = resp.json()
    assert history["total"] == 1
    assert history["pages"] == 1
    item = history["items"][0]
    assert item["source"] == "march.xlsx"
    assert item["status"] == "success"
    assert item["employee_name"] == employee["name"]
    assert item["logs"]["inserted"] == 3
