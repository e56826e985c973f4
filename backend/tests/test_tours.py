"""
Tour tests.

Tests:
  - test_create_and_get_tour            : defaults, crew ids, empty stops
  - test_unknown_crew_member_rejected   : 400
  - test_stops_are_ordered_and_movable  : POST twice moves instead of duplicating
  - test_remove_stop
  - test_delete_tour_keeps_tickets      : ticket loses its tour reference
  - test_deleted_employee_leaves_crew
"""

from __future__ import annotations

from httpx import AsyncClient


async def _customer(client: AsyncClient, name: str, **fields) -> dict:
    resp = await client.post("/api/customers/", json={"name": name, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _tour(client: AsyncClient, **fields) -> dict:
    resp = await client.post("/api/tours/", json={"name": "North", **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_and_get_tour(client: AsyncClient, employee: dict):
    tour = await _tour(client, employee_ids=[employee["id"], employee["id"]])
    assert tour["frequency"] == "daily"
    assert tour["employee_ids"] == [employee["id"]]

    detail = (await client.get(f"/api/tours/{tour['id']}")).json()
    assert detail["name"] == "North"
    assert detail["stops"] == []

    assert [t["id"] for t in (await client.get("/api/tours/")).json()] == [tour["id"]]


async def test_invalid_tour_input(client: AsyncClient):
    assert (await client.post("/api/tours/", json={"name": ""})).status_code == 422
    resp = await client.post("/api/tours/", json={"name": "X", "frequency": "hourly"})
    assert resp.status_code == 422


async def test_unknown_crew_member_rejected(client: AsyncClient, employee: dict):
    resp = await client.post("/api/tours/", json={"name": "South", "employee_ids": [employee["id"], 999]})
    assert resp.status_code == 400
    assert "999" in resp.json()["detail"]


async def test_update_tour(client: AsyncClient, employee: dict):
    tour = await _tour(client)
    resp = await client.put(
        f"/api/tours/{tour['id']}",
        json={"name": "North-East", "frequency": "weekly", "employee_ids": [employee["id"]]},
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["name"] == "North-East"
    assert updated["frequency"] == "weekly"
    assert updated["employee_ids"] == [employee["id"]]


async def test_stops_are_ordered_and_movable(client: AsyncClient):
    tour = await _tour(client)
    first = await _customer(client, "First", street="Ring", house_number="1", postal_code="8010", city="Graz")
    second = await _customer(client, "Second")

    await client.post(f"/api/tours/{tour['id']}/customers", json={"customer_id": first["id"], "position": 2})
    resp = await client.post(
        f"/api/tours/{tour['id']}/customers", json={"customer_id": second["id"], "position": 1}
    )
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()["stops"]] == ["Second", "First"]
    assert resp.json()["stops"][1]["city"] == "Graz"

    resp = await client.post(
        f"/api/tours/{tour['id']}/customers", json={"customer_id": first["id"], "position": 0}
    )
    stops = resp.json()["stops"]
    assert [s["name"] for s in stops] == ["First", "Second"]
    assert len(stops) == 2


async def test_stop_requires_known_customer(client: AsyncClient):
    tour = await _tour(client)
    resp = await client.post(f"/api/tours/{tour['id']}/customers", json={"customer_id": 42})
    assert resp.status_code == 404

    resp = await client.post("/api/tours/999/customers", json={"customer_id": 42})
    assert resp.status_code == 404


async def test_remove_stop(client: AsyncClient):
    tour = await _tour(client)
    customer = await _customer(client, "Only")
    await client.post(f"/api/tours/{tour['id']}/customers", json={"customer_id": customer["id"]})

    resp = await client.delete(f"/api/tours/{tour['id']}/customers/{customer['id']}")
    assert resp.status_code == 204
    assert (await client.get(f"/api/tours/{tour['id']}")).json()["stops"] == []

    resp = await client.delete(f"/api/tours/{tour['id']}/customers/{customer['id']}")
    assert resp.status_code == 404


async def test_delete_tour_keeps_tickets(client: AsyncClient, employee: dict):
    tour = await _tour(client)
    ticket = (
        await client.post(
            "/api/tickets/",
            json={"employee_id": employee["id"], "tour_id": tour["id"], "ticket_type": "defect"},
        )
    ).json()
    assert ticket["tour_name"] == "North"

    assert (await client.delete(f"/api/tours/{tour['id']}")).status_code == 204
    assert (await client.get(f"/api/tours/{tour['id']}")).status_code == 404

    kept = (await client.get(f"/api/tickets/{ticket['id']}")).json()
    assert kept["tour_id"] is None
    assert kept["tour_name"] is None


async def test_deleted_employee_leaves_crew(
    client: AsyncClient, employee: dict, second_employee: dict
):
    tour = await _tour(client, employee_ids=[employee["id"], second_employee["id"]])

    assert (await client.delete(f"/api/employees/{employee['id']}")).status_code == 204

    detail = (await client.get(f"/api/tours/{tour['id']}")).json()
    assert detail["employee_ids"] == [second_employee["id"]]
