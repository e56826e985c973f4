"""
Ticket tests.

Tests:
  - test_open_ticket_for_entry          : links to entry, customer and tour names
  - test_reference_checks               : 404 for unknown refs, 400 for foreign entry
  - test_close_and_reopen               : done stamps closed_at, open clears it
  - test_filters                        : status and employee filters
  - test_entry_delete_detaches_ticket
  - test_employee_delete_drops_tickets
"""

from __future__ import annotations

from httpx import AsyncClient


async def _entry(client: AsyncClient, employee_id: int, day: str = "2025-03-03") -> dict:
    resp = await client.post(
        "/api/entries/",
        json={
            "employee_id": employee_id,
            "date": day,
            "start_time": "08:00",
            "end_time": "16:00",
            "category": "outdoor-round",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _open(client: AsyncClient, employee_id: int, **fields) -> dict:
    body = {"employee_id": employee_id, "ticket_type": "leak-test", **fields}
    resp = await client.post("/api/tickets/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_open_ticket_for_entry(client: AsyncClient, employee: dict):
    entry = await _entry(client, employee["id"])
    customer = (
        await client.post(
            "/api/customers/",
            json={"name": "Weber", "street": "Ring", "house_number": "3", "postal_code": "8010", "city": "Graz"},
        )
    ).json()

    ticket = await _open(
        client,
        employee["id"],
        entry_id=entry["id"],
        customer_id=customer["id"],
        event_title="Chimney check",
        event_at="2025-03-03T09:30:00+00:00",
        note="Smell of gas reported",
    )

    assert ticket["status"] == "open"
    assert ticket["entry_id"] == entry["id"]
    assert ticket["employee_name"] == employee["name"]
    assert ticket["customer_name"] == "Weber"
    assert ticket["customer_address"] == "Ring 3, 8010 Graz"
    assert ticket["closed_at"] is None


async def test_reference_checks(client: AsyncClient, employee: dict, second_employee: dict):
    resp = await client.post("/api/tickets/", json={"employee_id": 999, "ticket_type": "other"})
    assert resp.status_code == 404

    resp = await client.post(
        "/api/tickets/", json={"employee_id": employee["id"], "entry_id": 999, "ticket_type": "other"}
    )
    assert resp.status_code == 404

    foreign = await _entry(client, second_employee["id"])
    resp = await client.post(
        "/api/tickets/",
        json={"employee_id": employee["id"], "entry_id": foreign["id"], "ticket_type": "other"},
    )
    assert resp.status_code == 400

    resp = await client.post("/api/tickets/", json={"employee_id": employee["id"], "ticket_type": "party"})
    assert resp.status_code == 422


async def test_close_and_reopen(client: AsyncClient, employee: dict, second_employee: dict):
    ticket = await _open(client, employee["id"])

    resp = await client.put(
        f"/api/tickets/{ticket['id']}",
        json={"status": "done", "finding": "Seal replaced", "closed_by": second_employee["id"]},
    )
    assert resp.status_code == 200, resp.text
    closed = resp.json()
    assert closed["status"] == "done"
    assert closed["finding"] == "Seal replaced"
    assert closed["closed_by"] == second_employee["id"]
    assert closed["closed_at"] is not None
    assert closed["ticket_type"] == "leak-test"

    resp = await client.put(f"/api/tickets/{ticket['id']}", json={"status": "open"})
    reopened = resp.json()
    assert reopened["status"] == "open"
    assert reopened["closed_at"] is None
    assert reopened["closed_by"] is None
    assert reopened["finding"] == "Seal replaced"


async def test_close_with_unknown_closer_is_404(client: AsyncClient, employee: dict):
    ticket = await _open(client, employee["id"])
    resp = await client.put(f"/api/tickets/{ticket['id']}", json={"status": "done", "closed_by": 999})
    assert resp.status_code == 404

    assert (await client.get(f"/api/tickets/{ticket['id']}")).json()["status"] == "open"


async def test_filters(client: AsyncClient, employee: dict, second_employee: dict):
    first = await _open(client, employee["id"])
    await _open(client, second_employee["id"], ticket_type="extra-work")
    await client.put(f"/api/tickets/{first['id']}", json={"status": "done"})

    all_tickets = (await client.get("/api/tickets/")).json()
    assert len(all_tickets) == 2
    assert all_tickets[0]["employee_id"] == second_employee["id"]

    done = (await client.get("/api/tickets/", params={"status": "done"})).json()
    assert [t["id"] for t in done] == [first["id"]]

    mine = (await client.get("/api/tickets/", params={"employee_id": second_employee["id"]})).json()
    assert [t["ticket_type"] for t in mine] == ["extra-work"]


async def test_unknown_ticket_is_404(client: AsyncClient):
    assert (await client.get("/api/tickets/1")).status_code == 404
    assert (await client.put("/api/tickets/1", json={"note": "x"})).status_code == 404
    assert (await client.delete("/api/tickets/1")).status_code == 404


async def test_delete_ticket(client: AsyncClient, employee: dict):
    ticket = await _open(client, employee["id"])
    assert (await client.delete(f"/api/tickets/{ticket['id']}")).status_code == 204
    assert (await client.get("/api/tickets/")).json() == []


async def test_entry_delete_detaches_ticket(client: AsyncClient, employee: dict):
    entry = await _entry(client, employee["id"])
    ticket = await _open(client, employee["id"], entry_id=entry["id"])

    assert (await client.delete(f"/api/entries/{entry['id']}")).status_code == 204

    kept = (await client.get(f"/api/tickets/{ticket['id']}")).json()
    assert kept["entry_id"] is None


async def test_employee_delete_drops_tickets(
    client: AsyncClient, employee: dict, second_employee: dict
):
    own = await _open(client, employee["id"])
    other = await _open(client, second_employee["id"])
    await client.put(f"/api/tickets/{other['id']}", json={"status": "done", "closed_by": employee["id"]})

    assert (await client.delete(f"/api/employees/{employee['id']}")).status_code == 204

    assert (await client.get(f"/api/tickets/{own['id']}")).status_code == 404
    remaining = (await client.get(f"/api/tickets/{other['id']}")).json()
    assert remaining["closed_by"] is None
    assert remaining["status"] == "done"
