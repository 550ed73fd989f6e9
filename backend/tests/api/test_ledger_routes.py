"""Ledger Routes — assign / return / tap endpoints and the audit log.

Invariants:
    - Transition routes answer {action, message, card, assignment}
    - camelCase (legacy) and snake_case bodies are both accepted
    - Typed failures map to 400 / 404 / 409
"""

import pytest


@pytest.fixture
async def card(client):
    res = await client.post("/api/v1/cards", json={"uid": "X1", "name": "Front door"})
    return res.json()


async def test_tap_action_assigns_then_returns(client, card):
    first = await client.post("/api/v1/tap-action", json={"uid": "X1", "staffName": "Alice"})
    assert first.status_code == 200
    body = first.json()
    assert body["action"] == "assigned"
    assert body["message"] == "Card assigned"
    assert body["card"]["status"] == "assigned"
    assert body["assignment"]["staff_name"] == "Alice"

    second = await client.post("/api/v1/tap-action", json={"uid": "X1", "staff_name": ""})
    assert second.json()["action"] == "returned"
    assert second.json()["message"] == "Card returned"
    assert second.json()["card"]["status"] == "available"
    assert second.json()["assignment"]["returned_at"] is not None


async def test_tap_action_requires_staff_name_for_available_card(client, card):
    res = await client.post("/api/v1/tap-action", json={"uid": "X1"})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["kind"] == "invalid_input"
    assert error["code"] == "INVALID_INPUT"


async def test_tap_action_unknown_uid_returns_404(client):
    res = await client.post("/api/v1/tap-action", json={"uid": "nope", "staffName": "Alice"})
    assert res.status_code == 404


async def test_assign_by_card_id_accepts_camel_case(client, card):
    res = await client.post(
        "/api/v1/assign", json={"cardId": card["id"], "staffName": "Alice"},
    )
    assert res.status_code == 200
    assert res.json()["assignment"]["card_id"] == card["id"]


async def test_assign_twice_returns_409(client, card):
    await client.post("/api/v1/assign", json={"card_id": card["id"], "staff_name": "Alice"})
    res = await client.post("/api/v1/assign", json={"card_id": card["id"], "staff_name": "Bob"})
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CARD_ALREADY_ASSIGNED"


async def test_assign_missing_card_id_is_validation_error(client):
    res = await client.post("/api/v1/assign", json={"staffName": "Alice"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_return_by_assignment_id_then_already_closed(client, card):
    assigned = await client.post(
        "/api/v1/assign-by-uid", json={"uid": "X1", "staffName": "Alice"},
    )
    assignment_id = assigned.json()["assignment"]["id"]

    res = await client.post(f"/api/v1/return/{assignment_id}")
    assert res.status_code == 200
    assert res.json()["action"] == "returned"

    again = await client.post(f"/api/v1/return/{assignment_id}")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ASSIGNMENT_ALREADY_CLOSED"


async def test_return_unknown_assignment_returns_404(client):
    res = await client.post("/api/v1/return/999")
    assert res.status_code == 404
    assert res.json()["error"]["context"]["assignment_id"] == 999


async def test_return_by_uid(client, card):
    await client.post("/api/v1/assign-by-uid", json={"uid": "X1", "staffName": "Alice"})
    res = await client.post("/api/v1/return-by-uid", json={"uid": "X1"})
    assert res.status_code == 200
    assert res.json()["card"]["status"] == "available"


async def test_return_by_uid_on_available_card_returns_409(client, card):
    res = await client.post("/api/v1/return-by-uid", json={"uid": "X1"})
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CARD_NOT_ASSIGNED"


async def test_logs_newest_first(client, card):
    await client.post("/api/v1/tap-action", json={"uid": "X1", "staffName": "Alice"})
    await client.post("/api/v1/tap-action", json={"uid": "X1"})
    await client.post("/api/v1/tap-action", json={"uid": "X1", "staffName": "Bob"})

    res = await client.get("/api/v1/logs")
    assert res.status_code == 200
    rows = res.json()
    assert [r["staff_name"] for r in rows] == ["Bob", "Alice"]
    assert rows[0]["returned_at"] is None
    assert rows[1]["returned_at"] is not None
    assert rows[0]["uid"] == "X1"
    assert rows[0]["card_name"] == "Front door"
