"""Assignment Ledger — open/close semantics, open lookup and the audit log.

Invariants:
    - open_assignment requires a staff name
    - close_assignment is one-way: a second close is AlreadyClosedError
    - at most one open assignment per card (store-enforced)
    - log() newest first, joined with card name/uid
"""

import pytest

from cardledger.core.domain_types import AssignmentId, CardId
from cardledger.core.errors import (
    AlreadyClosedError, InvalidInputError, InvalidStateError, ResourceNotFoundError,
)
from cardledger.services.assignment_ledger import AssignmentLedger
from cardledger.services.card_registry import CardRegistry


@pytest.fixture
async def card_id(store):
    async with store.transaction() as db:
        card = await CardRegistry(db).create("X1", "Front door")
    return CardId(card.id)


async def _open(store, card_id, staff="Alice"):
    async with store.transaction() as db:
        return await AssignmentLedger(db).open_assignment(card_id, staff)


async def _close(store, assignment_id):
    async with store.transaction() as db:
        return await AssignmentLedger(db).close_assignment(AssignmentId(assignment_id))


async def test_open_assignment_sets_assigned_at(store, card_id):
    assignment = await _open(store, card_id, " Alice ")
    assert assignment.staff_name == "Alice"
    assert assignment.assigned_at is not None
    assert assignment.returned_at is None
    assert assignment.is_open


async def test_open_assignment_requires_staff_name(store, card_id):
    with pytest.raises(InvalidInputError):
        await _open(store, card_id, "   ")


async def test_second_open_assignment_rejected_by_store(store, card_id):
    await _open(store, card_id, "Alice")
    with pytest.raises(InvalidStateError) as exc:
        await _open(store, card_id, "Bob")
    assert exc.value.code == "OPEN_ASSIGNMENT_EXISTS"


async def test_close_assignment_sets_returned_at(store, card_id):
    opened = await _open(store, card_id)
    closed = await _close(store, opened.id)
    assert closed.id == opened.id
    assert closed.returned_at is not None


async def test_close_twice_is_already_closed(store, card_id):
    opened = await _open(store, card_id)
    await _close(store, opened.id)
    with pytest.raises(AlreadyClosedError):
        await _close(store, opened.id)


async def test_close_missing_assignment_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await _close(store, 999)


async def test_find_open_by_card(store, card_id):
    async with store.session() as db:
        with pytest.raises(ResourceNotFoundError):
            await AssignmentLedger(db).find_open_by_card(card_id)

    opened = await _open(store, card_id)
    async with store.session() as db:
        found = await AssignmentLedger(db).find_open_by_card(card_id)
    assert found.id == opened.id

    await _close(store, opened.id)
    async with store.session() as db:
        with pytest.raises(ResourceNotFoundError):
            await AssignmentLedger(db).find_open_by_card(card_id)


async def test_log_newest_first_with_card_fields(store, card_id):
    first = await _open(store, card_id, "Alice")
    await _close(store, first.id)
    second = await _open(store, card_id, "Bob")

    async with store.session() as db:
        ledger = AssignmentLedger(db)
        log = await ledger.log()
        open_rows = await ledger.list_open()

    assert [e.id for e in log] == [second.id, first.id]
    assert log[0].card_name == "Front door"
    assert log[0].uid == "X1"
    assert log[0].is_open
    assert not log[1].is_open
    assert [e.staff_name for e in open_rows] == ["Bob"]
