"""Domain Types — verifies identity wrappers, enums and the audit read model.

Tests:
    - NewType wrappers exist and are callable
    - CardStatus has exactly the two lifecycle states
    - Enums serialize to their string values
    - AuditEntry.is_open follows returned_at
"""

from datetime import datetime, timezone

from cardledger.core.domain_types import (
    AssignmentId, AuditEntry, CardId, CardStatus, CardUid, TapAction,
)


def test_identity_types_wrap_primitives():
    assert CardId(7) == 7
    assert AssignmentId(3) == 3
    assert CardUid("CARD001") == "CARD001"


def test_card_status_has_two_states():
    assert set(CardStatus) == {CardStatus.AVAILABLE, CardStatus.ASSIGNED}


def test_enums_serialize_to_string():
    assert CardStatus.AVAILABLE.value == "available"
    assert CardStatus("assigned") is CardStatus.ASSIGNED
    assert TapAction.RETURNED.value == "returned"


def _entry(returned_at):
    return AuditEntry(
        id=AssignmentId(1), card_id=CardId(1), card_name="Card 1",
        uid=CardUid("CARD001"), staff_name="Alice",
        assigned_at=datetime.now(timezone.utc), returned_at=returned_at,
    )


def test_audit_entry_open_until_returned():
    assert _entry(None).is_open
    assert not _entry(datetime.now(timezone.utc)).is_open
