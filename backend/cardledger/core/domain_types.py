"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - CardId, AssignmentId wrap integer primary keys — never use bare int in domain logic
    - CardStatus has exactly two members (the two lifecycle states)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CardId = NewType("CardId", int)
AssignmentId = NewType("AssignmentId", int)
CardUid = NewType("CardUid", str)


# ─── Enums ───────────────────────────────────────────────────────

class CardStatus(str, Enum):
    """Card lifecycle states — maps to DB `status` column."""
    AVAILABLE = "available"
    ASSIGNED = "assigned"


class TapAction(str, Enum):
    """Outcome of a tap toggle — which transition the tap performed."""
    ASSIGNED = "assigned"
    RETURNED = "returned"


# ─── Read Models ─────────────────────────────────────────────────

@dataclass(frozen=True)
class AuditEntry:
    """One assignment row joined with its card's name and uid."""
    id: AssignmentId
    card_id: CardId
    card_name: str
    uid: CardUid
    staff_name: str
    assigned_at: datetime
    returned_at: datetime | None

    @property
    def is_open(self) -> bool:
        return self.returned_at is None
