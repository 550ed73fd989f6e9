"""Card Lifecycle Rules — pure preconditions and branch decisions for card transitions.

Invariants:
    - Every function is PURE: takes values, returns a decision or raises a typed error
    - A card is ASSIGNED iff it has exactly one open assignment
    - Blank staff names (after strip) never reach the ledger

Design Decisions:
    - Shell (services/lifecycle_controller.py) performs the reads and conditional writes;
      this module only decides whether a transition is allowed and which one a tap means
"""

from typing import Sequence, TypeVar

from cardledger.core.domain_types import CardStatus, TapAction
from cardledger.core.errors import (
    ConsistencyError, ErrorContext, InvalidInputError, InvalidStateError,
    ResourceNotFoundError,
)

T = TypeVar("T")


def require_text(value: str | None, field: str) -> str:
    """Strip and require a non-empty string."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{field} is required", field)
    return cleaned


def normalize_staff_name(staff_name: str | None) -> str:
    """Staff name is required for every assignment."""
    return require_text(staff_name, "staff_name")


def ensure_can_assign(status: CardStatus, card_id: int) -> None:
    if status != CardStatus.AVAILABLE:
        raise InvalidStateError(
            f"Card '{card_id}' is already assigned",
            "CARD_ALREADY_ASSIGNED", ErrorContext(card_id=card_id),
        )


def ensure_can_return(status: CardStatus, card_id: int) -> None:
    if status != CardStatus.ASSIGNED:
        raise InvalidStateError(
            f"Card '{card_id}' is not assigned",
            "CARD_NOT_ASSIGNED", ErrorContext(card_id=card_id),
        )


def ensure_can_delete(status: CardStatus, card_id: int) -> None:
    """Only available cards may be deleted."""
    if status != CardStatus.AVAILABLE:
        raise InvalidStateError(
            f"Cannot delete card '{card_id}' while it is assigned",
            "CARD_ASSIGNED", ErrorContext(card_id=card_id),
        )


def decide_tap(status: CardStatus, staff_name: str | None) -> tuple[TapAction, str | None]:
    """Decide what a tap means for a card in `status`.

    Available cards are assigned (staff name required); assigned cards are
    returned and the staff name is ignored. Returns the action and the
    normalized staff name (None for returns).
    """
    if status == CardStatus.AVAILABLE:
        return TapAction.ASSIGNED, normalize_staff_name(staff_name)
    return TapAction.RETURNED, None


def select_open_assignment(open_rows: Sequence[T], card_id: int) -> T:
    """Pick the single open assignment for a card.

    More than one open row is a consistency fault and is surfaced, never
    resolved by picking one.
    """
    if not open_rows:
        raise ResourceNotFoundError(
            "Open assignment for card", card_id, ErrorContext(card_id=card_id),
        )
    if len(open_rows) > 1:
        raise ConsistencyError(
            f"Card '{card_id}' has {len(open_rows)} open assignments",
            ErrorContext(card_id=card_id),
        )
    return open_rows[0]

