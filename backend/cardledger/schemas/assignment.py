"""Assignment Schemas — transition payloads, ledger rows and transition results.

Invariants:
    - Request bodies accept snake_case and the legacy camelCase keys (cardId, staffName)
    - staff_name is NOT validated here: emptiness is a lifecycle rule (tap returns ignore it)

Design Decisions:
    - Aliases only on request models: FastAPI serializes responses by alias
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cardledger.core.domain_types import TapAction
from cardledger.schemas.card import CardResponse


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AssignRequest(_Request):
    card_id: int = Field(alias="cardId")
    staff_name: str | None = Field(None, alias="staffName", max_length=200)


class AssignByUidRequest(_Request):
    uid: str = Field(min_length=1, max_length=128)
    staff_name: str | None = Field(None, alias="staffName", max_length=200)


class ReturnByUidRequest(_Request):
    uid: str = Field(min_length=1, max_length=128)


class TapRequest(_Request):
    """Tap on a reader: staff_name only matters when the card is available."""
    uid: str = Field(min_length=1, max_length=128)
    staff_name: str | None = Field(None, alias="staffName", max_length=200)


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    card_id: int
    staff_name: str
    assigned_at: datetime
    returned_at: datetime | None = None


class AuditEntryResponse(BaseModel):
    """Ledger row joined with card name and uid (audit log and assigned view)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    card_id: int
    card_name: str
    uid: str
    staff_name: str
    assigned_at: datetime
    returned_at: datetime | None = None


class TransitionResponse(BaseModel):
    """Result of assign / return / tap."""
    action: TapAction
    message: str
    card: CardResponse
    assignment: AssignmentResponse
