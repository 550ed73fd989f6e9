"""Card Schemas — create/rename payloads and the public card shape.

Invariants:
    - uid and name are stripped and non-empty before reaching the registry
    - Responses never expose deleted_at
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cardledger.core.domain_types import CardStatus


class CardCreate(BaseModel):
    """Card creation — uid is the tag id presented by the reader."""
    uid: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=200)

    @field_validator("uid", "name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class CardRename(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class CardResponse(BaseModel):
    """Card response — public-facing card data."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    uid: str
    name: str
    status: CardStatus
    created_at: datetime
