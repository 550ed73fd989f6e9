"""Card Registry — card records, their uid identity and current status.

Invariants:
    - Every query sees live cards only (deleted_at IS NULL)
    - Status changes only through transition_status, which only the lifecycle controller calls
    - Reads use populate_existing so a conditional UPDATE earlier in the same
      transaction is never hidden by the identity map

Design Decisions:
    - Bound to one AsyncSession: the controller decides the transaction scope,
      the registry never commits
    - delete() is a conditional soft delete: fails closed if the card was assigned
      between the status check and the write
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.core.domain_types import CardId, CardStatus
from cardledger.core.errors import (
    DuplicateUidError, ErrorContext, InvalidStateError, ResourceNotFoundError,
)
from cardledger.core.lifecycle import ensure_can_delete, require_text
from cardledger.models.card import Card


class CardRegistry:
    """Card persistence over one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _live():
        return (
            select(Card)
            .where(Card.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )

    async def create(self, uid: str, name: str) -> Card:
        """Insert a new available card. Raises DuplicateUidError on uid collision."""
        uid = require_text(uid, "uid")
        name = require_text(name, "name")

        result = await self.db.execute(self._live().where(Card.uid == uid))
        if result.scalar_one_or_none() is not None:
            raise DuplicateUidError(uid)

        card = Card(uid=uid, name=name, status=CardStatus.AVAILABLE.value)
        self.db.add(card)
        try:
            await self.db.flush()
        except IntegrityError:
            # concurrent create won the partial unique index
            raise DuplicateUidError(uid)
        return card

    async def get(self, card_id: CardId) -> Card:
        result = await self.db.execute(self._live().where(Card.id == card_id))
        card = result.scalar_one_or_none()
        if card is None:
            raise ResourceNotFoundError(
                "Card", card_id, ErrorContext(card_id=card_id),
            )
        return card

    async def find_by_uid(self, uid: str) -> Card:
        uid = (uid or "").strip()
        result = await self.db.execute(self._live().where(Card.uid == uid))
        card = result.scalar_one_or_none()
        if card is None:
            raise ResourceNotFoundError("Card", uid, ErrorContext(uid=uid))
        return card

    async def list_all(self) -> list[Card]:
        """All live cards in creation order."""
        result = await self.db.execute(self._live().order_by(Card.id))
        return list(result.scalars().all())

    async def list_by_status(self, status: CardStatus) -> list[Card]:
        result = await self.db.execute(
            self._live().where(Card.status == status.value).order_by(Card.id),
        )
        return list(result.scalars().all())

    async def rename(self, card_id: CardId, name: str) -> Card:
        name = require_text(name, "name")
        card = await self.get(card_id)
        card.name = name
        await self.db.flush()
        return card

    async def delete(self, card_id: CardId) -> None:
        """Soft-delete an available card."""
        card = await self.get(card_id)
        ensure_can_delete(CardStatus(card.status), card.id)

        result = await self.db.execute(
            update(Card)
            .where(
                Card.id == card_id,
                Card.status == CardStatus.AVAILABLE.value,
                Card.deleted_at.is_(None),
            )
            .values(deleted_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError(
                f"Card '{card_id}' changed state during deletion",
                "CARD_ASSIGNED", ErrorContext(card_id=card_id),
            )

    async def transition_status(
        self, card_id: CardId, expected: CardStatus, new: CardStatus,
    ) -> bool:
        """Conditional status write. True only if exactly one row moved expected -> new."""
        result = await self.db.execute(
            update(Card)
            .where(
                Card.id == card_id,
                Card.status == expected.value,
                Card.deleted_at.is_(None),
            )
            .values(status=new.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
