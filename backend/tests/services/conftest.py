"""Service test fixtures — ledger invariant checker.

Invariants:
    - assert_consistent reads straight from the tables, bypassing registry and ledger
"""

import pytest
from sqlalchemy import func, select

from cardledger.core.domain_types import CardStatus
from cardledger.models.assignment import Assignment
from cardledger.models.card import Card


@pytest.fixture
def assert_consistent(store):
    """Check: status == assigned iff exactly one open assignment, never more than one."""

    async def check() -> dict[int, int]:
        async with store.session() as db:
            cards = (
                await db.execute(select(Card).where(Card.deleted_at.is_(None)))
            ).scalars().all()
            open_counts = dict(
                (
                    await db.execute(
                        select(Assignment.card_id, func.count())
                        .where(Assignment.returned_at.is_(None))
                        .group_by(Assignment.card_id)
                    )
                ).all()
            )
        for card in cards:
            count = open_counts.get(card.id, 0)
            assert count <= 1, f"card {card.uid} has {count} open assignments"
            assert (card.status == CardStatus.ASSIGNED.value) == (count == 1), (
                f"card {card.uid} status {card.status} with {count} open"
            )
        return open_counts

    return check
