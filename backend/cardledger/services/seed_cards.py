"""Seed Cards — inserts the sample cards on first run.

Invariants:
    - Idempotent: a uid already present among live cards is skipped, never renamed
    - New seed cards start available, like any created card
"""

import logging

from cardledger.core.errors import ResourceNotFoundError
from cardledger.core.repository_protocols import CardStore
from cardledger.services.card_registry import CardRegistry

logger = logging.getLogger(__name__)

DEFAULT_CARDS: tuple[tuple[str, str], ...] = tuple(
    (f"CARD{n:03d}", f"Card {n}") for n in range(1, 6)
)


async def seed_default_cards(
    store: CardStore, cards: tuple[tuple[str, str], ...] = DEFAULT_CARDS,
) -> int:
    """Insert any missing seed cards. Returns how many were created."""
    created = 0
    async with store.transaction() as db:
        registry = CardRegistry(db)
        for uid, name in cards:
            try:
                await registry.find_by_uid(uid)
            except ResourceNotFoundError:
                await registry.create(uid, name)
                created += 1
    if created:
        logger.info(f"Seeded {created} card(s)")
    return created
