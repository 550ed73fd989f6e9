"""Card Locks — one FIFO asyncio.Lock per card id, held for a whole transition.

Invariants:
    - At most one transition per card id runs at a time inside this process
    - Waiters acquire in arrival order (asyncio.Lock wakes the oldest waiter first)
    - Acquisition is bounded; expiry raises StoreTimeoutError (retryable)
    - A card's lock is dropped once nobody holds or waits for it
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from cardledger.core.errors import ErrorContext, StoreTimeoutError

logger = logging.getLogger(__name__)


class CardLockRegistry:
    """Per-card mutual exclusion for lifecycle transitions."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @property
    def tracked_cards(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, card_id: int) -> AsyncGenerator[None, None]:
        lock = self._locks.setdefault(card_id, asyncio.Lock())
        self._users[card_id] = self._users.get(card_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Timed out waiting for card {card_id} transition slot",
                    extra={"card_id": card_id},
                )
                raise StoreTimeoutError(
                    "card lock", self.timeout_seconds, ErrorContext(card_id=card_id),
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[card_id] -= 1
            if not self._users[card_id]:
                del self._users[card_id]
                self._locks.pop(card_id, None)
