"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      the pure rules in core/lifecycle.py are never async themselves
"""

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Protocol

from cardledger.core.domain_types import (
    AssignmentId, AuditEntry, CardId, CardStatus,
)


class CardLike(Protocol):
    """Structural contract for card records handed back to the shell."""
    id: int
    uid: str
    name: str
    status: str
    created_at: datetime


class AssignmentLike(Protocol):
    """Structural contract for assignment records handed back to the shell."""
    id: int
    card_id: int
    staff_name: str
    assigned_at: datetime
    returned_at: datetime | None


class CardStore(Protocol):
    """Persistence store handle — implemented by DatabaseSessionManager."""
    def session(self) -> AbstractAsyncContextManager[Any]: ...
    def transaction(self) -> AbstractAsyncContextManager[Any]: ...


class CardRepository(Protocol):
    """Contract for card persistence — implemented by CardRegistry."""
    async def create(self, uid: str, name: str) -> CardLike: ...
    async def get(self, card_id: CardId) -> CardLike: ...
    async def find_by_uid(self, uid: str) -> CardLike: ...
    async def list_all(self) -> list[CardLike]: ...
    async def list_by_status(self, status: CardStatus) -> list[CardLike]: ...
    async def rename(self, card_id: CardId, name: str) -> CardLike: ...
    async def delete(self, card_id: CardId) -> None: ...
    async def transition_status(
        self, card_id: CardId, expected: CardStatus, new: CardStatus,
    ) -> bool: ...


class AssignmentRepository(Protocol):
    """Contract for assignment persistence — implemented by AssignmentLedger."""
    async def open_assignment(
        self, card_id: CardId, staff_name: str,
    ) -> AssignmentLike: ...
    async def close_assignment(
        self, assignment_id: AssignmentId,
    ) -> AssignmentLike: ...
    async def get(self, assignment_id: AssignmentId) -> AssignmentLike: ...
    async def find_open_by_card(self, card_id: CardId) -> AssignmentLike: ...
    async def log(self) -> list[AuditEntry]: ...
    async def list_open(self) -> list[AuditEntry]: ...
