"""Lifecycle Controller — the card state machine (available <-> assigned).

Invariants:
    - Every transition runs inside CardLockRegistry.hold(card_id) AND one store transaction
    - Status and assignment writes commit together or not at all
    - Every write is conditional and its row count checked; any mismatch aborts the transition
    - NotFound is raised before any input or state check
    - uid-based transitions re-resolve the uid under the card lock; the branch and the
      preconditions come from that locked read

Design Decisions:
    - Store injected at construction (app.state in production, temp SQLite in tests)
    - uid -> card -> open assignment resolved through CardRegistry and AssignmentLedger only
    - A conditional update that matches no row raises InvalidStateError: the caller must
      re-read state, the controller never retries on its own
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.core.domain_types import (
    AssignmentId, AuditEntry, CardId, CardStatus, TapAction,
)
from cardledger.core.errors import (
    AlreadyClosedError, ConsistencyError, ErrorContext, InvalidStateError,
    ResourceNotFoundError,
)
from cardledger.core.lifecycle import (
    decide_tap, ensure_can_assign, ensure_can_return, normalize_staff_name,
)
from cardledger.core.repository_protocols import (
    AssignmentRepository, CardRepository, CardStore,
)
from cardledger.models.assignment import Assignment
from cardledger.models.card import Card
from cardledger.services.assignment_ledger import AssignmentLedger
from cardledger.services.card_locks import CardLockRegistry
from cardledger.services.card_registry import CardRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one assign/return: which way the card moved and the rows involved."""
    action: TapAction
    card: Card
    assignment: Assignment


class LifecycleController:
    """Orchestrates card registry and assignment ledger as one logical unit."""

    def __init__(self, store: CardStore, locks: CardLockRegistry | None = None):
        self.store = store
        self.locks = locks or CardLockRegistry()

    # ─── Reads ───────────────────────────────────────────────────

    async def list_cards(self) -> list[Card]:
        async with self.store.session() as db:
            return await CardRegistry(db).list_all()

    async def list_by_status(self, status: CardStatus) -> list[Card]:
        async with self.store.session() as db:
            return await CardRegistry(db).list_by_status(status)

    async def list_available(self) -> list[Card]:
        return await self.list_by_status(CardStatus.AVAILABLE)

    async def list_assigned(self) -> list[AuditEntry]:
        """Open assignments joined with their card's uid and name."""
        async with self.store.session() as db:
            return await AssignmentLedger(db).list_open()

    async def get_card(self, card_id: CardId) -> Card:
        async with self.store.session() as db:
            return await CardRegistry(db).get(card_id)

    async def find_card_by_uid(self, uid: str) -> Card:
        async with self.store.session() as db:
            return await CardRegistry(db).find_by_uid(uid)

    async def audit_log(self) -> list[AuditEntry]:
        async with self.store.session() as db:
            return await AssignmentLedger(db).log()

    # ─── Card maintenance ────────────────────────────────────────

    async def create_card(self, uid: str, name: str) -> Card:
        async with self.store.transaction() as db:
            card = await CardRegistry(db).create(uid, name)
        logger.info(
            f"Card {card.uid} created",
            extra={"card_id": card.id, "uid": card.uid},
        )
        return card

    async def rename_card(self, card_id: CardId, name: str) -> Card:
        async with self.store.transaction() as db:
            return await CardRegistry(db).rename(card_id, name)

    async def delete_card(self, card_id: CardId) -> None:
        async with self.locks.hold(card_id):
            async with self.store.transaction() as db:
                await CardRegistry(db).delete(card_id)
        logger.info(f"Card {card_id} deleted", extra={"card_id": card_id})

    # ─── Transitions ─────────────────────────────────────────────

    async def assign_card(self, card_id: CardId, staff_name: str) -> TransitionResult:
        async with self.locks.hold(card_id):
            async with self.store.transaction() as db:
                card = await CardRegistry(db).get(card_id)
                result = await self._checked_assign(db, card, staff_name)
        self._log_transition(result)
        return result

    async def assign_by_uid(self, uid: str, staff_name: str) -> TransitionResult:
        async with self._hold_uid(uid) as (db, card):
            result = await self._checked_assign(db, card, staff_name)
        self._log_transition(result)
        return result

    async def return_assignment(self, assignment_id: AssignmentId) -> TransitionResult:
        async with self.store.session() as db:
            card_id = CardId((await AssignmentLedger(db).get(assignment_id)).card_id)

        async with self.locks.hold(card_id):
            async with self.store.transaction() as db:
                assignment = await AssignmentLedger(db).get(assignment_id)
                if not assignment.is_open:
                    raise AlreadyClosedError(assignment_id)
                card = await CardRegistry(db).get(card_id)
                result = await self._return(db, card, assignment)
        self._log_transition(result)
        return result

    async def return_by_uid(self, uid: str) -> TransitionResult:
        async with self._hold_uid(uid) as (db, card):
            ensure_can_return(CardStatus(card.status), card.id)
            assignment = await self._open_assignment_for(db, card)
            result = await self._return(db, card, assignment)
        self._log_transition(result)
        return result

    async def tap_toggle(self, uid: str, staff_name: str | None) -> TransitionResult:
        """Assign an available card or return an assigned one, decided by current status."""
        async with self._hold_uid(uid) as (db, card):
            action, staff = decide_tap(CardStatus(card.status), staff_name)
            if action == TapAction.ASSIGNED:
                result = await self._assign(db, card, staff)
            else:
                assignment = await self._open_assignment_for(db, card)
                result = await self._return(db, card, assignment)
        self._log_transition(result)
        return result

    # ─── Internals ───────────────────────────────────────────────

    async def _resolve_uid(self, uid: str) -> CardId:
        async with self.store.session() as db:
            card = await CardRegistry(db).find_by_uid(uid)
        return CardId(card.id)

    @asynccontextmanager
    async def _hold_uid(self, uid: str) -> AsyncGenerator[tuple[AsyncSession, Card], None]:
        """Lock the card currently holding `uid` and open a transaction on it.

        The uid is resolved again under the lock. If it was re-issued to another
        card in between, the lock moves to that card once; a second move fails.
        """
        card_id = await self._resolve_uid(uid)
        for _ in range(2):
            async with self.locks.hold(card_id):
                async with self.store.transaction() as db:
                    card = await CardRegistry(db).find_by_uid(uid)
                    if card.id == card_id:
                        yield db, card
                        return
            card_id = CardId(card.id)
        raise InvalidStateError(
            f"Card uid '{uid}' changed owner while waiting for its lock",
            "CARD_UID_REISSUED", ErrorContext(uid=uid),
        )

    async def _checked_assign(self, db, card: Card, staff_name: str) -> TransitionResult:
        staff_name = normalize_staff_name(staff_name)
        ensure_can_assign(CardStatus(card.status), card.id)
        return await self._assign(db, card, staff_name)

    async def _open_assignment_for(self, db, card: Card) -> Assignment:
        try:
            return await AssignmentLedger(db).find_open_by_card(CardId(card.id))
        except ResourceNotFoundError:
            raise InvalidStateError(
                f"Card '{card.uid}' has no open assignment",
                "NO_OPEN_ASSIGNMENT", ErrorContext(card_id=card.id, uid=card.uid),
            )

    async def _assign(self, db, card: Card, staff_name: str) -> TransitionResult:
        """available -> assigned: conditional status write, then open the ledger row."""
        registry: CardRepository = CardRegistry(db)
        moved = await registry.transition_status(
            CardId(card.id), CardStatus.AVAILABLE, CardStatus.ASSIGNED,
        )
        if not moved:
            raise InvalidStateError(
                f"Card '{card.uid}' is no longer available",
                "CARD_ALREADY_ASSIGNED", ErrorContext(card_id=card.id, uid=card.uid),
            )
        ledger: AssignmentRepository = AssignmentLedger(db)
        assignment = await ledger.open_assignment(
            CardId(card.id), staff_name,
        )
        card = await registry.get(CardId(card.id))
        return TransitionResult(TapAction.ASSIGNED, card, assignment)

    async def _return(self, db, card: Card, assignment: Assignment) -> TransitionResult:
        """assigned -> available: close the ledger row, then conditional status write."""
        ledger: AssignmentRepository = AssignmentLedger(db)
        registry: CardRepository = CardRegistry(db)
        closed = await ledger.close_assignment(
            AssignmentId(assignment.id),
        )
        moved = await registry.transition_status(
            CardId(card.id), CardStatus.ASSIGNED, CardStatus.AVAILABLE,
        )
        if not moved:
            raise ConsistencyError(
                f"Card '{card.uid}' had an open assignment but was not marked assigned",
                ErrorContext(
                    card_id=card.id, uid=card.uid, assignment_id=assignment.id,
                ),
            )
        card = await registry.get(CardId(card.id))
        return TransitionResult(TapAction.RETURNED, card, closed)

    @staticmethod
    def _log_transition(result: TransitionResult) -> None:
        logger.info(
            f"Card {result.card.uid} {result.action.value}"
            f" ({result.assignment.staff_name})",
            extra={
                "card_id": result.card.id,
                "uid": result.card.uid,
                "assignment_id": result.assignment.id,
                "action": result.action.value,
            },
        )
