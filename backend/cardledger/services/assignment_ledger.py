"""Assignment Ledger — append-mostly history of card check-outs and check-ins.

Invariants:
    - open_assignment never accepts a blank staff name
    - close_assignment only moves returned_at from NULL to now (no un-return)
    - find_open_by_card surfaces more than one open row as ConsistencyError
    - log() is ordered by assigned_at descending, ties broken by id descending

Design Decisions:
    - Conditional UPDATE ... WHERE returned_at IS NULL: two concurrent closes cannot
      both succeed, the loser sees AlreadyClosedError
    - Partial unique index violation on insert reported as InvalidStateError
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.core.domain_types import AssignmentId, AuditEntry, CardId, CardUid
from cardledger.core.errors import (
    AlreadyClosedError, ErrorContext, InvalidStateError, ResourceNotFoundError,
)
from cardledger.core.lifecycle import normalize_staff_name, select_open_assignment
from cardledger.models.assignment import Assignment
from cardledger.models.card import Card


class AssignmentLedger:
    """Assignment persistence over one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def open_assignment(self, card_id: CardId, staff_name: str) -> Assignment:
        staff_name = normalize_staff_name(staff_name)
        assignment = Assignment(
            card_id=card_id,
            staff_name=staff_name,
            assigned_at=datetime.now(timezone.utc),
        )
        self.db.add(assignment)
        try:
            await self.db.flush()
        except IntegrityError:
            raise InvalidStateError(
                f"Card '{card_id}' already has an open assignment",
                "OPEN_ASSIGNMENT_EXISTS", ErrorContext(card_id=card_id),
            )
        return assignment

    async def close_assignment(self, assignment_id: AssignmentId) -> Assignment:
        result = await self.db.execute(
            update(Assignment)
            .where(
                Assignment.id == assignment_id,
                Assignment.returned_at.is_(None),
            )
            .values(returned_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.get(assignment_id)
            raise AlreadyClosedError(assignment_id)
        return await self.get(assignment_id)

    async def get(self, assignment_id: AssignmentId) -> Assignment:
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise ResourceNotFoundError(
                "Assignment", assignment_id,
                ErrorContext(assignment_id=assignment_id),
            )
        return assignment

    async def find_open_by_card(self, card_id: CardId) -> Assignment:
        result = await self.db.execute(
            select(Assignment)
            .where(
                Assignment.card_id == card_id,
                Assignment.returned_at.is_(None),
            )
            .order_by(Assignment.id)
            .execution_options(populate_existing=True)
        )
        return select_open_assignment(list(result.scalars().all()), card_id)

    async def log(self) -> list[AuditEntry]:
        """Every assignment with its card's name and uid, newest first."""
        return await self._joined(open_only=False)

    async def list_open(self) -> list[AuditEntry]:
        return await self._joined(open_only=True)

    async def _joined(self, open_only: bool) -> list[AuditEntry]:
        query = (
            select(Assignment, Card.name, Card.uid)
            .join(Card, Card.id == Assignment.card_id)
            .order_by(Assignment.assigned_at.desc(), Assignment.id.desc())
        )
        if open_only:
            query = query.where(Assignment.returned_at.is_(None))
        result = await self.db.execute(query)
        return [
            AuditEntry(
                id=AssignmentId(a.id),
                card_id=CardId(a.card_id),
                card_name=card_name,
                uid=CardUid(uid),
                staff_name=a.staff_name,
                assigned_at=a.assigned_at,
                returned_at=a.returned_at,
            )
            for a, card_name, uid in result.all()
        ]
