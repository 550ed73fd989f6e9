"""Assignment ORM — persists one check-out of a card to a staff member.

Invariants:
    - Always references a Card (card_id FK)
    - returned_at NULL means open; once set it is never cleared
    - At most one open assignment per card (partial unique index)
    - Rows are never deleted: the table is the audit trail

Design Decisions:
    - No ORM relationship to Card: the ledger joins explicitly, nothing lazy-loads
      inside an async session
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from cardledger.db.base import Base


class Assignment(Base):
    """Assignment entity — one interval of a card being held."""
    __tablename__ = "assignments"
    __table_args__ = (
        Index(
            "uq_assignments_open_card", "card_id", unique=True,
            sqlite_where=text("returned_at IS NULL"),
            postgresql_where=text("returned_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    card_id: Mapped[int] = mapped_column(
        ForeignKey("cards.id"), nullable=False, index=True,
    )
    staff_name: Mapped[str] = mapped_column(String(200), nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    returned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    @property
    def is_open(self) -> bool:
        return self.returned_at is None
