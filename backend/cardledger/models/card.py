"""Card ORM — persists one physical access card and its current lifecycle status.

Invariants:
    - id is an integer primary key, uid is unique among live cards (deleted_at IS NULL)
    - status is "available" or "assigned" and only changes through the lifecycle controller
    - Deleted cards keep their row so the assignment log can still name them

Design Decisions:
    - Partial unique index on uid: a deleted card's uid can be issued again
    - status stored denormalized next to the ledger: list views need no JOIN
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from cardledger.core.domain_types import CardStatus
from cardledger.db.base import Base


class Card(Base):
    """Card entity — registry record for one access card."""
    __tablename__ = "cards"
    __table_args__ = (
        Index(
            "uq_cards_live_uid", "uid", unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CardStatus.AVAILABLE.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
