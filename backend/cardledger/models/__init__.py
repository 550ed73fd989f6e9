"""ORM Models — SQLAlchemy declarative models for cards and their assignments.

Invariants:
    - All models inherit from Base (db/base.py)
    - Card is the registry record; Assignment is the ledger row

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from cardledger.models.card import Card  # noqa: F401
from cardledger.models.assignment import Assignment  # noqa: F401
