"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite for local/test databases, asyncpg for PostgreSQL
"""
