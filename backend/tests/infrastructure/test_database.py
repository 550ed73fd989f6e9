"""DatabaseSessionManager — error mapping, transaction scope, engine options."""

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, OperationalError

from cardledger.core.errors import (
    DatabaseError, ErrorKind, InvalidInputError, StoreTimeoutError,
)
from cardledger.infrastructure.database import (
    DatabaseSessionManager, _engine_kwargs, ensure_sqlite_directory,
)
from cardledger.models.card import Card


async def test_locked_database_maps_to_store_timeout(store):
    with pytest.raises(StoreTimeoutError) as exc_info:
        async with store.session():
            raise OperationalError("UPDATE cards", {}, Exception("database is locked"))
    assert exc_info.value.retryable is True
    assert exc_info.value.kind == ErrorKind.STORE_FAILURE


async def test_other_operational_error_maps_to_database_error(store):
    with pytest.raises(DatabaseError) as exc_info:
        async with store.session():
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))
    assert not isinstance(exc_info.value, StoreTimeoutError)
    assert exc_info.value.retryable is True


async def test_integrity_error_maps_to_database_error(store):
    with pytest.raises(DatabaseError):
        async with store.session():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


async def test_builtin_timeout_maps_to_store_timeout(store):
    with pytest.raises(StoreTimeoutError):
        async with store.session():
            raise TimeoutError()


async def test_domain_errors_pass_through_unchanged(store):
    error = InvalidInputError("name is required", "name")
    with pytest.raises(InvalidInputError) as exc_info:
        async with store.session():
            raise error
    assert exc_info.value is error


async def test_transaction_commits_on_success(store):
    async with store.transaction() as db:
        db.add(Card(uid="T1", name="Committed"))

    async with store.session() as db:
        rows = (await db.execute(select(Card.uid))).scalars().all()
    assert rows == ["T1"]


async def test_transaction_rolls_back_on_error(store):
    with pytest.raises(InvalidInputError):
        async with store.transaction() as db:
            db.add(Card(uid="T1", name="Discarded"))
            await db.flush()
            raise InvalidInputError("abort", "name")

    async with store.session() as db:
        count = (await db.execute(text("SELECT COUNT(*) FROM cards"))).scalar()
    assert count == 0


async def test_health_check(store):
    assert await store.health_check() is True


async def test_health_check_fails_when_database_unreachable(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'cards.db'}",
    )
    (tmp_path / "missing" / "dir").rmdir()
    try:
        assert await manager.health_check() is False
    finally:
        await manager.dispose()


def test_ensure_sqlite_directory_creates_parent(tmp_path):
    target = tmp_path / "nested" / "data" / "cards.db"
    ensure_sqlite_directory(f"sqlite+aiosqlite:///{target}")
    assert target.parent.is_dir()


def test_ensure_sqlite_directory_ignores_memory_and_servers(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    ensure_sqlite_directory("sqlite+aiosqlite:///:memory:")
    ensure_sqlite_directory("postgresql+asyncpg://u:p@localhost/cards")
    assert list(tmp_path.iterdir()) == []


def test_engine_kwargs_sqlite_only_sets_busy_timeout():
    kwargs = _engine_kwargs("sqlite+aiosqlite:///./x.db", 20, 10, 7.5)
    assert kwargs == {"connect_args": {"timeout": 7.5}}


def test_engine_kwargs_postgres_bounds_pool_and_commands():
    kwargs = _engine_kwargs("postgresql+asyncpg://u:p@h/db", 20, 10, 7.5)
    assert kwargs["pool_size"] == 20
    assert kwargs["max_overflow"] == 10
    assert kwargs["pool_timeout"] == 7.5
    assert kwargs["connect_args"]["command_timeout"] == 7.5
