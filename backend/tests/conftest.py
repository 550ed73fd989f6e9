"""Root conftest — shared test configuration and store/controller/client fixtures.

Invariants:
    - Every test gets a fresh SQLite file database under tmp_path
    - The app never runs its lifespan in tests: fixtures attach store and controller
      to app.state directly

Design Decisions:
    - File database rather than :memory: so each session gets its own connection and
      concurrent transitions see real SQLite locking
"""

import os

# Keep tests away from the default ./data database and seed data
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./data/test-cards.db")
os.environ.setdefault("SEED_CARDS", "false")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from cardledger.config import Settings  # noqa: E402
from cardledger.infrastructure.database import DatabaseSessionManager  # noqa: E402
from cardledger.main import create_app  # noqa: E402
from cardledger.services.card_locks import CardLockRegistry  # noqa: E402
from cardledger.services.lifecycle_controller import LifecycleController  # noqa: E402


@pytest.fixture
async def store(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'cards.db'}", timeout_seconds=5,
    )
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def controller(store):
    return LifecycleController(store, CardLockRegistry(timeout_seconds=5))


@pytest.fixture
async def card(controller):
    """A single available card with uid X1."""
    return await controller.create_card("X1", "Front door X1")


@pytest.fixture
def app(store, controller):
    application = create_app(
        Settings(static_dir="__no_static_dir__", seed_cards=False),
    )
    application.state.store = store
    application.state.controller = controller
    return application


@pytest.fixture
async def client(app):
    """FastAPI test client bound to the test store."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
