"""CardLedger API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CardLedgerError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Store and LifecycleController constructed in the lifespan and kept on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app() factory: tests build an app and attach their own controller
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cardledger.api.error_handlers import register_error_handlers
from cardledger.api.routes import cards, health, ledger
from cardledger.config import Settings, get_settings
from cardledger.infrastructure.database import DatabaseSessionManager
from cardledger.infrastructure.observability import setup_logging
from cardledger.services.card_locks import CardLockRegistry
from cardledger.services.lifecycle_controller import LifecycleController
from cardledger.services.seed_cards import seed_default_cards

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    store = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        timeout_seconds=settings.database_timeout_seconds,
    )
    if settings.database_auto_create:
        await store.create_all()
    if settings.seed_cards:
        await seed_default_cards(store)
    app.state.store = store
    app.state.controller = LifecycleController(
        store, CardLockRegistry(settings.transition_lock_timeout_seconds),
    )
    logger.info("CardLedger API started")
    yield
    logger.info("CardLedger API shutting down")
    await store.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="CardLedger API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(cards.router)
    app.include_router(ledger.router)

    # Mounted AFTER API routes so /api/v1/* takes precedence
    if os.path.isdir(settings.static_dir):
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True),
            name="static",
        )

    register_error_handlers(app)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
