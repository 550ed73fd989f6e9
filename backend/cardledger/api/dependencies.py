"""Route Dependencies — hand the injected controller and store to route handlers."""

from fastapi import Request

from cardledger.infrastructure.database import DatabaseSessionManager
from cardledger.services.lifecycle_controller import LifecycleController


def get_controller(request: Request) -> LifecycleController:
    """LifecycleController built in the lifespan and kept on app.state."""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise RuntimeError("Lifecycle controller not initialized")
    return controller


def get_store(request: Request) -> DatabaseSessionManager | None:
    return getattr(request.app.state, "store", None)
