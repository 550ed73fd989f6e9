"""Health Probes — process liveness and store readiness for the card service.

Invariants:
    - GET /health/ answers 200 whenever the process can serve a request
    - GET /health/ready answers 503 until the store exists and answers SELECT 1
    - Readiness also reports how many cards have a transition in flight
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from cardledger.api.dependencies import get_store
from cardledger.infrastructure.database import DatabaseSessionManager

router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE = "cardledger-api"
VERSION = "1.0.0"


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": SERVICE, "version": VERSION}


@router.get("/ready")
async def readiness(
    request: Request,
    store: DatabaseSessionManager | None = Depends(get_store),
):
    """Ready once the card store is reachable."""
    if store is None or not await store.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    controller = getattr(request.app.state, "controller", None)
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "cards_in_transition": controller.locks.tracked_cards if controller else 0,
    }
