"""Card Routes — registry views and card maintenance.

Invariants:
    - Static paths (/available, /assigned, /by-uid) registered before /{card_id}
    - Status changes are never exposed here; see ledger routes
"""

from fastapi import APIRouter, Depends, Query, status

from cardledger.api.dependencies import get_controller
from cardledger.core.domain_types import CardId, CardStatus
from cardledger.schemas.assignment import AuditEntryResponse
from cardledger.schemas.card import CardCreate, CardRename, CardResponse
from cardledger.services.lifecycle_controller import LifecycleController

router = APIRouter(prefix="/api/v1/cards", tags=["cards"])


@router.get("", response_model=list[CardResponse])
async def list_cards(
    status_filter: CardStatus | None = Query(None, alias="status"),
    controller: LifecycleController = Depends(get_controller),
):
    """All cards in creation order, optionally filtered by status."""
    if status_filter:
        return await controller.list_by_status(status_filter)
    return await controller.list_cards()


@router.get("/available", response_model=list[CardResponse])
async def list_available(
    controller: LifecycleController = Depends(get_controller),
):
    return await controller.list_available()


@router.get("/assigned", response_model=list[AuditEntryResponse])
async def list_assigned(
    controller: LifecycleController = Depends(get_controller),
):
    """Open assignments with card uid/name — the checked-out view."""
    return await controller.list_assigned()


@router.get("/by-uid/{uid}", response_model=CardResponse)
async def find_card_by_uid(
    uid: str, controller: LifecycleController = Depends(get_controller),
):
    return await controller.find_card_by_uid(uid)


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: int, controller: LifecycleController = Depends(get_controller),
):
    return await controller.get_card(CardId(card_id))


@router.post(
    "", response_model=CardResponse, status_code=status.HTTP_201_CREATED,
)
async def create_card(
    body: CardCreate, controller: LifecycleController = Depends(get_controller),
):
    return await controller.create_card(body.uid, body.name)


@router.put("/{card_id}", response_model=CardResponse)
async def rename_card(
    card_id: int,
    body: CardRename,
    controller: LifecycleController = Depends(get_controller),
):
    return await controller.rename_card(CardId(card_id), body.name)


@router.delete("/{card_id}")
async def delete_card(
    card_id: int, controller: LifecycleController = Depends(get_controller),
):
    """Delete an available card. Assigned cards are rejected with 409."""
    await controller.delete_card(CardId(card_id))
    return {"message": "Deleted"}
