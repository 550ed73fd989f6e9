"""Ledger Routes — assign, return, tap toggle and the audit log.

Invariants:
    - Every transition route returns TransitionResponse (action, message, card, assignment)
    - Failures propagate as CardLedgerError and are rendered by the global handler
"""

from fastapi import APIRouter, Depends

from cardledger.api.dependencies import get_controller
from cardledger.core.domain_types import AssignmentId, CardId, TapAction
from cardledger.schemas.assignment import (
    AssignByUidRequest, AssignRequest, AuditEntryResponse, ReturnByUidRequest,
    TapRequest, TransitionResponse,
)
from cardledger.services.lifecycle_controller import (
    LifecycleController, TransitionResult,
)

router = APIRouter(prefix="/api/v1", tags=["ledger"])

_MESSAGES = {
    TapAction.ASSIGNED: "Card assigned",
    TapAction.RETURNED: "Card returned",
}


def _to_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse.model_validate({
        "action": result.action,
        "message": _MESSAGES[result.action],
        "card": result.card,
        "assignment": result.assignment,
    }, from_attributes=True)


@router.post("/assign", response_model=TransitionResponse)
async def assign(
    body: AssignRequest, controller: LifecycleController = Depends(get_controller),
):
    result = await controller.assign_card(CardId(body.card_id), body.staff_name)
    return _to_response(result)


@router.post("/assign-by-uid", response_model=TransitionResponse)
async def assign_by_uid(
    body: AssignByUidRequest,
    controller: LifecycleController = Depends(get_controller),
):
    result = await controller.assign_by_uid(body.uid, body.staff_name)
    return _to_response(result)


@router.post("/return/{assignment_id}", response_model=TransitionResponse)
async def return_assignment(
    assignment_id: int,
    controller: LifecycleController = Depends(get_controller),
):
    result = await controller.return_assignment(AssignmentId(assignment_id))
    return _to_response(result)


@router.post("/return-by-uid", response_model=TransitionResponse)
async def return_by_uid(
    body: ReturnByUidRequest,
    controller: LifecycleController = Depends(get_controller),
):
    result = await controller.return_by_uid(body.uid)
    return _to_response(result)


@router.post("/tap-action", response_model=TransitionResponse)
async def tap_action(
    body: TapRequest, controller: LifecycleController = Depends(get_controller),
):
    """Reader tap: assigns an available card, returns an assigned one."""
    result = await controller.tap_toggle(body.uid, body.staff_name)
    return _to_response(result)


@router.get("/logs", response_model=list[AuditEntryResponse])
async def audit_log(controller: LifecycleController = Depends(get_controller)):
    """Full assignment history, newest first."""
    return await controller.audit_log()
