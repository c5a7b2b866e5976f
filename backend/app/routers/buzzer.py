"""
Buzzer Status Router
====================

The dispatcher console polls this to decide whether to sound the buzzer.

Endpoint:
  GET /api/buzzer-status  - buzzerActive is true while any case is pending
"""
from fastapi import APIRouter, Depends

from app.models import BuzzerCaseSummary, BuzzerStatusResponse, ErrorResponse
from app.routers.cases import get_case_store
from app.services import CaseStore

router = APIRouter(prefix="/api", tags=["buzzer"])


@router.get(
    "/buzzer-status",
    response_model=BuzzerStatusResponse,
    responses={500: {"model": ErrorResponse, "description": "Store error"}},
)
async def get_buzzer_status(store: CaseStore = Depends(get_case_store)):
    """
    Buzzer state, worked out fresh from the pending cases on every call.

    Each entry in cases has only id, deviceId and timestamp (no telemetry).
    """
    status = await store.buzzer_status()
    return BuzzerStatusResponse(
        buzzer_active=status.active,
        pending_cases_count=status.count,
        cases=[BuzzerCaseSummary.model_validate(s) for s in status.summaries],
    )
