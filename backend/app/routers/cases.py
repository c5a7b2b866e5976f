"""
Cases API Router
================

All the endpoints the devices and the dispatcher console talk to.

HOW IT WORKS:
------------
1. A device (or the dispatcher console) sends an HTTP request
2. FastAPI routes it to the right function here
3. We call the CaseStore to do the work
4. We send back JSON

Errors from the CaseStore (ValidationError, NotFoundError, StoreError) are
not caught here; the handlers in main.py turn them into {"error": "..."}
responses with the right status code.

ALL ENDPOINTS:
-------------
POST   /api/cases                     - Device submits telemetry (new pending case)
GET    /api/cases                     - All cases, newest first
GET    /api/cases/pending             - Cases nobody has acted on yet
GET    /api/cases/processed           - Accepted + rejected cases
GET    /api/cases/device/{deviceId}   - Every case from one device
POST   /api/cases/{id}/accept         - Dispatcher accepts a case
POST   /api/cases/{id}/reject         - Dispatcher rejects a case
DELETE /api/cases/{id}                - Remove a case

Author: Rescue Service Team
"""

from fastapi import APIRouter, Body, Depends, Request

from app.models import (
    Case,
    IngestResponse,
    CaseActionResponse,
    DeleteCaseResponse,
    ErrorResponse,
)
from app.services import CaseStore, StoreError


router = APIRouter(prefix="/api/cases", tags=["cases"])


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================
# The CaseStore is built in main.py's lifespan and parked on app.state

def get_case_store(request: Request) -> CaseStore:
    """
    Get the case store for use in endpoints.

    Every endpoint function that needs the store uses this.
    """
    store = getattr(request.app.state, "case_store", None)
    if store is None:
        raise StoreError("Server not fully started yet")
    return store


ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Store error"},
}


# =============================================================================
# INGEST
# =============================================================================

@router.post(
    "",
    response_model=IngestResponse,
    responses={400: {"model": ErrorResponse, "description": "Missing required fields"}, **ERROR_RESPONSES},
)
async def create_case(
    payload: dict = Body(...),
    store: CaseStore = Depends(get_case_store),
):
    """
    Receive telemetry from a rescue device.

    Required fields: heartRate, temperature, spo2, gps, accelerometer,
    gyroscope, deviceId.

    If this device already has a pending case, that case is replaced.
    removedCount tells you how many pending cases were dropped.
    """
    result = await store.ingest(payload)
    return IngestResponse(
        message="Case data saved successfully",
        case_id=result.case.id,
        removed_previous_cases=result.removed_previous_cases,
        removed_count=result.removed_count,
    )


# =============================================================================
# LISTINGS
# =============================================================================

@router.get("", response_model=list[Case], responses=ERROR_RESPONSES)
async def get_all_cases(store: CaseStore = Depends(get_case_store)):
    """Every case, newest first."""
    return await store.list_all()


@router.get("/pending", response_model=list[Case], responses=ERROR_RESPONSES)
async def get_pending_cases(store: CaseStore = Depends(get_case_store)):
    """Cases with status "none" (waiting for a dispatcher), newest first."""
    return await store.list_pending()


@router.get("/processed", response_model=list[Case], responses=ERROR_RESPONSES)
async def get_processed_cases(store: CaseStore = Depends(get_case_store)):
    """Accepted and rejected cases, newest first."""
    return await store.list_processed()


@router.get("/device/{device_id}", response_model=list[Case], responses=ERROR_RESPONSES)
async def get_device_cases(device_id: str, store: CaseStore = Depends(get_case_store)):
    """Every case one device has reported, newest first."""
    return await store.list_by_device(device_id)


# =============================================================================
# DISPATCHER ACTIONS
# =============================================================================

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Case not found"}}


@router.post(
    "/{case_id}/accept",
    response_model=CaseActionResponse,
    responses={**NOT_FOUND, **ERROR_RESPONSES},
)
async def accept_case(case_id: str, store: CaseStore = Depends(get_case_store)):
    """
    Accept a case.

    Works from any status, so a rejected case can still be accepted.
    """
    case = await store.accept(case_id)
    return CaseActionResponse(message="Case accepted successfully", case=case)


@router.post(
    "/{case_id}/reject",
    response_model=CaseActionResponse,
    responses={**NOT_FOUND, **ERROR_RESPONSES},
)
async def reject_case(case_id: str, store: CaseStore = Depends(get_case_store)):
    """Reject a case (from any status)."""
    case = await store.reject(case_id)
    return CaseActionResponse(message="Case rejected successfully", case=case)


@router.delete(
    "/{case_id}",
    response_model=DeleteCaseResponse,
    responses={**NOT_FOUND, **ERROR_RESPONSES},
)
async def delete_case(case_id: str, store: CaseStore = Depends(get_case_store)):
    """Delete a case, whatever its status."""
    deleted_id = await store.delete(case_id)
    return DeleteCaseResponse(message="Case deleted successfully", case_id=deleted_id)
