"""
Case Models
===========
Pydantic models for rescue cases and the API responses built from them.

A "case" is one telemetry snapshot from a rescue-tracking device (vitals,
GPS position, motion sensors) plus a workflow status the dispatcher sets.

JSON field names are camelCase (heartRate, deviceId, ...) because that's what
the devices and the dispatcher console send and expect. Python code uses
snake_case attribute names; the aliases handle the translation.

STATUS FLOW:
    none ──accept──> accepted
    none ──reject──> rejected

Author: Rescue Service Team
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any
from datetime import datetime
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class CaseStatus(str, Enum):
    """
    Workflow status of a case.

    - NONE: Pending, nobody has looked at it yet (this is what makes the buzzer go off)
    - ACCEPTED: Dispatcher took the case
    - REJECTED: Dispatcher dismissed the case
    """
    NONE = "none"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


PROCESSED_STATUSES = (CaseStatus.ACCEPTED, CaseStatus.REJECTED)


# =============================================================================
# CASE RECORD
# =============================================================================

class Case(BaseModel):
    """
    One stored case.

    gps, accelerometer and gyroscope are kept exactly as the device sent them.
    Devices normally send {latitude, longitude} and {x, y, z}, but the shape
    isn't enforced.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique case id (UUID)")
    heart_rate: Any = Field(..., alias="heartRate", description="Heart rate (bpm)")
    temperature: Any = Field(..., description="Body temperature (°C)")
    spo2: Any = Field(..., description="Blood oxygen saturation (%)")
    gps: Any = Field(..., description="Position, normally {latitude, longitude}")
    accelerometer: Any = Field(..., description="Acceleration, normally {x, y, z}")
    gyroscope: Any = Field(..., description="Rotation rate, normally {x, y, z}")
    device_id: str = Field(..., alias="deviceId", description="Reporting device id")
    status: CaseStatus = Field(default=CaseStatus.NONE)
    timestamp: datetime = Field(..., description="When the case was received")

    @classmethod
    def from_document(cls, document: dict) -> "Case":
        return cls.model_validate(document)

    def to_document(self) -> dict:
        """Flat dict in the stored (camelCase) layout."""
        document = self.model_dump(by_alias=True)
        document["status"] = self.status.value
        return document


# =============================================================================
# RESPONSE MODELS - What the backend returns to the dispatcher console
# =============================================================================

class IngestResponse(BaseModel):
    """Returned by POST /api/cases."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    case_id: str = Field(..., alias="caseId")
    removed_previous_cases: bool = Field(..., alias="removedPreviousCases")
    removed_count: int = Field(..., alias="removedCount")


class CaseActionResponse(BaseModel):
    """Returned by accept/reject."""
    message: str
    case: Case


class DeleteCaseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    case_id: str = Field(..., alias="caseId")


class BuzzerCaseSummary(BaseModel):
    """Just enough to show a pending case on the buzzer panel (no telemetry)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    device_id: str = Field(..., alias="deviceId")
    timestamp: datetime


class BuzzerStatusResponse(BaseModel):
    """Returned by GET /api/buzzer-status."""
    model_config = ConfigDict(populate_by_name=True)

    buzzer_active: bool = Field(..., alias="buzzerActive")
    pending_cases_count: int = Field(..., alias="pendingCasesCount")
    cases: list[BuzzerCaseSummary] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""
    error: str
