"""
Models Package
==============

This is where all our data models live.
Import from here instead of the individual files.

Example:
    from app.models import Case, CaseStatus
"""

from .case import (
    # Workflow status
    CaseStatus,
    PROCESSED_STATUSES,

    # The stored record
    Case,

    # What we send back to the dispatcher console
    IngestResponse,
    CaseActionResponse,
    DeleteCaseResponse,
    BuzzerCaseSummary,
    BuzzerStatusResponse,
    ErrorResponse,
)

__all__ = [
    "CaseStatus",
    "PROCESSED_STATUSES",
    "Case",
    "IngestResponse",
    "CaseActionResponse",
    "DeleteCaseResponse",
    "BuzzerCaseSummary",
    "BuzzerStatusResponse",
    "ErrorResponse",
]
