"""
Input Validation Utilities
===========================

Validation helpers for incoming case telemetry and path parameters.

Author: Rescue Service Team
"""

import uuid
from typing import Iterable


# Fields every device submission must carry
REQUIRED_CASE_FIELDS = (
    "heartRate",
    "temperature",
    "spo2",
    "gps",
    "accelerometer",
    "gyroscope",
    "deviceId",
)


def missing_fields(payload: dict, required: Iterable[str] = REQUIRED_CASE_FIELDS) -> list[str]:
    """
    Find required fields that are absent or empty.

    Presence check only: a field counts as missing when it's not there or
    is falsy (None, 0, "", {}, []). Types and ranges are not checked.

    Args:
        payload: Parsed JSON body
        required: Field names to check

    Returns:
        Names of missing fields, in the order given
    """
    return [field for field in required if not payload.get(field)]


def validate_case_id(case_id: str) -> bool:
    """
    Validate a case ID (UUID format).

    Args:
        case_id: Case ID string (UUID)

    Returns:
        True if valid UUID format, False otherwise
    """
    try:
        uuid.UUID(case_id)
        return True
    except (ValueError, AttributeError, TypeError):
        return False

