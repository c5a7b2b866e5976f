"""
Utility modules for the rescue case service backend.
"""

from app.utils.validation import (
    REQUIRED_CASE_FIELDS,
    missing_fields,
    validate_case_id,
)

__all__ = [
    "REQUIRED_CASE_FIELDS",
    "missing_fields",
    "validate_case_id",
]
