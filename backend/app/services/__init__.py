"""
Services Package
================

These are the "workers" that do the actual work.

- DocumentCollection: Keeps case documents (in memory, optionally a JSON file)
- CaseStore: The boss that enforces the case lifecycle
"""

from .errors import CaseServiceError, ValidationError, NotFoundError, StoreError
from .document_store import DocumentCollection
from .case_store import CaseStore, IngestResult, BuzzerStatus

__all__ = [
    "CaseServiceError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "DocumentCollection",
    "CaseStore",
    "IngestResult",
    "BuzzerStatus",
]
