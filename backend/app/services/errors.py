"""
Case Service Errors
===================

Every failure the case store can hand back to a caller.

- ValidationError: ingest payload is missing a required field (HTTP 400)
- NotFoundError:   no case with that id (HTTP 404)
- StoreError:      the document store failed to read or write (HTTP 500)

Nothing here retries. The routers just turn these into JSON error bodies.
"""


class CaseServiceError(Exception):
    """Base class for case service failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CaseServiceError):
    """A required ingest field is absent or empty."""

    status_code = 400


class NotFoundError(CaseServiceError):
    """No case exists with the requested id."""

    status_code = 404

    def __init__(self, case_id: str):
        super().__init__("Case not found")
        self.case_id = case_id


class StoreError(CaseServiceError):
    """The persistence layer failed."""

    status_code = 500
