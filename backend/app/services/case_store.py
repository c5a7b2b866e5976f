"""
Case Store
==========

This is the BRAIN of the rescue service!

WHAT IT DOES:
------------
1. Takes telemetry from rescue devices and saves it as a case
2. Makes sure each device has at most ONE pending case
3. Lets the dispatcher accept, reject or delete cases
4. Answers "is anything waiting?" for the buzzer

ONE PENDING CASE PER DEVICE:
---------------------------
When a device reports while it still has a pending (status "none") case,
the old pending case is thrown away and the new one replaces it
(last submission wins). Accepted/rejected cases are history and are never
touched by this sweep.

The sweep and the insert are two separate store calls, so two reports from
the same device arriving at the same moment can both insert. The next report
from that device sweeps the extras.

Author: Rescue Service Team
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from app.models import Case, CaseStatus, PROCESSED_STATUSES
from app.services.document_store import DocumentCollection
from app.services.errors import NotFoundError, StoreError, ValidationError
from app.utils.validation import REQUIRED_CASE_FIELDS, missing_fields, validate_case_id

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IngestResult:
    """What ingest hands back: the new case and how many stale pending cases were purged."""
    case: Case
    removed_count: int

    @property
    def removed_previous_cases(self) -> bool:
        return self.removed_count > 0


@dataclass
class BuzzerStatus:
    active: bool
    count: int
    summaries: list[dict]


class CaseStore:
    """
    Case lifecycle on top of a DocumentCollection.

    Build one at startup, call open(), hand it to the routers, call close()
    on shutdown.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            collection: Where cases are stored
            clock: Source of case timestamps. Default is the current UTC time.
        """
        self.collection = collection
        self.clock = clock

    async def open(self):
        await self.collection.open()

    async def close(self):
        await self.collection.close()

    # =========================================================================
    # INGEST
    # =========================================================================

    async def ingest(self, payload: dict) -> IngestResult:
        """
        Save a device submission as a new pending case.

        Any pending case already on file for the same device is deleted
        first.

        Raises:
            ValidationError: A required field is missing or empty
            StoreError: The store failed
        """
        if not isinstance(payload, dict) or missing_fields(payload):
            raise ValidationError(
                "Missing required fields: " + ", ".join(REQUIRED_CASE_FIELDS)
            )

        device_id = str(payload["deviceId"])

        removed = await self._run(
            self.collection.delete_many({"deviceId": device_id, "status": CaseStatus.NONE.value}),
            "Error saving case data",
        )
        if removed > 0:
            logger.info(f"Removed {removed} existing pending cases for device {device_id}")

        case = Case(
            id=str(uuid.uuid4()),
            heart_rate=payload["heartRate"],
            temperature=payload["temperature"],
            spo2=payload["spo2"],
            gps=payload["gps"],
            accelerometer=payload["accelerometer"],
            gyroscope=payload["gyroscope"],
            device_id=device_id,
            status=CaseStatus.NONE,
            timestamp=self.clock(),
        )
        await self._run(self.collection.insert_one(case.to_document()), "Error saving case data")
        logger.info(f"New case saved for device {device_id}")

        return IngestResult(case=case, removed_count=removed)

    # =========================================================================
    # LISTINGS (newest first)
    # =========================================================================

    async def list_all(self) -> list[Case]:
        return await self._find(None, "Error retrieving cases")

    async def list_pending(self) -> list[Case]:
        return await self._find({"status": CaseStatus.NONE.value}, "Error retrieving pending cases")

    async def list_processed(self) -> list[Case]:
        return await self._find(
            {"status": {"$in": [s.value for s in PROCESSED_STATUSES]}},
            "Error retrieving processed cases",
        )

    async def list_by_device(self, device_id: str) -> list[Case]:
        return await self._find({"deviceId": device_id}, "Error retrieving device cases")

    # =========================================================================
    # DISPATCHER ACTIONS
    # =========================================================================

    async def accept(self, case_id: str) -> Case:
        """Mark a case accepted. The current status is not checked."""
        return await self._set_status(case_id, CaseStatus.ACCEPTED)

    async def reject(self, case_id: str) -> Case:
        """Mark a case rejected. The current status is not checked."""
        return await self._set_status(case_id, CaseStatus.REJECTED)

    async def delete(self, case_id: str) -> str:
        """
        Remove a case, whatever its status.

        Returns:
            The deleted case id

        Raises:
            NotFoundError: No such case
        """
        if not validate_case_id(case_id):
            raise NotFoundError(case_id)

        deleted = await self._run(
            self.collection.find_one_and_delete(case_id), "Error deleting case"
        )
        if deleted is None:
            raise NotFoundError(case_id)

        logger.info(f"Deleted case {case_id} (device {deleted.get('deviceId')})")
        return case_id

    # =========================================================================
    # BUZZER
    # =========================================================================

    async def buzzer_status(self) -> BuzzerStatus:
        """
        Is anything waiting for a dispatcher?

        Recomputed from the pending set on every call.
        """
        pending = await self._find({"status": CaseStatus.NONE.value}, "Error checking buzzer status")
        return BuzzerStatus(
            active=len(pending) > 0,
            count=len(pending),
            summaries=[
                {"id": c.id, "deviceId": c.device_id, "timestamp": c.timestamp}
                for c in pending
            ],
        )

    async def stats(self) -> dict:
        """Case counts for the health endpoint."""
        total = await self._run(self.collection.count(), "Error counting cases")
        pending = await self._run(
            self.collection.count({"status": CaseStatus.NONE.value}), "Error counting cases"
        )
        return {"cases": total, "pendingCases": pending}

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _set_status(self, case_id: str, status: CaseStatus) -> Case:
        if not validate_case_id(case_id):
            raise NotFoundError(case_id)

        document = await self._run(
            self.collection.find_one_and_update(case_id, {"status": status.value}),
            f"Error {'accepting' if status == CaseStatus.ACCEPTED else 'rejecting'} case",
        )
        if document is None:
            raise NotFoundError(case_id)

        logger.info(f"Case {case_id} marked {status.value}")
        return await self._run(self._to_case(document), "Error reading case")

    async def _find(self, query: Optional[dict], what: str) -> list[Case]:
        return await self._run(self._find_cases(query), what)

    async def _find_cases(self, query: Optional[dict]) -> list[Case]:
        documents = await self.collection.find(query, sort_desc_by="timestamp")
        return [Case.from_document(doc) for doc in documents]

    async def _to_case(self, document: dict) -> Case:
        return Case.from_document(document)

    async def _run(self, operation, what: str):
        """Await a store call, turning unexpected failures into StoreError."""
        try:
            return await operation
        except StoreError as e:
            logger.error(f"{what}: {e.message}")
            raise StoreError(f"{what}: {e.message}") from e
        except Exception as e:
            logger.error(f"{what}: {e}", exc_info=True)
            raise StoreError(f"{what}: {e}") from e
