"""
Document Store
==============

A tiny single-collection document store for case records.

WHAT IT DOES:
------------
- Keeps every document (a flat dict with an "id") in memory
- Keeps a secondary index on "deviceId" so device lookups don't scan everything
- Optionally persists the whole collection to a JSON file after each write

ATOMICITY:
---------
Each call touches the collection under one asyncio.Lock, so a single
insert/update/delete is atomic. There are NO multi-document transactions:
two calls in a row (like "delete pending, then insert") can interleave with
other requests.

FILE FORMAT:
-----------
{"<id>": {...document...}, ...}  with datetimes stored as ISO strings.
Writes go to a temp file first and are renamed over the real file.
"""

import asyncio
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from app.models import Case
from app.services.errors import StoreError

logger = logging.getLogger(__name__)


INDEXED_FIELD = "deviceId"
DATETIME_FIELDS = ("timestamp",)


def matches(document: dict, query: Optional[dict]) -> bool:
    """
    Check a document against a query.

    Supports plain equality ({"status": "none"}) and membership
    ({"status": {"$in": ["accepted", "rejected"]}}).
    """
    if not query:
        return True

    for field, expected in query.items():
        value = document.get(field)
        if isinstance(expected, dict) and "$in" in expected:
            if value not in expected["$in"]:
                return False
        elif value != expected:
            return False
    return True


class DocumentCollection:
    """
    One collection of documents keyed by "id".

    Pass path=None for a purely in-memory collection.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._documents: dict[str, dict] = {}
        self._by_device: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def open(self):
        """Load documents from the JSON file (if there is one)."""
        async with self._lock:
            self._documents.clear()
            self._by_device.clear()
            if self.path is None:
                logger.info("Using in-memory case collection")
                return
            self._load_from_file()

    async def close(self):
        """Flush to disk one last time and drop the in-memory copy."""
        async with self._lock:
            if self.path is not None:
                self._save_to_file()
            self._documents.clear()
            self._by_device.clear()

    def _load_from_file(self):
        if not self.path.exists():
            logger.info(f"No existing case database found at {self.path}")
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing case database JSON: {e}")
            backup_path = self.path.with_suffix('.json.backup')
            try:
                shutil.copy2(self.path, backup_path)
                logger.warning(f"Corrupted database backed up to {backup_path}")
            except OSError as backup_err:
                logger.error(f"Failed to backup corrupted database: {backup_err}")
            return
        except OSError as e:
            raise StoreError(f"Error loading case database: {e}") from e

        for doc_id, document in data.items():
            try:
                for field in DATETIME_FIELDS:
                    if document.get(field):
                        document[field] = datetime.fromisoformat(document[field])
                # Rejects unknown statuses and missing timestamps
                Case.from_document(document)
                self._index(document)
                self._documents[doc_id] = document
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Error loading case {doc_id}: {e}, skipping")

        logger.info(f"Loaded {len(self._documents)} cases from database")

    def _save_to_file(self):
        """Write the whole collection (atomic rename)."""
        data = {}
        for doc_id, document in self._documents.items():
            doc_copy = document.copy()
            for field in DATETIME_FIELDS:
                if isinstance(doc_copy.get(field), datetime):
                    doc_copy[field] = doc_copy[field].isoformat()
            data[doc_id] = doc_copy

        temp_file = self.path.with_suffix('.json.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            temp_file.replace(self.path)
        except OSError as e:
            logger.error(f"Error saving case database: {e}")
            raise StoreError(f"Error saving case database: {e}") from e

        logger.debug(f"Saved {len(data)} cases to database")

    def _persist(self):
        if self.path is not None:
            self._save_to_file()

    # =========================================================================
    # INDEX
    # =========================================================================

    def _index(self, document: dict):
        key = document.get(INDEXED_FIELD)
        if key is not None:
            self._by_device.setdefault(key, set()).add(document["id"])

    def _unindex(self, document: dict):
        key = document.get(INDEXED_FIELD)
        ids = self._by_device.get(key)
        if ids is None:
            return
        ids.discard(document["id"])
        if not ids:
            del self._by_device[key]

    def _candidates(self, query: Optional[dict]) -> list[dict]:
        """Documents worth checking for a query, in insertion order."""
        if query and isinstance(query.get(INDEXED_FIELD), str):
            ids = self._by_device.get(query[INDEXED_FIELD], set())
            return [doc for doc_id, doc in self._documents.items() if doc_id in ids]
        return list(self._documents.values())

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def insert_one(self, document: dict) -> dict:
        async with self._lock:
            if document["id"] in self._documents:
                raise StoreError(f"Duplicate id: {document['id']}")
            stored = dict(document)
            self._documents[stored["id"]] = stored
            self._index(stored)
            try:
                self._persist()
            except StoreError:
                self._unindex(stored)
                del self._documents[stored["id"]]
                raise
            return dict(stored)

    async def find(
        self,
        query: Optional[dict] = None,
        sort_desc_by: Optional[str] = None,
    ) -> list[dict]:
        """
        Return copies of all matching documents.

        With sort_desc_by, results are newest/largest first; ties keep
        insertion order.
        """
        async with self._lock:
            found = [dict(doc) for doc in self._candidates(query) if matches(doc, query)]
        if sort_desc_by:
            found.sort(key=lambda doc: doc[sort_desc_by], reverse=True)
        return found

    async def count(self, query: Optional[dict] = None) -> int:
        async with self._lock:
            return sum(1 for doc in self._candidates(query) if matches(doc, query))

    async def find_one_and_update(self, doc_id: str, fields: dict[str, Any]) -> Optional[dict]:
        """Set fields on one document. Returns the updated copy, or None."""
        async with self._lock:
            document = self._documents.get(doc_id)
            if document is None:
                return None
            previous = dict(document)
            document.update(fields)
            try:
                self._persist()
            except StoreError:
                document.clear()
                document.update(previous)
                raise
            return dict(document)

    async def find_one_and_delete(self, doc_id: str) -> Optional[dict]:
        """Remove one document. Returns what was removed, or None."""
        async with self._lock:
            document = self._documents.pop(doc_id, None)
            if document is None:
                return None
            self._unindex(document)
            try:
                self._persist()
            except StoreError:
                self._documents[doc_id] = document
                self._index(document)
                raise
            return document

    async def delete_many(self, query: dict) -> int:
        """Remove every matching document. Returns how many went."""
        async with self._lock:
            doomed = [doc for doc in self._candidates(query) if matches(doc, query)]
            if not doomed:
                return 0
            for document in doomed:
                del self._documents[document["id"]]
                self._unindex(document)
            try:
                self._persist()
            except StoreError:
                for document in doomed:
                    self._documents[document["id"]] = document
                    self._index(document)
                raise
            return len(doomed)
