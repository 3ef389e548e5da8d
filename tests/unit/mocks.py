"""Pure Python in-memory document store for unit testing."""

import copy
import uuid
from datetime import UTC, datetime
from typing import Any

from worklink.core.db_client import ConcurrentUpdateError, DatabaseError, RecordNotFoundError


_META_KEYS = {"id", "version", "created", "updated"}


class InMemoryDBClient:
    """In-memory stand-in for worklink.core.db_client.

    Mirrors the module's keyword-only async interface, versioning and
    compare-and-set semantics. ``fail_updates`` makes the next N updates raise
    DatabaseError, to exercise rollback paths.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._sequence = 0
        self.fail_updates = 0
        self.update_calls = 0

    def _now(self) -> str:
        # Monotonic suffix keeps "created" ordering stable within one microsecond
        self._sequence += 1
        return f"{datetime.now(UTC).isoformat()}#{self._sequence:08d}"

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise DatabaseError(f"Data must be a dictionary, got {type(data)}")

        records = self._collections.setdefault(collection, {})
        record_id = str(data.get("id") or uuid.uuid4().hex)
        if record_id in records:
            raise DatabaseError(f"Record {record_id} already exists in {collection}")

        now = self._now()
        document = {k: v for k, v in copy.deepcopy(data).items() if k not in _META_KEYS}
        records[record_id] = {**document, "id": record_id, "version": 1, "created": now, "updated": now}
        return copy.deepcopy(records[record_id])

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_record(
        self,
        *,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        self.update_calls += 1
        if not data:
            raise ValueError("Empty update payload")
        if self.fail_updates > 0:
            self.fail_updates -= 1
            raise DatabaseError(f"Failed to update record in {collection}: connection lost")

        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        if expected_version is not None and record["version"] != expected_version:
            raise ConcurrentUpdateError(
                f"Record {record_id} in {collection} is at version {record['version']}, expected {expected_version}"
            )

        record.update({k: v for k, v in copy.deepcopy(data).items() if k not in _META_KEYS})
        record["version"] += 1
        record["updated"] = self._now()
        return copy.deepcopy(record)

    async def list_records(
        self,
        *,
        collection: str,
        where: dict[str, Any] | None = None,
        sort: str = "",
        page: int = 1,
        per_page: int = 50,
    ) -> list[dict[str, Any]]:
        records = [
            copy.deepcopy(r)
            for r in self._collections.get(collection, {}).values()
            if all(r.get(field) == value for field, value in (where or {}).items())
        ]

        field, _, direction = (sort or "created ASC").partition(" ")
        records.sort(key=lambda r: r[field], reverse=direction.strip().upper() == "DESC")

        start = (page - 1) * per_page
        return records[start : start + per_page]
