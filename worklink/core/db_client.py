"""SQLite document store client with versioned CRUD operations.

Each collection is a table of JSON documents. Every write bumps a ``version``
counter, and ``update_record`` accepts an ``expected_version`` so callers can
perform compare-and-set writes against the snapshot they read.
"""

import asyncio
import json
import logging
import re
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from worklink.core.config import settings


logger = logging.getLogger(__name__)

COLLECTIONS = ("tasks", "users", "notifications")

# Keys owned by the store rather than the document
_META_KEYS = frozenset({"id", "version", "created", "updated"})


class DatabaseError(RuntimeError):
    """A store operation failed."""


class RecordNotFoundError(KeyError):
    """The requested record does not exist."""


class ConcurrentUpdateError(DatabaseError):
    """The record changed since the caller read it."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _validate_field_name(field: str) -> None:
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", field):
        msg = f"Invalid field name: {field}"
        raise ValueError(msg)


def _now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _to_sql_value(value: Any) -> Any:
    """Convert a Python value to what json_extract returns for it."""
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_record(row: aiosqlite.Row | tuple[Any, ...]) -> dict[str, Any]:
    record_id, data, version, created, updated = row
    document = json.loads(data)
    return {**document, "id": record_id, "version": version, "created": created, "updated": updated}


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


# One connection per (thread, event loop, file); aiosqlite connections cannot cross loops
_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_connections_lock = asyncio.Lock()


def _connection_key(path: Path) -> tuple[int, int, str]:
    return threading.get_ident(), id(asyncio.get_running_loop()), str(path)


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Return the store connection for the running loop, opening it on first use."""
    path = get_db_path(db_path)
    key = _connection_key(path)
    conn = _connections.get(key)
    if conn is not None:
        return conn

    async with _connections_lock:
        conn = _connections.get(key)
        if conn is None:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(str(path))
            await conn.execute("PRAGMA journal_mode = WAL")
            _connections[key] = conn
            logger.info("Opened document store", extra={"db_path": str(path)})
    return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the running loop's store connection, if one is open."""
    path = get_db_path(db_path)
    async with _connections_lock:
        conn = _connections.pop(_connection_key(path), None)
        if conn is not None:
            await conn.close()
            logger.info("Closed document store", extra={"db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Create the document tables if they do not exist."""
    conn = await get_connection(db_path=db_path)
    for collection in COLLECTIONS:
        await conn.execute(
            f"CREATE TABLE IF NOT EXISTS {collection} ("  # noqa: S608 - fixed collection names
            "id TEXT PRIMARY KEY, "
            "data TEXT NOT NULL, "
            "version INTEGER NOT NULL DEFAULT 1, "
            "created TEXT NOT NULL, "
            "updated TEXT NOT NULL)"
        )
    await conn.commit()
    logger.info("Initialized document store", extra={"collections": list(COLLECTIONS)})


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new document and return it with its id and version.

    A caller-supplied ``id`` is kept; otherwise a random one is generated.
    """
    _validate_collection_name(collection)
    record_id = str(data.get("id") or uuid.uuid4().hex)
    document = {key: value for key, value in data.items() if key not in _META_KEYS}
    now = _now()

    try:
        conn = await get_connection()
        await conn.execute(
            f"INSERT INTO {collection} (id, data, version, created, updated) VALUES (?, ?, 1, ?, ?)",  # noqa: S608 - collection is validated
            (record_id, json.dumps(document), now, now),
        )
        await conn.commit()
    except aiosqlite.IntegrityError as e:
        msg = f"Record {record_id} already exists in {collection}"
        raise DatabaseError(msg) from e
    except aiosqlite.Error as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return {**document, "id": record_id, "version": 1, "created": now, "updated": now}


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()
        cursor = await conn.execute(
            f"SELECT id, data, version, created, updated FROM {collection} WHERE id = ?",  # noqa: S608 - collection is validated
            (record_id,),
        )
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    return _row_to_record(row)


async def update_record(
    *,
    collection: str,
    record_id: str,
    data: dict[str, Any],
    expected_version: int | None = None,
) -> dict[str, Any]:
    """Merge ``data`` into a record and return the updated record.

    When ``expected_version`` is given the write only succeeds if the stored
    version still matches, otherwise ConcurrentUpdateError is raised.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    current = await get_record(collection=collection, record_id=record_id)
    if expected_version is not None and current["version"] != expected_version:
        msg = f"Record {record_id} in {collection} is at version {current['version']}, expected {expected_version}"
        raise ConcurrentUpdateError(msg)

    document = {key: value for key, value in current.items() if key not in _META_KEYS}
    document.update({key: value for key, value in data.items() if key not in _META_KEYS})
    now = _now()

    try:
        conn = await get_connection()
        cursor = await conn.execute(
            f"UPDATE {collection} SET data = ?, version = version + 1, updated = ? WHERE id = ? AND version = ?",  # noqa: S608 - collection is validated
            (json.dumps(document), now, record_id, current["version"]),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e

    if cursor.rowcount == 0:
        msg = f"Record {record_id} in {collection} changed during update"
        raise ConcurrentUpdateError(msg)

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id, "fields": sorted(data)})
    return {**document, "id": record_id, "version": current["version"] + 1, "created": current["created"], "updated": now}


async def list_records(
    *,
    collection: str,
    where: dict[str, Any] | None = None,
    sort: str = "",
    page: int = 1,
    per_page: int = 50,
) -> list[dict[str, Any]]:
    """List records matching every ``where`` equality, with sorting and pagination.

    ``sort`` is ``"<field> [ASC|DESC]"``; document fields and store columns are both accepted.
    """
    _validate_collection_name(collection)

    conditions: list[str] = []
    params: list[Any] = []
    for field, value in (where or {}).items():
        _validate_field_name(field)
        if field in _META_KEYS:
            conditions.append(f"{field} = ?")
        else:
            conditions.append(f"json_extract(data, '$.{field}') = ?")
        params.append(_to_sql_value(value))
    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    order_clause = "created ASC"
    if sort:
        sort_match = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*(ASC|DESC)?$", sort.strip(), re.IGNORECASE)
        if sort_match:
            field, direction = sort_match.group(1), (sort_match.group(2) or "ASC").upper()
            column = field if field in _META_KEYS else f"json_extract(data, '$.{field}')"
            order_clause = f"{column} {direction}"
        else:
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})

    query = (
        f"SELECT id, data, version, created, updated FROM {collection} "  # noqa: S608 - collection and fields are validated
        f"{where_clause} ORDER BY {order_clause} LIMIT ? OFFSET ?"
    )
    params.extend([per_page, (page - 1) * per_page])

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
    except aiosqlite.Error as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e

    records = [_row_to_record(row) for row in rows]
    logger.info("Listed records", extra={"collection": collection, "count": len(records)})
    return records
