"""SQLite-backed document store with collection CRUD and batch writes.

Each collection is a table of ``(id, data)`` rows where ``data`` is a JSON
document. Queries use a small filter language:

    care_task_id = "abc" && status != "CANCELLED"
    (status = "TODO" || status = "DONE") && scheduled_date <= "2024-01-15"
    covered_by_execution_id = null

Sorting accepts ``"-field"`` (descending) or ``"field"`` / ``"+field"``
(ascending), comma separated.
"""

import asyncio
import json
import logging
import re
import sqlite3
import uuid
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

import aiosqlite


logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_COMPARISON = re.compile(
    r"""^\s*(?P<field>[a-zA-Z_][a-zA-Z0-9_]*(?:\.[a-zA-Z_][a-zA-Z0-9_]*)*)\s*
    (?P<op>!=|>=|<=|=|>|<|~)\s*
    (?P<value>"(?:[^"\\]|\\.)*"|true|false|null|-?\d+(?:\.\d+)?)\s*$""",
    re.VERBOSE,
)

_SQL_OPERATORS = {
    "=": "=",
    "!=": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
    "~": "LIKE",
}


class DatabaseError(RuntimeError):
    """Store operation failed."""


class RecordNotFoundError(DatabaseError):
    """No document with the requested id exists in the collection."""


class DuplicateRecordError(DatabaseError):
    """A unique index rejected the write."""


def _validate_identifier(name: str, *, kind: str = "collection") -> None:
    """Validate that a collection or field name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER.match(name):
        msg = f"Invalid {kind} name: {name}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding inside a double-quoted filter literal."""
    return json.dumps(str(value))[1:-1]


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_document(data: dict[str, Any]) -> str:
    """Serialize a document; dates become ISO strings so they compare lexically."""
    return json.dumps(data, default=_json_default)


def _field_expression(field: str) -> str:
    """JSON path for a field; dotted names reach into nested objects."""
    for segment in field.split("."):
        _validate_identifier(segment, kind="field")
    if field == "id":
        return "id"
    return f"json_extract(data, '$.{field}')"


def _parse_literal(raw: str) -> str | int | float | bool | None:
    """Parse a filter literal: quoted string, number, true/false or null."""
    if raw.startswith('"'):
        return json.loads(raw)
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None
    if "." in raw:
        return float(raw)
    return int(raw)


def _parse_single_comparison(comparison: str) -> tuple[str, list[Any]]:
    """Parse a single comparison expression into a SQL condition and parameters."""
    match = _COMPARISON.match(comparison)
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    expression = _field_expression(match.group("field"))
    op = match.group("op")
    value = _parse_literal(match.group("value"))

    if value is None:
        if op == "=":
            return f"{expression} IS NULL", []
        if op == "!=":
            return f"{expression} IS NOT NULL", []
        msg = f"Operator {op} cannot be used with null: {comparison}"
        raise ValueError(msg)

    sql_op = _SQL_OPERATORS[op]
    if sql_op == "LIKE":
        escaped = str(value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"{expression} LIKE ? ESCAPE '\\'", [f"%{escaped}%"]
    if op == "!=":
        # Missing fields count as "not equal"
        return f"({expression} IS NULL OR {expression} != ?)", [value]
    return f"{expression} {sql_op} ?", [value]


def _split_top_level(expression: str, separator: str) -> list[str]:
    """Split on a separator outside quotes and parentheses."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    in_quote = False
    index = 0

    while index < len(expression):
        char = expression[index]
        if in_quote:
            current.append(char)
            if char == "\\" and index + 1 < len(expression):
                current.append(expression[index + 1])
                index += 2
                continue
            if char == '"':
                in_quote = False
        elif char == '"':
            in_quote = True
            current.append(char)
        elif char == "(":
            depth += 1
            current.append(char)
        elif char == ")":
            depth -= 1
            current.append(char)
        elif depth == 0 and expression.startswith(separator, index):
            parts.append("".join(current).strip())
            current = []
            index += len(separator)
            continue
        else:
            current.append(char)
        index += 1

    if in_quote or depth != 0:
        msg = f"Invalid filter syntax: {expression}"
        raise ValueError(msg)

    parts.append("".join(current).strip())
    return parts


def _parse_or_group(or_group: str) -> tuple[str, list[Any]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]
    conditions = []
    params: list[Any] = []

    for part in _split_top_level(inner, "||"):
        cond, cond_params = _parse_single_comparison(part)
        conditions.append(cond)
        params.extend(cond_params)

    return f"({' OR '.join(conditions)})", params


def parse_filter(filter_query: str) -> tuple[str, list[Any]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query.strip():
        return "", []

    conditions = []
    params: list[Any] = []

    for part in _split_top_level(filter_query, "&&"):
        if not part:
            msg = f"Invalid filter syntax: {filter_query}"
            raise ValueError(msg)

        # Handle parenthesized OR groups
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
        else:
            cond, cond_params = _parse_single_comparison(part)
        conditions.append(cond)
        params.extend(cond_params)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate ``-a,b`` style sort strings into an ORDER BY clause."""
    clauses = []
    for raw_key in (key.strip() for key in sort.split(",")):
        if not raw_key:
            continue
        direction = "DESC" if raw_key.startswith("-") else "ASC"
        field = raw_key.lstrip("+-")
        clauses.append(f"{_field_expression(field)} {direction}")
    # Stable tiebreak so pagination is deterministic
    clauses.append("rowid ASC")
    return ", ".join(clauses)


def _row_to_record(row: sqlite3.Row | tuple[Any, ...]) -> dict[str, Any]:
    record_id, payload = row[0], row[1]
    return {"id": record_id, **json.loads(payload)}


class DocumentStore:
    """Async document store over a single aiosqlite connection.

    Every operation goes through one lock so that a multi-document batch
    transaction is never interleaved with, or observed half-applied by,
    another operation on the shared connection.
    """

    def __init__(self, database_path: str) -> None:
        self.database_path = database_path
        self._conn: aiosqlite.Connection | None = None
        self._lock: asyncio.Lock | None = None

    async def connect(self) -> None:
        """Open the connection; safe to call more than once."""
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self.database_path, isolation_level=None)
        if self.database_path != ":memory:":
            await self._conn.execute("PRAGMA journal_mode = WAL")
        self._lock = asyncio.Lock()
        logger.info("Opened document store", extra={"database_path": self.database_path})

    async def close(self) -> None:
        """Close the connection if open."""
        if self._conn is None:
            return
        try:
            await self._conn.close()
            logger.info("Closed document store", extra={"database_path": self.database_path})
        finally:
            self._conn = None
            self._lock = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Document store is not connected. Call connect() first."
            raise DatabaseError(msg)
        return self._conn

    @property
    def lock(self) -> asyncio.Lock:
        if self._lock is None:
            msg = "Document store is not connected. Call connect() first."
            raise DatabaseError(msg)
        return self._lock

    async def ensure_collection(self, collection: str) -> None:
        """Create the backing table for a collection if it does not exist."""
        _validate_identifier(collection)
        await self.connection.execute(
            f"CREATE TABLE IF NOT EXISTS {collection} ("  # noqa: S608 - collection is validated
            "id TEXT PRIMARY KEY, "
            "data TEXT NOT NULL CHECK (json_valid(data)))"
        )

    async def ensure_index(self, *, collection: str, name: str, fields: list[str], unique: bool = False) -> None:
        """Create an index over document fields if it does not exist."""
        _validate_identifier(collection)
        _validate_identifier(name, kind="index")
        expressions = ", ".join(_field_expression(field) for field in fields)
        kind = "UNIQUE INDEX" if unique else "INDEX"
        await self.connection.execute(f"CREATE {kind} IF NOT EXISTS {name} ON {collection} ({expressions})")

    async def _fetch_payload(self, collection: str, record_id: str) -> dict[str, Any] | None:
        cursor = await self.connection.execute(
            f"SELECT id, data FROM {collection} WHERE id = ?",  # noqa: S608 - collection is validated
            (record_id,),
        )
        row = await cursor.fetchone()
        await cursor.close()
        return _row_to_record(row) if row is not None else None

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new document and return it with its assigned id."""
        _validate_identifier(collection)
        record_id = uuid.uuid4().hex
        payload = {key: value for key, value in data.items() if key != "id"}

        try:
            async with self.lock:
                await self.connection.execute(
                    f"INSERT INTO {collection} (id, data) VALUES (?, ?)",  # noqa: S608 - collection is validated
                    (record_id, encode_document(payload)),
                )
        except sqlite3.IntegrityError as e:
            logger.warning("create_record_duplicate", extra={"collection": collection, "error": str(e)})
            msg = f"Duplicate record in {collection}: {e}"
            raise DuplicateRecordError(msg) from e
        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

        logger.debug("Created record", extra={"collection": collection, "record_id": record_id})
        return {"id": record_id, **json.loads(encode_document(payload))}

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single document by id, raising RecordNotFoundError if absent."""
        _validate_identifier(collection)
        try:
            async with self.lock:
                record = await self._fetch_payload(collection, record_id)
        except DatabaseError:
            raise
        except Exception as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if record is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)
        return record

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Merge fields into a document and return the updated document."""
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)
        _validate_identifier(collection)

        try:
            async with self.lock:
                updated = await self._merge(collection, record_id, data)
        except DatabaseError:
            raise
        except Exception as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

        logger.debug("Updated record", extra={"collection": collection, "record_id": record_id})
        return updated

    async def _merge(self, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Read-merge-write one document; caller holds the lock."""
        current = await self._fetch_payload(collection, record_id)
        if current is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        current.pop("id")
        current.update({key: value for key, value in data.items() if key != "id"})
        encoded = encode_document(current)
        try:
            await self.connection.execute(
                f"UPDATE {collection} SET data = ? WHERE id = ?",  # noqa: S608 - collection is validated
                (encoded, record_id),
            )
        except sqlite3.IntegrityError as e:
            msg = f"Duplicate record in {collection}: {e}"
            raise DuplicateRecordError(msg) from e
        return {"id": record_id, **json.loads(encoded)}

    async def batch_update(self, *, collection: str, updates: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
        """Apply several document updates in one all-or-nothing transaction.

        Raises:
            RecordNotFoundError: If any id is missing; nothing is written.
        """
        _validate_identifier(collection)
        if not updates:
            return []

        async with self.lock:
            conn = self.connection
            await conn.execute("BEGIN IMMEDIATE")
            try:
                results = [await self._merge(collection, record_id, data) for record_id, data in updates.items()]
            except BaseException as e:
                await conn.execute("ROLLBACK")
                logger.warning(
                    "batch_update_rolled_back",
                    extra={"collection": collection, "size": len(updates), "error": str(e)},
                )
                if isinstance(e, DatabaseError | asyncio.CancelledError | KeyboardInterrupt):
                    raise
                msg = f"Failed to batch update {collection}: {e}"
                raise DatabaseError(msg) from e
            await conn.execute("COMMIT")

        logger.info("Batch updated records", extra={"collection": collection, "count": len(results)})
        return results

    async def list_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List documents with optional filtering, sorting and pagination."""
        _validate_identifier(collection)
        try:
            where_clause, params = parse_filter(filter_query)
            where_sql = f"WHERE {where_clause}" if where_clause else ""
            order_sql = parse_sort(sort)

            query = (
                f"SELECT id, data FROM {collection} {where_sql} "  # noqa: S608 - collection and fields are validated
                f"ORDER BY {order_sql} LIMIT ? OFFSET ?"
            )
            params.extend([-1 if limit is None else limit, offset])

            async with self.lock:
                cursor = await self.connection.execute(query, params)
                rows = await cursor.fetchall()
                await cursor.close()
        except DatabaseError:
            raise
        except Exception as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e

        records = [_row_to_record(row) for row in rows]
        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records

    async def get_first_record(self, *, collection: str, filter_query: str, sort: str = "") -> dict[str, Any] | None:
        """Return the first document matching the filter, or None."""
        records = await self.list_records(collection=collection, filter_query=filter_query, sort=sort, limit=1)
        return records[0] if records else None

    async def count_records(self, *, collection: str, filter_query: str = "") -> int:
        """Count documents matching the filter."""
        _validate_identifier(collection)
        try:
            where_clause, params = parse_filter(filter_query)
            where_sql = f"WHERE {where_clause}" if where_clause else ""
            async with self.lock:
                cursor = await self.connection.execute(
                    f"SELECT COUNT(*) FROM {collection} {where_sql}",  # noqa: S608 - collection is validated
                    params,
                )
                row = await cursor.fetchone()
                await cursor.close()
        except DatabaseError:
            raise
        except Exception as e:
            logger.error("count_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to count records in {collection}: {e}"
            raise DatabaseError(msg) from e
        return int(row[0]) if row else 0
