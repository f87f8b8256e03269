"""Audit events for ad-hoc query execution.

The core emits structured execution-detail events; persisting them anywhere
beyond stdout or a local JSON-lines file is the caller's responsibility.
"""

import asyncio
import hashlib
import json
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, cast

import structlog

logger = structlog.get_logger(__name__)

# SQL stored in audit events is truncated for log size management
AUDIT_SQL_MAX_LENGTH = 500


class AuditEventType(str, Enum):
    """What happened to a submitted query."""

    QUERY_EXECUTED = "query_executed"
    QUERY_DENIED = "query_denied"
    QUERY_FAILED = "query_failed"


class AuditStorage(str, Enum):
    """Where audit events go."""

    STDOUT = "stdout"
    FILE = "file"


def hash_sql(sql: str) -> str:
    """Stable fingerprint of the full submitted SQL."""
    return "sha256:" + hashlib.sha256(sql.encode("utf-8")).hexdigest()


@dataclass
class AuditEvent:
    """One execution attempt through the ad-hoc query path.

    Attributes:
        timestamp: ISO-8601 UTC timestamp
        event_type: What happened
        data_source: Identifier of the data source the query targeted
        dialect: Resolved dialect value
        sql: Submitted SQL, truncated to AUDIT_SQL_MAX_LENGTH characters
        sql_hash: SHA256 of the full submitted SQL
        row_count: Rows returned (successful executions only)
        execution_time_ms: Wall-clock execution time
        truncated: Whether the page was full
        error_code: Error code for denied/failed queries
        error_message: Error message for denied/failed queries
    """

    timestamp: str
    event_type: AuditEventType
    data_source: str | None
    dialect: str
    sql: str
    sql_hash: str
    row_count: int | None = None
    execution_time_ms: float = 0.0
    truncated: bool = False
    error_code: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            key: value.value if isinstance(value, Enum) else value
            for key, value in asdict(self).items()
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


class AuditLogger:
    """Audit event recorder.

    Example:
        >>> audit = AuditLogger(storage=AuditStorage.FILE, file_path="audit.jsonl")
        >>> await audit.log(
        ...     AuditLogger.create_event(AuditEventType.QUERY_DENIED, "DROP TABLE t", "postgres")
        ... )
    """

    def __init__(
        self,
        storage: AuditStorage = AuditStorage.STDOUT,
        file_path: str | None = None,
    ):
        """Create an audit logger.

        Args:
            storage: Storage backend
            file_path: JSON-lines file (required for FILE storage)

        Raises:
            ValueError: FILE storage without a file path
        """
        if storage == AuditStorage.FILE and not file_path:
            raise ValueError("file_path is required for file audit storage")
        self.storage = storage
        self.file_path = Path(file_path) if file_path else None
        self._file_lock = asyncio.Lock()

        sinks: dict[AuditStorage, Callable[[AuditEvent], Awaitable[None]]] = {
            AuditStorage.STDOUT: self._emit,
            AuditStorage.FILE: self._append,
        }
        self._sink = sinks[storage]

    async def log(self, event: AuditEvent) -> None:
        """Record an audit event."""
        await self._sink(event)

    async def _emit(self, event: AuditEvent) -> None:
        logger.info("audit_event", **event.to_dict())

    async def _append(self, event: AuditEvent) -> None:
        path = cast(Path, self.file_path)
        line = event.to_json() + "\n"

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line)

        # Concurrent events must not interleave within a line
        async with self._file_lock:
            await asyncio.to_thread(write)

    @staticmethod
    def create_event(
        event_type: AuditEventType,
        sql: str,
        dialect: str,
        data_source: str | None = None,
        row_count: int | None = None,
        execution_time_ms: float = 0.0,
        truncated: bool = False,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> AuditEvent:
        """Build an event for ``sql``, truncating and hashing it."""
        return AuditEvent(
            timestamp=datetime.now(UTC).isoformat(),
            event_type=event_type,
            data_source=data_source,
            dialect=dialect,
            sql=sql[:AUDIT_SQL_MAX_LENGTH],
            sql_hash=hash_sql(sql),
            row_count=row_count,
            execution_time_ms=round(execution_time_ms, 2),
            truncated=truncated,
            error_code=error_code,
            error_message=error_message,
        )
