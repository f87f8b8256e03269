"""Introspection strategy interface and the shared runner.

A strategy knows one engine's catalog: how to list tables and views and how
to describe one of them. The runner owned by the base class does everything
else the same way for every engine: the diagnostic log trail, the bounded
worker pool, the overall time budget, per-relation failure isolation, and
deterministic (schema, name) ordering of the output.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, ClassVar, TypeVar

import structlog

from sqlscope.dialects import Dialect
from sqlscope.infrastructure.connection import (
    Connection,
    RawResult,
    coerce_raw_result,
    to_row_dicts,
)
from sqlscope.models.errors import SchemaIntrospectionError
from sqlscope.models.schema import (
    ColumnSchema,
    IntrospectionResult,
    SchemaInfo,
    TableInfo,
    ViewInfo,
)
from sqlscope.utils.rows import as_text, get_row_value

logger = structlog.get_logger(__name__)

T = TypeVar("T", TableInfo, ViewInfo)


class IntrospectionLog:
    """Timestamped diagnostic trail returned to callers.

    Every line is also mirrored to structlog.
    """

    def __init__(self, dialect: Dialect):
        self.lines: list[str] = []
        self._logger = logger.bind(dialect=dialect.value)

    def add(self, message: str, **context: Any) -> None:
        self.lines.append(f"[{datetime.now(UTC).isoformat()}] {message}")
        self._logger.info(message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.lines.append(f"[{datetime.now(UTC).isoformat()}] {message}")
        self._logger.warning(message, **context)


@dataclass(frozen=True)
class RelationRef:
    """A table or view found by a listing query."""

    name: str
    schema: str | None = None
    definition: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.schema or "", self.name)


def column_from_information_schema(row: dict[str, Any]) -> ColumnSchema:
    """Build a column from an ``information_schema.columns`` row.

    Character types carry their maximum length, e.g. ``character varying(255)``.
    """
    data_type = as_text(get_row_value(row, "data_type")) or ""
    max_length = get_row_value(row, "character_maximum_length")
    # -1 is SQL Server's (max)
    if max_length:
        data_type = f"{data_type}({'max' if max_length == -1 else max_length})"
    return ColumnSchema(
        name=as_text(get_row_value(row, "column_name")) or "",
        type=data_type,
        nullable=get_row_value(row, "is_nullable") == "YES",
        default_value=as_text(get_row_value(row, "column_default")),
    )


def _unique_refs(refs: list[RelationRef]) -> list[RelationRef]:
    seen: dict[tuple[str, str], RelationRef] = {}
    for ref in refs:
        seen.setdefault(ref.sort_key, ref)
    return list(seen.values())


def _unique_sorted(items: list[T]) -> list[T]:
    seen: dict[tuple[str, str], T] = {}
    for item in items:
        seen.setdefault(item.sort_key, item)
    return [seen[key] for key in sorted(seen)]


class IntrospectionStrategy(ABC):
    """Catalog access for one engine."""

    dialect: ClassVar[Dialect] = Dialect.GENERIC

    def __init__(self, connection: Connection, log: IntrospectionLog):
        self.connection = connection
        self.log = log

    async def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a catalog query and return its rows as dictionaries."""
        raw = await self.connection.execute(sql, params)
        return to_row_dicts(coerce_raw_result(raw))

    async def query_raw(self, sql: str, params: Sequence[Any] | None = None) -> RawResult:
        """Run a catalog query and return the coerced RawResult."""
        return coerce_raw_result(await self.connection.execute(sql, params))

    async def probe(self) -> bool:
        """Check the connection can answer queries at all."""
        return True

    @abstractmethod
    async def list_tables(self) -> list[RelationRef]:
        ...

    @abstractmethod
    async def list_views(self) -> list[RelationRef]:
        ...

    @abstractmethod
    async def describe_table(self, ref: RelationRef) -> TableInfo:
        ...

    @abstractmethod
    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        ...

    async def introspect(
        self,
        budget_seconds: float = 60.0,
        concurrency: int = 4,
    ) -> IntrospectionResult:
        """Build the normalized schema.

        Args:
            budget_seconds: Overall time budget for the whole call
            concurrency: Number of relations described at the same time

        Returns:
            Schema, log trail and warnings. ``complete`` is False when the
            budget ran out and the schema is partial.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + budget_seconds
        warnings: list[str] = []

        self.log.add(f"Starting {self.dialect.value} schema introspection")

        if not await self.probe():
            return IntrospectionResult(logs=self.log.lines, warnings=warnings)

        table_refs = await self._list("tables", self.list_tables, deadline)
        view_refs = await self._list("views", self.list_views, deadline)

        if table_refs is None or view_refs is None:
            warnings.append(
                f"Introspection budget of {budget_seconds:g}s exhausted while listing relations"
            )
            return IntrospectionResult(
                schema_info=SchemaInfo(),
                logs=self.log.lines,
                warnings=warnings,
                complete=False,
            )

        semaphore = asyncio.Semaphore(concurrency)
        table_tasks = [
            asyncio.create_task(self._guarded(semaphore, self.describe_table, ref))
            for ref in _unique_refs(table_refs)
        ]
        view_tasks = [
            asyncio.create_task(self._guarded(semaphore, self.describe_view, ref))
            for ref in _unique_refs(view_refs)
        ]
        all_tasks = table_tasks + view_tasks

        complete = True
        if all_tasks:
            remaining = max(deadline - loop.time(), 0)
            _, pending = await asyncio.wait(all_tasks, timeout=remaining)
            if pending:
                complete = False
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                message = (
                    f"Introspection budget of {budget_seconds:g}s exhausted; "
                    f"{len(pending)} of {len(all_tasks)} relations were not introspected"
                )
                warnings.append(message)
                self.log.error(message)

        tables = _unique_sorted(self._collect(table_tasks))
        views = _unique_sorted(self._collect(view_tasks))

        self.log.add(
            f"Schema introspection complete: {len(tables)} tables, {len(views)} views",
            complete=complete,
        )
        return IntrospectionResult(
            schema_info=SchemaInfo(tables=tables, views=views),
            logs=self.log.lines,
            warnings=warnings,
            complete=complete,
        )

    async def _list(
        self,
        kind: str,
        lister: Callable[[], Awaitable[list[RelationRef]]],
        deadline: float,
    ) -> list[RelationRef] | None:
        """Run a listing query; None means the budget ran out."""
        remaining = max(deadline - asyncio.get_running_loop().time(), 0)
        try:
            refs = await asyncio.wait_for(lister(), timeout=remaining)
        except TimeoutError:
            self.log.error(f"Listing {kind} timed out")
            return None
        except Exception as e:
            self.log.error(f"Failed to list {kind}: {e}", error=str(e))
            return []
        self.log.add(f"Found {len(refs)} {kind}")
        return refs

    async def _guarded(
        self,
        semaphore: asyncio.Semaphore,
        describe: Callable[[RelationRef], Awaitable[T]],
        ref: RelationRef,
    ) -> T | None:
        async with semaphore:
            try:
                return await describe(ref)
            except Exception as e:
                error = SchemaIntrospectionError(ref.full_name, str(e))
                self.log.error(error.message, relation=ref.full_name)
                return None

    @staticmethod
    def _collect(tasks: list[asyncio.Task]) -> list[Any]:
        return [
            task.result()
            for task in tasks
            if task.done() and not task.cancelled() and task.result() is not None
        ]
