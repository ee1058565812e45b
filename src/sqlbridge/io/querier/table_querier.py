"""
Stateful table queriers.

A querier polls one table or user query. Its lifecycle per poll cycle is

    IDLE -> PREPARING -> EXECUTING -> STREAMING -> CLOSING -> IDLE

The prepared statement is created lazily on the first poll and kept across
cycles; the result cursor and the schema snapshot only live for one cycle.
When the driver reports that a cached plan no longer matches the result
shape (schema drift on PostgreSQL), the statement is rebuilt once and the
execution retried.

Queriers order by (last_update, name) so the scheduler always serves the
one that has waited longest.
"""

from __future__ import annotations

import datetime as dt
import functools
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from sqlbridge.config import get_settings
from sqlbridge.infrastructure.schema.core import Record, RecordSchema
from sqlbridge.infrastructure.sql.core.identifier import TableIdentity
from sqlbridge.infrastructure.sql.dialects.base import SqlDialect
from sqlbridge.infrastructure.sql.dialects.registry import DialectRegistry
from sqlbridge.infrastructure.sql.exceptions import QuerierStateError
from sqlbridge.infrastructure.sql.operations.select import (
    PARAM_INCREMENTING_OFFSET,
    PARAM_TIMESTAMP_END,
    PARAM_TIMESTAMP_OFFSET,
    SelectStatement,
    TableQueryMode,
)
from sqlbridge.io.connectors.live_connection import (
    LiveConnection,
    ResultCursor,
    StatementHandle,
)
from sqlbridge.utils.logging import bind_context

from .converter import ResultSetConverter, from_nano_string

EPOCH = dt.datetime(1970, 1, 1)


class QuerierState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    EXECUTING = "executing"
    STREAMING = "streaming"
    CLOSING = "closing"


@dataclass(frozen=True)
class QuerySource:
    """What a querier reads: exactly one of a table name or a user query."""

    table: Optional[str] = None
    query: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.table is None) == (self.query is None):
            raise ValueError("QuerySource needs exactly one of table or query")

    @property
    def name(self) -> str:
        return self.table if self.table is not None else self.query


@dataclass
class IncrementalOffset:
    """Position of an incremental querier: last incrementing id and timestamp seen."""

    incrementing: int = -1
    timestamp: dt.datetime = EPOCH

    def advance(
        self,
        record: Record,
        incrementing_column: Optional[str],
        timestamp_columns: Sequence[str],
    ) -> None:
        if incrementing_column:
            value = record.get(incrementing_column)
            if value is not None:
                self.incrementing = int(value)
        if timestamp_columns:
            # Same precedence as COALESCE in the polling query
            value = next(
                (record.get(c) for c in timestamp_columns if record.get(c) is not None), None
            )
            if isinstance(value, str):
                value = from_nano_string(value)
            if value is not None:
                self.timestamp = value


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


@functools.total_ordering
class TableQuerier:
    """
    Base querier: owns a statement handle and at most one open result cursor.

    Subclasses provide the SELECT and its parameters.

    Args:
        source: Table or user query to poll
        connection: Live connection owned by this querier
        registry: Dialect registry used to resolve the connection's dialect
        timestamp_granularity: Timestamp representation (defaults to settings)
    """

    def __init__(
        self,
        source: QuerySource,
        connection: LiveConnection,
        registry: DialectRegistry,
        timestamp_granularity: Optional[str] = None,
    ):
        self.source = source
        self.connection = connection
        self.registry = registry
        self.timestamp_granularity = (
            timestamp_granularity or get_settings().timestamp_granularity
        )
        self.state = QuerierState.IDLE
        self.last_update = 0
        self.schema: Optional[RecordSchema] = None
        self._dialect: Optional[SqlDialect] = None
        self._converter: Optional[ResultSetConverter] = None
        self._select: Optional[SelectStatement] = None
        self._statement: Optional[StatementHandle] = None
        self._cursor: Optional[ResultCursor] = None
        self._row: Optional[Sequence[Any]] = None
        self._log = bind_context(__name__, querier=self.name)

    # ------------------------------------------------------------------
    # Identity and ordering
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def sort_key(self) -> Tuple[Any, str]:
        return (self.last_update, self.name)

    def __lt__(self, other: "TableQuerier") -> bool:
        if not isinstance(other, TableQuerier):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, state={self.state.value}, "
            f"last_update={self.last_update!r})"
        )

    # ------------------------------------------------------------------
    # Lazily resolved collaborators
    # ------------------------------------------------------------------

    @property
    def dialect(self) -> SqlDialect:
        if self._dialect is None:
            self._dialect = self.registry.dialect_for(self.connection)
        return self._dialect

    @property
    def converter(self) -> ResultSetConverter:
        if self._converter is None:
            self._converter = ResultSetConverter(self.dialect, self.timestamp_granularity)
        return self._converter

    @property
    def table(self) -> Optional[TableIdentity]:
        if self.source.table is None:
            return None
        return self.dialect.parse_table_identifier(self.source.table)

    @property
    def querying(self) -> bool:
        return self._cursor is not None

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def build_select(self) -> SelectStatement:
        raise NotImplementedError

    def query_parameters(self) -> List[Any]:
        return []

    def on_record(self, record: Record) -> None:
        """Called for every extracted record."""

    def checkpoint(self) -> Any:
        """Snapshot of the read position, restored when a poll fails."""
        return None

    def rollback(self, checkpoint: Any) -> None:
        """Return to ``checkpoint`` after a failed poll."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _get_or_create_statement(self) -> StatementHandle:
        if self._statement is None:
            self.state = QuerierState.PREPARING
            self._select = self.build_select()
            self._statement = self.connection.prepare(self._select.sql)
            self._log.debug("querier.statement_prepared", sql=self._select.sql)
        return self._statement

    def _discard_statement(self) -> None:
        statement, self._statement = self._statement, None
        self._select = None
        if statement is not None:
            statement.close()

    def _execute(self) -> ResultCursor:
        statement = self._get_or_create_statement()
        self.state = QuerierState.EXECUTING
        return statement.execute(self.query_parameters())

    def maybe_start_query(self) -> None:
        """
        Execute the query unless a result cursor is already open.

        A stale-statement error rebuilds the statement and retries once; a
        second one, or any other error, propagates and leaves the querier
        IDLE with no open cursor.
        """
        if self.state != QuerierState.IDLE:
            return

        try:
            try:
                cursor = self._execute()
            except Exception as e:
                if not self.dialect.is_stale_statement_error(e):
                    raise
                self._log.info("querier.stale_statement", error=str(e))
                self._discard_statement()
                cursor = self._execute()

            self._cursor = cursor
            self.schema = self.converter.schema_for(self.source.table, cursor.metadata())
        except Exception:
            self._release_cursor()
            self.state = QuerierState.IDLE
            raise

        self.state = QuerierState.STREAMING
        self._log.debug("querier.query_started", fields=len(self.schema.fields))

    def next(self) -> bool:
        """Advance to the next row; False when the result is exhausted."""
        if self._cursor is None:
            raise QuerierStateError(self.name, self.state.value, "advance")
        self._row = self._cursor.fetchone()
        return self._row is not None

    def extract_record(self) -> Record:
        """Convert the current row into a Record."""
        if self._cursor is None or self._row is None or self.schema is None:
            raise QuerierStateError(self.name, self.state.value, "extract a record from")
        record = self.converter.to_record(self._row, self.schema)
        self.on_record(record)
        return record

    def _release_cursor(self) -> None:
        cursor, self._cursor = self._cursor, None
        self._row = None
        self.schema = None
        if cursor is not None:
            cursor.close()

    def close(self, now: Any) -> None:
        """
        End the current poll cycle.

        Safe to call when idle. The schema snapshot is always dropped and the
        watermark moves to ``now`` (never backwards).
        """
        if self.state != QuerierState.IDLE:
            self.state = QuerierState.CLOSING
        try:
            self._release_cursor()
        finally:
            self.last_update = max(self.last_update, now)
            self.state = QuerierState.IDLE

    def shutdown(self) -> None:
        """Release the cursor and the statement handle."""
        try:
            self._release_cursor()
        finally:
            self._discard_statement()
            self.state = QuerierState.IDLE
            self._log.debug("querier.shutdown")

    def __enter__(self) -> "TableQuerier":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def poll(self, now: Any, max_rows: Optional[int] = None) -> List[Record]:
        """
        Run one poll cycle and return up to ``max_rows`` records.

        The cycle is closed when the result is exhausted or on any error;
        otherwise the cursor stays open and the next poll continues it.
        A failed poll returns no records, so the read position is rolled back
        to where the poll started.
        """
        limit = max_rows if max_rows is not None else get_settings().batch_max_rows
        records: List[Record] = []
        checkpoint = self.checkpoint()
        exhausted = False
        try:
            self.maybe_start_query()
            while len(records) < limit:
                if not self.next():
                    exhausted = True
                    break
                records.append(self.extract_record())
        except Exception as e:
            self._log.error(
                "querier.poll_failed",
                error=str(e),
                error_type=type(e).__name__,
                rows_read=len(records),
            )
            self.rollback(checkpoint)
            self.close(now)
            raise

        if exhausted:
            self.close(now)
        self._log.debug("querier.polled", rows=len(records), exhausted=exhausted)
        return records


class BulkTableQuerier(TableQuerier):
    """Reads the whole table (or query result) on every cycle."""

    def build_select(self) -> SelectStatement:
        return self.dialect.build_select(
            TableQueryMode.BULK, table=self.table, query=self.source.query
        )


class IncrementalTableQuerier(TableQuerier):
    """
    Reads only rows past the stored offset.

    The mode follows from the configured columns: an incrementing column, one
    or more timestamp columns, or both. Timestamp modes only read rows older
    than ``now - timestamp_delay`` so late commits are not skipped.
    """

    def __init__(
        self,
        source: QuerySource,
        connection: LiveConnection,
        registry: DialectRegistry,
        incrementing_column: Optional[str] = None,
        timestamp_columns: Sequence[str] = (),
        offset: Optional[IncrementalOffset] = None,
        timestamp_delay: dt.timedelta = dt.timedelta(0),
        clock: Callable[[], dt.datetime] = _utc_now,
        timestamp_granularity: Optional[str] = None,
    ):
        if incrementing_column and timestamp_columns:
            mode = TableQueryMode.TIMESTAMP_INCREMENTING
        elif incrementing_column:
            mode = TableQueryMode.INCREMENTING
        elif timestamp_columns:
            mode = TableQueryMode.TIMESTAMP
        else:
            raise ValueError("Incremental querier needs an incrementing or timestamp column")
        super().__init__(source, connection, registry, timestamp_granularity)
        self.mode = mode
        self.incrementing_column = incrementing_column
        self.timestamp_columns = tuple(timestamp_columns)
        self.offset = offset or IncrementalOffset()
        self.timestamp_delay = timestamp_delay
        self.clock = clock

    def build_select(self) -> SelectStatement:
        return self.dialect.build_select(
            self.mode,
            table=self.table,
            query=self.source.query,
            incrementing_column=self.incrementing_column,
            timestamp_columns=self.timestamp_columns,
        )

    def query_parameters(self) -> List[Any]:
        return self._select.bind(
            {
                PARAM_INCREMENTING_OFFSET: self.offset.incrementing,
                PARAM_TIMESTAMP_OFFSET: self.offset.timestamp,
                PARAM_TIMESTAMP_END: self.clock() - self.timestamp_delay,
            }
        )

    def on_record(self, record: Record) -> None:
        self.offset.advance(record, self.incrementing_column, self.timestamp_columns)

    def checkpoint(self) -> IncrementalOffset:
        return replace(self.offset)

    def rollback(self, checkpoint: IncrementalOffset) -> None:
        self.offset = checkpoint


__all__ = [
    "QuerierState",
    "QuerySource",
    "IncrementalOffset",
    "TableQuerier",
    "BulkTableQuerier",
    "IncrementalTableQuerier",
]
