"""
SQL SELECT statement builders for table polling.

Each querier mode reads a table (or wraps a user query) and, for the
incremental modes, restricts the rows to those past the stored offset:

- BULK:                   SELECT * FROM t
- INCREMENTING:           ... WHERE inc > ? ORDER BY inc ASC
- TIMESTAMP:              ... WHERE ts > ? AND ts < ? ORDER BY ts ASC
- TIMESTAMP_INCREMENTING: ... WHERE ts < ? AND ((ts = ? AND inc > ?) OR ts > ?)
                          ORDER BY ts,inc ASC

Several timestamp columns are combined with COALESCE in the given order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

from ..core.identifier import TableIdentity
from ..exceptions import PreconditionError

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from ..dialects.base import SqlDialect

PARAM_INCREMENTING_OFFSET = "incrementing_offset"
PARAM_TIMESTAMP_OFFSET = "timestamp_offset"
PARAM_TIMESTAMP_END = "timestamp_end"


class TableQueryMode(str, Enum):
    """How a querier selects rows on each poll."""

    BULK = "bulk"
    INCREMENTING = "incrementing"
    TIMESTAMP = "timestamp"
    TIMESTAMP_INCREMENTING = "timestamp+incrementing"

    @property
    def uses_incrementing(self) -> bool:
        return self in (TableQueryMode.INCREMENTING, TableQueryMode.TIMESTAMP_INCREMENTING)

    @property
    def uses_timestamp(self) -> bool:
        return self in (TableQueryMode.TIMESTAMP, TableQueryMode.TIMESTAMP_INCREMENTING)


@dataclass(frozen=True)
class SelectStatement:
    """
    A generated SELECT and the offset each placeholder binds to.

    A parameter name may repeat: the combined mode compares the timestamp
    offset twice.
    """

    sql: str
    parameter_names: Tuple[str, ...] = ()

    def bind(self, values: Mapping[str, Any]) -> List[Any]:
        """Order offset values by placeholder position."""
        missing = sorted({n for n in self.parameter_names if n not in values})
        if missing:
            raise PreconditionError(f"No value supplied for parameters: {missing}")
        return [values[name] for name in self.parameter_names]


class SelectBuilder:
    """
    Builder for the polling SELECT of a table or user query.

    Example:
        >>> builder = SelectBuilder(registry.resolve("PostgreSQL"))
        >>> stmt = builder.build(TableQueryMode.INCREMENTING, table=TableIdentity("t"),
        ...                      incrementing_column="id")
        >>> print(stmt.sql)
        SELECT * FROM "t" WHERE "id" > ? ORDER BY "id" ASC
    """

    def __init__(self, dialect: "SqlDialect"):
        self.dialect = dialect

    def build(
        self,
        mode: TableQueryMode,
        table: Optional[TableIdentity] = None,
        query: Optional[str] = None,
        incrementing_column: Optional[str] = None,
        timestamp_columns: Sequence[str] = (),
    ) -> SelectStatement:
        """
        Build the SELECT for ``mode`` over exactly one of ``table`` or ``query``.

        A user query receives its criteria through an appended WHERE clause,
        so it must not contain one already.

        Raises:
            PreconditionError: If the source is ambiguous or a mode's column is missing
        """
        if (table is None) == (query is None):
            raise PreconditionError("Exactly one of table or query must be given")
        if mode.uses_incrementing and not incrementing_column:
            raise PreconditionError(f"Mode '{mode.value}' requires an incrementing column")
        if mode.uses_timestamp and not timestamp_columns:
            raise PreconditionError(f"Mode '{mode.value}' requires timestamp columns")

        base = query if query is not None else f"SELECT * FROM {self.dialect.expression_for(table)}"
        if mode == TableQueryMode.BULK:
            return SelectStatement(base)

        quote = self.dialect.quote_identifier
        inc = quote(incrementing_column) if incrementing_column else None
        ts = self._timestamp_expression(timestamp_columns) if timestamp_columns else None

        if mode == TableQueryMode.INCREMENTING:
            return SelectStatement(
                f"{base} WHERE {inc} > ? ORDER BY {inc} ASC",
                (PARAM_INCREMENTING_OFFSET,),
            )

        if mode == TableQueryMode.TIMESTAMP:
            return SelectStatement(
                f"{base} WHERE {ts} > ? AND {ts} < ? ORDER BY {ts} ASC",
                (PARAM_TIMESTAMP_OFFSET, PARAM_TIMESTAMP_END),
            )

        return SelectStatement(
            f"{base} WHERE {ts} < ? AND (({ts} = ? AND {inc} > ?) OR {ts} > ?) "
            f"ORDER BY {ts},{inc} ASC",
            (
                PARAM_TIMESTAMP_END,
                PARAM_TIMESTAMP_OFFSET,
                PARAM_INCREMENTING_OFFSET,
                PARAM_TIMESTAMP_OFFSET,
            ),
        )

    def _timestamp_expression(self, columns: Sequence[str]) -> str:
        quoted = [self.dialect.quote_identifier(c) for c in columns]
        if len(quoted) == 1:
            return quoted[0]
        return f"COALESCE({','.join(quoted)})"


__all__ = [
    "PARAM_INCREMENTING_OFFSET",
    "PARAM_TIMESTAMP_OFFSET",
    "PARAM_TIMESTAMP_END",
    "SelectBuilder",
    "SelectStatement",
    "TableQueryMode",
]
