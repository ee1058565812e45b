"""
SQL upsert statement builders.

Builds insert-or-update statements in the native form of each dialect:

- ON_CONFLICT:             INSERT ... ON CONFLICT (k) DO UPDATE SET c=EXCLUDED.c
- MERGE:                   MERGE INTO t AS target USING (SELECT ...) AS incoming ...
- UPSERT_WITH_PRIMARY_KEY: UPSERT t(k,c) VALUES(?,?) WITH PRIMARY KEY
- ON_DUPLICATE_KEY:        INSERT INTO t(k,c) VALUES(?,?) ON DUPLICATE KEY UPDATE c=VALUES(c)

Placeholders are always bound key columns first, then non-key columns, in
declaration order. Without key columns there is nothing to match on and the
statement degrades to a plain INSERT.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Sequence, Tuple

from sqlbridge.infrastructure.schema.core import ColumnSpec
from sqlbridge.utils.logging import get_logger

from ..core.identifier import TableIdentity
from ..core.parameters import PLACEHOLDER, bind_ordered, build_placeholders
from ..exceptions import PreconditionError, UnsupportedStatementError

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from ..dialects.base import SqlDialect

logger = get_logger(__name__)

INSERT_STRATEGY = "insert"

# Shorthand casts drop type arguments: ?::VARCHAR(1024) -> ?::VARCHAR
_TYPE_ARGUMENTS = re.compile(r"\(.*\)$")


def _placeholders(count: int) -> str:
    return ",".join(build_placeholders(count))


@dataclass(frozen=True)
class UpsertStatement:
    """
    A generated upsert statement and the order its placeholders bind in.

    Attributes:
        sql: Statement text with ``?`` placeholders
        parameter_names: Column bound to each placeholder, in order
        strategy: Upsert style used, or ``"insert"`` when degraded
        degraded: True when no key columns forced a plain INSERT
    """

    sql: str
    parameter_names: Tuple[str, ...]
    strategy: str
    degraded: bool = False

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_names)

    def bind(self, values: Mapping[str, Any]) -> List[Any]:
        """Order ``values`` (column name -> value) by placeholder position."""
        return bind_ordered(self.parameter_names, values)


class UpsertBuilder:
    """
    Builder for dialect-native upsert statements.

    Example:
        >>> builder = UpsertBuilder(registry.resolve("PostgreSQL"))
        >>> stmt = builder.build(TableIdentity("t"), [id_col], [name_col])
        >>> print(stmt.sql)
        INSERT INTO "t" ("id","name") VALUES (?,?) ON CONFLICT ("id") DO UPDATE SET "name"=EXCLUDED."name"
    """

    def __init__(self, dialect: "SqlDialect"):
        self.dialect = dialect

    def build(
        self,
        table: TableIdentity,
        key_columns: Sequence[ColumnSpec],
        non_key_columns: Sequence[ColumnSpec],
    ) -> UpsertStatement:
        """
        Build the upsert statement for ``table``.

        Raises:
            PreconditionError: If there are no columns or a column is both key and non-key
            UnsupportedStatementError: If the dialect has no upsert form
        """
        from ..dialects.base import UpsertStyle

        key_names = [c.name for c in key_columns]
        value_names = [c.name for c in non_key_columns]
        overlap = sorted(set(key_names) & set(value_names))
        if overlap:
            raise PreconditionError(
                f"Columns {overlap} are both key and non-key columns of {table}"
            )
        if not key_names and not value_names:
            raise PreconditionError(f"Cannot build upsert for {table} without columns")

        parameter_names = tuple(key_names + value_names)

        if not key_names:
            logger.warning(
                "upsert.degraded_to_insert",
                dialect=self.dialect.name,
                table=str(table),
                column_count=len(value_names),
            )
            return UpsertStatement(
                sql=self.insert(table, value_names),
                parameter_names=parameter_names,
                strategy=INSERT_STRATEGY,
                degraded=True,
            )

        style = self.dialect.descriptor.upsert_style
        if style is None:
            raise UnsupportedStatementError("upsert", self.dialect.name)

        if style == UpsertStyle.ON_CONFLICT:
            sql = self._on_conflict(table, key_names, value_names)
        elif style == UpsertStyle.MERGE:
            sql = self._merge(table, key_columns, non_key_columns)
        elif style == UpsertStyle.UPSERT_WITH_PRIMARY_KEY:
            sql = self._upsert_with_primary_key(table, key_names, value_names)
        else:
            sql = self._on_duplicate_key(table, key_names, value_names)

        return UpsertStatement(sql=sql, parameter_names=parameter_names, strategy=style.value)

    def insert(self, table: TableIdentity, columns: Sequence[str]) -> str:
        """Build a plain INSERT statement."""
        return (
            f"INSERT INTO {self.dialect.expression_for(table)} ({self._join(columns)}) "
            f"VALUES ({_placeholders(len(columns))})"
        )

    def _join(self, names: Sequence[str], separator: str = ",") -> str:
        return separator.join(self.dialect.quote_identifier(n) for n in names)

    def _on_conflict(
        self, table: TableIdentity, key_names: List[str], value_names: List[str]
    ) -> str:
        sql = (
            f"{self.insert(table, key_names + value_names)} "
            f"ON CONFLICT ({self._join(key_names)}) "
        )
        if not value_names:
            return sql + "DO NOTHING"
        updates = ",".join(
            f"{q}=EXCLUDED.{q}" for q in (self.dialect.quote_identifier(n) for n in value_names)
        )
        return sql + f"DO UPDATE SET {updates}"

    def _cast_placeholder(self, column: ColumnSpec) -> str:
        from ..dialects.base import CastStyle

        sql_type = self.dialect.sql_type_for(column)
        if self.dialect.descriptor.merge_cast == CastStyle.POSTGRES:
            base_type = _TYPE_ARGUMENTS.sub("", sql_type)
            return f"{PLACEHOLDER}::{base_type}"
        return f"CAST({PLACEHOLDER} AS {sql_type})"

    def _merge(
        self,
        table: TableIdentity,
        key_columns: Sequence[ColumnSpec],
        non_key_columns: Sequence[ColumnSpec],
    ) -> str:
        quote = self.dialect.quote_identifier
        source = ", ".join(
            f"{self._cast_placeholder(c)} AS {quote(c.name)}"
            for c in list(key_columns) + list(non_key_columns)
        )
        match = " AND ".join(
            f"target.{quote(c.name)}=incoming.{quote(c.name)}" for c in key_columns
        )
        # Non-key columns lead in the SET and INSERT lists
        ordered = [quote(c.name) for c in list(non_key_columns) + list(key_columns)]
        updates = ",".join(f"{q}=incoming.{q}" for q in ordered)
        incoming = ",".join(f"incoming.{q}" for q in ordered)
        return (
            f"MERGE INTO {self.dialect.expression_for(table)} AS target "
            f"USING (SELECT {source}) AS incoming ON ({match}) "
            f"WHEN MATCHED THEN UPDATE SET {updates} "
            f"WHEN NOT MATCHED THEN INSERT ({', '.join(ordered)}) VALUES ({incoming});"
        )

    def _upsert_with_primary_key(
        self, table: TableIdentity, key_names: List[str], value_names: List[str]
    ) -> str:
        names = key_names + value_names
        return (
            f"UPSERT {self.dialect.expression_for(table)}({self._join(names)}) "
            f"VALUES({_placeholders(len(names))}) WITH PRIMARY KEY"
        )

    def _on_duplicate_key(
        self, table: TableIdentity, key_names: List[str], value_names: List[str]
    ) -> str:
        names = key_names + value_names
        # MySQL needs at least one assignment; a key-only row re-assigns its first key
        targets = value_names or key_names[:1]
        updates = ",".join(
            f"{q}=VALUES({q})" for q in (self.dialect.quote_identifier(n) for n in targets)
        )
        return (
            f"INSERT INTO {self.dialect.expression_for(table)}({self._join(names)}) "
            f"VALUES({_placeholders(len(names))}) ON DUPLICATE KEY UPDATE {updates}"
        )


__all__ = [
    "INSERT_STRATEGY",
    "UpsertBuilder",
    "UpsertStatement",
]
