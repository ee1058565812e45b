"""
Dialect capability interface.

A database family is described by a single immutable ``DialectDescriptor``
(quote characters, type maps, statement styles, error signatures). One
``SqlDialect`` class interprets any descriptor, so adding a family means
adding data, not a subclass, and every family gets the same generators.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence, Tuple

from sqlbridge.config import get_settings
from sqlbridge.infrastructure.schema.core import (
    SCALE_UNSET,
    ColumnSpec,
    PrimitiveKind,
)
from sqlbridge.infrastructure.schema.ddl_generator import (
    generate_alter_table_ddl,
    generate_create_table_ddl,
)
from sqlbridge.utils.logging import get_logger

from ..core.identifier import (
    IDENTIFIER_LENGTH_UNBOUNDED,
    IDENTIFIER_LENGTH_UNKNOWN,
    QuoteMethod,
    TableIdentity,
    parse_table_identifier,
    qualify_table,
    quote_identifier,
)
from ..exceptions import UnsupportedTypeError

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from sqlbridge.io.connectors.live_connection import LiveConnection

    from ..operations.select import SelectStatement, TableQueryMode
    from ..operations.upsert import UpsertStatement

logger = get_logger(__name__)


class AlterStyle(str, Enum):
    """How ALTER TABLE ... ADD is spelled for several columns."""

    PER_COLUMN = "per_column"  # one ALTER TABLE per column
    MULTI_ADD = "multi_add"  # ALTER TABLE t ADD a, ADD b
    WRAPPED = "wrapped"  # ALTER TABLE t ADD(a, b)


class UpsertStyle(str, Enum):
    """Native insert-or-update statement form."""

    ON_CONFLICT = "on_conflict"
    MERGE = "merge"
    UPSERT_WITH_PRIMARY_KEY = "upsert_with_primary_key"
    ON_DUPLICATE_KEY = "on_duplicate_key"


class CastStyle(str, Enum):
    """How a typed placeholder is written in a MERGE source row."""

    ANSI = "ansi"  # CAST(? AS INT)
    POSTGRES = "postgres"  # ?::INT


@dataclass(frozen=True)
class DialectDescriptor:
    """Immutable description of one database family."""

    name: str
    primitive_types: Mapping[PrimitiveKind, str] = field(hash=False)
    logical_types: Mapping[str, str] = field(hash=False)
    product_patterns: Tuple[str, ...] = ()
    url_schemes: Tuple[str, ...] = ()
    priority: int = 0
    quote_open: str = '"'
    quote_close: Optional[str] = None
    alter_style: AlterStyle = AlterStyle.PER_COLUMN
    upsert_style: Optional[UpsertStyle] = None
    merge_cast: CastStyle = CastStyle.ANSI
    create_table_keyword: Optional[str] = None
    boolean_literals: Tuple[str, str] = ("TRUE", "FALSE")
    decimal_precision: int = 38
    max_decimal_scale: int = 38
    stale_statement_signatures: Tuple[str, ...] = ()
    identifier_length_probe: Optional[str] = None

    def __post_init__(self) -> None:
        missing = [k.name for k in PrimitiveKind if k not in self.primitive_types]
        if missing:
            raise ValueError(
                f"Dialect '{self.name}' has no SQL type for primitive kinds {missing}"
            )
        object.__setattr__(self, "primitive_types", MappingProxyType(dict(self.primitive_types)))
        object.__setattr__(self, "logical_types", MappingProxyType(dict(self.logical_types)))
        object.__setattr__(
            self, "product_patterns", tuple(p.lower() for p in self.product_patterns)
        )


class SqlDialect:
    """
    SQL generation and type mapping for one database family.

    Args:
        descriptor: Family description
        quote_method: Identifier quoting policy (defaults to settings)
        numeric_scale_high: Fallback scale for unconstrained NUMERIC columns
            (defaults to settings)
        max_identifier_length: Discovered identifier length limit; 0 means
            not computed, IDENTIFIER_LENGTH_UNBOUNDED means no limit
    """

    def __init__(
        self,
        descriptor: DialectDescriptor,
        quote_method: Optional[QuoteMethod] = None,
        numeric_scale_high: Optional[int] = None,
        max_identifier_length: int = IDENTIFIER_LENGTH_UNKNOWN,
    ):
        if quote_method is None or numeric_scale_high is None:
            settings = get_settings()
            if quote_method is None:
                quote_method = QuoteMethod(settings.quote_identifiers)
            if numeric_scale_high is None:
                numeric_scale_high = settings.numeric_scale_high
        self.descriptor = descriptor
        self.quote_method = quote_method
        self.numeric_scale_high = numeric_scale_high
        self.max_identifier_length = max_identifier_length

    @property
    def name(self) -> str:
        return self.descriptor.name

    def __repr__(self) -> str:
        return f"SqlDialect(name={self.name!r}, quote_method={self.quote_method.value!r})"

    def with_identifier_length(self, max_identifier_length: int) -> "SqlDialect":
        """Return a dialect bound to a discovered identifier length limit."""
        return SqlDialect(
            self.descriptor,
            quote_method=self.quote_method,
            numeric_scale_high=self.numeric_scale_high,
            max_identifier_length=max_identifier_length,
        )

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Quote a column or table-part name according to the quoting policy."""
        return quote_identifier(
            name, self.descriptor.quote_open, self.descriptor.quote_close, self.quote_method
        )

    def expression_for(self, table: TableIdentity) -> str:
        """Render a fully qualified, quoted table reference."""
        return qualify_table(
            table, self.descriptor.quote_open, self.descriptor.quote_close, self.quote_method
        )

    def parse_table_identifier(self, fqn: str) -> TableIdentity:
        """Parse a dotted table name, truncating the table part to the known limit."""
        return parse_table_identifier(fqn, self.max_identifier_length)

    def compute_max_identifier_length(self, connection: "LiveConnection") -> int:
        """
        Probe the database for its maximum identifier length.

        Never raises: dialects without a probe, probe failures, empty results
        and non-positive values all yield IDENTIFIER_LENGTH_UNBOUNDED.
        """
        probe = self.descriptor.identifier_length_probe
        if not probe:
            return IDENTIFIER_LENGTH_UNBOUNDED

        try:
            value = connection.query_scalar(probe)
        except Exception as e:
            logger.warning(
                "dialect.identifier_length_probe_failed",
                dialect=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return IDENTIFIER_LENGTH_UNBOUNDED

        try:
            length = int(value) if value is not None else 0
        except (TypeError, ValueError):
            length = 0
        if length <= 0:
            logger.warning(
                "dialect.identifier_length_probe_invalid", dialect=self.name, value=value
            )
            return IDENTIFIER_LENGTH_UNBOUNDED

        logger.debug("dialect.identifier_length_computed", dialect=self.name, length=length)
        return length

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def decimal_scale(self, precision: int, scale: int) -> int:
        """
        Resolve the scale used for a NUMERIC column.

        Unset scale, and the 0/0 pair several drivers report for unconstrained
        NUMERIC columns, both resolve to the high-scale fallback so values are
        never silently truncated.
        """
        if scale == SCALE_UNSET or (precision == 0 and scale == 0):
            return self.numeric_scale_high
        return scale

    def sql_type(
        self,
        logical_name: Optional[str],
        precision: int,
        scale: int,
        kind: PrimitiveKind,
    ) -> str:
        """
        Map a field type to the native SQL type of this dialect.

        The logical name wins over the primitive kind; unknown logical names
        fall through to the primitive mapping.

        Raises:
            UnsupportedTypeError: If the primitive kind has no mapping
        """
        if logical_name is not None:
            template = self.descriptor.logical_types.get(logical_name)
            if template is not None:
                resolved_precision = (
                    precision if precision > 0 else self.descriptor.decimal_precision
                )
                # A rendered scale may not exceed the precision or the family maximum
                rendered_scale = min(
                    self.decimal_scale(precision, scale),
                    resolved_precision,
                    self.descriptor.max_decimal_scale,
                )
                return template.format(precision=resolved_precision, scale=rendered_scale)

        try:
            return self.descriptor.primitive_types[kind]
        except (KeyError, TypeError):
            raise UnsupportedTypeError(
                f"No SQL type for primitive kind {kind!r}", dialect=self.name
            ) from None

    def sql_type_for(self, column: ColumnSpec) -> str:
        """Map a column's field type to a native SQL type."""
        ft = column.field_type
        try:
            return self.sql_type(ft.logical_name, ft.precision, ft.scale, ft.kind)
        except UnsupportedTypeError as e:
            raise UnsupportedTypeError(
                f"No SQL type for primitive kind {ft.kind!r}",
                dialect=self.name,
                column=column.name,
            ) from e

    def format_default(self, column: ColumnSpec) -> str:
        """Render a column's default value as a SQL literal."""
        value = column.default
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"'{escaped}'"
        if isinstance(value, bool):
            true_literal, false_literal = self.descriptor.boolean_literals
            return true_literal if value else false_literal
        if isinstance(value, dt.datetime):
            return f"'{value.strftime('%Y-%m-%d %H:%M:%S')}.{value.microsecond // 1000:03d}'"
        if isinstance(value, dt.date):
            return f"'{value.isoformat()}'"
        if isinstance(value, dt.time):
            return f"'{value.strftime('%H:%M:%S')}.{value.microsecond // 1000:03d}'"
        if isinstance(value, (bytes, bytearray)):
            return f"X'{bytes(value).hex().upper()}'"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        raise UnsupportedTypeError(
            f"Cannot render default value of type {type(value).__name__}",
            dialect=self.name,
            column=column.name,
        )

    def column_definition(self, column: ColumnSpec) -> str:
        """Render ``<name> <type>`` plus DEFAULT or NULL/NOT NULL."""
        clause = f"{self.quote_identifier(column.name)} {self.sql_type_for(column)}"
        if column.has_default:
            return f"{clause} DEFAULT {self.format_default(column)}"
        if column.is_optional:
            return f"{clause} NULL"
        return f"{clause} NOT NULL"

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def build_create_table(self, table: TableIdentity, columns: Sequence[ColumnSpec]) -> str:
        return generate_create_table_ddl(self, table, columns)

    def build_alter_table(self, table: TableIdentity, new_columns: Sequence[ColumnSpec]) -> List[str]:
        return generate_alter_table_ddl(self, table, new_columns)

    def build_upsert_statement(
        self,
        table: TableIdentity,
        key_columns: Sequence[ColumnSpec],
        non_key_columns: Sequence[ColumnSpec],
    ) -> "UpsertStatement":
        from ..operations.upsert import UpsertBuilder

        return UpsertBuilder(self).build(table, key_columns, non_key_columns)

    def build_upsert(
        self,
        table: TableIdentity,
        key_columns: Sequence[ColumnSpec],
        non_key_columns: Sequence[ColumnSpec],
    ) -> str:
        return self.build_upsert_statement(table, key_columns, non_key_columns).sql

    def build_select(
        self,
        mode: "TableQueryMode",
        table: Optional[TableIdentity] = None,
        query: Optional[str] = None,
        incrementing_column: Optional[str] = None,
        timestamp_columns: Sequence[str] = (),
    ) -> "SelectStatement":
        from ..operations.select import SelectBuilder

        return SelectBuilder(self).build(
            mode,
            table=table,
            query=query,
            incrementing_column=incrementing_column,
            timestamp_columns=timestamp_columns,
        )

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def is_stale_statement_error(self, error: BaseException) -> bool:
        """True if ``error`` means the prepared plan no longer matches the result shape."""
        signatures = self.descriptor.stale_statement_signatures
        if not signatures:
            return False
        message = str(error)
        return any(signature in message for signature in signatures)


__all__ = [
    "AlterStyle",
    "UpsertStyle",
    "CastStyle",
    "DialectDescriptor",
    "SqlDialect",
]
