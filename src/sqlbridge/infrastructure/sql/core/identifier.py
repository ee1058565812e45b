"""
SQL identifier handling utilities.

Provides quoting and qualification of SQL identifiers (table and column
names) plus parsing and length-truncation of dotted table names. Quoting is
parameterized by the quote characters of the dialect so the same helpers
serve double-quote, backtick and bracket dialects.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

# Reported by drivers (and returned by failed probes) when no limit is known.
IDENTIFIER_LENGTH_UNBOUNDED = 2**31 - 1
# Length not computed yet.
IDENTIFIER_LENGTH_UNKNOWN = 0


class QuoteMethod(str, Enum):
    """Identifier quoting policy."""

    ALWAYS = "always"
    NEVER = "never"
    # Reserved words / mixed case only. Not implemented: treated as ALWAYS.
    CONTEXT = "context"

    @property
    def quotes(self) -> bool:
        return self is not QuoteMethod.NEVER


@dataclass(frozen=True)
class TableIdentity:
    """Structural identity of a table: optional catalog and schema plus name."""

    table_name: str
    schema_name: Optional[str] = None
    catalog: Optional[str] = None

    def truncated(self, max_length: int) -> "TableIdentity":
        """Return a copy whose table name is cut to ``max_length`` characters."""
        name = truncate_identifier(self.table_name, max_length)
        if name == self.table_name:
            return self
        return replace(self, table_name=name)

    def __str__(self) -> str:
        return ".".join(p for p in (self.catalog, self.schema_name, self.table_name) if p)


def quote_identifier(
    name: str,
    quote_open: str = '"',
    quote_close: Optional[str] = None,
    method: QuoteMethod = QuoteMethod.ALWAYS,
) -> str:
    """
    Quote a SQL identifier (table or column name).

    Args:
        name: The identifier to quote
        quote_open: Opening quote character of the dialect
        quote_close: Closing quote character (defaults to ``quote_open``)
        method: Quoting policy; NEVER returns the name unchanged

    Returns:
        Properly quoted identifier

    Examples:
        >>> quote_identifier("order_id")
        '"order_id"'
        >>> quote_identifier('a"b')
        '"a""b"'
        >>> quote_identifier("table", "`")
        '`table`'
        >>> quote_identifier("col", "[", "]")
        '[col]'
        >>> quote_identifier("col", method=QuoteMethod.NEVER)
        'col'
    """
    if not method.quotes:
        return name
    close = quote_close or quote_open
    # Escape the closing character by doubling it
    escaped = name.replace(close, close * 2)
    return f"{quote_open}{escaped}{close}"


def qualify_table(
    table: TableIdentity,
    quote_open: str = '"',
    quote_close: Optional[str] = None,
    method: QuoteMethod = QuoteMethod.ALWAYS,
) -> str:
    """
    Create a fully qualified table reference, quoting every present part.

    Examples:
        >>> qualify_table(TableIdentity("orders", schema_name="sales"))
        '"sales"."orders"'
        >>> qualify_table(TableIdentity("orders"), method=QuoteMethod.NEVER)
        'orders'
    """
    parts = [p for p in (table.catalog, table.schema_name, table.table_name) if p]
    return ".".join(quote_identifier(p, quote_open, quote_close, method) for p in parts)


def truncate_identifier(name: str, max_length: int) -> str:
    """
    Cut ``name`` to its first ``max_length`` characters.

    A length of 0 (not computed yet) or IDENTIFIER_LENGTH_UNBOUNDED leaves
    the name unchanged. Truncating an already-truncated name is a no-op.

    Examples:
        >>> truncate_identifier("table", 4)
        'tabl'
        >>> truncate_identifier("table", 5)
        'table'
        >>> truncate_identifier("table", 0)
        'table'
    """
    if max_length <= IDENTIFIER_LENGTH_UNKNOWN or max_length >= IDENTIFIER_LENGTH_UNBOUNDED:
        return name
    return name[:max_length]


def parse_table_identifier(
    fqn: str,
    max_length: int = IDENTIFIER_LENGTH_UNKNOWN,
    separator: str = ".",
) -> TableIdentity:
    """
    Parse a dotted ``[catalog.][schema.]table`` name.

    Only the table segment (after the last separator) is truncated to
    ``max_length``.

    Examples:
        >>> parse_table_identifier("some.table", max_length=4)
        TableIdentity(table_name='tabl', schema_name='some', catalog=None)
        >>> parse_table_identifier("table")
        TableIdentity(table_name='table', schema_name=None, catalog=None)
    """
    if not fqn:
        raise ValueError("Table identifier must not be empty")

    qualifier, sep, table_name = fqn.rpartition(separator)
    table_name = truncate_identifier(table_name, max_length)
    if not sep:
        return TableIdentity(table_name)

    catalog, sep, schema_name = qualifier.rpartition(separator)
    return TableIdentity(
        table_name,
        schema_name=schema_name or None,
        catalog=(catalog or None) if sep else None,
    )


__all__ = [
    "IDENTIFIER_LENGTH_UNBOUNDED",
    "IDENTIFIER_LENGTH_UNKNOWN",
    "QuoteMethod",
    "TableIdentity",
    "quote_identifier",
    "qualify_table",
    "truncate_identifier",
    "parse_table_identifier",
]
