"""
Result-set conversion for queriers.

Turns driver result metadata into a canonical RecordSchema (once per
execution) and each fetched row into a Record. Timestamps are carried either
as datetime values or, with the ``nanos_iso_string`` granularity, as
``YYYY-MM-DD HH:MM:SS.fffffffff`` strings so no precision is lost downstream.
"""

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence

from sqlbridge.infrastructure.schema.core import (
    ColumnSpec,
    FieldType,
    PrimitiveKind,
    Record,
    RecordSchema,
)
from sqlbridge.infrastructure.sql.dialects.base import SqlDialect
from sqlbridge.infrastructure.sql.exceptions import PreconditionError, UnsupportedTypeError
from sqlbridge.io.connectors.live_connection import ColumnMetadata, SqlType

GRANULARITY_CONNECT_LOGICAL = "connect_logical"
GRANULARITY_NANOS_ISO_STRING = "nanos_iso_string"

_SIMPLE_TYPES = {
    SqlType.INTEGER: FieldType.of(PrimitiveKind.INT64),
    SqlType.FLOAT: FieldType.of(PrimitiveKind.FLOAT64),
    SqlType.BOOLEAN: FieldType.of(PrimitiveKind.BOOLEAN),
    SqlType.STRING: FieldType.of(PrimitiveKind.STRING),
    SqlType.BINARY: FieldType.of(PrimitiveKind.BYTES),
    SqlType.DATE: FieldType.date(),
    SqlType.TIME: FieldType.time(),
}


def to_nano_string(value: Optional[dt.datetime]) -> Optional[str]:
    """
    Render a timestamp with nanosecond positions, trailing zeros trimmed.

    Examples:
        >>> to_nano_string(dt.datetime(2024, 1, 2, 3, 4, 5, 120000))
        '2024-01-02 03:04:05.12'
        >>> to_nano_string(dt.datetime(2024, 1, 2, 3, 4, 5))
        '2024-01-02 03:04:05.0'
    """
    if value is None:
        return None
    fraction = f"{value.microsecond * 1000:09d}".rstrip("0") or "0"
    return f"{value.strftime('%Y-%m-%d %H:%M:%S')}.{fraction}"


def from_nano_string(text: Optional[str]) -> Optional[dt.datetime]:
    """Parse a nano string back into a datetime (sub-microsecond digits are dropped)."""
    if text is None:
        return None
    base, _, fraction = text.partition(".")
    parsed = dt.datetime.strptime(base, "%Y-%m-%d %H:%M:%S")
    if not fraction:
        return parsed
    if not fraction.isdigit() or len(fraction) > 9:
        raise ValueError(f"Invalid fractional seconds in timestamp '{text}'")
    return parsed.replace(microsecond=int(fraction.ljust(9, "0")[:6]))


class ResultSetConverter:
    """
    Converts one result set's metadata and rows for a querier.

    Args:
        dialect: Dialect of the source database (decimal scale resolution)
        timestamp_granularity: ``connect_logical`` or ``nanos_iso_string``
    """

    def __init__(
        self, dialect: SqlDialect, timestamp_granularity: str = GRANULARITY_CONNECT_LOGICAL
    ):
        if timestamp_granularity not in (GRANULARITY_CONNECT_LOGICAL, GRANULARITY_NANOS_ISO_STRING):
            raise ValueError(f"Unknown timestamp granularity '{timestamp_granularity}'")
        self.dialect = dialect
        self.timestamp_granularity = timestamp_granularity

    @property
    def nanos_as_string(self) -> bool:
        return self.timestamp_granularity == GRANULARITY_NANOS_ISO_STRING

    def field_type(self, column: ColumnMetadata) -> FieldType:
        """
        Map a result column to a canonical field type.

        Raises:
            UnsupportedTypeError: If the column has no canonical counterpart
        """
        if column.type_code == SqlType.DECIMAL:
            return FieldType.decimal(
                scale=self.dialect.decimal_scale(column.precision, column.scale),
                precision=column.precision,
            )
        if column.type_code == SqlType.TIMESTAMP:
            return FieldType.nano_timestamp_string() if self.nanos_as_string else FieldType.timestamp()
        try:
            return _SIMPLE_TYPES[column.type_code]
        except KeyError:
            raise UnsupportedTypeError(
                f"Result column type '{column.type_name or column.type_code.value}' is not supported",
                dialect=self.dialect.name,
                column=column.name,
            ) from None

    def schema_for(self, name: Optional[str], metadata: Sequence[ColumnMetadata]) -> RecordSchema:
        """Build the schema snapshot of a result set."""
        fields: List[ColumnSpec] = [
            ColumnSpec(name=c.name, field_type=self.field_type(c), is_optional=c.nullable)
            for c in metadata
        ]
        return RecordSchema(name=name, fields=tuple(fields))

    def to_record(self, row: Sequence[Any], schema: RecordSchema) -> Record:
        """Convert a fetched row into a Record of ``schema``."""
        if len(row) != len(schema.fields):
            raise PreconditionError(
                f"Row has {len(row)} values but schema {schema.name!r} has {len(schema.fields)} fields"
            )
        values: Dict[str, Any] = {}
        for spec, value in zip(schema.fields, row):
            if value is not None and spec.field_type == FieldType.nano_timestamp_string():
                value = to_nano_string(value) if isinstance(value, dt.datetime) else str(value)
            values[spec.name] = value
        return Record(values=values, schema=schema)


__all__ = [
    "GRANULARITY_CONNECT_LOGICAL",
    "GRANULARITY_NANOS_ISO_STRING",
    "ResultSetConverter",
    "from_nano_string",
    "to_nano_string",
]
