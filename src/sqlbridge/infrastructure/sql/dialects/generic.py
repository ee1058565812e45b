"""
Generic ANSI SQL dialect.

Used when no registered family matches the database product name. Upserts
use the SQL:2003 MERGE statement with ANSI casts.
"""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, CastStyle, DialectDescriptor, UpsertStyle

GENERIC = DialectDescriptor(
    name="generic",
    primitive_types={
        PrimitiveKind.INT8: "SMALLINT",
        PrimitiveKind.INT16: "SMALLINT",
        PrimitiveKind.INT32: "INTEGER",
        PrimitiveKind.INT64: "BIGINT",
        PrimitiveKind.FLOAT32: "REAL",
        PrimitiveKind.FLOAT64: "DOUBLE PRECISION",
        PrimitiveKind.BOOLEAN: "BOOLEAN",
        PrimitiveKind.STRING: "VARCHAR(4000)",
        PrimitiveKind.BYTES: "BLOB",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL({precision},{scale})",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "TIME",
        LogicalType.TIMESTAMP.value: "TIMESTAMP",
    },
    priority=-1,
    alter_style=AlterStyle.PER_COLUMN,
    upsert_style=UpsertStyle.MERGE,
    merge_cast=CastStyle.ANSI,
)
