"""SQLite dialect: type affinities, one ALTER per column, ON CONFLICT upserts."""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, DialectDescriptor, UpsertStyle

SQLITE = DialectDescriptor(
    name="sqlite",
    primitive_types={
        PrimitiveKind.INT8: "INTEGER",
        PrimitiveKind.INT16: "INTEGER",
        PrimitiveKind.INT32: "INTEGER",
        PrimitiveKind.INT64: "INTEGER",
        PrimitiveKind.FLOAT32: "REAL",
        PrimitiveKind.FLOAT64: "REAL",
        PrimitiveKind.BOOLEAN: "INTEGER",
        PrimitiveKind.STRING: "TEXT",
        PrimitiveKind.BYTES: "BLOB",
    },
    logical_types={
        LogicalType.DECIMAL.value: "NUMERIC",
        LogicalType.DATE.value: "NUMERIC",
        LogicalType.TIME.value: "NUMERIC",
        LogicalType.TIMESTAMP.value: "NUMERIC",
    },
    product_patterns=("sqlite",),
    url_schemes=("sqlite",),
    priority=10,
    alter_style=AlterStyle.PER_COLUMN,
    upsert_style=UpsertStyle.ON_CONFLICT,
    boolean_literals=("1", "0"),
)
