"""Vertica dialect: one ALTER per column and MERGE upserts with ``::`` casts."""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, CastStyle, DialectDescriptor, UpsertStyle

VERTICA = DialectDescriptor(
    name="vertica",
    primitive_types={
        PrimitiveKind.INT8: "INT",
        PrimitiveKind.INT16: "INT",
        PrimitiveKind.INT32: "INT",
        PrimitiveKind.INT64: "INT",
        PrimitiveKind.FLOAT32: "FLOAT",
        PrimitiveKind.FLOAT64: "FLOAT",
        PrimitiveKind.BOOLEAN: "BOOLEAN",
        PrimitiveKind.STRING: "VARCHAR(1024)",
        PrimitiveKind.BYTES: "VARBINARY(1024)",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL(18,{scale})",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "TIME",
        LogicalType.TIMESTAMP.value: "TIMESTAMP",
    },
    product_patterns=("vertica",),
    url_schemes=("vertica",),
    priority=10,
    alter_style=AlterStyle.PER_COLUMN,
    upsert_style=UpsertStyle.MERGE,
    merge_cast=CastStyle.POSTGRES,
    decimal_precision=18,
    max_decimal_scale=18,
)
