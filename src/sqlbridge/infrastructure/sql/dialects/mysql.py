"""
MySQL / MariaDB dialect.

Backtick-quoted identifiers, booleans stored as TINYINT and upserts through
INSERT ... ON DUPLICATE KEY UPDATE.
"""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, DialectDescriptor, UpsertStyle

MYSQL = DialectDescriptor(
    name="mysql",
    primitive_types={
        PrimitiveKind.INT8: "TINYINT",
        PrimitiveKind.INT16: "SMALLINT",
        PrimitiveKind.INT32: "INT",
        PrimitiveKind.INT64: "BIGINT",
        PrimitiveKind.FLOAT32: "FLOAT",
        PrimitiveKind.FLOAT64: "DOUBLE",
        PrimitiveKind.BOOLEAN: "TINYINT",
        PrimitiveKind.STRING: "TEXT",
        PrimitiveKind.BYTES: "VARBINARY(1024)",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL(65,{scale})",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "TIME(3)",
        LogicalType.TIMESTAMP.value: "DATETIME(3)",
    },
    product_patterns=("mysql", "mariadb"),
    url_schemes=("mysql", "mariadb"),
    priority=10,
    quote_open="`",
    alter_style=AlterStyle.MULTI_ADD,
    upsert_style=UpsertStyle.ON_DUPLICATE_KEY,
    boolean_literals=("1", "0"),
    decimal_precision=65,
    max_decimal_scale=30,
)
