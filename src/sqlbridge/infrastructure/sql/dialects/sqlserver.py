"""Microsoft SQL Server dialect: bracket quoting and MERGE upserts."""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, CastStyle, DialectDescriptor, UpsertStyle

SQLSERVER = DialectDescriptor(
    name="sqlserver",
    primitive_types={
        PrimitiveKind.INT8: "TINYINT",
        PrimitiveKind.INT16: "SMALLINT",
        PrimitiveKind.INT32: "INT",
        PrimitiveKind.INT64: "BIGINT",
        PrimitiveKind.FLOAT32: "REAL",
        PrimitiveKind.FLOAT64: "FLOAT",
        PrimitiveKind.BOOLEAN: "BIT",
        PrimitiveKind.STRING: "NVARCHAR(MAX)",
        PrimitiveKind.BYTES: "VARBINARY(MAX)",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL(38,{scale})",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "TIME",
        LogicalType.TIMESTAMP.value: "DATETIME2",
    },
    product_patterns=("microsoft sql server", "sql server", "mssql"),
    url_schemes=("mssql", "sqlserver"),
    priority=10,
    quote_open="[",
    quote_close="]",
    alter_style=AlterStyle.PER_COLUMN,
    upsert_style=UpsertStyle.MERGE,
    merge_cast=CastStyle.ANSI,
    boolean_literals=("1", "0"),
)
