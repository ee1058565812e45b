"""
SAP HANA dialect.

Tables are created in the column store, new columns are added inside a
single ADD(...) list and upserts use the native UPSERT ... WITH PRIMARY KEY.
"""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, DialectDescriptor, UpsertStyle

HANA = DialectDescriptor(
    name="hana",
    primitive_types={
        PrimitiveKind.INT8: "TINYINT",
        PrimitiveKind.INT16: "SMALLINT",
        PrimitiveKind.INT32: "INTEGER",
        PrimitiveKind.INT64: "BIGINT",
        PrimitiveKind.FLOAT32: "REAL",
        PrimitiveKind.FLOAT64: "DOUBLE",
        PrimitiveKind.BOOLEAN: "BOOLEAN",
        PrimitiveKind.STRING: "VARCHAR(1000)",
        PrimitiveKind.BYTES: "BLOB",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "DATE",
        LogicalType.TIMESTAMP.value: "TIMESTAMP",
    },
    product_patterns=("hdb", "hana"),
    url_schemes=("hana", "sap"),
    priority=10,
    alter_style=AlterStyle.WRAPPED,
    upsert_style=UpsertStyle.UPSERT_WITH_PRIMARY_KEY,
    create_table_keyword="CREATE COLUMN TABLE",
)
