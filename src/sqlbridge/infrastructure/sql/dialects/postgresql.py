"""
PostgreSQL dialect.

Identifiers are double-quoted, upserts use INSERT ... ON CONFLICT and several
columns are added with one ALTER TABLE statement. Server-side prepared plans
are invalidated when a wildcard query's result shape changes, which the
server reports as "cached plan must not change result type".
"""

from sqlbridge.infrastructure.schema.core import LogicalType, PrimitiveKind

from .base import AlterStyle, CastStyle, DialectDescriptor, UpsertStyle

STALE_PLAN_SIGNATURE = "cached plan must not change result type"
MAX_IDENTIFIER_LENGTH_PROBE = "SELECT length(repeat('1234567890', 1000)::NAME);"

POSTGRESQL = DialectDescriptor(
    name="postgresql",
    primitive_types={
        PrimitiveKind.INT8: "SMALLINT",
        PrimitiveKind.INT16: "SMALLINT",
        PrimitiveKind.INT32: "INT",
        PrimitiveKind.INT64: "BIGINT",
        PrimitiveKind.FLOAT32: "REAL",
        PrimitiveKind.FLOAT64: "DOUBLE PRECISION",
        PrimitiveKind.BOOLEAN: "BOOLEAN",
        PrimitiveKind.STRING: "TEXT",
        PrimitiveKind.BYTES: "BYTEA",
    },
    logical_types={
        LogicalType.DECIMAL.value: "DECIMAL",
        LogicalType.DATE.value: "DATE",
        LogicalType.TIME.value: "TIME",
        LogicalType.TIMESTAMP.value: "TIMESTAMP",
    },
    product_patterns=("postgresql", "greenplum"),
    url_schemes=("postgresql", "postgres", "pgsql"),
    priority=10,
    alter_style=AlterStyle.MULTI_ADD,
    upsert_style=UpsertStyle.ON_CONFLICT,
    merge_cast=CastStyle.POSTGRES,
    stale_statement_signatures=(STALE_PLAN_SIGNATURE,),
    identifier_length_probe=MAX_IDENTIFIER_LENGTH_PROBE,
)
