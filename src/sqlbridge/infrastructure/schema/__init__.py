"""Canonical schema model and DDL generation.

This package does not import the SQL dialect package at module level so the
dialects can depend on it without an import cycle.
"""

from .core import (
    PRECISION_UNSET,
    SCALE_UNSET,
    ColumnSet,
    ColumnSpec,
    FieldType,
    LogicalType,
    PrimitiveKind,
    Record,
    RecordSchema,
)
from .ddl_generator import generate_alter_table_ddl, generate_create_table_ddl

__all__ = [
    "PRECISION_UNSET",
    "SCALE_UNSET",
    "ColumnSet",
    "ColumnSpec",
    "FieldType",
    "LogicalType",
    "PrimitiveKind",
    "Record",
    "RecordSchema",
    "generate_alter_table_ddl",
    "generate_create_table_ddl",
]
