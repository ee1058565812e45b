"""
SQL module for dialect-aware SQL generation.

This module provides reusable utilities for building SQL statements with
proper identifier quoting, table qualification, native type mapping and
dialect-specific DDL/DML syntax.
"""

from .core.identifier import QuoteMethod, TableIdentity, qualify_table, quote_identifier
from .core.parameters import bind_ordered, build_placeholders
from .dialects.base import DialectDescriptor, SqlDialect
from .dialects.registry import DialectRegistry
from .exceptions import (
    PreconditionError,
    QuerierStateError,
    SqlBridgeError,
    UnsupportedStatementError,
    UnsupportedTypeError,
)
from .operations.select import SelectBuilder, SelectStatement, TableQueryMode
from .operations.upsert import UpsertBuilder, UpsertStatement

__all__ = [
    "QuoteMethod",
    "TableIdentity",
    "quote_identifier",
    "qualify_table",
    "bind_ordered",
    "build_placeholders",
    "DialectDescriptor",
    "SqlDialect",
    "DialectRegistry",
    "SqlBridgeError",
    "UnsupportedTypeError",
    "UnsupportedStatementError",
    "PreconditionError",
    "QuerierStateError",
    "SelectBuilder",
    "SelectStatement",
    "TableQueryMode",
    "UpsertBuilder",
    "UpsertStatement",
]
