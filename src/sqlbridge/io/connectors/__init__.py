"""Live database connections."""

from .live_connection import (
    ColumnMetadata,
    DbApiConnection,
    LiveConnection,
    ResultCursor,
    SqlAlchemyConnection,
    SqlType,
    StatementHandle,
)

__all__ = [
    "ColumnMetadata",
    "DbApiConnection",
    "LiveConnection",
    "ResultCursor",
    "SqlAlchemyConnection",
    "SqlType",
    "StatementHandle",
]
