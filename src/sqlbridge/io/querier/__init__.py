"""Incremental table queriers and their scheduling."""

from .converter import ResultSetConverter
from .scheduler import QuerierQueue
from .table_querier import (
    BulkTableQuerier,
    IncrementalOffset,
    IncrementalTableQuerier,
    QuerierState,
    QuerySource,
    TableQuerier,
)

__all__ = [
    "BulkTableQuerier",
    "IncrementalOffset",
    "IncrementalTableQuerier",
    "QuerierQueue",
    "QuerierState",
    "QuerySource",
    "ResultSetConverter",
    "TableQuerier",
]
