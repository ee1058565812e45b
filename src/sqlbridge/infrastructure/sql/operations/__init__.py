"""High-level SQL statement builders."""

from .select import SelectBuilder, SelectStatement, TableQueryMode
from .upsert import UpsertBuilder, UpsertStatement

__all__ = [
    "SelectBuilder",
    "SelectStatement",
    "TableQueryMode",
    "UpsertBuilder",
    "UpsertStatement",
]
