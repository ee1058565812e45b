"""Database dialects: one immutable descriptor per family, interpreted by SqlDialect."""

from .base import AlterStyle, CastStyle, DialectDescriptor, SqlDialect, UpsertStyle
from .generic import GENERIC
from .hana import HANA
from .mysql import MYSQL
from .postgresql import POSTGRESQL
from .registry import BUILTIN_DIALECTS, DialectRegistry, url_scheme
from .sqlite import SQLITE
from .sqlserver import SQLSERVER
from .vertica import VERTICA

__all__ = [
    "AlterStyle",
    "CastStyle",
    "DialectDescriptor",
    "SqlDialect",
    "UpsertStyle",
    "BUILTIN_DIALECTS",
    "DialectRegistry",
    "url_scheme",
    "GENERIC",
    "HANA",
    "MYSQL",
    "POSTGRESQL",
    "SQLITE",
    "SQLSERVER",
    "VERTICA",
]
