"""Core SQL utilities package."""

from .identifier import (
    IDENTIFIER_LENGTH_UNBOUNDED,
    IDENTIFIER_LENGTH_UNKNOWN,
    QuoteMethod,
    TableIdentity,
    parse_table_identifier,
    qualify_table,
    quote_identifier,
    truncate_identifier,
)
from .parameters import PLACEHOLDER, bind_ordered, build_placeholders

__all__ = [
    "IDENTIFIER_LENGTH_UNBOUNDED",
    "IDENTIFIER_LENGTH_UNKNOWN",
    "QuoteMethod",
    "TableIdentity",
    "parse_table_identifier",
    "qualify_table",
    "quote_identifier",
    "truncate_identifier",
    "PLACEHOLDER",
    "bind_ordered",
    "build_placeholders",
]
