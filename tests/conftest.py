"""Pytest configuration shared by all SQLBridge test suites.

Settings are read from the environment, so the SQLBRIDGE_* variables a
developer may have exported are cleared before any sqlbridge import and the
cached Settings instance is rebuilt around every test.
"""

from __future__ import annotations

import os

# Tests must not pick up a developer's .env file or exported overrides
os.environ["SQLBRIDGE_ENV_FILE"] = os.devnull
for _name in list(os.environ):
    if _name.startswith("SQLBRIDGE_") and _name != "SQLBRIDGE_ENV_FILE":
        del os.environ[_name]

from typing import Any, Iterator, List, Optional, Sequence  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from sqlbridge.config import get_settings  # noqa: E402
from sqlbridge.infrastructure.sql.core.identifier import QuoteMethod  # noqa: E402
from sqlbridge.infrastructure.sql.dialects import (  # noqa: E402
    DialectRegistry,
    SqlDialect,
)
from sqlbridge.io.connectors.live_connection import ColumnMetadata  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry() -> DialectRegistry:
    return DialectRegistry.default(quote_method=QuoteMethod.ALWAYS, numeric_scale_high=127)


@pytest.fixture
def postgres(registry: DialectRegistry) -> SqlDialect:
    return registry.resolve("PostgreSQL")


class FakeCursor:
    """In-memory ResultCursor serving fixed rows."""

    def __init__(self, metadata: Sequence[ColumnMetadata], rows: Sequence[Sequence[Any]]):
        self._metadata = list(metadata)
        self._rows = list(rows)
        self.closed = False

    def metadata(self) -> List[ColumnMetadata]:
        return self._metadata

    def fetchone(self) -> Optional[Sequence[Any]]:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


def make_connection(
    product_name: str = "PostgreSQL",
    identifier_length: Any = 63,
    connection_key: str = "test-connection",
) -> MagicMock:
    """MagicMock LiveConnection whose identifier-length probe returns ``identifier_length``."""
    connection = MagicMock()
    connection.product_name = product_name
    connection.connection_key = connection_key
    connection.query_scalar.return_value = identifier_length
    return connection


def make_statement(*outcomes: Any) -> MagicMock:
    """MagicMock StatementHandle whose executions return cursors or raise, in order."""
    statement = MagicMock()
    statement.execute.side_effect = list(outcomes)
    return statement


@pytest.fixture
def fake_cursor():
    return FakeCursor


@pytest.fixture(name="make_connection")
def make_connection_fixture():
    return make_connection


@pytest.fixture(name="make_statement")
def make_statement_fixture():
    return make_statement
