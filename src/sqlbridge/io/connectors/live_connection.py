"""
Live database connection contract and adapters.

Queriers and dialects only talk to the database through the small protocol
defined here: prepare a statement, execute it with positional parameters,
read result metadata and rows one at a time. Two adapters are provided:

- DbApiConnection wraps any PEP 249 connection (sqlite3, psycopg, pymysql...)
- SqlAlchemyConnection builds one from a SQLAlchemy Engine
"""

from __future__ import annotations

import datetime as dt
import itertools
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from sqlbridge.infrastructure.schema.core import PRECISION_UNSET, SCALE_UNSET
from sqlbridge.infrastructure.sql.core.parameters import PLACEHOLDER
from sqlbridge.infrastructure.sql.exceptions import PreconditionError
from sqlbridge.utils.logging import get_logger

logger = get_logger(__name__)


class SqlType(str, Enum):
    """Coarse SQL type category of a result column."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    BINARY = "binary"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnMetadata:
    """Description of one result column as reported by the driver."""

    name: str
    type_code: SqlType
    nullable: bool = True
    precision: int = PRECISION_UNSET
    scale: int = SCALE_UNSET
    type_name: Optional[str] = None


class ResultCursor(Protocol):
    """An open result set, read one row at a time."""

    def metadata(self) -> List[ColumnMetadata]: ...

    def fetchone(self) -> Optional[Sequence[Any]]: ...

    def close(self) -> None: ...


class StatementHandle(Protocol):
    """A prepared statement that can be executed repeatedly."""

    def execute(self, params: Sequence[Any] = ()) -> ResultCursor: ...

    def close(self) -> None: ...


class LiveConnection(Protocol):
    """
    Protocol for live database connections.

    ``product_name`` selects the dialect; ``connection_key`` identifies the
    connection for per-connection caches (identifier-length probe).
    """

    product_name: str
    connection_key: str

    def prepare(self, sql: str) -> StatementHandle: ...

    def query_scalar(self, sql: str) -> Any: ...


# Python value types in the order they are checked (bool before int, datetime before date)
_VALUE_TYPES: Tuple[Tuple[type, SqlType], ...] = (
    (bool, SqlType.BOOLEAN),
    (int, SqlType.INTEGER),
    (float, SqlType.FLOAT),
    (Decimal, SqlType.DECIMAL),
    (str, SqlType.STRING),
    (bytes, SqlType.BINARY),
    (bytearray, SqlType.BINARY),
    (memoryview, SqlType.BINARY),
    (dt.datetime, SqlType.TIMESTAMP),
    (dt.date, SqlType.DATE),
    (dt.time, SqlType.TIME),
)

# Literals are matched first so placeholders inside them are left alone
_PLACEHOLDER_PATTERN = re.compile(r"'(?:[^']|'')*'|\?")


def sql_type_for_value(value: Any) -> SqlType:
    """Infer a column category from a Python value returned by the driver."""
    for python_type, sql_type in _VALUE_TYPES:
        if isinstance(value, python_type):
            return sql_type
    return SqlType.OTHER


def convert_paramstyle(sql: str, paramstyle: str) -> str:
    """
    Rewrite ``?`` placeholders into the driver's DB-API paramstyle.

    Examples:
        >>> convert_paramstyle("SELECT * FROM t WHERE a > ? AND b = '?'", "format")
        "SELECT * FROM t WHERE a > %s AND b = '?'"
        >>> convert_paramstyle("SELECT ? , ?", "numeric")
        'SELECT :1 , :2'
    """
    if paramstyle == "qmark":
        return sql

    if paramstyle in ("format", "pyformat"):
        # Percent signs are format directives for these drivers
        sql = sql.replace("%", "%%")

    counter = itertools.count(1)

    def _replace(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token != PLACEHOLDER:
            return token
        index = next(counter)
        if paramstyle in ("format", "pyformat"):
            return "%s"
        if paramstyle == "numeric":
            return f":{index}"
        if paramstyle == "named":
            return f":p{index}"
        raise PreconditionError(f"Unsupported DB-API paramstyle '{paramstyle}'")

    return _PLACEHOLDER_PATTERN.sub(_replace, sql)


class DbApiResultCursor:
    """ResultCursor over a PEP 249 cursor."""

    def __init__(self, cursor: Any, dbapi: Any = None):
        self._cursor = cursor
        self._dbapi = dbapi
        self._buffered: List[Sequence[Any]] = []
        self._metadata: Optional[List[ColumnMetadata]] = None
        self.closed = False

    def _category(self, type_code: Any, scale: Any) -> Optional[SqlType]:
        if isinstance(type_code, type):
            for python_type, sql_type in _VALUE_TYPES:
                if issubclass(type_code, python_type):
                    return sql_type
            return None
        if self._dbapi is None or type_code is None:
            return None
        if type_code == getattr(self._dbapi, "DATETIME", object()):
            return SqlType.TIMESTAMP
        if type_code == getattr(self._dbapi, "NUMBER", object()):
            return SqlType.DECIMAL if scale else SqlType.INTEGER
        if type_code == getattr(self._dbapi, "BINARY", object()):
            return SqlType.BINARY
        if type_code == getattr(self._dbapi, "STRING", object()):
            return SqlType.STRING
        return None

    def metadata(self) -> List[ColumnMetadata]:
        """
        Describe the result columns.

        Drivers that report no type codes (sqlite3) or only coarse ones are
        refined with the Python type of the first row's values; that row is
        buffered and still returned by ``fetchone``.
        """
        if self._metadata is not None:
            return self._metadata

        description = self._cursor.description or ()
        if not self._buffered:
            first = self._cursor.fetchone()
            if first is not None:
                self._buffered.append(first)
        sample = self._buffered[0] if self._buffered else None

        columns = []
        for index, entry in enumerate(description):
            name, type_code = entry[0], entry[1]
            precision = entry[4] if len(entry) > 4 else None
            scale = entry[5] if len(entry) > 5 else None
            null_ok = entry[6] if len(entry) > 6 else None

            value = sample[index] if sample is not None else None
            category = sql_type_for_value(value) if value is not None else None
            if category is None:
                category = self._category(type_code, scale) or SqlType.STRING

            columns.append(
                ColumnMetadata(
                    name=name,
                    type_code=category,
                    nullable=True if null_ok is None else bool(null_ok),
                    precision=PRECISION_UNSET if precision is None else int(precision),
                    scale=SCALE_UNSET if scale is None else int(scale),
                    type_name=type_code if isinstance(type_code, str) else None,
                )
            )
        self._metadata = columns
        return columns

    def fetchone(self) -> Optional[Sequence[Any]]:
        if self._buffered:
            return self._buffered.pop(0)
        return self._cursor.fetchone()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._buffered.clear()
            self._cursor.close()


class DbApiStatement:
    """StatementHandle over a PEP 249 connection; each execution opens its own cursor."""

    def __init__(self, connection: Any, sql: str, paramstyle: str, dbapi: Any = None):
        self._connection = connection
        self.sql = sql
        self._driver_sql = convert_paramstyle(sql, paramstyle)
        self._paramstyle = paramstyle
        self._dbapi = dbapi
        self.closed = False

    def execute(self, params: Sequence[Any] = ()) -> DbApiResultCursor:
        if self.closed:
            raise PreconditionError("Cannot execute a closed statement")
        cursor = self._connection.cursor()
        try:
            if self._paramstyle == "named":
                cursor.execute(
                    self._driver_sql, {f"p{i}": v for i, v in enumerate(params, start=1)}
                )
            else:
                cursor.execute(self._driver_sql, tuple(params))
        except Exception:
            cursor.close()
            raise
        return DbApiResultCursor(cursor, self._dbapi)

    def close(self) -> None:
        self.closed = True


class DbApiConnection:
    """
    LiveConnection adapter for PEP 249 connections.

    Args:
        connection: DB-API connection object
        product_name: Database product name used for dialect resolution
        connection_key: Cache key for this connection (defaults to its id)
        dbapi: DB-API module, used for paramstyle and type objects

    Example:
        >>> import sqlite3
        >>> live = DbApiConnection(sqlite3.connect(":memory:"), "SQLite", dbapi=sqlite3)
        >>> live.query_scalar("SELECT 1")
        1
    """

    def __init__(
        self,
        connection: Any,
        product_name: str,
        connection_key: Optional[str] = None,
        dbapi: Any = None,
    ):
        self.connection = connection
        self.product_name = product_name
        self.connection_key = connection_key or f"{product_name}:{id(connection)}"
        self.dbapi = dbapi
        self.paramstyle = getattr(dbapi, "paramstyle", "qmark")

    def prepare(self, sql: str) -> DbApiStatement:
        logger.debug("connection.prepare", product=self.product_name, sql=sql)
        return DbApiStatement(self.connection, sql, self.paramstyle, self.dbapi)

    def query_scalar(self, sql: str) -> Any:
        """Run ``sql`` and return the first column of its first row, or None."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            row = cursor.fetchone()
        finally:
            cursor.close()
        return row[0] if row else None

    def close(self) -> None:
        self.connection.close()


class SqlAlchemyConnection(DbApiConnection):
    """DbApiConnection drawn from a SQLAlchemy Engine's pool."""

    @classmethod
    def from_engine(cls, engine: Any) -> "SqlAlchemyConnection":
        """
        Check out a raw DB-API connection from ``engine``.

        The product name is the SQLAlchemy dialect name and the cache key is
        the engine URL with its password hidden.
        """
        url = engine.url.render_as_string(hide_password=True)
        logger.info("connection.opened", dialect=engine.dialect.name, url=url)
        return cls(
            engine.raw_connection(),
            product_name=engine.dialect.name,
            connection_key=url,
            dbapi=engine.dialect.dbapi,
        )


__all__ = [
    "SqlType",
    "ColumnMetadata",
    "ResultCursor",
    "StatementHandle",
    "LiveConnection",
    "DbApiConnection",
    "DbApiResultCursor",
    "DbApiStatement",
    "SqlAlchemyConnection",
    "convert_paramstyle",
    "sql_type_for_value",
]
