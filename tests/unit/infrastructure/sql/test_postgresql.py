"""
Unit tests for the PostgreSQL dialect.
"""

from unittest.mock import MagicMock

import pytest

from sqlbridge.infrastructure.schema.core import (
    SCALE_UNSET,
    ColumnSpec,
    FieldType,
    PrimitiveKind,
)
from sqlbridge.infrastructure.sql.core.identifier import (
    IDENTIFIER_LENGTH_UNBOUNDED,
    QuoteMethod,
    TableIdentity,
)
from sqlbridge.infrastructure.sql.dialects.base import SqlDialect
from sqlbridge.infrastructure.sql.dialects.postgresql import (
    MAX_IDENTIFIER_LENGTH_PROBE,
    POSTGRESQL,
)


def columns(*names, kind=PrimitiveKind.INT32):
    return [ColumnSpec(n, FieldType.of(kind)) for n in names]


class TestPostgreSQLDialect:
    """Tests for PostgreSQL dialect."""

    @pytest.fixture
    def dialect(self):
        return SqlDialect(POSTGRESQL, quote_method=QuoteMethod.ALWAYS, numeric_scale_high=127)

    def test_dialect_name(self, dialect):
        assert dialect.name == "postgresql"

    def test_quote_identifier(self, dialect):
        assert dialect.quote_identifier("年金计划号") == '"年金计划号"'

    @pytest.mark.parametrize(
        "field_type, expected",
        [
            (FieldType.of(PrimitiveKind.INT8), "SMALLINT"),
            (FieldType.of(PrimitiveKind.INT16), "SMALLINT"),
            (FieldType.of(PrimitiveKind.INT32), "INT"),
            (FieldType.of(PrimitiveKind.INT64), "BIGINT"),
            (FieldType.of(PrimitiveKind.FLOAT32), "REAL"),
            (FieldType.of(PrimitiveKind.FLOAT64), "DOUBLE PRECISION"),
            (FieldType.of(PrimitiveKind.BOOLEAN), "BOOLEAN"),
            (FieldType.of(PrimitiveKind.STRING), "TEXT"),
            (FieldType.of(PrimitiveKind.BYTES), "BYTEA"),
            (FieldType.decimal(scale=0), "DECIMAL"),
            (FieldType.decimal(scale=5), "DECIMAL"),
            (FieldType.date(), "DATE"),
            (FieldType.time(), "TIME"),
            (FieldType.timestamp(), "TIMESTAMP"),
        ],
    )
    def test_type_mapping(self, dialect, field_type, expected):
        assert dialect.sql_type_for(ColumnSpec("c", field_type)) == expected

    def test_unknown_logical_name_falls_back_to_primitive(self, dialect):
        ft = FieldType(PrimitiveKind.STRING, logical_name="io.example.Json")
        assert dialect.sql_type_for(ColumnSpec("c", ft)) == "TEXT"

    @pytest.mark.parametrize(
        "precision, scale, expected",
        [(4, SCALE_UNSET, 127), (0, 0, 127), (0, 5, 5), (10, 0, 0), (10, 2, 2)],
    )
    def test_decimal_scale(self, dialect, precision, scale, expected):
        assert dialect.decimal_scale(precision, scale) == expected

    def test_decimal_scale_uses_configured_fallback(self):
        dialect = SqlDialect(POSTGRESQL, quote_method=QuoteMethod.ALWAYS, numeric_scale_high=38)
        assert dialect.decimal_scale(0, 0) == 38

    def test_build_upsert(self, dialect):
        sql = dialect.build_upsert(
            TableIdentity("myTable"),
            columns("id1", "id2"),
            columns("columnA", "columnB", "columnC", "columnD"),
        )

        assert sql == (
            'INSERT INTO "myTable" ("id1","id2","columnA","columnB","columnC","columnD") '
            'VALUES (?,?,?,?,?,?) ON CONFLICT ("id1","id2") DO UPDATE SET '
            '"columnA"=EXCLUDED."columnA","columnB"=EXCLUDED."columnB",'
            '"columnC"=EXCLUDED."columnC","columnD"=EXCLUDED."columnD"'
        )

    def test_build_upsert_unquoted(self):
        dialect = SqlDialect(POSTGRESQL, quote_method=QuoteMethod.NEVER, numeric_scale_high=127)

        sql = dialect.build_upsert(
            TableIdentity("Customer"), columns("id"), columns("name", "salary", "address")
        )

        assert sql == (
            "INSERT INTO Customer (id,name,salary,address) VALUES (?,?,?,?) "
            "ON CONFLICT (id) DO UPDATE SET name=EXCLUDED.name,"
            "salary=EXCLUDED.salary,address=EXCLUDED.address"
        )

    def test_stale_statement_detection(self, dialect):
        assert dialect.is_stale_statement_error(
            Exception("ERROR: cached plan must not change result type")
        )
        assert not dialect.is_stale_statement_error(Exception("relation does not exist"))


class TestMaxIdentifierLength:
    @pytest.fixture
    def dialect(self):
        return SqlDialect(POSTGRESQL, quote_method=QuoteMethod.ALWAYS, numeric_scale_high=127)

    def test_probe_result_is_used(self, dialect):
        connection = MagicMock()
        connection.query_scalar.return_value = 24

        assert dialect.compute_max_identifier_length(connection) == 24
        connection.query_scalar.assert_called_once_with(MAX_IDENTIFIER_LENGTH_PROBE)

    def test_probe_text(self):
        assert MAX_IDENTIFIER_LENGTH_PROBE == "SELECT length(repeat('1234567890', 1000)::NAME);"

    def test_probe_error_degrades_to_unbounded(self, dialect):
        connection = MagicMock()
        connection.query_scalar.side_effect = RuntimeError("I plead the fifth")

        assert dialect.compute_max_identifier_length(connection) == IDENTIFIER_LENGTH_UNBOUNDED

    @pytest.mark.parametrize("value", [None, 0, -1, "not a number"])
    def test_invalid_probe_result_degrades_to_unbounded(self, dialect, value):
        connection = MagicMock()
        connection.query_scalar.return_value = value

        assert dialect.compute_max_identifier_length(connection) == IDENTIFIER_LENGTH_UNBOUNDED

    @pytest.mark.parametrize(
        "max_length, expected",
        [(4, "tabl"), (5, "table"), (IDENTIFIER_LENGTH_UNBOUNDED, "table"), (0, "table")],
    )
    def test_parse_table_identifier_truncates(self, dialect, max_length, expected):
        bound = dialect.with_identifier_length(max_length)
        assert bound.parse_table_identifier("some.table") == TableIdentity(
            expected, schema_name="some"
        )
