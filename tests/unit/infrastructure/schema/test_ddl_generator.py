"""Unit tests for CREATE TABLE / ALTER TABLE generation."""

import datetime as dt

import pytest

from sqlbridge.infrastructure.schema.core import ColumnSpec, FieldType, PrimitiveKind
from sqlbridge.infrastructure.schema.ddl_generator import (
    generate_alter_table_ddl,
    generate_create_table_ddl,
)
from sqlbridge.infrastructure.sql.core.identifier import QuoteMethod, TableIdentity
from sqlbridge.infrastructure.sql.dialects.base import (
    AlterStyle,
    DialectDescriptor,
    SqlDialect,
)
from sqlbridge.infrastructure.sql.dialects.hana import HANA
from sqlbridge.infrastructure.sql.dialects.postgresql import POSTGRESQL
from sqlbridge.infrastructure.sql.dialects.vertica import VERTICA
from sqlbridge.infrastructure.sql.exceptions import PreconditionError

INT32 = FieldType.of(PrimitiveKind.INT32)

# Minimal family: INT32 -> INT, everything else STRING
MINIMAL = DialectDescriptor(
    name="minimal",
    primitive_types={
        **{kind: "STRING" for kind in PrimitiveKind},
        PrimitiveKind.INT32: "INT",
    },
    logical_types={},
)


def dialect_for(descriptor, quote_method=QuoteMethod.ALWAYS):
    return SqlDialect(descriptor, quote_method=quote_method, numeric_scale_high=127)


@pytest.fixture
def my_table():
    return TableIdentity("myTable")


@pytest.fixture
def nine_columns():
    """One column per kind of clause: keys, NOT NULL, NULL and each default literal."""
    return [
        ColumnSpec("c1", INT32, is_primary_key=True),
        ColumnSpec("c2", FieldType.of(PrimitiveKind.INT64)),
        ColumnSpec("c3", FieldType.of(PrimitiveKind.STRING)),
        ColumnSpec("c4", FieldType.of(PrimitiveKind.STRING), is_optional=True),
        ColumnSpec("c5", FieldType.date(), default=dt.date(2001, 3, 15)),
        ColumnSpec("c6", FieldType.time(), default=dt.time(0, 0)),
        ColumnSpec("c7", FieldType.timestamp(), default=dt.datetime(2001, 3, 15)),
        ColumnSpec("c8", FieldType.decimal(scale=0), is_optional=True),
        ColumnSpec("c9", FieldType.of(PrimitiveKind.BOOLEAN), default=True),
    ]


class TestCreateTable:
    def test_scenario_single_key(self):
        dialect = dialect_for(MINIMAL)
        columns = [
            ColumnSpec("id", INT32, is_primary_key=True),
            ColumnSpec("name", FieldType.of(PrimitiveKind.STRING), is_optional=True),
        ]

        sql = generate_create_table_ddl(dialect, TableIdentity("t"), columns)

        assert sql == 'CREATE TABLE "t" (\n"id" INT NOT NULL,\n"name" STRING NULL,\nPRIMARY KEY("id"))'

    def test_postgres_all_clause_kinds(self, my_table, nine_columns):
        sql = generate_create_table_ddl(dialect_for(POSTGRESQL), my_table, nine_columns)

        assert sql == (
            'CREATE TABLE "myTable" (\n'
            '"c1" INT NOT NULL,\n'
            '"c2" BIGINT NOT NULL,\n'
            '"c3" TEXT NOT NULL,\n'
            '"c4" TEXT NULL,\n'
            "\"c5\" DATE DEFAULT '2001-03-15',\n"
            "\"c6\" TIME DEFAULT '00:00:00.000',\n"
            "\"c7\" TIMESTAMP DEFAULT '2001-03-15 00:00:00.000',\n"
            '"c8" DECIMAL NULL,\n'
            '"c9" BOOLEAN DEFAULT TRUE,\n'
            'PRIMARY KEY("c1"))'
        )

    def test_postgres_unquoted(self, my_table, nine_columns):
        sql = generate_create_table_ddl(
            dialect_for(POSTGRESQL, QuoteMethod.NEVER), my_table, nine_columns
        )

        assert sql.startswith("CREATE TABLE myTable (\nc1 INT NOT NULL,\n")
        assert sql.endswith("c9 BOOLEAN DEFAULT TRUE,\nPRIMARY KEY(c1))")

    def test_no_keys_omits_primary_key(self, my_table):
        sql = generate_create_table_ddl(dialect_for(POSTGRESQL), my_table, [ColumnSpec("col1", INT32)])
        assert sql == 'CREATE TABLE "myTable" (\n"col1" INT NOT NULL)'

    def test_primary_key_follows_declaration_order(self, my_table):
        columns = [
            ColumnSpec("pk2", INT32, is_primary_key=True),
            ColumnSpec("col1", INT32),
            ColumnSpec("pk1", INT32, is_primary_key=True),
        ]

        sql = generate_create_table_ddl(dialect_for(POSTGRESQL), my_table, columns)

        assert sql == (
            'CREATE TABLE "myTable" (\n"pk2" INT NOT NULL,\n"col1" INT NOT NULL,\n'
            '"pk1" INT NOT NULL,\nPRIMARY KEY("pk2","pk1"))'
        )

    def test_hana_uses_column_store(self, my_table):
        sql = generate_create_table_ddl(
            dialect_for(HANA), my_table, [ColumnSpec("c1", INT32, is_primary_key=True)]
        )
        assert sql == 'CREATE COLUMN TABLE "myTable" (\n"c1" INTEGER NOT NULL,\nPRIMARY KEY("c1"))'

    def test_qualified_table(self):
        sql = generate_create_table_ddl(
            dialect_for(POSTGRESQL), TableIdentity("t", schema_name="s"), [ColumnSpec("a", INT32)]
        )
        assert sql.startswith('CREATE TABLE "s"."t" (')

    def test_empty_columns_raise(self, my_table):
        with pytest.raises(PreconditionError):
            generate_create_table_ddl(dialect_for(POSTGRESQL), my_table, [])


class TestAlterTable:
    def test_postgres_multi_add(self, my_table, nine_columns):
        statements = generate_alter_table_ddl(dialect_for(POSTGRESQL), my_table, nine_columns)

        assert statements == [
            'ALTER TABLE "myTable" \n'
            'ADD "c1" INT NOT NULL,\n'
            'ADD "c2" BIGINT NOT NULL,\n'
            'ADD "c3" TEXT NOT NULL,\n'
            'ADD "c4" TEXT NULL,\n'
            "ADD \"c5\" DATE DEFAULT '2001-03-15',\n"
            "ADD \"c6\" TIME DEFAULT '00:00:00.000',\n"
            "ADD \"c7\" TIMESTAMP DEFAULT '2001-03-15 00:00:00.000',\n"
            'ADD "c8" DECIMAL NULL,\n'
            'ADD "c9" BOOLEAN DEFAULT TRUE'
        ]

    def test_postgres_single_column(self, my_table):
        statements = generate_alter_table_ddl(
            dialect_for(POSTGRESQL), my_table, [ColumnSpec("newcol1", INT32, is_optional=True)]
        )
        assert statements == ['ALTER TABLE "myTable" ADD "newcol1" INT NULL']

    def test_postgres_two_columns(self, my_table):
        statements = generate_alter_table_ddl(
            dialect_for(POSTGRESQL),
            my_table,
            [
                ColumnSpec("newcol1", INT32, is_optional=True),
                ColumnSpec("newcol2", INT32, default=42),
            ],
        )
        assert statements == [
            'ALTER TABLE "myTable" \nADD "newcol1" INT NULL,\nADD "newcol2" INT DEFAULT 42'
        ]

    def test_vertica_one_statement_per_column(self, my_table):
        dialect = dialect_for(VERTICA)
        assert dialect.descriptor.alter_style is AlterStyle.PER_COLUMN

        statements = generate_alter_table_ddl(
            dialect,
            my_table,
            [
                ColumnSpec("newcol1", INT32, is_optional=True),
                ColumnSpec("newcol2", INT32, default=42),
            ],
        )

        assert statements == [
            'ALTER TABLE "myTable" ADD "newcol1" INT NULL',
            'ALTER TABLE "myTable" ADD "newcol2" INT DEFAULT 42',
        ]

    def test_hana_wrapped(self, my_table):
        statements = generate_alter_table_ddl(
            dialect_for(HANA),
            my_table,
            [
                ColumnSpec("newcol1", INT32, is_optional=True),
                ColumnSpec("newcol2", INT32, default=42),
            ],
        )
        assert statements == [
            'ALTER TABLE "myTable" ADD(\n"newcol1" INTEGER NULL,\n"newcol2" INTEGER DEFAULT 42)'
        ]

    def test_empty_columns_raise(self, my_table):
        with pytest.raises(PreconditionError):
            generate_alter_table_ddl(dialect_for(POSTGRESQL), my_table, [])
