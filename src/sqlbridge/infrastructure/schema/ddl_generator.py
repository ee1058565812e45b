"""DDL SQL generation from ordered column specifications.

The generators only rely on the dialect for quoting, type names and column
clauses; dialect-specific spellings (ALTER style, CREATE keyword) are read
from its descriptor and layered over the generic output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from .core import ColumnSpec

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from sqlbridge.infrastructure.sql.core.identifier import TableIdentity
    from sqlbridge.infrastructure.sql.dialects.base import SqlDialect

_CREATE_TABLE = "CREATE TABLE"


def generate_create_table_ddl(
    dialect: "SqlDialect", table: "TableIdentity", columns: Sequence[ColumnSpec]
) -> str:
    """Generate the CREATE TABLE statement for ``columns`` in declaration order.

    A trailing PRIMARY KEY clause lists the key columns in declaration order
    and is omitted when there are none.
    """
    if not columns:
        from sqlbridge.infrastructure.sql.exceptions import PreconditionError

        raise PreconditionError(f"Cannot create table {table} without columns")

    clauses: List[str] = [dialect.column_definition(col) for col in columns]
    pk_cols = [dialect.quote_identifier(col.name) for col in columns if col.is_primary_key]
    if pk_cols:
        clauses.append(f"PRIMARY KEY({','.join(pk_cols)})")

    sql = f"{_CREATE_TABLE} {dialect.expression_for(table)} (\n" + ",\n".join(clauses) + ")"

    keyword = dialect.descriptor.create_table_keyword
    if keyword:
        sql = sql.replace(_CREATE_TABLE, keyword, 1)
    return sql


def generate_alter_table_ddl(
    dialect: "SqlDialect", table: "TableIdentity", new_columns: Sequence[ColumnSpec]
) -> List[str]:
    """Generate ALTER TABLE ... ADD statements for ``new_columns``.

    Returns one statement per column for PER_COLUMN dialects and a single
    statement otherwise.
    """
    from sqlbridge.infrastructure.sql.dialects.base import AlterStyle
    from sqlbridge.infrastructure.sql.exceptions import PreconditionError

    if not new_columns:
        raise PreconditionError(f"No columns to add to table {table}")

    prefix = f"ALTER TABLE {dialect.expression_for(table)}"
    definitions = [dialect.column_definition(col) for col in new_columns]
    style = dialect.descriptor.alter_style

    if style == AlterStyle.PER_COLUMN:
        return [f"{prefix} ADD {definition}" for definition in definitions]

    if style == AlterStyle.WRAPPED:
        return [f"{prefix} ADD(\n" + ",\n".join(definitions) + ")"]

    if len(definitions) == 1:
        return [f"{prefix} ADD {definitions[0]}"]
    return [f"{prefix} \n" + ",\n".join(f"ADD {d}" for d in definitions)]


__all__ = [
    "generate_create_table_ddl",
    "generate_alter_table_ddl",
]
