# datamodel/exporters/sql.py
"""
Canonical tables -> CREATE TABLE DDL.

Only top-level columns are written: a STRUCT/ARRAY parent's type string
already carries its nested fields. Identifiers are quoted per dialect and
string literals are rendered with sqlglot so escaping matches the target.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlglot import exp

from celine.datamodel.exporters.common import comment_lines, select_tables
from celine.datamodel.schemas.enums import DatabaseType
from celine.datamodel.schemas.table import Column, DataModel, Table

logger = logging.getLogger(__name__)

GENERIC = "generic"

# dialect name -> canonical exporter dialect
_DIALECT_ALIASES: Dict[str, str] = {
    "postgres": "postgres",
    "postgresql": "postgres",
    "mysql": "mysql",
    "sqlserver": "sqlserver",
    "sql_server": "sqlserver",
    "mssql": "sqlserver",
    "databricks": "databricks",
    "databricks_delta": "databricks",
    "databricks_iceberg": "databricks",
    "aws_glue": "databricks",
    "generic": GENERIC,
}

_FROM_DATABASE_TYPE: Dict[DatabaseType, str] = {
    DatabaseType.POSTGRES: "postgres",
    DatabaseType.DATABRICKS_LAKEBASE: "postgres",
    DatabaseType.MYSQL: "mysql",
    DatabaseType.SQL_SERVER: "sqlserver",
    DatabaseType.DATABRICKS_DELTA: "databricks",
    DatabaseType.DATABRICKS_ICEBERG: "databricks",
    DatabaseType.AWS_GLUE: "databricks",
}

# exporter dialect -> sqlglot dialect used for quoting/literals
_SQLGLOT_DIALECTS: Dict[str, str] = {
    "postgres": "postgres",
    "mysql": "mysql",
    "sqlserver": "tsql",
    "databricks": "databricks",
    GENERIC: "",
}

_DEFAULT_TYPES: Dict[str, str] = {
    "postgres": "TEXT",
    "mysql": "TEXT",
    "sqlserver": "NVARCHAR(MAX)",
}


def resolve_dialect(table: Table, dialect: Optional[str] = None) -> str:
    """Explicit dialect, else the one implied by `table.database_type`, else generic."""
    if dialect:
        resolved = _DIALECT_ALIASES.get(dialect.strip().lower())
        if resolved is None:
            logger.debug("Unknown SQL export dialect '%s', using generic", dialect)
            return GENERIC
        return resolved
    if table.database_type is not None:
        return _FROM_DATABASE_TYPE.get(table.database_type, GENERIC)
    return GENERIC


def quote_identifier(name: str, dialect: str) -> str:
    """`x` for MySQL, "x" for Postgres, [x] for SQL Server, unquoted otherwise."""
    if dialect in ("postgres", "mysql", "sqlserver"):
        return exp.to_identifier(name, quoted=True).sql(dialect=_SQLGLOT_DIALECTS[dialect])
    return name


def string_literal(text: str, dialect: str) -> str:
    return exp.Literal.string(text).sql(dialect=_SQLGLOT_DIALECTS.get(dialect, ""))


def qualified_name(table: Table, dialect: str) -> str:
    parts = [p for p in (table.catalog_name, table.schema_name) if p] + [table.name]
    return ".".join(quote_identifier(p, dialect) for p in parts)


def _column_line(column: Column, dialect: str) -> List[str]:
    lines: List[str] = []
    if column.description and dialect in (GENERIC, "sqlserver"):
        lines.extend(comment_lines(column.description, "  -- "))

    parts = [
        quote_identifier(column.name, dialect),
        column.data_type or _DEFAULT_TYPES.get(dialect, "STRING"),
    ]
    if not column.nullable:
        parts.append("NOT NULL")
    for constraint in column.constraints:
        # multi-column UNIQUE is written once at table level
        if not constraint.upper().startswith("UNIQUE ("):
            parts.append(constraint)
    if column.description and dialect in ("mysql", "databricks"):
        parts.append("COMMENT " + string_literal(column.description, dialect))

    lines.append("  " + " ".join(parts))
    return lines


def _table_constraints(columns: List[Column], dialect: str) -> List[str]:
    out: List[str] = []

    primary = [c for c in columns if c.primary_key]
    if primary:
        names = ", ".join(quote_identifier(c.name, dialect) for c in primary)
        out.append(f"  PRIMARY KEY ({names})")

    seen_unique = set()
    for col in columns:
        for constraint in col.constraints:
            if constraint.upper().startswith("UNIQUE (") and constraint not in seen_unique:
                seen_unique.add(constraint)
                out.append(f"  {constraint}")

    for col in columns:
        if col.foreign_key is not None:
            out.append(
                f"  FOREIGN KEY ({quote_identifier(col.name, dialect)}) REFERENCES "
                f"{quote_identifier(col.foreign_key.table_id, dialect)}"
                f"({quote_identifier(col.foreign_key.column_name, dialect)})"
            )
    return out


def _table_properties(table: Table) -> List[str]:
    pairs = []
    for rule in table.quality:
        if "property" in rule and "value" in rule:
            pairs.append(
                f"  {string_literal(str(rule['property']), 'databricks')} = "
                f"{string_literal(str(rule['value']), 'databricks')}"
            )
    return pairs


def export_table(table: Table, dialect: Optional[str] = None) -> str:
    """Canonical table -> one CREATE TABLE statement (plus COMMENT ON for Postgres)."""
    dialect = resolve_dialect(table, dialect)
    columns = table.top_level_columns()
    name = qualified_name(table, dialect)
    description = table.odcl_metadata.get("description")
    description = description if isinstance(description, str) and description else None

    lines: List[str] = []
    if description and dialect in (GENERIC, "sqlserver"):
        lines.extend(comment_lines(description, "-- "))
    lines.append(f"CREATE TABLE {name} (")

    body: List[List[str]] = [_column_line(c, dialect) for c in columns]
    body.extend([line] for line in _table_constraints(columns, dialect))
    for i, item in enumerate(body):
        if i < len(body) - 1:
            item = item[:-1] + [item[-1] + ","]
        lines.extend(item)

    closing = ")"
    if dialect == "mysql" and description:
        closing += " COMMENT=" + string_literal(description, dialect)
    lines.append(closing)

    if dialect == "databricks":
        if description:
            lines.append("COMMENT " + string_literal(description, dialect))
        properties = _table_properties(table)
        if properties:
            lines.append("TBLPROPERTIES (")
            lines.append(",\n".join(properties))
            lines.append(")")

    statement = "\n".join(lines) + ";"

    if dialect == "postgres":
        comments = []
        if description:
            comments.append(f"COMMENT ON TABLE {name} IS {string_literal(description, dialect)};")
        for col in columns:
            if col.description:
                comments.append(
                    f"COMMENT ON COLUMN {name}.{quote_identifier(col.name, dialect)} "
                    f"IS {string_literal(col.description, dialect)};"
                )
        if comments:
            statement += "\n" + "\n".join(comments)

    return statement


def export_model(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    dialect: Optional[str] = None,
) -> str:
    statements = [export_table(table, dialect) for table in select_tables(model, table_ids)]
    return "\n\n".join(statements)
