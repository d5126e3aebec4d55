# datamodel/parsers/formats/common.py
"""
Pieces shared by the JSON Schema, Avro and Protobuf importers.

Each importer turns its document into a `SchemaField` tree; `add_field`
then writes the tree into a table the same way the DDL parser flattens a
STRUCT column: the parent keeps the full type text, children follow as
dot-path columns.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from celine.datamodel.schemas.diagnostics import Diagnostic, Severity
from celine.datamodel.schemas.table import Column, Table

logger = logging.getLogger(__name__)

_PLAIN_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ParsedSchemas:
    """Tables read from a schema document, in document order."""

    tables: List[Table]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def hard_errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.HARD]


@dataclass
class SchemaField:
    """
    A field read from a schema document.

    `children` makes it a struct; `repeated` wraps whatever it is in ARRAY.
    Map and scalar types are carried as plain `data_type` text.
    """

    name: str
    data_type: str = "STRING"
    nullable: bool = True
    description: str = ""
    enum_values: List[str] = field(default_factory=list)
    children: Optional[List["SchemaField"]] = None
    repeated: bool = False

    @property
    def is_struct(self) -> bool:
        return self.children is not None


def _field_name(name: str) -> str:
    return name if _PLAIN_NAME_RE.match(name) else f"`{name}`"


def type_text(f: SchemaField) -> str:
    """Canonical type string for `f`, e.g. `ARRAY<STRUCT<id: BIGINT NOT NULL>>`."""
    if f.is_struct:
        members = []
        for child in f.children or []:
            member = f"{_field_name(child.name)}: {type_text(child)}"
            if not child.nullable:
                member += " NOT NULL"
            members.append(member)
        inner = "STRUCT<" + ", ".join(members) + ">"
    else:
        inner = f.data_type
    return f"ARRAY<{inner}>" if f.repeated else inner


class TableBuilder:
    """Accumulates flattened columns and per-table diagnostics."""

    def __init__(self, table: Table):
        self.table = table
        self.diagnostics: List[Diagnostic] = []

    def add_field(self, f: SchemaField, prefix: str = "") -> None:
        path = f"{prefix}.{f.name}" if prefix else f.name
        column = Column(
            name=path,
            data_type=type_text(f),
            nullable=f.nullable,
            description=f.description,
            enum_values=list(f.enum_values),
        )
        if not self.add(column):
            return
        # ARRAY<STRUCT> children live under the array column's own path
        for child in f.children or []:
            self.add_field(child, path)

    def add(self, column: Column) -> bool:
        if self.table.get_column(column.name) is not None:
            self.warn(f"Duplicate field '{column.name}' ignored", column=column.name)
            return False
        column.column_order = len(self.table.columns)
        self.table.columns.append(column)
        return True

    def warn(self, message: str, column: Optional[str] = None) -> None:
        self.diagnostics.append(Diagnostic.soft(message, column=column))

    def finish(self) -> Table:
        for diag in self.diagnostics:
            logger.warning("%s: %s", self.table.name, diag.message)
            self.table.errors.append(diag.as_error())
        logger.debug("Parsed %s with %d column(s)", self.table.name, len(self.table.columns))
        return self.table


def skip_schema(diagnostics: List[Diagnostic], where: str, reason: str) -> None:
    """One schema of a multi-schema document was not imported."""
    logger.warning("%s not imported: %s", where, reason)
    diagnostics.append(Diagnostic.hard(f"{where}: {reason}"))
