# datamodel/exporters/common.py
"""
Shared exporter plumbing: table selection, scalar type lookup and the
nested field tree rebuilt from flattened dot-path columns.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TypeVar
from uuid import UUID

from celine.datamodel.core.errors import TypeExpressionError
from celine.datamodel.parsers.types import TypeNode, is_complex_type, parse_type, type_keyword
from celine.datamodel.schemas.table import Column, DataModel, Table

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")

# Types that carry nested children without a STRUCT<...> type string
# (ODCS / JSON Schema logical types)
_OBJECT_KEYWORDS = {"OBJECT", "RECORD", "STRUCT", "JSON"}
_ARRAY_KEYWORDS = {"ARRAY", "LIST"}


def select_tables(model: DataModel, table_ids: Optional[Iterable[UUID | str]] = None) -> List[Table]:
    tables = model.select_tables(table_ids)
    logger.debug("Exporting %d of %d table(s)", len(tables), len(model.tables))
    return tables


def lookup_type(type_map: Dict[str, T], data_type: str, default: T) -> T:
    """
    Map a scalar type string through `type_map` by keyword.

    `VARCHAR(255)` is looked up as `VARCHAR`; multi-word types fall back to
    their first word (`DOUBLE PRECISION` -> `DOUBLE`).
    """
    keyword = type_keyword(data_type)
    if keyword in type_map:
        return type_map[keyword]
    first = keyword.split(" ")[0] if keyword else ""
    return type_map.get(first, default)


def safe_name(name: str) -> str:
    """Identifier usable as an Avro name or Protobuf field."""
    cleaned = _IDENT_RE.sub("_", name) or "_"
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    return cleaned


def pascal_name(name: str) -> str:
    parts = [p for p in _IDENT_RE.sub("_", name).split("_") if p]
    cleaned = "".join(p[:1].upper() + p[1:] for p in parts) or "Field"
    return "_" + cleaned if cleaned[0].isdigit() else cleaned


def comment_lines(text: str, prefix: str) -> List[str]:
    """One line comment per line of `text`; blank lines are dropped."""
    return [f"{prefix}{line.strip()}" for line in text.splitlines() if line.strip()]


# -----------------------------------------------------------------------------
# Nested field tree
# -----------------------------------------------------------------------------


@dataclass
class FieldShape:
    """
    One exported field.

    kind: scalar | struct | array | map. Structs carry `children`, arrays
    their `element`, maps `key`/`value`.
    """

    name: str
    path: str
    kind: str
    type_name: str = ""
    nullable: bool = True
    description: str = ""
    enum_values: List[str] = field(default_factory=list)
    children: List["FieldShape"] = field(default_factory=list)
    element: Optional["FieldShape"] = None
    key: Optional["FieldShape"] = None
    value: Optional["FieldShape"] = None


def _parse(column: Column) -> Optional[TypeNode]:
    if not is_complex_type(column.data_type):
        return None
    try:
        return parse_type(column.data_type)
    except TypeExpressionError as exc:
        logger.warning("Column %s exported as a scalar: %s", column.name, exc)
        return None


def _from_type(
    table: Table,
    path: str,
    name: str,
    node: TypeNode,
    nullable: bool,
    description: str,
) -> FieldShape:
    shape = FieldShape(
        name=name, path=path, kind=node.kind, nullable=nullable, description=description
    )

    if node.kind == "scalar":
        shape.type_name = node.text
    elif node.kind == "struct":
        for f in node.fields:
            child_path = f"{path}.{f.name}"
            child_column = table.get_column(child_path)
            if child_column is not None:
                shape.children.append(shape_from_column(table, child_column, f.name))
            else:
                shape.children.append(
                    _from_type(table, child_path, f.name, f.type, f.nullable, f.description)
                )
    elif node.kind == "array" and node.element is not None:
        # ARRAY<STRUCT> children are flattened under the array column's own path
        shape.element = _from_type(table, path, name, node.element, False, "")
    elif node.kind == "map" and node.key is not None and node.value is not None:
        shape.key = _from_type(table, f"{path}.key", "key", node.key, False, "")
        shape.value = _from_type(table, f"{path}.value", "value", node.value, True, "")
    return shape


def shape_from_column(table: Table, column: Column, name: Optional[str] = None) -> FieldShape:
    name = name or column.name
    node = _parse(column)
    if node is not None:
        shape = _from_type(table, column.name, name, node, column.nullable, column.description)
        shape.enum_values = list(column.enum_values)
        return shape

    children = table.child_columns(column.name)
    keyword = type_keyword(column.data_type)
    shape = FieldShape(
        name=name,
        path=column.name,
        kind="scalar",
        type_name=column.data_type,
        nullable=column.nullable,
        description=column.description,
        enum_values=list(column.enum_values),
    )
    if not children:
        return shape

    nested = [shape_from_column(table, c, c.name.rsplit(".", 1)[-1]) for c in children]
    if keyword in _ARRAY_KEYWORDS:
        shape.kind = "array"
        shape.element = FieldShape(
            name=name, path=column.name, kind="struct", nullable=False, children=nested
        )
    elif keyword in _OBJECT_KEYWORDS or not keyword:
        shape.kind = "struct"
        shape.children = nested
    else:
        logger.debug("Column %s has children but scalar type %s", column.name, column.data_type)
    return shape


def table_shapes(table: Table) -> List[FieldShape]:
    """Top-level fields of `table`, each with its nested structure."""
    return [shape_from_column(table, c) for c in table.top_level_columns()]
