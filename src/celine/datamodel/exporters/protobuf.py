# datamodel/exporters/protobuf.py
"""
Canonical tables -> proto3 messages.

Non-nullable columns are plain fields, nullable ones `optional`. ARRAY
columns become `repeated`, MAP columns `map<K, V>`, and STRUCT columns a
nested message declared inside the owning message.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from celine.datamodel.core.config import get_settings
from celine.datamodel.exporters.common import (
    FieldShape,
    comment_lines,
    lookup_type,
    pascal_name,
    safe_name,
    select_tables,
    table_shapes,
)
from celine.datamodel.schemas.table import DataModel, Table

logger = logging.getLogger(__name__)

INDENT = "  "

_TYPE_MAP: Dict[str, str] = {
    "INT": "int32",
    "INTEGER": "int32",
    "SMALLINT": "int32",
    "TINYINT": "int32",
    "BIGINT": "int64",
    "LONG": "int64",
    "FLOAT": "float",
    "REAL": "float",
    "DOUBLE": "double",
    "DECIMAL": "double",
    "NUMERIC": "double",
    "NUMBER": "double",
    "BOOLEAN": "bool",
    "BOOL": "bool",
    "BYTES": "bytes",
    "BINARY": "bytes",
    "VARBINARY": "bytes",
    "BLOB": "bytes",
    "BYTEA": "bytes",
}

# proto3 map keys: integral or string types only
_MAP_KEY_TYPES = {"int32", "int64", "bool", "string"}


def _scalar(shape: FieldShape) -> str:
    return lookup_type(_TYPE_MAP, shape.type_name, "string")


def _field_type(shape: FieldShape, nested: List[str], depth: int) -> Tuple[str, bool]:
    """(proto type, is_repeated); nested message bodies are appended to `nested`."""
    if shape.kind == "struct":
        message_name = pascal_name(shape.name)
        nested.extend(_message(message_name, shape.children, depth))
        return message_name, False

    if shape.kind == "array" and shape.element is not None:
        element = shape.element
        if element.kind in ("array", "map"):
            logger.warning("%s: nested %s inside ARRAY exported as bytes", shape.path, element.kind)
            return "bytes", True
        element_type, _ = _field_type(element, nested, depth)
        return element_type, True

    if shape.kind == "map" and shape.key is not None and shape.value is not None:
        key_type = _scalar(shape.key) if shape.key.kind == "scalar" else "string"
        if key_type not in _MAP_KEY_TYPES:
            key_type = "string"
        if shape.value.kind in ("array", "map"):
            logger.warning("%s: nested %s inside MAP exported as bytes", shape.path, shape.value.kind)
            value_type = "bytes"
        else:
            value_type, _ = _field_type(shape.value, nested, depth)
        return f"map<{key_type}, {value_type}>", False

    return _scalar(shape), False


def _message(name: str, shapes: List[FieldShape], depth: int = 0) -> List[str]:
    pad = INDENT * depth
    inner = INDENT * (depth + 1)

    nested: List[str] = []
    fields: List[str] = []
    for number, shape in enumerate(shapes, start=1):
        proto_type, repeated = _field_type(shape, nested, depth + 1)

        if repeated:
            label = "repeated "
        elif shape.nullable and not proto_type.startswith("map<"):
            label = "optional "
        else:
            label = ""

        if shape.description:
            fields.extend(comment_lines(shape.description, f"{inner}// "))
        fields.append(f"{inner}{label}{proto_type} {safe_name(shape.name)} = {number};")

    return [f"{pad}message {name} {{", *nested, *fields, f"{pad}}}"]


def _header(package: Optional[str]) -> List[str]:
    return ['syntax = "proto3";', "", f"package {package or get_settings().protobuf_package};", ""]


def export_message(table: Table) -> str:
    """A single `message` block, without syntax/package header."""
    return "\n".join(_message(safe_name(table.name), table_shapes(table)))


def export_table(table: Table, package: Optional[str] = None) -> str:
    return "\n".join(_header(package) + [export_message(table)]) + "\n"


def export_model(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    package: Optional[str] = None,
) -> str:
    messages = [export_message(table) for table in select_tables(model, table_ids)]
    return "\n".join(_header(package)) + "\n" + "\n\n".join(messages) + "\n"
