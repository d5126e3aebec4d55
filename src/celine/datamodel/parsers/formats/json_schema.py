# datamodel/parsers/formats/json_schema.py
"""
JSON Schema -> canonical tables.

A document with `definitions` (or `$defs`) yields one table per entry;
otherwise the document itself is one table named by `title`. Nested
objects and arrays of objects are flattened to dot-path columns.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from celine.datamodel.core.errors import SchemaParseError
from celine.datamodel.parsers.contract.common import resolve_field
from celine.datamodel.parsers.formats.common import (
    ParsedSchemas,
    SchemaField,
    TableBuilder,
    skip_schema,
)
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Table

logger = logging.getLogger(__name__)

_TYPES = {
    "integer": "INTEGER",
    "number": "DOUBLE",
    "boolean": "BOOLEAN",
    "string": "STRING",
    "null": "NULL",
}

# string formats with a dedicated canonical type
_STRING_FORMATS = {
    "date": "DATE",
    "date-time": "TIMESTAMP",
    "time": "TIME",
    "uuid": "UUID",
    "uri": "URI",
    "email": "EMAIL",
}


def _load(content: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(content, dict):
        return content
    try:
        doc = json.loads(content)
    except json.JSONDecodeError as exc:
        raise SchemaParseError(f"Invalid JSON Schema: {exc}") from exc
    if not isinstance(doc, dict):
        raise SchemaParseError(f"JSON Schema must be an object, got {type(doc).__name__}")
    return doc


def _split_type(schema: Dict[str, Any]) -> Tuple[Optional[str], bool]:
    """(`type`, allows null). `["string", "null"]` -> ("string", True)."""
    raw = schema.get("type")
    if isinstance(raw, list):
        non_null = [t for t in raw if t != "null"]
        return (str(non_null[0]) if non_null else "null"), "null" in raw
    if raw is None and "properties" in schema:
        return "object", False
    return (str(raw) if raw is not None else None), False


class _Reader:
    def __init__(self, document: Dict[str, Any]):
        self.document = document

    def resolve(self, schema: Any, builder: TableBuilder, path: str) -> Dict[str, Any]:
        if not isinstance(schema, dict):
            builder.warn(f"Property '{path}' is not an object schema", column=path)
            return {}
        resolved, warning = resolve_field(self.document, schema)
        if warning:
            builder.warn(f"{path}: {warning}", column=path)
        return resolved

    def object_fields(
        self, schema: Dict[str, Any], builder: TableBuilder, prefix: str
    ) -> List[SchemaField]:
        required = set(schema.get("required") or [])
        properties = schema.get("properties") or {}
        return [
            self.field(name, prop, name not in required, builder, prefix)
            for name, prop in properties.items()
        ]

    def field(
        self,
        name: str,
        prop: Any,
        nullable: bool,
        builder: TableBuilder,
        prefix: str,
    ) -> SchemaField:
        path = f"{prefix}.{name}" if prefix else name
        schema = self.resolve(prop, builder, path)
        json_type, allows_null = _split_type(schema)

        f = SchemaField(
            name=name,
            nullable=nullable or allows_null,
            description=schema.get("description") or "",
        )
        if isinstance(schema.get("enum"), list):
            f.enum_values = [str(v) for v in schema["enum"] if v is not None]

        if json_type == "object":
            if schema.get("properties"):
                f.children = self.object_fields(schema, builder, path)
            elif isinstance(schema.get("additionalProperties"), dict):
                value = self.field("value", schema["additionalProperties"], True, builder, path)
                f.data_type = f"MAP<STRING, {_scalar_text(value)}>"
            else:
                f.data_type = "OBJECT"
        elif json_type == "array":
            f.repeated = True
            items = self.resolve(schema.get("items") or {}, builder, path)
            item_type, _ = _split_type(items)
            if item_type == "object" and items.get("properties"):
                f.children = self.object_fields(items, builder, path)
            elif item_type == "object":
                f.data_type = "OBJECT"
            else:
                f.data_type = self.scalar(item_type, items, builder, path)
        else:
            f.data_type = self.scalar(json_type, schema, builder, path)
        return f

    def scalar(
        self,
        json_type: Optional[str],
        schema: Dict[str, Any],
        builder: TableBuilder,
        path: str,
    ) -> str:
        if json_type is None:
            builder.warn(f"Property '{path}' has no type, imported as STRING", column=path)
            return "STRING"
        if json_type == "string" and schema.get("format") in _STRING_FORMATS:
            return _STRING_FORMATS[schema["format"]]
        if json_type not in _TYPES:
            builder.warn(f"Unknown JSON type '{json_type}' on '{path}', imported as STRING", column=path)
        return _TYPES.get(json_type, "STRING")


def _scalar_text(f: SchemaField) -> str:
    if f.is_struct or f.repeated:
        return "STRING"
    return f.data_type


def _table(
    reader: _Reader, schema: Dict[str, Any], name: str, diagnostics: List[Diagnostic]
) -> Table:
    table = Table(name=name)
    if isinstance(schema.get("description"), str) and schema["description"]:
        table.odcl_metadata["description"] = schema["description"]

    builder = TableBuilder(table)
    for f in reader.object_fields(schema, builder, ""):
        builder.add_field(f)
    diagnostics.extend(builder.diagnostics)
    return builder.finish()


def parse_json_schema(content: Union[str, Dict[str, Any]]) -> ParsedSchemas:
    """
    JSON Schema text (or an already-loaded object) -> tables.

    Raises SchemaParseError when the text is not a JSON object. A schema
    without `properties` or without a usable name is skipped with a hard
    diagnostic; sibling definitions are still imported.
    """
    document = _load(content)
    reader = _Reader(document)
    tables: List[Table] = []
    diagnostics: List[Diagnostic] = []

    definitions = document.get("definitions") or document.get("$defs")
    if isinstance(definitions, dict) and definitions:
        candidates = [(str(k), v, f"definitions.{k}") for k, v in definitions.items()]
    else:
        title = document.get("title") or document.get("name")
        candidates = [(str(title) if title else "", document, "schema")]

    for name, schema, where in candidates:
        if not isinstance(schema, dict):
            skip_schema(diagnostics, where, "schema must be an object")
            continue
        if not name:
            skip_schema(diagnostics, where, "missing title or name")
            continue
        if not isinstance(schema.get("properties"), dict):
            skip_schema(diagnostics, where, "missing properties")
            continue
        tables.append(_table(reader, schema, name, diagnostics))

    return ParsedSchemas(tables=tables, diagnostics=diagnostics)
