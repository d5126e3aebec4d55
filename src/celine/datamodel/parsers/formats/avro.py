# datamodel/parsers/formats/avro.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Tuple, Union

from celine.datamodel.core.errors import SchemaParseError
from celine.datamodel.parsers.formats.common import (
    ParsedSchemas,
    SchemaField,
    TableBuilder,
    skip_schema,
    type_text,
)
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Table

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    "int": "INTEGER",
    "long": "BIGINT",
    "float": "FLOAT",
    "double": "DOUBLE",
    "boolean": "BOOLEAN",
    "bytes": "BYTES",
    "string": "STRING",
    "null": "NULL",
}

_LOGICAL_TYPES = {
    "date": "DATE",
    "time-millis": "TIME",
    "time-micros": "TIME",
    "timestamp-millis": "TIMESTAMP",
    "timestamp-micros": "TIMESTAMP",
    "local-timestamp-millis": "TIMESTAMP_NTZ",
    "local-timestamp-micros": "TIMESTAMP_NTZ",
    "uuid": "UUID",
}


class _Reader:
    """Walks Avro types; named records are remembered so later references resolve."""

    def __init__(self):
        self.named: Dict[str, Any] = {}

    def remember(self, avro_type: Dict[str, Any]) -> None:
        name = avro_type.get("name")
        if not name:
            return
        self.named[str(name)] = avro_type
        if avro_type.get("namespace"):
            self.named[f"{avro_type['namespace']}.{name}"] = avro_type

    def unwrap_union(self, avro_type: Any, builder: TableBuilder, path: str) -> Tuple[Any, bool]:
        if not isinstance(avro_type, list):
            return avro_type, False
        branches = [t for t in avro_type if t != "null"]
        nullable = len(branches) != len(avro_type)
        if len(branches) == 1:
            return branches[0], nullable
        builder.warn(f"Union type on '{path}' imported as STRING", column=path)
        return "string", True

    def fields(self, record: Dict[str, Any], builder: TableBuilder, prefix: str) -> List[SchemaField]:
        self.remember(record)
        out: List[SchemaField] = []
        for index, raw in enumerate(record.get("fields") or []):
            if not isinstance(raw, dict) or not raw.get("name") or "type" not in raw:
                builder.warn(f"{prefix or record.get('name')}: field {index} has no name or type")
                continue
            out.append(self.field(raw, builder, prefix))
        return out

    def field(self, raw: Dict[str, Any], builder: TableBuilder, prefix: str) -> SchemaField:
        name = str(raw["name"])
        path = f"{prefix}.{name}" if prefix else name
        avro_type, nullable = self.unwrap_union(raw["type"], builder, path)

        f = SchemaField(name=name, nullable=nullable, description=raw.get("doc") or "")
        self.apply_type(f, avro_type, builder, path)
        return f

    def apply_type(self, f: SchemaField, avro_type: Any, builder: TableBuilder, path: str) -> None:
        if isinstance(avro_type, str) and avro_type in self.named:
            avro_type = self.named[avro_type]

        if isinstance(avro_type, str):
            f.data_type = self.primitive(avro_type, builder, path)
            return
        if not isinstance(avro_type, dict):
            builder.warn(f"Unsupported type on '{path}' imported as STRING", column=path)
            return

        kind = avro_type.get("type")
        if kind == "record":
            f.children = self.fields(avro_type, builder, path)
        elif kind == "array":
            items, _ = self.unwrap_union(avro_type.get("items", "string"), builder, path)
            element = SchemaField(name=f.name)
            self.apply_type(element, items, builder, path)
            if element.repeated:
                f.data_type = type_text(element)
            else:
                f.data_type = element.data_type
                f.children = element.children
                f.enum_values = element.enum_values
            f.repeated = True
        elif kind == "map":
            value = SchemaField(name="value")
            values, _ = self.unwrap_union(avro_type.get("values", "string"), builder, path)
            self.apply_type(value, values, builder, path)
            value_text = "STRING" if value.is_struct or value.repeated else value.data_type
            f.data_type = f"MAP<STRING, {value_text}>"
        elif kind == "enum":
            self.remember(avro_type)
            f.data_type = "STRING"
            f.enum_values = [str(s) for s in avro_type.get("symbols") or []]
        elif kind == "fixed":
            self.remember(avro_type)
            f.data_type = "BINARY"
        elif avro_type.get("logicalType") == "decimal":
            f.data_type = f"DECIMAL({avro_type.get('precision', 38)},{avro_type.get('scale', 0)})"
        elif avro_type.get("logicalType") in _LOGICAL_TYPES:
            f.data_type = _LOGICAL_TYPES[avro_type["logicalType"]]
        else:
            f.data_type = self.primitive(str(kind), builder, path)

    def primitive(self, name: str, builder: TableBuilder, path: str) -> str:
        if name not in _PRIMITIVES:
            builder.warn(f"Unknown Avro type '{name}' on '{path}', imported as STRING", column=path)
        return _PRIMITIVES.get(name, "STRING")


def _load(content: Union[str, Dict[str, Any], List[Any]]) -> Any:
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise SchemaParseError(f"Invalid Avro schema: {exc}") from exc


def _table(reader: _Reader, schema: Dict[str, Any], diagnostics: List[Diagnostic]) -> Table:
    table = Table(name=str(schema["name"]))
    if schema.get("namespace"):
        table.odcl_metadata["namespace"] = schema["namespace"]
    if isinstance(schema.get("doc"), str) and schema["doc"]:
        table.odcl_metadata["description"] = schema["doc"]

    builder = TableBuilder(table)
    for f in reader.fields(schema, builder, ""):
        builder.add_field(f)
    diagnostics.extend(builder.diagnostics)
    return builder.finish()


def parse_avro(content: Union[str, Dict[str, Any], List[Any]]) -> ParsedSchemas:
    """
    Avro schema (one record, or a list of records) -> tables.

    Nullable unions `["null", T]` become nullable columns; nested records are
    flattened to dot-path columns under a STRUCT parent.
    """
    document = _load(content)
    schemas = document if isinstance(document, list) else [document]

    reader = _Reader()
    tables: List[Table] = []
    diagnostics: List[Diagnostic] = []
    for index, schema in enumerate(schemas):
        where = f"schema[{index}]" if isinstance(document, list) else "schema"
        if not isinstance(schema, dict):
            skip_schema(diagnostics, where, "schema must be an object")
        elif not schema.get("name"):
            skip_schema(diagnostics, where, "missing name")
        elif not isinstance(schema.get("fields"), list):
            skip_schema(diagnostics, where, "missing fields")
        else:
            tables.append(_table(reader, schema, diagnostics))

    logger.debug("Avro import: %d table(s)", len(tables))
    return ParsedSchemas(tables=tables, diagnostics=diagnostics)
