# datamodel/exporters/avro.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from celine.datamodel.core.config import get_settings
from celine.datamodel.exporters.common import (
    FieldShape,
    lookup_type,
    safe_name,
    select_tables,
    table_shapes,
)
from celine.datamodel.schemas.table import DataModel, Table

logger = logging.getLogger(__name__)


_TYPE_MAP: Dict[str, str] = {
    "INT": "int",
    "INTEGER": "int",
    "SMALLINT": "int",
    "TINYINT": "int",
    "BIGINT": "long",
    "LONG": "long",
    "FLOAT": "float",
    "REAL": "float",
    "DOUBLE": "double",
    "DECIMAL": "double",
    "NUMERIC": "double",
    "NUMBER": "double",
    "BOOLEAN": "boolean",
    "BOOL": "boolean",
    "BYTES": "bytes",
    "BINARY": "bytes",
    "VARBINARY": "bytes",
    "BLOB": "bytes",
    "BYTEA": "bytes",
}


def _avro_type(shape: FieldShape) -> Any:
    if shape.kind == "struct":
        # record names must be unique within a schema: derive from the path
        return {
            "type": "record",
            "name": safe_name(shape.path.replace(".", "_")),
            "fields": [_field(child) for child in shape.children],
        }
    if shape.kind == "array" and shape.element is not None:
        return {"type": "array", "items": _avro_type(shape.element)}
    if shape.kind == "map" and shape.value is not None:
        # Avro map keys are always strings
        return {"type": "map", "values": _avro_type(shape.value)}
    return lookup_type(_TYPE_MAP, shape.type_name, "string")


def _field(shape: FieldShape) -> Dict[str, Any]:
    avro_type = _avro_type(shape)
    field: Dict[str, Any] = {"name": safe_name(shape.name)}
    if shape.nullable:
        field["type"] = ["null", avro_type]
        field["default"] = None
    else:
        field["type"] = avro_type
    if shape.description:
        field["doc"] = shape.description
    return field


def export_table(table: Table, namespace: Optional[str] = None) -> Dict[str, Any]:
    """Canonical table -> Avro record schema."""
    record: Dict[str, Any] = {
        "type": "record",
        "name": safe_name(table.name),
        "namespace": namespace or get_settings().avro_namespace,
    }
    description = table.odcl_metadata.get("description")
    if isinstance(description, str) and description:
        record["doc"] = description
    record["fields"] = [_field(shape) for shape in table_shapes(table)]
    return record


def export_model(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    namespace: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """One record schema per selected table (an Avro union of named types)."""
    return [export_table(table, namespace) for table in select_tables(model, table_ids)]
