# datamodel/exporters/json_schema.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from celine.datamodel.core.config import get_settings
from celine.datamodel.exporters.common import FieldShape, lookup_type, select_tables, table_shapes
from celine.datamodel.schemas.table import DataModel, Table

logger = logging.getLogger(__name__)


_TYPE_MAP: Dict[str, Tuple[str, Optional[str]]] = {
    "INT": ("integer", None),
    "INTEGER": ("integer", None),
    "SMALLINT": ("integer", None),
    "TINYINT": ("integer", None),
    "BIGINT": ("integer", None),
    "LONG": ("integer", None),
    "SERIAL": ("integer", None),
    "BIGSERIAL": ("integer", None),
    "FLOAT": ("number", None),
    "REAL": ("number", None),
    "DOUBLE": ("number", None),
    "DECIMAL": ("number", None),
    "NUMERIC": ("number", None),
    "NUMBER": ("number", None),
    "BOOLEAN": ("boolean", None),
    "BOOL": ("boolean", None),
    "DATE": ("string", "date"),
    "TIMESTAMP": ("string", "date-time"),
    "TIMESTAMP_NTZ": ("string", "date-time"),
    "TIMESTAMP_LTZ": ("string", "date-time"),
    "TIMESTAMPTZ": ("string", "date-time"),
    "DATETIME": ("string", "date-time"),
    "TIME": ("string", "time"),
    "UUID": ("string", "uuid"),
    "URI": ("string", "uri"),
    "URL": ("string", "uri"),
    "EMAIL": ("string", "email"),
    "JSON": ("object", None),
    "JSONB": ("object", None),
    "OBJECT": ("object", None),
}


def _schema_for(shape: FieldShape) -> Dict[str, Any]:
    if shape.kind == "struct":
        schema = _object_schema(shape.children)
    elif shape.kind == "array":
        schema = {"type": "array"}
        if shape.element is not None:
            schema["items"] = _schema_for(shape.element)
    elif shape.kind == "map":
        schema = {"type": "object"}
        if shape.value is not None:
            schema["additionalProperties"] = _schema_for(shape.value)
    else:
        json_type, json_fmt = lookup_type(_TYPE_MAP, shape.type_name, ("string", None))
        schema = {"type": json_type}
        if json_fmt:
            schema["format"] = json_fmt

    if shape.description:
        schema["description"] = shape.description
    if shape.enum_values:
        schema["enum"] = list(shape.enum_values)
    return schema


def _object_schema(shapes: List[FieldShape]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for shape in shapes:
        properties[shape.name] = _schema_for(shape)
        # nullable columns are optional properties, not type unions
        if not shape.nullable:
            required.append(shape.name)

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def export_table(table: Table, draft: Optional[str] = None) -> Dict[str, Any]:
    """Canonical table -> JSON Schema object (one property per top-level column)."""
    body = _object_schema(table_shapes(table))

    schema: Dict[str, Any] = {
        "$schema": draft or get_settings().json_schema_draft,
        "title": table.name,
    }
    description = table.odcl_metadata.get("description")
    if isinstance(description, str) and description:
        schema["description"] = description
    schema.update(body)
    schema.setdefault("required", [])
    schema["additionalProperties"] = False
    return schema


def export_model(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    draft: Optional[str] = None,
) -> Dict[str, Any]:
    """All (or the selected) tables as `definitions` of one schema document."""
    definitions: Dict[str, Any] = {}
    for table in select_tables(model, table_ids):
        table_schema = export_table(table, draft)
        table_schema.pop("$schema", None)
        if table.name in definitions:
            logger.warning("Duplicate table name %s in JSON Schema export", table.name)
        definitions[table.name] = table_schema

    return {
        "$schema": draft or get_settings().json_schema_draft,
        "title": model.name,
        "definitions": definitions,
    }
