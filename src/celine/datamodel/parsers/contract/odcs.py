# datamodel/parsers/contract/odcs.py
"""
ODCS v3 document -> Table.

The first `schema` entry becomes the table. Top-level keys this mapper does
not consume (domain, dataProduct, team, servicelevels, servers, id, version,
status, any future additions) are copied verbatim into `odcl_metadata`.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Tuple

from celine.datamodel.parsers.contract.common import (
    append_column,
    apply_table_values,
    as_list,
    custom_properties,
    database_type_from_servers,
    foreign_key_from,
    normalize_servers,
)
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Column, Table

logger = logging.getLogger(__name__)

CONSUMED_KEYS = ("apiVersion", "kind", "name", "schema", "customProperties", "tags")

# customProperties.<property> -> Table field
TABLE_CUSTOM_PROPERTIES = {
    "medallionLayers": "medallion_layers",
    "scdPattern": "scd_pattern",
    "dataVaultClassification": "data_vault_classification",
    "modelingLevel": "modeling_level",
    "databaseType": "database_type",
    "catalogName": "catalog_name",
    "schemaName": "schema_name",
    "tags": "tags",
}


def _iter_properties(properties: Any) -> List[Tuple[str, Dict[str, Any]]]:
    """Properties as a map `{name: {...}}` or as a list of `{name, ...}`."""
    if isinstance(properties, dict):
        return [(str(k), v if isinstance(v, dict) else {}) for k, v in properties.items()]
    out = []
    for prop in properties or []:
        if isinstance(prop, dict) and prop.get("name"):
            out.append((str(prop["name"]), prop))
    return out


def _property_type(prop: Dict[str, Any]) -> str:
    # ODCS types are taken as written; only legacy ODCL is upper-cased
    for key in ("type", "physicalType", "logicalType"):
        if prop.get(key):
            return str(prop[key])
    return ""


def _column_from_property(
    name: str, prop: Dict[str, Any], diagnostics: List[Diagnostic]
) -> Column:
    column = Column(
        name=name,
        data_type=_property_type(prop),
        nullable=not bool(prop.get("required", False)),
        primary_key=bool(prop.get("primaryKey", False)),
        description=prop["description"] if isinstance(prop.get("description"), str) else "",
    )

    if isinstance(prop.get("enum"), list):
        column.enum_values = [str(v) for v in prop["enum"]]
    if isinstance(prop.get("quality"), list):
        column.quality = [q if isinstance(q, dict) else {"rule": q} for q in prop["quality"]]
    if prop.get("unique") is True:
        column.constraints.append("UNIQUE")

    for key, value in custom_properties(prop.get("customProperties")):
        if key == "constraints":
            for constraint in value if isinstance(value, list) else [value]:
                if str(constraint) not in column.constraints:
                    column.constraints.append(str(constraint))
        elif key == "foreignKey":
            column.foreign_key = foreign_key_from(value)
            if column.foreign_key is None:
                diagnostics.append(
                    Diagnostic.soft(f"Invalid foreignKey on '{name}' ignored", column=name)
                )
        elif key == "secondaryKey":
            column.secondary_key = bool(value)
        elif key == "compositeKey":
            column.composite_key = str(value) if value else None
        else:
            diagnostics.append(
                Diagnostic.soft(
                    f"Unsupported column custom property '{key}' ignored", column=name
                )
            )
    return column


def _nested_properties(prop: Dict[str, Any]) -> Any:
    if prop.get("properties"):
        return prop["properties"]
    items = prop.get("items")
    if isinstance(items, dict) and items.get("properties"):
        return items["properties"]
    return None


def _add_properties(
    table: Table, properties: Any, prefix: str, diagnostics: List[Diagnostic]
) -> None:
    for name, prop in _iter_properties(properties):
        path = f"{prefix}.{name}" if prefix else name
        column = _column_from_property(path, prop, diagnostics)
        if not append_column(table, column, diagnostics):
            continue
        nested = _nested_properties(prop)
        if nested:
            _add_properties(table, nested, path, diagnostics)


def map_odcs(doc: Dict[str, Any]) -> Tuple[Table, List[Diagnostic]]:
    diagnostics: List[Diagnostic] = []

    schema = doc.get("schema") or []
    if not isinstance(schema, list):
        schema = [schema] if isinstance(schema, dict) else []
    first = schema[0] if schema and isinstance(schema[0], dict) else {}
    if len(schema) > 1:
        diagnostics.append(
            Diagnostic.soft(f"Only the first of {len(schema)} schema objects was imported")
        )

    name = doc.get("name") or first.get("name")
    if not name:
        diagnostics.append(Diagnostic.soft("Contract has no name"))
        name = str(doc.get("id") or "untitled")

    table = Table(name=str(name))

    for key, value in doc.items():
        if key in CONSUMED_KEYS:
            continue
        table.odcl_metadata[key] = copy.deepcopy(value)

    if "servers" in doc:
        servers = normalize_servers(doc["servers"])
        table.odcl_metadata["servers"] = servers
        table.database_type = database_type_from_servers(servers)

    values: Dict[str, Any] = {"tags": doc.get("tags")}
    unknown: List[Any] = []
    raw_custom = doc.get("customProperties")
    for key, value in custom_properties(raw_custom):
        field_name = TABLE_CUSTOM_PROPERTIES.get(key)
        if field_name is None:
            unknown.append((key, value))
        elif field_name == "tags":
            values["tags"] = as_list(values["tags"]) + as_list(value)
        else:
            values[field_name] = value
    apply_table_values(table, values, diagnostics)

    if unknown:
        # keep the input shape: a {property, value} list or a plain map
        if isinstance(raw_custom, dict):
            table.odcl_metadata["customProperties"] = {k: copy.deepcopy(v) for k, v in unknown}
        else:
            table.odcl_metadata["customProperties"] = [
                {"property": k, "value": copy.deepcopy(v)} for k, v in unknown
            ]

    if isinstance(first.get("quality"), list):
        table.quality = [q if isinstance(q, dict) else {"rule": q} for q in first["quality"]]

    _add_properties(table, first.get("properties"), "", diagnostics)
    logger.debug("ODCS contract %s: %d column(s)", table.name, len(table.columns))
    return table, diagnostics
