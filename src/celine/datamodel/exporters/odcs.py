# datamodel/exporters/odcs.py
"""
Canonical table -> ODCS v3 document.

The inverse of the ODCS contract mapper: typed table fields become
`customProperties`, columns become `schema[0].properties` (nested children
under `properties` / `items.properties`), and every `odcl_metadata` key is
re-emitted verbatim at the top level.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import yaml

from celine.datamodel.core.config import get_settings
from celine.datamodel.exporters.common import select_tables
from celine.datamodel.parsers.types import type_keyword
from celine.datamodel.schemas.table import Column, DataModel, Table

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"
DEFAULT_STATUS = "draft"

# Keys the exporter writes itself; never copied from odcl_metadata
_CONTROLLED_KEYS = {"apiVersion", "kind", "id", "name", "version", "status", "schema", "tags", "customProperties"}


def _table_custom_properties(table: Table) -> List[Tuple[str, Any]]:
    pairs: List[Tuple[str, Any]] = []
    if table.medallion_layers:
        pairs.append(("medallionLayers", [layer.value for layer in table.medallion_layers]))
    if table.scd_pattern is not None:
        pairs.append(("scdPattern", table.scd_pattern.value))
    if table.data_vault_classification is not None:
        pairs.append(("dataVaultClassification", table.data_vault_classification.value))
    if table.modeling_level is not None:
        pairs.append(("modelingLevel", table.modeling_level.value))
    if table.database_type is not None:
        pairs.append(("databaseType", table.database_type.value))
    if table.catalog_name:
        pairs.append(("catalogName", table.catalog_name))
    if table.schema_name:
        pairs.append(("schemaName", table.schema_name))
    return pairs


def _merge_custom_properties(typed: List[Tuple[str, Any]], preserved: Any) -> Any:
    """Typed entries first, then preserved unknown ones, in the preserved shape."""
    if isinstance(preserved, dict):
        merged: Dict[str, Any] = dict(typed)
        for key, value in preserved.items():
            merged.setdefault(key, copy.deepcopy(value))
        return merged

    merged_list = [{"property": k, "value": v} for k, v in typed]
    for item in preserved or []:
        merged_list.append(copy.deepcopy(item))
    return merged_list


def _column_custom_properties(column: Column) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    if column.constraints:
        out.append({"property": "constraints", "value": list(column.constraints)})
    if column.foreign_key is not None:
        out.append(
            {
                "property": "foreignKey",
                "value": {
                    "table_id": column.foreign_key.table_id,
                    "column_name": column.foreign_key.column_name,
                },
            }
        )
    if column.secondary_key:
        out.append({"property": "secondaryKey", "value": True})
    if column.composite_key:
        out.append({"property": "compositeKey", "value": column.composite_key})
    return out


def _property(table: Table, column: Column) -> Dict[str, Any]:
    prop: Dict[str, Any] = {}
    if column.data_type:
        prop["type"] = column.data_type
    prop["required"] = not column.nullable
    if column.primary_key:
        prop["primaryKey"] = True
    if column.description:
        prop["description"] = column.description
    if column.enum_values:
        prop["enum"] = list(column.enum_values)
    if column.quality:
        prop["quality"] = copy.deepcopy(column.quality)

    custom = _column_custom_properties(column)
    if custom:
        prop["customProperties"] = custom

    children = table.child_columns(column.name)
    if children:
        nested = _properties(table, children)
        if type_keyword(column.data_type) in ("ARRAY", "LIST"):
            prop["items"] = {"properties": nested}
        else:
            prop["properties"] = nested
    return prop


def _properties(table: Table, columns: List[Column]) -> Dict[str, Any]:
    return {
        column.name.rsplit(".", 1)[-1]: _property(table, column) for column in columns
    }


def export_table(table: Table, api_version: Optional[str] = None) -> Dict[str, Any]:
    metadata = table.odcl_metadata

    doc: Dict[str, Any] = {
        "apiVersion": api_version or get_settings().odcs_api_version,
        "kind": "DataContract",
        "id": metadata.get("id", str(table.id)),
        "name": table.name,
        "version": metadata.get("version", DEFAULT_VERSION),
        "status": metadata.get("status", DEFAULT_STATUS),
    }

    for key, value in metadata.items():
        if key not in _CONTROLLED_KEYS:
            doc[key] = copy.deepcopy(value)

    if table.tags:
        doc["tags"] = list(table.tags)

    custom = _merge_custom_properties(
        _table_custom_properties(table), metadata.get("customProperties")
    )
    if custom:
        doc["customProperties"] = custom

    schema_object: Dict[str, Any] = {
        "name": table.name,
        "properties": _properties(table, table.top_level_columns()),
    }
    if table.quality:
        schema_object["quality"] = copy.deepcopy(table.quality)
    doc["schema"] = [schema_object]

    logger.debug("ODCS export of %s: %d metadata key(s)", table.name, len(metadata))
    return doc


def export_odcs_yaml(table: Table, api_version: Optional[str] = None) -> str:
    return yaml.safe_dump(
        export_table(table, api_version), sort_keys=False, allow_unicode=True
    )


def export_model(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    api_version: Optional[str] = None,
) -> Dict[str, Dict[str, Any]]:
    """One ODCS document per selected table, keyed by table name."""
    out: Dict[str, Dict[str, Any]] = {}
    for table in select_tables(model, table_ids):
        if table.name in out:
            logger.warning("Duplicate table name %s in ODCS export", table.name)
        out[table.name] = export_table(table, api_version)
    return out


def export_model_yaml(
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    api_version: Optional[str] = None,
) -> Dict[str, str]:
    return {
        name: yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
        for name, doc in export_model(model, table_ids, api_version).items()
    }
