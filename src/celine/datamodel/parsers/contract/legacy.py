# datamodel/parsers/contract/legacy.py
"""
Simplified legacy ODCL shape: `name` + `columns: [...]` at top level.

Columns map near-verbatim. Scalar `data_type` values are upper-cased here,
unlike ODCS imports which keep the type as written.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Tuple

from celine.datamodel.core.errors import ContractParseError, TypeExpressionError
from celine.datamodel.parsers.contract.common import (
    append_column,
    apply_table_values,
    as_list,
    database_type_from_servers,
    foreign_key_from,
    normalize_servers,
)
from celine.datamodel.parsers.types import flatten_type_text, normalize_data_type
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Column, Table

logger = logging.getLogger(__name__)

TABLE_KEYS = (
    "medallion_layers",
    "scd_pattern",
    "data_vault_classification",
    "modeling_level",
    "database_type",
    "catalog_name",
    "schema_name",
    "tags",
)

CONSUMED_KEYS = ("name", "columns", "medallion_layer", "odcl_metadata", "quality") + TABLE_KEYS


def _column_from_item(path: str, item: Dict[str, Any], diagnostics: List[Diagnostic]) -> Column:
    raw_type = item.get("data_type", item.get("type")) or ""
    column = Column(
        name=path,
        data_type=normalize_data_type(str(raw_type)),
        nullable=bool(item.get("nullable", True)),
        primary_key=bool(item.get("primary_key", False)),
        secondary_key=bool(item.get("secondary_key", False)),
        composite_key=str(item["composite_key"]) if item.get("composite_key") else None,
        description=str(item.get("description") or ""),
    )

    if item.get("foreign_key") is not None:
        column.foreign_key = foreign_key_from(item["foreign_key"])
        if column.foreign_key is None:
            diagnostics.append(
                Diagnostic.soft(f"Invalid foreign_key on '{path}' ignored", column=path)
            )

    constraints = item.get("constraints")
    if isinstance(constraints, list):
        column.constraints = [str(c) for c in constraints]
    elif constraints:
        column.constraints = [str(constraints)]

    if isinstance(item.get("enum_values"), list):
        column.enum_values = [str(v) for v in item["enum_values"]]
    if isinstance(item.get("quality"), list):
        column.quality = [q for q in item["quality"] if isinstance(q, dict)]
    return column


def _add_columns(
    table: Table,
    items: List[Any],
    prefix: str,
    declared: List[str],
    diagnostics: List[Diagnostic],
) -> None:
    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            diagnostics.append(Diagnostic.soft(f"Column without a name ignored: {item!r}"))
            continue

        path = f"{prefix}.{item['name']}" if prefix else str(item["name"])
        column = _column_from_item(path, item, diagnostics)
        if not append_column(table, column, diagnostics):
            continue

        if isinstance(item.get("fields"), list):
            _add_columns(table, item["fields"], path, declared, diagnostics)
            continue

        # STRUCT<...> types flatten like SQL DDL, unless the document already
        # lists the children itself
        if any(name.startswith(path + ".") for name in declared):
            continue
        try:
            nested = flatten_type_text(column.data_type, path)
        except TypeExpressionError as exc:
            diagnostics.append(Diagnostic.soft(f"Nested type not expanded: {exc}", column=path))
            continue
        for f in nested:
            append_column(
                table,
                Column(
                    name=f.path,
                    data_type=f.data_type,
                    nullable=f.nullable,
                    description=f.description,
                ),
                diagnostics,
            )


def map_legacy(doc: Dict[str, Any]) -> Tuple[Table, List[Diagnostic]]:
    name = doc.get("name")
    columns = doc.get("columns")
    if not name or not isinstance(columns, list):
        raise ContractParseError(
            "Unrecognised contract: expected ODCS (apiVersion + kind: DataContract), "
            "Data Contract Specification, or a legacy document with 'name' and 'columns'"
        )

    diagnostics: List[Diagnostic] = []
    table = Table(name=str(name))

    if isinstance(doc.get("odcl_metadata"), dict):
        table.odcl_metadata.update(copy.deepcopy(doc["odcl_metadata"]))
    for key, value in doc.items():
        if key not in CONSUMED_KEYS:
            table.odcl_metadata[key] = copy.deepcopy(value)

    if "servers" in doc:
        servers = normalize_servers(doc["servers"])
        table.odcl_metadata["servers"] = servers
        table.database_type = database_type_from_servers(servers)

    values = {key: doc[key] for key in TABLE_KEYS if key in doc}
    layers = as_list(values.get("medallion_layers"))
    if doc.get("medallion_layer"):
        layers.insert(0, doc["medallion_layer"])
    if layers:
        values["medallion_layers"] = layers
    apply_table_values(table, values, diagnostics)

    if isinstance(doc.get("quality"), list):
        table.quality = [q for q in doc["quality"] if isinstance(q, dict)]

    declared = [str(c.get("name")) for c in columns if isinstance(c, dict)]
    _add_columns(table, columns, "", declared, diagnostics)

    logger.debug("Legacy ODCL %s: %d column(s)", table.name, len(table.columns))
    return table, diagnostics
