# datamodel/parsers/contract/data_contract.py
"""Data Contract Specification (`dataContractSpecification: ...`) -> Table."""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Tuple

from celine.datamodel.parsers.contract.common import (
    append_column,
    database_type_from_servers,
    normalize_servers,
    resolve_field,
)
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Column, Table

logger = logging.getLogger(__name__)

CONSUMED_KEYS = ("dataContractSpecification", "models", "definitions")


def _column_from_field(name: str, field_def: Dict[str, Any]) -> Column:
    column = Column(
        name=name,
        data_type=str(field_def.get("type") or ""),
        nullable=not bool(field_def.get("required", False)),
        primary_key=bool(field_def.get("primaryKey") or field_def.get("primary")),
        description=str(field_def.get("description") or ""),
    )
    if isinstance(field_def.get("enum"), list):
        column.enum_values = [str(v) for v in field_def["enum"]]
    if field_def.get("unique") is True:
        column.constraints.append("UNIQUE")
    if isinstance(field_def.get("quality"), list):
        column.quality = [q for q in field_def["quality"] if isinstance(q, dict)]
    return column


def _nested_fields(field_def: Dict[str, Any]) -> Any:
    if isinstance(field_def.get("fields"), dict):
        return field_def["fields"]
    items = field_def.get("items")
    if isinstance(items, dict) and isinstance(items.get("fields"), dict):
        return items["fields"]
    return None


def _add_fields(
    doc: Dict[str, Any],
    table: Table,
    fields: Dict[str, Any],
    prefix: str,
    diagnostics: List[Diagnostic],
) -> None:
    for name, field_def in fields.items():
        path = f"{prefix}.{name}" if prefix else str(name)
        if not isinstance(field_def, dict):
            diagnostics.append(Diagnostic.soft(f"Field '{path}' is not an object", column=path))
            continue

        field_def, warning = resolve_field(doc, field_def)
        if warning:
            diagnostics.append(Diagnostic.soft(warning, column=path))

        if not append_column(table, _column_from_field(path, field_def), diagnostics):
            continue
        nested = _nested_fields(field_def)
        if nested:
            _add_fields(doc, table, nested, path, diagnostics)


def map_data_contract(doc: Dict[str, Any]) -> Tuple[Table, List[Diagnostic]]:
    diagnostics: List[Diagnostic] = []

    models = doc.get("models") if isinstance(doc.get("models"), dict) else {}
    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}

    model_name, model = next(iter(models.items()), (None, {}))
    if len(models) > 1:
        diagnostics.append(
            Diagnostic.soft(f"Only model '{model_name}' of {len(models)} was imported")
        )

    name = info.get("title") or model_name
    if not name:
        diagnostics.append(Diagnostic.soft("Contract has neither info.title nor a model"))
        name = str(doc.get("id") or "untitled")

    table = Table(name=str(name))

    for key, value in doc.items():
        if key not in CONSUMED_KEYS:
            table.odcl_metadata[key] = copy.deepcopy(value)

    if "servers" in doc:
        servers = normalize_servers(doc["servers"])
        table.odcl_metadata["servers"] = servers
        table.database_type = database_type_from_servers(servers)

    if isinstance(model, dict):
        if model.get("description") and "description" not in table.odcl_metadata:
            table.odcl_metadata["description"] = model["description"]
        fields = model.get("fields")
        if isinstance(fields, dict):
            _add_fields(doc, table, fields, "", diagnostics)
        else:
            diagnostics.append(Diagnostic.soft(f"Model '{model_name}' has no fields"))

    logger.debug("Data contract %s: %d column(s)", table.name, len(table.columns))
    return table, diagnostics
