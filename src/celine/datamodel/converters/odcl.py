# datamodel/converters/odcl.py
"""
Legacy ODCL (Data Contract Specification shaped) -> ODCS v3.1.0 document.

Purely structural: no Table is built. Used when a document is known to be
legacy up front instead of going through dialect detection.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from celine.datamodel.core.config import get_settings
from celine.datamodel.core.errors import ConversionError
from celine.datamodel.parsers.contract.common import normalize_servers, resolve_field
from celine.datamodel.parsers.types import normalize_data_type

logger = logging.getLogger(__name__)

# Copied through unchanged
ODCS_NATIVE_KEYS = (
    "domain",
    "dataProduct",
    "tenant",
    "pricing",
    "team",
    "roles",
    "infrastructure",
    "servicelevels",
    "links",
    "tags",
)

# No ODCS equivalent: preserved as customProperties
_INFO_CUSTOM_KEYS = ("owner", "contact")


def _convert_field(
    document: Dict[str, Any], field_def: Any, path: str
) -> Dict[str, Any]:
    if not isinstance(field_def, dict):
        logger.warning("Field %s is not an object, copied as-is", path)
        return {"description": str(field_def)}

    field_def, warning = resolve_field(document, field_def)
    if warning:
        logger.warning("%s: %s", path, warning)

    prop: Dict[str, Any] = {}
    for key, value in field_def.items():
        if key == "fields":
            continue
        if key == "type" and isinstance(value, str):
            prop["type"] = normalize_data_type(value)
        elif key == "items" and isinstance(value, dict):
            prop["items"] = _convert_field(document, value, f"{path}[]")
        else:
            prop[key] = copy.deepcopy(value)

    if isinstance(field_def.get("fields"), dict):
        prop["properties"] = _convert_fields(document, field_def["fields"], path)
    return prop


def _convert_fields(
    document: Dict[str, Any], fields: Dict[str, Any], prefix: str
) -> Dict[str, Any]:
    return {
        name: _convert_field(document, field_def, f"{prefix}.{name}" if prefix else name)
        for name, field_def in fields.items()
    }


def _schema_from_models(document: Dict[str, Any], models: Any) -> List[Dict[str, Any]]:
    if not isinstance(models, dict):
        return []

    schema: List[Dict[str, Any]] = []
    for model_name, model in models.items():
        model = model if isinstance(model, dict) else {}
        entry: Dict[str, Any] = {"name": model_name}
        if model.get("type"):
            entry["physicalType"] = model["type"]
        if model.get("description"):
            entry["description"] = model["description"]
        fields = model.get("fields")
        entry["properties"] = (
            _convert_fields(document, fields, str(model_name)) if isinstance(fields, dict) else {}
        )
        schema.append(entry)
    return schema


def convert_odcl_to_odcs(
    odcl: Any, api_version: Optional[str] = None
) -> Dict[str, Any]:
    """
    Convert a legacy ODCL document to ODCS.

    Mapping:
    - id -> id, info.title -> name, info.version -> version,
      info.status -> status, info.description -> description.purpose
    - info.owner, info.contact, terms, dataContractSpecification
      -> customProperties
    - models.<m>.fields.<f> -> schema[].properties.<f> ($ref resolved,
      type upper-cased, nested fields -> properties)
    - ODCS-native keys copied, servers normalised
    """
    if not isinstance(odcl, dict):
        raise ConversionError(f"ODCL document must be an object, got {type(odcl).__name__}")

    info = odcl.get("info") if isinstance(odcl.get("info"), dict) else {}

    odcs: Dict[str, Any] = {
        "apiVersion": api_version or get_settings().odcs_api_version,
        "kind": "DataContract",
    }
    if "id" in odcl:
        odcs["id"] = odcl["id"]
    if info.get("title") is not None:
        odcs["name"] = info["title"]
    for key in ("version", "status"):
        if info.get(key) is not None:
            odcs[key] = info[key]
    if info.get("description") is not None:
        odcs["description"] = {"purpose": info["description"]}

    custom: List[Dict[str, Any]] = []
    for key in _INFO_CUSTOM_KEYS:
        if info.get(key) is not None:
            custom.append({"property": key, "value": copy.deepcopy(info[key])})
    if odcl.get("terms") is not None:
        custom.append({"property": "terms", "value": copy.deepcopy(odcl["terms"])})
    if odcl.get("dataContractSpecification") is not None:
        custom.append(
            {"property": "dataContractSpecification", "value": odcl["dataContractSpecification"]}
        )

    for key in ODCS_NATIVE_KEYS:
        if key in odcl:
            odcs[key] = copy.deepcopy(odcl[key])

    if "servers" in odcl:
        odcs["servers"] = normalize_servers(odcl["servers"])

    odcs["schema"] = _schema_from_models(odcl, odcl.get("models"))
    if not odcs["schema"]:
        logger.warning("ODCL document %s has no models", odcl.get("id", "<no id>"))

    if custom:
        odcs["customProperties"] = custom

    logger.debug("Converted ODCL %s to ODCS (%d schema objects)", odcl.get("id"), len(odcs["schema"]))
    return odcs
