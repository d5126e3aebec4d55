# datamodel/parsers/contract/common.py
"""
Helpers shared by the contract dialect mappers and the ODCL converter:
document loading, `$ref` resolution, `servers` normalisation and the
mapping of table-level classification values onto a `Table`.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

import yaml

from celine.datamodel.core.errors import ContractParseError
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.enums import (
    DatabaseType,
    DataVaultClassification,
    MedallionLayer,
    ModelingLevel,
    SCDPattern,
    _LenientEnum,
)
from celine.datamodel.schemas.table import Column, ForeignKey, Table

logger = logging.getLogger(__name__)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


class ContractLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates and timestamps as plain strings.

    Contract values are carried verbatim into the extension bag and must
    survive a JSON/YAML round trip unchanged.
    """


ContractLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_document(text: str) -> Dict[str, Any]:
    """YAML (or JSON) text -> top-level mapping."""
    try:
        doc = yaml.load(text, Loader=ContractLoader)
    except yaml.YAMLError as exc:
        raise ContractParseError(f"Invalid YAML/JSON: {exc}") from exc

    if not isinstance(doc, dict):
        raise ContractParseError(
            f"Contract document must be a mapping, got {type(doc).__name__}"
        )
    return doc


# -----------------------------------------------------------------------------
# $ref resolution
# -----------------------------------------------------------------------------


def resolve_ref(document: Dict[str, Any], ref: Any) -> Optional[Any]:
    """
    Walk `document` along a local JSON pointer (`#/definitions/Status`).

    Returns None for anything that does not resolve: non-local or
    malformed references, missing segments, out-of-range indexes.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return None

    node: Any = document
    for raw in ref[2:].split("/"):
        segment = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict) and segment in node:
            node = node[segment]
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return None
    return node


def resolve_field(
    document: Dict[str, Any],
    field_def: Dict[str, Any],
    _seen: Optional[Tuple[str, ...]] = None,
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Merge the object a field's `$ref` points to into the field.

    Keys defined on the field win over inherited ones and `$ref` is dropped.
    An unresolved, cyclic or non-object reference leaves the field as-is and
    returns a warning message.
    """
    ref = field_def.get("$ref")
    if ref is None:
        return field_def, None

    seen = _seen or ()
    if ref in seen:
        return field_def, f"Circular $ref '{ref}'"

    target = resolve_ref(document, ref)
    if not isinstance(target, dict):
        return field_def, f"Unresolved $ref '{ref}'"

    target, warning = resolve_field(document, target, seen + (ref,))
    if warning:
        return field_def, warning

    resolved = {k: v for k, v in field_def.items() if k != "$ref"}
    for key, value in target.items():
        if key not in resolved:
            resolved[key] = copy.deepcopy(value)
    return resolved, None


# -----------------------------------------------------------------------------
# servers
# -----------------------------------------------------------------------------


def normalize_servers(servers: Any) -> List[Dict[str, Any]]:
    """
    Canonical `servers`: always a list of objects carrying `name`.

    Accepts a list of `{server|name, type, ...}` objects or a map
    `{<name>: {type, ...}}`. A missing name becomes `<type>_server` (or
    `server`). Every other key is kept unchanged.
    """
    if servers is None:
        return []

    if isinstance(servers, dict):
        entries: Iterable[Tuple[Optional[str], Any]] = servers.items()
    elif isinstance(servers, list):
        entries = ((None, s) for s in servers)
    else:
        logger.warning("Ignoring servers of type %s", type(servers).__name__)
        return []

    out: List[Dict[str, Any]] = []
    for key, server in entries:
        if not isinstance(server, dict):
            logger.warning("Ignoring non-object server entry: %r", server)
            continue

        if key is not None:
            name = key
            rest = {k: v for k, v in server.items() if k != "name"}
        else:
            name = server.get("name") or server.get("server")
            rest = {k: v for k, v in server.items() if k not in ("name", "server")}
        if not name:
            name = f"{server['type']}_server" if server.get("type") else "server"

        out.append({"name": name, **rest})
    return out


def database_type_from_servers(servers: List[Dict[str, Any]]) -> Optional[DatabaseType]:
    """Heuristic: the first server's declared `type`, when it names an engine."""
    if not servers:
        return None
    return DatabaseType.coerce(servers[0].get("type"))


# -----------------------------------------------------------------------------
# Table-level classification values
# -----------------------------------------------------------------------------


def _coerce(
    enum_cls: Type[_LenientEnum],
    value: Any,
    label: str,
    diagnostics: List[Diagnostic],
) -> Optional[_LenientEnum]:
    if value is None or value == "":
        return None
    member = enum_cls.coerce(value)
    if member is None:
        diagnostics.append(Diagnostic.soft(f"Unknown {label} '{value}' ignored"))
    return member


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and "," in value:
        return [v.strip() for v in value.split(",") if v.strip()]
    return [value]


def apply_table_values(
    table: Table, values: Dict[str, Any], diagnostics: List[Diagnostic]
) -> None:
    """
    Set typed table fields from snake_case keys (`medallion_layers`,
    `scd_pattern`, `data_vault_classification`, `modeling_level`,
    `database_type`, `catalog_name`, `schema_name`, `tags`).

    Unknown enum values become soft diagnostics; absent keys leave the table
    untouched.
    """
    for layer in as_list(values.get("medallion_layers")):
        member = _coerce(MedallionLayer, layer, "medallion layer", diagnostics)
        if member is not None:
            table.add_medallion_layer(member)

    if "scd_pattern" in values:
        table.scd_pattern = _coerce(SCDPattern, values["scd_pattern"], "SCD pattern", diagnostics)
    if "data_vault_classification" in values:
        table.data_vault_classification = _coerce(
            DataVaultClassification,
            values["data_vault_classification"],
            "Data Vault classification",
            diagnostics,
        )
    if "modeling_level" in values:
        table.modeling_level = _coerce(
            ModelingLevel, values["modeling_level"], "modeling level", diagnostics
        )
    if values.get("database_type") is not None:
        database_type = _coerce(DatabaseType, values["database_type"], "database type", diagnostics)
        if database_type is not None:
            table.database_type = database_type

    for key in ("catalog_name", "schema_name"):
        if values.get(key) is not None:
            setattr(table, key, str(values[key]))

    for tag in as_list(values.get("tags")):
        if str(tag) not in table.tags:
            table.tags.append(str(tag))


def finish_table(table: Table, diagnostics: List[Diagnostic]) -> Tuple[Table, List[Diagnostic]]:
    """Post-mapping checks; every diagnostic is also recorded on the table."""
    diagnostics.extend(table.validate_pattern_exclusivity())
    for diag in diagnostics:
        logger.warning("%s: %s", table.name, diag.message)
        table.errors.append(diag.as_error())
    return table, diagnostics


def append_column(table: Table, column: Column, diagnostics: List[Diagnostic]) -> bool:
    """Append with sequential `column_order`; duplicate names are dropped."""
    if table.get_column(column.name) is not None:
        diagnostics.append(
            Diagnostic.soft(f"Duplicate column '{column.name}' ignored", column=column.name)
        )
        return False
    column.column_order = len(table.columns)
    table.columns.append(column)
    return True


def foreign_key_from(value: Any) -> Optional[ForeignKey]:
    """`{table_id|tableId|table, column_name|columnName|column}` -> ForeignKey."""
    if not isinstance(value, dict):
        return None
    table_id = value.get("table_id") or value.get("tableId") or value.get("table")
    column_name = value.get("column_name") or value.get("columnName") or value.get("column")
    if not table_id or not column_name:
        return None
    return ForeignKey(table_id=str(table_id), column_name=str(column_name))


def custom_properties(value: Any) -> List[Tuple[str, Any]]:
    """ODCS `customProperties` (list of {property, value} or a plain map) -> pairs."""
    if isinstance(value, dict):
        return list(value.items())
    pairs: List[Tuple[str, Any]] = []
    for item in value or []:
        if isinstance(item, dict) and "property" in item:
            pairs.append((str(item["property"]), item.get("value")))
    return pairs
