# datamodel/parsers/contract/__init__.py
"""
Contract import: ODCS v3, Data Contract Specification and legacy ODCL.

The dialect is chosen from the document's shape only, then a per-dialect
mapper builds the table. Keys a mapper does not understand end up verbatim
in `Table.odcl_metadata`.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from celine.datamodel.parsers.contract.common import (
    finish_table,
    load_document,
    normalize_servers,
    resolve_field,
    resolve_ref,
)
from celine.datamodel.parsers.contract.data_contract import map_data_contract
from celine.datamodel.parsers.contract.legacy import map_legacy
from celine.datamodel.parsers.contract.odcs import map_odcs
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Table

logger = logging.getLogger(__name__)


class ContractDialect(str, Enum):
    ODCS = "odcs"
    DATA_CONTRACT = "data_contract_specification"
    LEGACY = "legacy_odcl"


_MAPPERS: Dict[ContractDialect, Callable[[Dict[str, Any]], Tuple[Table, List[Diagnostic]]]] = {
    ContractDialect.ODCS: map_odcs,
    ContractDialect.DATA_CONTRACT: map_data_contract,
    ContractDialect.LEGACY: map_legacy,
}


def detect_dialect(doc: Dict[str, Any]) -> ContractDialect:
    """First match wins: DCS marker, then ODCS apiVersion + kind, else legacy."""
    if "dataContractSpecification" in doc:
        return ContractDialect.DATA_CONTRACT
    if "apiVersion" in doc and str(doc.get("kind", "")).strip().lower() == "datacontract":
        return ContractDialect.ODCS
    return ContractDialect.LEGACY


def parse_contract_document(doc: Dict[str, Any]) -> Tuple[Table, List[Diagnostic]]:
    """Already-loaded document -> (table, diagnostics)."""
    dialect = detect_dialect(doc)
    logger.debug("Contract dialect detected: %s", dialect.value)
    table, diagnostics = _MAPPERS[dialect](doc)
    return finish_table(table, diagnostics)


def parse_contract(text: str) -> Tuple[Table, List[Diagnostic]]:
    """
    YAML/JSON contract text -> (table, diagnostics).

    Raises ContractParseError for unparsable text, a non-mapping document, or
    a document that matches no dialect. Everything else is a soft diagnostic.
    """
    return parse_contract_document(load_document(text))


__all__ = [
    "ContractDialect",
    "detect_dialect",
    "parse_contract",
    "parse_contract_document",
    "normalize_servers",
    "resolve_field",
    "resolve_ref",
]
