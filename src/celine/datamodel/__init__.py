"""
Data-model import/export engine.

Importers turn SQL DDL, data contracts (ODCS v3, Data Contract
Specification, legacy ODCL), JSON Schema, Avro and Protobuf into canonical
`Table` values; exporters render tables back to SQL, JSON Schema, Avro,
Protobuf and ODCS. Nothing here performs I/O.
"""
from __future__ import annotations

from celine.datamodel.converters.odcl import convert_odcl_to_odcs
from celine.datamodel.core.errors import (
    ContractParseError,
    ConversionError,
    DataModelError,
    SchemaParseError,
    SQLStatementError,
)
from celine.datamodel.exporters import export_model, get_exporter_registry
from celine.datamodel.parsers import (
    parse_avro,
    parse_contract,
    parse_json_schema,
    parse_protobuf,
    parse_sql,
)
from celine.datamodel.schemas.diagnostics import Diagnostic, NameInput, Severity
from celine.datamodel.schemas.table import Column, DataModel, ForeignKey, Table

__all__ = [
    "Column",
    "ContractParseError",
    "ConversionError",
    "DataModel",
    "DataModelError",
    "Diagnostic",
    "ForeignKey",
    "NameInput",
    "SQLStatementError",
    "SchemaParseError",
    "Severity",
    "Table",
    "convert_odcl_to_odcs",
    "export_model",
    "get_exporter_registry",
    "parse_avro",
    "parse_contract",
    "parse_json_schema",
    "parse_protobuf",
    "parse_sql",
]
