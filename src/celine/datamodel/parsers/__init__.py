from __future__ import annotations

from .contract import ContractDialect, detect_dialect, parse_contract, parse_contract_document
from .formats import ParsedSchemas, parse_avro, parse_json_schema, parse_protobuf
from .sql import ParsedDDL, parse_sql, split_statements

__all__ = [
    "ContractDialect",
    "ParsedDDL",
    "ParsedSchemas",
    "detect_dialect",
    "parse_avro",
    "parse_contract",
    "parse_contract_document",
    "parse_json_schema",
    "parse_protobuf",
    "parse_sql",
    "split_statements",
]
