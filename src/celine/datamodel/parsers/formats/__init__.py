# datamodel/parsers/formats/__init__.py
from __future__ import annotations

from .avro import parse_avro
from .common import ParsedSchemas
from .json_schema import parse_json_schema
from .protobuf import parse_protobuf

__all__ = [
    "ParsedSchemas",
    "parse_avro",
    "parse_json_schema",
    "parse_protobuf",
]
