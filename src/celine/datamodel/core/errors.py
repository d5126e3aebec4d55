# datamodel/core/errors.py
from __future__ import annotations

from typing import Optional


class DataModelError(Exception):
    """Base class for errors raised by the import/export engine."""


class ContractParseError(DataModelError):
    """A contract document could not be read at all (bad YAML/JSON or shape)."""


class SQLStatementError(DataModelError):
    """A single SQL statement could not be parsed.

    Raised inside the DDL parser and converted to a hard diagnostic for the
    offending statement; sibling statements are unaffected.
    """

    def __init__(self, message: str, statement_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.statement_index = statement_index


class ConversionError(DataModelError):
    """The legacy ODCL document could not be converted to ODCS."""


class TypeExpressionError(DataModelError, ValueError):
    """A STRUCT/ARRAY/MAP type expression is malformed (e.g. unbalanced `<`)."""


class SchemaParseError(DataModelError):
    """A JSON Schema, Avro or Protobuf document could not be read at all."""
