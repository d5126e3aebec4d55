# datamodel/schemas/diagnostics.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class Severity(str, Enum):
    SOFT = "soft"
    HARD = "hard"


class Diagnostic(BaseModel):
    """A parse or validation problem reported next to (or instead of) a result.

    - soft: attached to an otherwise valid result
    - hard: the statement/document it refers to was not imported
    """

    message: str
    severity: Severity = Severity.SOFT
    column: Optional[str] = None
    statement: Optional[int] = None

    @classmethod
    def soft(cls, message: str, column: Optional[str] = None) -> "Diagnostic":
        return cls(message=message, severity=Severity.SOFT, column=column)

    @classmethod
    def hard(cls, message: str, statement: Optional[int] = None) -> "Diagnostic":
        return cls(message=message, severity=Severity.HARD, statement=statement)

    def as_error(self) -> Dict[str, Any]:
        """Opaque error-object shape stored in Table.errors / Column.errors."""
        return self.model_dump(mode="json", exclude_none=True)


class NameInput(BaseModel):
    """A table whose name could not be resolved statically.

    The matching Table carries `suggested_name` until a caller renames it.
    """

    table_index: int
    suggested_name: str
    original_expression: str
