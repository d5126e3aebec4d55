# datamodel/parsers/types.py
"""
Type expressions: STRUCT<...>, ARRAY<...>, MAP<...> and scalars.

A type string is parsed once into a small tree (`TypeNode`), then walked to
produce dot-path entries for every nested struct field. Parent type text is
kept verbatim; flattening never rewrites it.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from celine.datamodel.core.errors import TypeExpressionError

logger = logging.getLogger(__name__)

COMPLEX_KINDS = ("STRUCT", "ARRAY", "MAP")

_COMPLEX_PREFIX_RE = re.compile(r"\s*(struct|array|map)\s*<", re.IGNORECASE)
_FIELD_OPTIONS_RE = re.compile(r"\s+(NOT\s+NULL\b|COMMENT\b)", re.IGNORECASE)
_COMMENT_RE = re.compile(r"COMMENT\s+(['\"])((?:\\.|(?!\1).)*)\1", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


@dataclass
class StructField:
    name: str
    type: "TypeNode"
    nullable: bool = True
    description: str = ""


@dataclass
class TypeNode:
    kind: str  # scalar | struct | array | map
    text: str
    fields: List[StructField] = field(default_factory=list)
    element: Optional["TypeNode"] = None
    key: Optional["TypeNode"] = None
    value: Optional["TypeNode"] = None

    @property
    def is_struct_like(self) -> bool:
        """STRUCT, or ARRAY whose (innermost) element is a STRUCT."""
        if self.kind == "struct":
            return True
        if self.kind == "array" and self.element is not None:
            return self.element.is_struct_like
        return False

    def struct_fields(self) -> List[StructField]:
        if self.kind == "struct":
            return self.fields
        if self.kind == "array" and self.element is not None:
            return self.element.struct_fields()
        return []


@dataclass(frozen=True)
class NestedField:
    """One flattened struct field: dot path + its own type."""

    path: str
    data_type: str
    nullable: bool = True
    description: str = ""


# -----------------------------------------------------------------------------
# Normalisation
# -----------------------------------------------------------------------------


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def normalize_data_type(data_type: str) -> str:
    """
    Canonical type string.

    Scalars are upper-cased; for STRUCT/ARRAY/MAP only the keyword is
    upper-cased and the inner content is preserved verbatim.
    """
    if not data_type:
        return data_type

    m = _COMPLEX_PREFIX_RE.match(data_type)
    if m:
        return m.group(1).upper() + data_type[m.end() - 1 :].rstrip()

    return data_type.strip().upper()


def type_keyword(data_type: str) -> str:
    """Leading keyword of a type string: `DECIMAL(10,2)` -> `DECIMAL`."""
    m = re.match(r"\s*([A-Za-z_][A-Za-z0-9_ ]*?)\s*(?:[(<]|$)", data_type or "")
    if not m:
        return (data_type or "").strip().upper()
    return m.group(1).upper()


def is_complex_type(data_type: str) -> bool:
    return bool(_COMPLEX_PREFIX_RE.match(data_type or ""))


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


class _TypeReader:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> TypeExpressionError:
        return TypeExpressionError(f"{message} at offset {self.pos} in '{self.text}'")

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.error(f"Expected '{char}'")
        self.pos += 1

    def read_until_boundary(self) -> str:
        """Read raw text up to a depth-0 `,` or `>` (or end of input)."""
        start = self.pos
        depth = 0
        quote: Optional[str] = None

        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if quote:
                if ch == "\\":
                    self.pos += 2
                    continue
                if ch == quote:
                    quote = None
            elif ch in ("'", '"', "`"):
                quote = ch
            elif ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0:
                    raise self.error("Unbalanced ')'")
            elif depth == 0 and ch in (",", ">"):
                break
            self.pos += 1

        if quote:
            raise self.error("Unterminated quoted text")
        if depth:
            raise self.error("Unbalanced '('")
        return self.text[start : self.pos]

    def read_name(self) -> str:
        self.skip_ws()
        if self.pos >= len(self.text):
            raise self.error("Expected field name")

        ch = self.text[self.pos]
        if ch in ("`", '"'):
            end = self.text.find(ch, self.pos + 1)
            if end < 0:
                raise self.error("Unterminated quoted field name")
            name = self.text[self.pos + 1 : end]
            self.pos = end + 1
            return name

        start = self.pos
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch.isspace() or ch in ":,<>()":
                break
            self.pos += 1
        if self.pos == start:
            raise self.error("Expected field name")
        return self.text[start : self.pos]

    def read_type(self) -> TypeNode:
        self.skip_ws()
        start = self.pos
        m = _COMPLEX_PREFIX_RE.match(self.text, self.pos)
        if not m:
            raw = self.read_until_boundary()
            text = collapse_whitespace(raw)
            if not text:
                raise self.error("Expected a type")
            return TypeNode(kind="scalar", text=text)

        keyword = m.group(1).upper()
        self.pos = m.end()  # just past '<'

        if keyword == "STRUCT":
            node = TypeNode(kind="struct", text="")
            if self.peek() != ">":
                while True:
                    node.fields.append(self.read_field())
                    if self.peek() == ",":
                        self.pos += 1
                        continue
                    break
            self.expect(">")
        elif keyword == "ARRAY":
            node = TypeNode(kind="array", text="", element=self.read_type())
            self.expect(">")
        else:
            node = TypeNode(kind="map", text="", key=self.read_type())
            self.expect(",")
            node.value = self.read_type()
            self.expect(">")

        node.text = collapse_whitespace(self.text[start : self.pos])
        return node

    def read_field(self) -> StructField:
        name = self.read_name()
        if self.peek() == ":":
            self.pos += 1

        node = self.read_type()
        options = ""
        if node.kind == "scalar":
            m = _FIELD_OPTIONS_RE.search(node.text)
            if m:
                options = node.text[m.start() :]
                node.text = node.text[: m.start()].strip()
        else:
            options = self.read_until_boundary()

        nullable = not re.search(r"NOT\s+NULL", options, re.IGNORECASE)
        comment = _COMMENT_RE.search(options)
        return StructField(
            name=name,
            type=node,
            nullable=nullable,
            description=comment.group(2) if comment else "",
        )


def parse_type(text: str) -> TypeNode:
    """Parse a full type expression; trailing garbage is an error."""
    reader = _TypeReader(text)
    node = reader.read_type()
    reader.skip_ws()
    if reader.pos != len(text):
        raise reader.error("Unexpected trailing text")
    return node


# -----------------------------------------------------------------------------
# Flattening
# -----------------------------------------------------------------------------


def flatten_type(node: TypeNode, path: str) -> List[NestedField]:
    """
    Return every nested struct field under `path`, depth-first, parent before
    children.

    ARRAY<STRUCT<...>> contributes its element's fields under the same path;
    ARRAY<scalar> and MAP<K,V> contribute nothing.
    """
    out: List[NestedField] = []
    for f in node.struct_fields():
        child_path = f"{path}.{f.name}"
        out.append(
            NestedField(
                path=child_path,
                data_type=normalize_data_type(f.type.text),
                nullable=f.nullable,
                description=f.description,
            )
        )
        out.extend(flatten_type(f.type, child_path))
    return out


def flatten_type_text(data_type: str, path: str) -> List[NestedField]:
    """Parse `data_type` and flatten it; non-struct types yield no fields."""
    if not is_complex_type(data_type):
        return []
    node = parse_type(data_type)
    fields = flatten_type(node, path)
    if fields:
        logger.debug("Flattened %s into %d nested field(s)", path, len(fields))
    return fields
