# datamodel/parsers/formats/protobuf.py
"""
.proto (proto2/proto3) -> canonical tables.

Every top-level `message` becomes a table. Message-typed fields are
flattened into dot-path columns, enum-typed fields become STRING columns
carrying the enum's value names, and `//` comments directly above a field
become its description. Services, options and imports are skipped.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from celine.datamodel.core.errors import SchemaParseError
from celine.datamodel.parsers.formats.common import (
    ParsedSchemas,
    SchemaField,
    TableBuilder,
    type_text,
)
from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.table import Table

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
    (?P<comment>//[^\n]*)
    | (?P<block>/\*.*?\*/)
    | (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
    | (?P<word>[A-Za-z0-9_.+-]+)
    | (?P<punct>[{}<>;=,\[\]()])
    | (?P<space>\s+)
    """,
    re.VERBOSE | re.DOTALL,
)

_SCALARS = {
    "int32": "INTEGER",
    "sint32": "INTEGER",
    "sfixed32": "INTEGER",
    "uint32": "INTEGER",
    "fixed32": "INTEGER",
    "int64": "BIGINT",
    "sint64": "BIGINT",
    "sfixed64": "BIGINT",
    "uint64": "BIGINT",
    "fixed64": "BIGINT",
    "float": "FLOAT",
    "double": "DOUBLE",
    "bool": "BOOLEAN",
    "bytes": "BYTES",
    "string": "STRING",
    "google.protobuf.Timestamp": "TIMESTAMP",
}

_SKIPPED_BLOCKS = {"service", "extend"}
_SKIPPED_STATEMENTS = {"syntax", "edition", "package", "import", "option", "reserved", "extensions"}


@dataclass
class _Field:
    name: str
    type_name: str
    label: str = ""
    description: str = ""
    key_type: Optional[str] = None  # set for map<K, V>; type_name holds V
    in_oneof: bool = False


@dataclass
class _Message:
    name: str
    full_name: str
    fields: List[_Field] = field(default_factory=list)
    top_level: bool = True


@dataclass
class _Token:
    kind: str
    text: str
    line: int


def _tokenize(text: str) -> List[_Token]:
    tokens: List[_Token] = []
    pos, line = 0, 1
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise SchemaParseError(f"Unexpected character {text[pos]!r} on line {line}")
        kind = m.lastgroup or ""
        if kind != "space" and kind != "block":
            tokens.append(_Token(kind, m.group(), line))
        line += m.group().count("\n")
        pos = m.end()
    return tokens


class _ProtoReader:
    def __init__(self, tokens: List[_Token]):
        self.tokens = tokens
        self.pos = 0
        self.package = ""
        self.messages: Dict[str, _Message] = {}
        self.order: List[_Message] = []
        self.enums: Dict[str, List[str]] = {}
        self.pending_comment: List[str] = []

    # -- token helpers ---------------------------------------------------

    def peek(self) -> Optional[_Token]:
        while self.pos < len(self.tokens) and self.tokens[self.pos].kind == "comment":
            self.pending_comment.append(self.tokens[self.pos].text[2:].strip())
            self.pos += 1
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> _Token:
        token = self.peek()
        if token is None:
            raise SchemaParseError("Unexpected end of .proto input")
        self.pos += 1
        return token

    def expect(self, text: str) -> _Token:
        token = self.next()
        if token.text != text:
            raise SchemaParseError(f"Expected '{text}' on line {token.line}, got '{token.text}'")
        return token

    def take_comment(self) -> str:
        comment = " ".join(c for c in self.pending_comment if c)
        self.pending_comment = []
        return comment

    def skip_statement(self) -> None:
        depth = 0
        while True:
            token = self.next()
            if token.text in ("{", "[", "("):
                depth += 1
            elif token.text in ("}", "]", ")"):
                depth -= 1
            elif token.text == ";" and depth <= 0:
                return

    def skip_block(self) -> None:
        while self.next().text != "{":
            pass
        depth = 1
        while depth:
            token = self.next()
            if token.text == "{":
                depth += 1
            elif token.text == "}":
                depth -= 1

    # -- grammar ---------------------------------------------------------

    def read_file(self) -> None:
        while self.peek() is not None:
            token = self.next()
            self.take_comment()
            if token.text == "package":
                self.package = self.next().text
                self.expect(";")
            elif token.text == "message":
                self.read_message(top_level=True, scope="")
            elif token.text == "enum":
                self.read_enum(scope="")
            elif token.text in _SKIPPED_BLOCKS:
                self.skip_block()
            elif token.text in _SKIPPED_STATEMENTS:
                self.skip_statement()
            elif token.text != ";":
                raise SchemaParseError(f"Unexpected '{token.text}' on line {token.line}")

    def read_enum(self, scope: str) -> None:
        name = self.next().text
        full_name = f"{scope}.{name}" if scope else name
        values: List[str] = []
        self.expect("{")
        while True:
            token = self.next()
            if token.text == "}":
                break
            if token.text in ("option", "reserved"):
                self.skip_statement()
                continue
            if token.text == ";":
                continue
            values.append(token.text)
            self.skip_statement()
        self.take_comment()
        self.enums[full_name] = values
        self.enums.setdefault(name, values)

    def read_message(self, top_level: bool, scope: str) -> None:
        name = self.next().text
        full_name = f"{scope}.{name}" if scope else name
        message = _Message(name=name, full_name=full_name, top_level=top_level)
        self.messages[full_name] = message
        self.messages.setdefault(name, message)
        self.order.append(message)

        self.expect("{")
        self.read_body(message, in_oneof=False)

    def read_body(self, message: _Message, in_oneof: bool) -> None:
        while True:
            token = self.peek()
            if token is None:
                raise SchemaParseError(f"Unterminated message '{message.name}'")
            if token.text == "}":
                self.next()
                self.take_comment()
                return
            if token.text == ";":
                self.next()
                continue

            if token.text == "message":
                self.next()
                self.take_comment()
                self.read_message(top_level=False, scope=message.full_name)
            elif token.text == "enum":
                self.next()
                self.take_comment()
                self.read_enum(scope=message.full_name)
            elif token.text == "oneof":
                self.next()
                self.next()  # oneof name
                self.expect("{")
                self.take_comment()
                self.read_body(message, in_oneof=True)
            elif token.text in _SKIPPED_STATEMENTS:
                self.next()
                self.take_comment()
                self.skip_statement()
            elif token.text in _SKIPPED_BLOCKS:
                self.next()
                self.take_comment()
                self.skip_block()
            else:
                message.fields.append(self.read_field(in_oneof))

    def read_field(self, in_oneof: bool) -> _Field:
        description = self.take_comment()
        token = self.next()
        label = ""
        if token.text in ("repeated", "optional", "required"):
            label = token.text
            token = self.next()

        key_type = None
        if token.text == "map":
            self.expect("<")
            key_type = self.next().text
            self.expect(",")
            type_name = self.next().text
            self.expect(">")
        else:
            type_name = token.text

        name = self.next().text
        self.expect("=")
        self.next()  # field number
        upcoming = self.peek()
        if upcoming is not None and upcoming.text == "[":
            self.skip_statement()
        else:
            self.expect(";")

        # a trailing comment on the same line belongs to this field
        end_line = self.tokens[self.pos - 1].line
        if self.pos < len(self.tokens):
            after = self.tokens[self.pos]
            if after.kind == "comment" and after.line == end_line:
                self.pos += 1
                description = description or after.text[2:].strip()

        return _Field(
            name=name,
            type_name=type_name,
            label=label,
            description=description,
            key_type=key_type,
            in_oneof=in_oneof,
        )


class _TableReader:
    def __init__(self, reader: _ProtoReader, builder: TableBuilder):
        self.reader = reader
        self.builder = builder

    def lookup(self, type_name: str, scope: str) -> Tuple[Optional[_Message], Optional[List[str]]]:
        name = type_name.lstrip(".")
        if self.reader.package and name.startswith(self.reader.package + "."):
            name = name[len(self.reader.package) + 1 :]

        candidates = []
        parts = scope.split(".") if scope else []
        while parts:
            candidates.append(".".join(parts + [name]))
            parts.pop()
        candidates += [name, name.rsplit(".", 1)[-1]]

        for candidate in candidates:
            if candidate in self.reader.messages:
                return self.reader.messages[candidate], None
            if candidate in self.reader.enums:
                return None, self.reader.enums[candidate]
        return None, None

    def scalar(self, type_name: str, path: str) -> str:
        if type_name not in _SCALARS:
            self.builder.warn(f"Unknown type '{type_name}' on '{path}', imported as STRING", column=path)
        return _SCALARS.get(type_name, "STRING")

    def fields(self, message: _Message, prefix: str, stack: Tuple[str, ...]) -> List[SchemaField]:
        return [self.field(f, message, prefix, stack) for f in message.fields]

    def field(self, proto: _Field, owner: _Message, prefix: str, stack: Tuple[str, ...]) -> SchemaField:
        path = f"{prefix}.{proto.name}" if prefix else proto.name
        f = SchemaField(
            name=proto.name,
            nullable=proto.label in ("optional", "repeated") or proto.in_oneof,
            description=proto.description,
            repeated=proto.label == "repeated",
        )

        if proto.key_type is not None:
            value = self.value_type(proto.type_name, owner, path, stack)
            f.data_type = f"MAP<{self.scalar(proto.key_type, path)}, {value}>"
            f.nullable = False
            return f

        if proto.type_name in _SCALARS:
            f.data_type = _SCALARS[proto.type_name]
            return f

        message, enum_values = self.lookup(proto.type_name, owner.full_name)
        if message is not None:
            if message.full_name in stack:
                self.builder.warn(f"Recursive message '{message.name}' on '{path}' imported as STRING", column=path)
                f.data_type = "STRING"
            else:
                f.children = self.fields(message, path, stack + (message.full_name,))
        elif enum_values is not None:
            f.data_type = "STRING"
            f.enum_values = list(enum_values)
        else:
            f.data_type = self.scalar(proto.type_name, path)
        return f

    def value_type(self, type_name: str, owner: _Message, path: str, stack: Tuple[str, ...]) -> str:
        if type_name in _SCALARS:
            return _SCALARS[type_name]
        message, enum_values = self.lookup(type_name, owner.full_name)
        if message is not None and message.full_name not in stack:
            struct = SchemaField(name="value", children=self.fields(message, path, stack + (message.full_name,)))
            # map values are not flattened; only the type text is kept
            return type_text(struct)
        if enum_values is not None:
            return "STRING"
        return self.scalar(type_name, path)


def parse_protobuf(content: str) -> ParsedSchemas:
    """
    .proto text -> one table per top-level message.

    Raises SchemaParseError when the text cannot be tokenized or a block is
    left unterminated.
    """
    reader = _ProtoReader(_tokenize(content))
    reader.read_file()

    tables: List[Table] = []
    diagnostics: List[Diagnostic] = []
    for message in reader.order:
        if not message.top_level:
            continue
        table = Table(name=message.name)
        if reader.package:
            table.odcl_metadata["package"] = reader.package

        builder = TableBuilder(table)
        fields = _TableReader(reader, builder).fields(message, "", (message.full_name,))
        for f in fields:
            builder.add_field(f)
        diagnostics.extend(builder.diagnostics)
        tables.append(builder.finish())

    logger.debug("Protobuf import: %d message(s), %d table(s)", len(reader.order), len(tables))
    return ParsedSchemas(tables=tables, diagnostics=diagnostics)
