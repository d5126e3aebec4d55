# datamodel/parsers/sql.py
"""
CREATE TABLE DDL -> canonical tables.

Statements are split on top-level `;` (string literals, quoted identifiers
and comments are respected), then each statement is tokenized with sqlglot
and walked with a small recursive-descent reader. Only CREATE TABLE is
interpreted; any other statement is skipped.

A broken statement never affects its siblings: it becomes a hard diagnostic,
or, when a best-effort fallback can still recover a table, a soft one.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import Token, TokenType

from celine.datamodel.core.config import get_settings
from celine.datamodel.core.errors import SQLStatementError, TypeExpressionError
from celine.datamodel.parsers.types import (
    collapse_whitespace,
    flatten_type_text,
    normalize_data_type,
)
from celine.datamodel.schemas.diagnostics import Diagnostic, NameInput, Severity
from celine.datamodel.schemas.enums import DatabaseType, MedallionLayer
from celine.datamodel.schemas.table import Column, ForeignKey, Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedDDL:
    tables: List[Table]
    name_inputs: List[NameInput] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def hard_errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.HARD]


@dataclass(frozen=True)
class Statement:
    index: int
    text: str
    error: Optional[str] = None


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

# dialect name -> (sqlglot tokenizer dialect, database type it implies)
_DIALECTS: Dict[str, Tuple[str, Optional[DatabaseType]]] = {
    "generic": ("databricks", None),
    "other": ("databricks", None),
    "databricks": ("databricks", DatabaseType.DATABRICKS_DELTA),
    "databricks_delta": ("databricks", DatabaseType.DATABRICKS_DELTA),
    "aws_glue": ("hive", DatabaseType.AWS_GLUE),
    "glue": ("hive", DatabaseType.AWS_GLUE),
    "postgres": ("postgres", DatabaseType.POSTGRES),
    "postgresql": ("postgres", DatabaseType.POSTGRES),
    "mysql": ("mysql", DatabaseType.MYSQL),
    "mssql": ("tsql", DatabaseType.SQL_SERVER),
    "sqlserver": ("tsql", DatabaseType.SQL_SERVER),
    "sql_server": ("tsql", DatabaseType.SQL_SERVER),
    "bigquery": ("bigquery", None),
    "snowflake": ("snowflake", None),
    "duckdb": ("duckdb", None),
    "redshift": ("redshift", None),
    "hive": ("hive", None),
    "sqlite": ("sqlite", None),
}

_DEFAULT_DIALECT = "generic"

# CREATE [OR REPLACE] <modifiers> TABLE
_TABLE_MODIFIERS = {"TEMPORARY", "TEMP", "EXTERNAL", "GLOBAL", "LOCAL", "TRANSIENT", "UNLOGGED"}

# Keywords that end a column's type and start its options
_COLUMN_OPTIONS = {
    "NOT",
    "NULL",
    "PRIMARY",
    "COMMENT",
    "UNIQUE",
    "CHECK",
    "DEFAULT",
    "REFERENCES",
    "CONSTRAINT",
    "COLLATE",
    "GENERATED",
    "AUTO_INCREMENT",
    "AUTOINCREMENT",
    "IDENTITY",
    "MASK",
}

_COMPLEX_KEYWORDS = {"STRUCT", "ARRAY", "MAP"}

_FK_ACTIONS = {"CASCADE", "RESTRICT", "NO", "ACTION", "SET", "NULL", "DEFAULT"}

_MEDALLION_QUALITY = {MedallionLayer.BRONZE, MedallionLayer.SILVER, MedallionLayer.GOLD}

_QUOTED = {TokenType.STRING, TokenType.IDENTIFIER}

# Token kinds that can name a MySQL index; type keywords tokenize as their own kinds
_INDEX_NAMES = {TokenType.VAR, TokenType.IDENTIFIER}

_PUNCTUATION = {
    TokenType.L_PAREN,
    TokenType.R_PAREN,
    TokenType.COMMA,
    TokenType.DOT,
    TokenType.SEMICOLON,
    TokenType.EQ,
}

_QUOTE_PAIRS = {"'": "'", '"': '"', "`": "`"}


@dataclass(frozen=True)
class _DialectContext:
    name: str
    dialect: sqlglot.Dialect
    database_type: Optional[DatabaseType]

    @property
    def bracket_identifiers(self) -> bool:
        return self.database_type == DatabaseType.SQL_SERVER


def _resolve_dialect(name: Optional[str]) -> _DialectContext:
    key = (name or _DEFAULT_DIALECT).strip().lower()
    if key not in _DIALECTS:
        logger.debug("Unknown SQL dialect '%s', using generic parsing", name)
        key = _DEFAULT_DIALECT

    sqlglot_name, database_type = _DIALECTS[key]
    return _DialectContext(
        name=key,
        dialect=sqlglot.Dialect.get_or_raise(sqlglot_name),
        database_type=database_type,
    )


# -----------------------------------------------------------------------------
# Statement splitting
# -----------------------------------------------------------------------------


def _find_closing(sql: str, pos: int, closer: str) -> int:
    """Index of the quote closing a literal opened before `pos`, or -1."""
    while True:
        j = sql.find(closer, pos)
        if j < 0:
            return -1
        if closer != "]" and sql[j + 1 : j + 2] == closer:
            # doubled quote escapes itself
            pos = j + 2
            continue
        backslashes = 0
        k = j - 1
        while k >= pos and sql[k] == "\\":
            backslashes += 1
            k -= 1
        if closer == "'" and backslashes % 2:
            pos = j + 1
            continue
        return j


def split_statements(sql: str, bracket_identifiers: bool = False) -> List[Statement]:
    """
    Split `sql` on top-level semicolons.

    Semicolons inside string literals, quoted identifiers, `--` line comments
    and `/* */` block comments do not split. An unterminated quote turns the
    statement it opens into an error entry; scanning resumes after the first
    `;` following the opening quote.
    """
    quote_pairs = dict(_QUOTE_PAIRS)
    if bracket_identifiers:
        quote_pairs["["] = "]"

    statements: List[Statement] = []

    def emit(text: str, error: Optional[str] = None) -> None:
        text = text.strip()
        if text:
            statements.append(Statement(index=len(statements), text=text, error=error))

    n = len(sql)
    start = i = 0
    while i < n:
        ch = sql[i]

        if ch == ";":
            emit(sql[start:i])
            i += 1
            start = i
            continue

        if sql.startswith("--", i):
            nl = sql.find("\n", i)
            i = n if nl < 0 else nl + 1
            continue

        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            if end < 0:
                emit(sql[start:], f"Unterminated block comment at offset {i}")
                start = i = n
                break
            i = end + 2
            continue

        closer = quote_pairs.get(ch)
        if closer:
            end = _find_closing(sql, i + 1, closer)
            if end < 0:
                semi = sql.find(";", i + 1)
                stop = n if semi < 0 else semi
                emit(sql[start:stop], f"Unterminated quoted text starting at offset {i}")
                start = i = stop + 1
                continue
            i = end + 1
            continue

        i += 1

    if start < n:
        emit(sql[start:])
    return statements


# -----------------------------------------------------------------------------
# CREATE TABLE reader
# -----------------------------------------------------------------------------


@dataclass
class _TableConstraint:
    kind: str
    name: Optional[str] = None
    columns: List[str] = field(default_factory=list)
    ref_table: Optional[str] = None
    ref_columns: List[str] = field(default_factory=list)
    text: str = ""


def _angle_delta(tokens: List[Token], j: int) -> int:
    """+1 for a `<` opening a STRUCT/ARRAY/MAP, -n for `>`-ish tokens, else 0."""
    tok = tokens[j]
    if tok.token_type in _QUOTED:
        return 0
    if tok.text == "<" and j > 0 and tokens[j - 1].text.upper() in _COMPLEX_KEYWORDS:
        return 1
    if tok.text and set(tok.text) == {">"}:
        return -len(tok.text)
    return 0


_KEYWORD_PHRASE_RE = re.compile(r"[A-Za-z_]+(?:\s+[A-Za-z_]+)+")


def _split_keyword_phrases(text: str, tokens: List[Token]) -> List[Token]:
    """One token per word: sqlglot emits `PRIMARY KEY` and friends as a single token."""
    out: List[Token] = []
    for tok in tokens:
        raw = text[tok.start : tok.end + 1]
        if tok.token_type in _QUOTED or not _KEYWORD_PHRASE_RE.fullmatch(raw):
            out.append(tok)
            continue
        for m in re.finditer(r"\S+", raw):
            out.append(
                Token(
                    TokenType.VAR,
                    m.group(0),
                    line=tok.line,
                    col=tok.col,
                    start=tok.start + m.start(),
                    end=tok.start + m.end() - 1,
                )
            )
    return out


class _CreateTableReader:
    def __init__(self, text: str, tokens: List[Token], context: _DialectContext):
        self.text = text
        self.tokens = tokens
        self.context = context
        self.pos = 0
        self.diagnostics: List[Diagnostic] = []
        self.identifier_expression: Optional[str] = None

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------
    def word(self, idx: int) -> str:
        """Upper-cased text of an unquoted token; "" for quoted or missing."""
        if idx >= len(self.tokens):
            return ""
        tok = self.tokens[idx]
        if tok.token_type in _QUOTED:
            return ""
        return tok.text.upper()

    def kind(self, idx: int) -> Optional[TokenType]:
        if idx >= len(self.tokens):
            return None
        return self.tokens[idx].token_type

    def accept(self, *words: str) -> bool:
        if all(self.word(self.pos + k) == w for k, w in enumerate(words)):
            self.pos += len(words)
            return True
        return False

    def source(self, start: int, end: int) -> str:
        """Verbatim statement text covered by tokens[start:end]."""
        if start >= end:
            return ""
        first, last = self.tokens[start], self.tokens[end - 1]
        return collapse_whitespace(self.text[first.start : last.end + 1])

    def literal(self, start: int, end: int) -> str:
        """A single string literal's content, else the verbatim source."""
        if end - start == 1 and self.kind(start) == TokenType.STRING:
            return self.tokens[start].text
        return self.source(start, end)

    def matching_paren(self, idx: int) -> int:
        depth = 0
        for j in range(idx, len(self.tokens)):
            tt = self.tokens[j].token_type
            if tt == TokenType.L_PAREN:
                depth += 1
            elif tt == TokenType.R_PAREN:
                depth -= 1
                if depth == 0:
                    return j
        raise SQLStatementError("Unbalanced parentheses")

    def split_top_level(self, start: int, end: int) -> List[Tuple[int, int]]:
        """Split tokens[start:end] on commas outside (), and STRUCT/ARRAY/MAP <>."""
        parts: List[Tuple[int, int]] = []
        depth = angle = 0
        item_start = start

        for j in range(start, end):
            tt = self.tokens[j].token_type
            if tt == TokenType.L_PAREN:
                depth += 1
            elif tt == TokenType.R_PAREN:
                depth -= 1
            elif tt == TokenType.COMMA and depth == 0 and angle == 0:
                parts.append((item_start, j))
                item_start = j + 1
            else:
                angle = max(0, angle + _angle_delta(self.tokens, j))

        parts.append((item_start, end))
        return parts

    def names_in_parens(self, idx: int) -> Tuple[List[str], int]:
        """`(a, b)` at idx -> (["a", "b"], index after the closing paren)."""
        close = self.matching_paren(idx)
        names = [
            self.tokens[s].text for s, e in self.split_top_level(idx + 1, close) if s < e
        ]
        return names, close + 1

    def dotted_name(self, idx: int) -> Tuple[List[str], int]:
        parts: List[str] = []
        while True:
            if idx >= len(self.tokens) or self.kind(idx) in _PUNCTUATION:
                raise SQLStatementError("Expected a table name")
            parts.append(self.tokens[idx].text)
            idx += 1
            if self.kind(idx) == TokenType.DOT:
                idx += 1
                continue
            return parts, idx

    # ------------------------------------------------------------------
    # Statement
    # ------------------------------------------------------------------
    def read(self) -> Optional[Table]:
        if not self.accept("CREATE"):
            return None
        self.accept("OR", "REPLACE")
        while self.word(self.pos) in _TABLE_MODIFIERS:
            self.pos += 1
        if not self.accept("TABLE"):
            return None
        self.accept("IF", "NOT", "EXISTS")

        table = Table(name="", database_type=self.context.database_type)
        self.read_table_name(table)

        if self.kind(self.pos) != TokenType.L_PAREN:
            raise SQLStatementError(
                f"Expected a column list after table name '{table.name or self.identifier_expression}'"
            )

        close = self.matching_paren(self.pos)
        constraints: List[_TableConstraint] = []
        for start, end in self.split_top_level(self.pos + 1, close):
            if start == end:
                raise SQLStatementError("Empty column definition")
            if self.is_table_constraint(start):
                constraints.append(self.read_table_constraint(start, end))
                continue
            self.add_column(table, self.read_column(start, end))

        for constraint in constraints:
            self.apply_constraint(table, constraint)

        self.read_trailing_clauses(table, close + 1)
        return table

    def read_table_name(self, table: Table) -> None:
        if self.word(self.pos) == "IDENTIFIER" and self.kind(self.pos + 1) == TokenType.L_PAREN:
            close = self.matching_paren(self.pos + 1)
            self.identifier_expression = self.source(self.pos, close + 1)
            self.pos = close + 1
            return

        parts, self.pos = self.dotted_name(self.pos)
        table.name = parts[-1]
        if len(parts) >= 2:
            table.schema_name = parts[-2]
        if len(parts) >= 3:
            table.catalog_name = parts[-3]

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------
    def read_column(self, start: int, end: int) -> Column:
        if self.kind(start) in _PUNCTUATION:
            raise SQLStatementError(f"Unexpected '{self.tokens[start].text}' in column list")

        name = self.tokens[start].text
        j = start + 1
        depth = angle = 0
        while j < end:
            if depth == 0 and angle == 0 and self.word(j) in _COLUMN_OPTIONS:
                break
            tt = self.tokens[j].token_type
            if tt == TokenType.L_PAREN:
                depth += 1
            elif tt == TokenType.R_PAREN:
                depth -= 1
            else:
                angle = max(0, angle + _angle_delta(self.tokens, j))
            j += 1

        if j == start + 1:
            raise SQLStatementError(f"Column '{name}' has no data type")
        if angle:
            raise SQLStatementError(f"Unbalanced '<' in the type of column '{name}'")

        column = Column(name=name, data_type=normalize_data_type(self.source(start + 1, j)))
        self.read_column_options(column, j, end)
        return column

    def skip_expression(self, j: int, end: int) -> int:
        """Advance past an expression up to the next column option keyword."""
        while j < end and self.word(j) not in _COLUMN_OPTIONS:
            if self.kind(j) == TokenType.L_PAREN:
                j = self.matching_paren(j)
            j += 1
        return j

    def read_column_options(self, column: Column, j: int, end: int) -> None:
        while j < end:
            w = self.word(j)

            if w == "NOT" and self.word(j + 1) == "NULL":
                column.nullable = False
                j += 2
            elif w == "NULL":
                column.nullable = True
                j += 1
            elif w == "PRIMARY" and self.word(j + 1) == "KEY":
                column.primary_key = True
                j += 2
            elif w == "UNIQUE":
                column.constraints.append("UNIQUE")
                j += 1
            elif w == "COMMENT":
                if j + 1 >= end or self.kind(j + 1) != TokenType.STRING:
                    raise SQLStatementError(
                        f"COMMENT on column '{column.name}' must be a string literal"
                    )
                column.description = self.tokens[j + 1].text
                j += 2
            elif w == "CHECK":
                if self.kind(j + 1) != TokenType.L_PAREN:
                    raise SQLStatementError(f"CHECK on column '{column.name}' needs (...)")
                close = self.matching_paren(j + 1)
                column.constraints.append("CHECK " + self.source(j + 1, close + 1))
                j = close + 1
            elif w == "DEFAULT":
                if j + 1 >= end:
                    raise SQLStatementError(f"DEFAULT on column '{column.name}' needs a value")
                # the first token is always the value, even when it is NULL
                k = j + 2
                if self.kind(j + 1) == TokenType.L_PAREN:
                    k = self.matching_paren(j + 1) + 1
                k = self.skip_expression(k, end)
                column.constraints.append("DEFAULT " + self.source(j + 1, k))
                j = k
            elif w == "REFERENCES":
                j = self.read_references(column, j + 1, end)
            elif w in ("CONSTRAINT", "COLLATE"):
                j += 2
            else:
                logger.debug(
                    "Ignoring column option '%s' on %s", self.tokens[j].text, column.name
                )
                j = self.skip_expression(j + 1, end)

    def read_references(self, column: Column, j: int, end: int) -> int:
        parts, j = self.dotted_name(j)
        ref_column = column.name
        if j < end and self.kind(j) == TokenType.L_PAREN:
            names, j = self.names_in_parens(j)
            if names:
                ref_column = names[0]
        column.foreign_key = ForeignKey(table_id=parts[-1], column_name=ref_column)

        # ON DELETE / ON UPDATE <action>
        while j < end and self.word(j) == "ON":
            j += 2
            while j < end and self.word(j) in _FK_ACTIONS:
                j += 1
        return j

    def add_column(self, table: Table, column: Column) -> None:
        if table.get_column(column.name) is not None:
            self.diagnostics.append(
                Diagnostic.soft(f"Duplicate column '{column.name}' ignored", column=column.name)
            )
            return

        column.column_order = len(table.columns)
        table.columns.append(column)

        try:
            nested = flatten_type_text(column.data_type, column.name)
        except TypeExpressionError as exc:
            raise SQLStatementError(f"Invalid type for column '{column.name}': {exc}") from exc

        for f in nested:
            table.columns.append(
                Column(
                    name=f.path,
                    data_type=f.data_type,
                    nullable=f.nullable,
                    description=f.description,
                    column_order=len(table.columns),
                )
            )

    # ------------------------------------------------------------------
    # Table-level constraints
    # ------------------------------------------------------------------
    def is_table_constraint(self, idx: int) -> bool:
        w0, w1 = self.word(idx), self.word(idx + 1)
        if w0 == "CONSTRAINT":
            return True
        if w0 in ("PRIMARY", "FOREIGN") and w1 == "KEY":
            return True
        if w0 in ("UNIQUE", "CHECK") and (
            self.kind(idx + 1) == TokenType.L_PAREN or w1 in ("KEY", "INDEX")
        ):
            return True
        if w0 in ("KEY", "INDEX"):
            # KEY (a) / KEY idx_name (a); `key VARCHAR(255)` is a column
            if self.kind(idx + 1) == TokenType.L_PAREN:
                return True
            return self.kind(idx + 1) in _INDEX_NAMES and self.kind(idx + 2) == TokenType.L_PAREN
        return False

    def read_table_constraint(self, start: int, end: int) -> _TableConstraint:
        constraint = _TableConstraint(kind="", text=self.source(start, end))
        j = start
        if self.word(j) == "CONSTRAINT":
            constraint.name = self.tokens[j + 1].text if j + 1 < end else None
            j += 2

        while j < end and self.kind(j) != TokenType.L_PAREN:
            constraint.kind = f"{constraint.kind} {self.tokens[j].text.upper()}".strip()
            j += 1

        if constraint.kind.startswith("CHECK") or j >= end:
            return constraint

        constraint.columns, j = self.names_in_parens(j)

        if self.word(j) == "REFERENCES":
            parts, j = self.dotted_name(j + 1)
            constraint.ref_table = parts[-1]
            if j < end and self.kind(j) == TokenType.L_PAREN:
                constraint.ref_columns, j = self.names_in_parens(j)
        return constraint

    def apply_constraint(self, table: Table, constraint: _TableConstraint) -> None:
        kind = constraint.kind
        if kind.startswith(("CHECK", "KEY", "INDEX")) or not constraint.columns:
            logger.debug("Table constraint not mapped onto columns: %s", constraint.text)
            return

        columns: List[Column] = []
        for name in constraint.columns:
            col = table.get_column(name)
            if col is None:
                self.diagnostics.append(
                    Diagnostic.soft(
                        f"Constraint references unknown column '{name}': {constraint.text}",
                        column=name,
                    )
                )
                continue
            columns.append(col)

        if kind == "PRIMARY KEY":
            for col in columns:
                col.primary_key = True
                if len(constraint.columns) > 1:
                    col.composite_key = constraint.name or "pk"

        elif kind == "FOREIGN KEY":
            if not constraint.ref_table:
                self.diagnostics.append(
                    Diagnostic.soft(f"Foreign key without REFERENCES: {constraint.text}")
                )
                return
            ref_columns = constraint.ref_columns or constraint.columns
            if len(ref_columns) != len(constraint.columns):
                self.diagnostics.append(
                    Diagnostic.soft(
                        f"Foreign key column count mismatch, not applied: {constraint.text}"
                    )
                )
                return
            pairs = dict(zip(constraint.columns, ref_columns))
            for col in columns:
                col.foreign_key = ForeignKey(
                    table_id=constraint.ref_table, column_name=pairs[col.name]
                )

        elif kind.startswith("UNIQUE"):
            label = (
                "UNIQUE"
                if len(constraint.columns) == 1
                else "UNIQUE (" + ", ".join(constraint.columns) + ")"
            )
            for col in columns:
                col.constraints.append(label)

    # ------------------------------------------------------------------
    # COMMENT / TBLPROPERTIES / other trailing clauses
    # ------------------------------------------------------------------
    def read_trailing_clauses(self, table: Table, j: int) -> None:
        while j < len(self.tokens):
            w = self.word(j)
            if w == "COMMENT":
                k = j + 1
                if self.kind(k) == TokenType.EQ:
                    k += 1
                if self.kind(k) != TokenType.STRING:
                    raise SQLStatementError("Table COMMENT must be a string literal")
                table.odcl_metadata["description"] = self.tokens[k].text
                j = k + 1
            elif w == "TBLPROPERTIES" and self.kind(j + 1) == TokenType.L_PAREN:
                close = self.matching_paren(j + 1)
                self.read_properties(table, j + 2, close)
                j = close + 1
            elif self.kind(j) == TokenType.L_PAREN:
                # PARTITIONED BY (...), OPTIONS (...), WITH (...)
                j = self.matching_paren(j) + 1
            else:
                j += 1

    def read_properties(self, table: Table, start: int, end: int) -> None:
        for s, e in self.split_top_level(start, end):
            if s == e:
                continue
            eq = next((k for k in range(s, e) if self.kind(k) == TokenType.EQ), None)
            if eq is None:
                self.diagnostics.append(
                    Diagnostic.soft(f"TBLPROPERTIES entry without '=': {self.source(s, e)}")
                )
                continue

            key = self.literal(s, eq)
            value = self.literal(eq + 1, e)
            table.quality.append({"property": key, "value": value})

            if key.lower() == "quality":
                layer = MedallionLayer.coerce(value)
                if layer in _MEDALLION_QUALITY:
                    table.add_medallion_layer(layer)
                else:
                    self.diagnostics.append(
                        Diagnostic.soft(f"Unknown medallion layer in quality property: '{value}'")
                    )


# -----------------------------------------------------------------------------
# Best-effort fallback
# -----------------------------------------------------------------------------

_FALLBACK_NAME_RE = re.compile(
    r"CREATE\s+(?:OR\s+REPLACE\s+)?(?:\w+\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    r"([`\"\[]?[\w.]+[`\"\]]?)",
    re.IGNORECASE,
)
_FALLBACK_COLUMN_RE = re.compile(
    r"^\s*[`\"\[]?(\w+)[`\"\]]?\s+([A-Za-z]\w*(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?)"
)
_FALLBACK_SKIP = {"PRIMARY", "FOREIGN", "CONSTRAINT", "UNIQUE", "CHECK", "KEY", "INDEX"}


def _split_naive(body: str) -> List[str]:
    parts, depth, current = [], 0, []
    for ch in body:
        if ch in "(<":
            depth += 1
        elif ch in ")>":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def _fallback_type(part: str, m: re.Match) -> str:
    """Matched type, extended to its closing `>` for STRUCT/ARRAY/MAP."""
    data_type = m.group(2)
    if data_type.upper() not in _COMPLEX_KEYWORDS:
        return data_type
    rest = part[m.end() :].lstrip()
    depth = 0
    for i, ch in enumerate(rest):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                return data_type + rest[: i + 1]
        elif depth == 0:
            break
    return data_type


def _fallback_table(stmt: Statement, context: _DialectContext) -> Optional[Table]:
    """Regex-level recovery of name and simple `name TYPE` columns."""
    m = _FALLBACK_NAME_RE.search(stmt.text)
    if not m:
        return None
    body = stmt.text[m.end() :]
    if "(" not in body:
        return None
    body = body[body.index("(") + 1 :]

    qualified = m.group(1).strip('`"[]').split(".")
    table = Table(name=qualified[-1], database_type=context.database_type)
    for part in _split_naive(body):
        cm = _FALLBACK_COLUMN_RE.match(part)
        if not cm or cm.group(1).upper() in _FALLBACK_SKIP:
            continue
        if table.get_column(cm.group(1)) is not None:
            continue
        table.columns.append(
            Column(
                name=cm.group(1),
                data_type=normalize_data_type(collapse_whitespace(_fallback_type(part, cm))),
                nullable=not re.search(r"NOT\s+NULL", part, re.IGNORECASE),
                column_order=len(table.columns),
            )
        )

    return table if table.columns else None


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------


def _read_statement(
    stmt: Statement, context: _DialectContext
) -> Optional[Tuple[Table, Optional[str], List[Diagnostic]]]:
    try:
        tokens = context.dialect.tokenize(stmt.text)
    except TokenError as exc:
        raise SQLStatementError(f"Could not tokenize statement: {exc}", stmt.index) from exc

    reader = _CreateTableReader(stmt.text, _split_keyword_phrases(stmt.text, tokens), context)
    try:
        table = reader.read()
    except SQLStatementError as exc:
        exc.statement_index = stmt.index
        raise

    if table is None:
        logger.debug("Skipping statement %d: not a CREATE TABLE", stmt.index)
        return None
    return table, reader.identifier_expression, reader.diagnostics


def parse_sql(sql: str, dialect: Optional[str] = None) -> ParsedDDL:
    """
    Parse every CREATE TABLE statement in `sql`.

    Tables come back in statement order. A table whose name is an
    `IDENTIFIER(...)` expression is named `table_<n>` and reported in
    `name_inputs`. Problems never raise: they are returned as diagnostics,
    hard for a statement that produced no table.
    """
    if not sql or not sql.strip():
        return ParsedDDL(tables=[])

    context = _resolve_dialect(dialect if dialect is not None else get_settings().default_sql_dialect)

    tables: List[Table] = []
    name_inputs: List[NameInput] = []
    diagnostics: List[Diagnostic] = []

    for stmt in split_statements(sql, bracket_identifiers=context.bracket_identifiers):
        if stmt.error:
            diag = Diagnostic.hard(stmt.error, statement=stmt.index)
            logger.warning("Statement %d not imported: %s", stmt.index, stmt.error)
            diagnostics.append(diag)
            continue

        try:
            result = _read_statement(stmt, context)
        except SQLStatementError as exc:
            table = _fallback_table(stmt, context)
            if table is None:
                logger.warning("Statement %d not imported: %s", stmt.index, exc.message)
                diagnostics.append(Diagnostic.hard(exc.message, statement=stmt.index))
                continue
            logger.warning(
                "Statement %d recovered with best-effort parse: %s", stmt.index, exc.message
            )
            result = (
                table,
                None,
                [
                    Diagnostic(
                        message=f"Recovered with best-effort parse: {exc.message}",
                        severity=Severity.SOFT,
                        statement=stmt.index,
                    )
                ],
            )

        if result is None:
            continue

        table, identifier_expression, table_diagnostics = result
        if identifier_expression is not None:
            placeholder = f"table_{len(name_inputs) + 1}"
            table.name = placeholder
            name_inputs.append(
                NameInput(
                    table_index=len(tables),
                    suggested_name=placeholder,
                    original_expression=identifier_expression,
                )
            )

        for diag in table_diagnostics:
            logger.warning("%s: %s", table.name, diag.message)
            table.errors.append(diag.as_error())
        diagnostics.extend(table_diagnostics)

        logger.debug("Parsed table %s with %d column(s)", table.name, len(table.columns))
        tables.append(table)

    return ParsedDDL(tables=tables, name_inputs=name_inputs, diagnostics=diagnostics)
