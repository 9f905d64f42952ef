# schema_engine/ddl_parser.py
"""
==============================================================
DDL PARSER - raw SQL DDL -> Table entities
==============================================================

Best-effort, dialect-tolerant reader for CREATE TABLE statements
(PostgreSQL, MySQL, SQLite, SQL Server flavours).

Steps:
1. Strip -- line and /* block */ comments (quote aware)
2. Locate each CREATE [OR REPLACE] [TEMP] TABLE [IF NOT EXISTS] [schema.]name (
3. Read the body to its matching ")" with a depth counter
4. Split the body on top-level commas (parentheses and quotes honoured)
5. Classify clauses: PRIMARY KEY / FOREIGN KEY / UNIQUE / other
   constraint (skipped) / column definition
6. Apply deferred table-level constraints (they win over inline ones)
7. Apply ALTER TABLE ... ADD constraints found in the same text

Tables with no parsed columns are dropped. Text without any
CREATE TABLE yields [].
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from schema_engine.model import DEFAULT_COLUMN_TYPE, Column, ForeignKey, Table

logger = logging.getLogger(__name__)

_IDENT = r'(?:"[^"]+"|`[^`]+`|\[[^\]]+\]|[\w$]+)'
_QUALIFIED = _IDENT + r'(?:\s*\.\s*' + _IDENT + r')*'

_CREATE_TABLE_RE = re.compile(
    r"\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP(?:ORARY)?\s+)?(?:UNLOGGED\s+)?"
    r"TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>" + _QUALIFIED + r")\s*\(",
    re.IGNORECASE,
)
_ALTER_TABLE_RE = re.compile(
    r"\bALTER\s+TABLE\s+(?:ONLY\s+)?(?:IF\s+EXISTS\s+)?(?P<name>" + _QUALIFIED + r")\s+(?P<body>[^;]*)",
    re.IGNORECASE,
)
_CONSTRAINT_NAME_RE = re.compile(r"^CONSTRAINT\s+" + _IDENT + r"\s*", re.IGNORECASE)
_REFERENCES_RE = re.compile(r"\bREFERENCES\s+(?P<table>" + _QUALIFIED + r")\s*(?:\((?P<cols>[^)]*)\))?",
                            re.IGNORECASE)
_INDEX_CLAUSE_RE = re.compile(r"^(?:KEY|INDEX)\s*(?:" + _IDENT + r"\s*)?\(", re.IGNORECASE)
_SKIPPED_CLAUSE_RE = re.compile(
    r"^(?:CHECK|EXCLUDE|FULLTEXT|SPATIAL|LIKE|PERIOD\s+FOR|CONSTRAINT)\b", re.IGNORECASE)
_ALTER_ADD_RE = re.compile(r"^ADD\s+(?:COLUMN\s+)?(?:IF\s+NOT\s+EXISTS\s+)?(.*)$", re.IGNORECASE | re.DOTALL)

_TYPE_ALIASES = [
    (re.compile(r"^CHARACTER\s+VARYING\b"), "VARCHAR"),
    (re.compile(r"^INT4\b"), "INT"),
    (re.compile(r"^INT8\b"), "BIGINT"),
    (re.compile(r"^FLOAT8\b"), "DOUBLE"),
    (re.compile(r"^FLOAT4\b"), "FLOAT"),
    (re.compile(r"^BOOL\b"), "BOOLEAN"),
]
_TYPE_CONTINUATIONS = {"VARYING", "PRECISION", "UNSIGNED", "SIGNED", "ZEROFILL"}
_SERIAL_TYPES = {"SERIAL", "BIGSERIAL", "SMALLSERIAL", "SERIAL4", "SERIAL8"}
_AUTO_PK_WORDS = {"AUTO_INCREMENT", "AUTOINCREMENT", "IDENTITY"}
_MODIFIER_WORDS = {
    "PRIMARY", "NOT", "NULL", "UNIQUE", "DEFAULT", "REFERENCES", "CHECK", "CONSTRAINT",
    "AUTO_INCREMENT", "AUTOINCREMENT", "IDENTITY", "GENERATED", "COLLATE", "COMMENT",
}


# =====================================================
# Low-level scanning helpers
# =====================================================

def strip_comments(sql: str) -> str:
    """Remove -- and /* */ comments, leaving string literals untouched."""
    out = []
    i, n = 0, len(sql)
    quote = None
    while i < n:
        ch = sql[i]
        if quote:
            out.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in ("'", '"', '`'):
            quote = ch
            out.append(ch)
            i += 1
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            out.append(" ")
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def read_balanced(text: str, start: int) -> Tuple[str, int]:
    """
    Read from just after an opening "(" to its matching ")".
    Returns (body, index after the closing paren). An unclosed body
    runs to the end of the text.
    """
    depth = 1
    quote = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[start:i], i + 1
        i += 1
    return text[start:], len(text)


def split_top_level(body: str, sep: str = ",") -> List[str]:
    """Split on sep outside parentheses and quotes."""
    parts = []
    depth = 0
    quote = None
    current = []
    for ch in body:
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def unquote(name: str) -> str:
    name = name.strip()
    if len(name) >= 2 and name[0] in '"`[' and name[-1] in '"`]':
        return name[1:-1]
    return name


def last_part(qualified: str) -> str:
    """schema.table -> table (quotes removed)."""
    parts = split_top_level(qualified, sep=".")
    return unquote(parts[-1]) if parts else unquote(qualified)


def name_list(text: str) -> List[str]:
    return [unquote(p) for p in split_top_level(text) if p.strip()]


_TOKEN_RE = re.compile(r"""'(?:[^']|'')*'|"[^"]*"|`[^`]*`|\[[^\]]*\]|::|[\w.$]+|\S""")


def tokenize(text: str) -> List[str]:
    """Tokens of a column definition; a parenthesised group is one token."""
    tokens = []
    i = 0
    while i < len(text):
        if text[i].isspace():
            i += 1
            continue
        if text[i] == "(":
            inner, end = read_balanced(text, i + 1)
            tokens.append("(" + inner + ")")
            i = end
            continue
        m = _TOKEN_RE.match(text, i)
        tokens.append(m.group(0))
        i = m.end()
    return tokens


def _is_index_clause(clause: str) -> bool:
    """MySQL "KEY idx (col)" / "INDEX (col)", but not a column named key: "key VARCHAR(100)"."""
    m = _INDEX_CLAUSE_RE.match(clause)
    if not m:
        return False
    inner, _ = read_balanced(clause, m.end())
    return bool(re.search(r"[A-Za-z_]", inner))


def normalize_type(raw: str) -> str:
    """Uppercase, squeeze whitespace, drop spaces in parameters, map aliases."""
    t = re.sub(r"\s+", " ", raw.strip().upper())
    t = re.sub(r"\s*\(\s*", "(", t)
    t = re.sub(r"\s*,\s*", ",", t)
    t = re.sub(r"\s*\)", ")", t)
    for pattern, replacement in _TYPE_ALIASES:
        t = pattern.sub(replacement, t)
    return t


# =====================================================
# Parser
# =====================================================

class _TableDraft(object):
    """Columns plus the table-level constraints seen while parsing one table."""

    def __init__(self, name):
        self.name = name
        self.columns = []            # type: List[Column]
        self.pk_list = None          # type: Optional[List[str]]
        self.unique_lists = []       # type: List[List[str]]
        self.fk_list = []            # type: List[Tuple[List[str], str, List[str]]]

    def column(self, name) -> Optional[Column]:
        for col in self.columns:
            if col.name.lower() == name.lower():
                return col
        return None


class DDLParser:
    """
    Parse SQL DDL into Table entities.

    Usage:
        tables = DDLParser().parse(sql_text)
    """

    def parse(self, sql: str) -> List[Table]:
        if not sql or not sql.strip():
            return []

        text = strip_comments(sql)
        drafts = {}   # type: Dict[str, _TableDraft]
        order = []

        for match in _CREATE_TABLE_RE.finditer(text):
            name = last_part(match.group("name"))
            body, _ = read_balanced(text, match.end())
            draft = self._parse_body(name, body)
            key = name.lower()
            if key in drafts:
                logger.info("[DDL] Table '%s' defined twice, keeping the last definition", name)
                order.remove(key)
            drafts[key] = draft
            order.append(key)

        if not drafts:
            logger.debug("[DDL] No CREATE TABLE statements found")
            return []

        self._apply_alter_statements(text, drafts)

        tables = []
        for key in order:
            draft = drafts[key]
            if not draft.columns:
                logger.info("[DDL] Dropping table '%s': no columns parsed", draft.name)
                continue
            tables.append(self._finalize(draft))

        logger.info("[DDL] Parsed %d table(s): %s", len(tables), ", ".join(t.name for t in tables))
        return tables

    @staticmethod
    def looks_like_ddl(text: str) -> bool:
        """True when text contains a CREATE TABLE statement with at least one typed column."""
        match = _CREATE_TABLE_RE.search(text or "")
        if not match:
            return False
        return bool(re.match(r"\s*" + _IDENT + r"\s+[A-Za-z]", text[match.end():]))

    # -------------------------------------
    # Clause handling
    # -------------------------------------
    def _parse_body(self, name: str, body: str) -> _TableDraft:
        draft = _TableDraft(name)
        for clause in split_top_level(body):
            self._classify_clause(draft, clause)
        return draft

    def _classify_clause(self, draft: _TableDraft, clause: str) -> None:
        stripped = _CONSTRAINT_NAME_RE.sub("", clause.strip())
        upper = stripped.upper()

        if re.match(r"PRIMARY\s+KEY\b", upper):
            cols = self._first_group(stripped)
            if cols:
                draft.pk_list = cols
        elif re.match(r"FOREIGN\s+KEY\b", upper):
            self._table_foreign_key(draft, stripped)
        elif re.match(r"UNIQUE\b", upper):
            cols = self._first_group(stripped)
            if cols:
                draft.unique_lists.append(cols)
        elif _is_index_clause(stripped) or _SKIPPED_CLAUSE_RE.match(stripped):
            logger.debug("[DDL] Skipping clause in %s: %s", draft.name, clause[:60])
        else:
            column = self._parse_column(stripped)
            if column is None:
                return
            if draft.column(column.name):
                logger.debug("[DDL] Duplicate column %s.%s ignored", draft.name, column.name)
                return
            draft.columns.append(column)

    @staticmethod
    def _first_group(clause: str) -> List[str]:
        start = clause.find("(")
        if start == -1:
            return []
        inner, _ = read_balanced(clause, start + 1)
        return name_list(inner)

    def _table_foreign_key(self, draft: _TableDraft, clause: str) -> None:
        cols = self._first_group(clause)
        ref = _REFERENCES_RE.search(clause)
        if not cols or not ref:
            return
        ref_cols = name_list(ref.group("cols")) if ref.group("cols") else []
        draft.fk_list.append((cols, last_part(ref.group("table")), ref_cols))

    def _parse_column(self, clause: str) -> Optional[Column]:
        tokens = tokenize(clause)
        if not tokens:
            return None
        name = unquote(tokens[0])
        if not name or not re.match(r"^[\w$ ]+$", name):
            return None

        rest = tokens[1:]
        type_parts = []
        i = 0
        if rest and not rest[0].startswith("(") and rest[0].upper() not in _MODIFIER_WORDS:
            type_parts.append(rest[0])
            i = 1
            while i < len(rest):
                tok = rest[i]
                up = tok.upper()
                if tok.startswith("("):
                    type_parts[-1] = type_parts[-1] + tok
                elif up in _TYPE_CONTINUATIONS:
                    type_parts.append(tok)
                elif up in ("WITH", "WITHOUT") and [t.upper() for t in rest[i + 1:i + 3]] == ["TIME", "ZONE"]:
                    type_parts.extend(rest[i:i + 3])
                    i += 2
                elif tok == "[]":
                    type_parts[-1] = type_parts[-1] + "[]"
                else:
                    break
                i += 1

        col_type = normalize_type(" ".join(type_parts)) if type_parts else DEFAULT_COLUMN_TYPE
        column = Column(name=name, type=col_type)
        if col_type.split("(")[0] in _SERIAL_TYPES:
            column.is_primary_key = True

        self._apply_modifiers(column, rest[i:])
        if column.is_primary_key:
            column.is_nullable = False
        return column

    def _apply_modifiers(self, column: Column, tokens: List[str]) -> None:
        upper = [t.upper() for t in tokens]
        i = 0
        while i < len(tokens):
            word = upper[i]
            nxt = upper[i + 1] if i + 1 < len(tokens) else ""
            if word == "PRIMARY" and nxt == "KEY":
                column.is_primary_key = True
                i += 2
                continue
            if word in _AUTO_PK_WORDS:
                column.is_primary_key = True
            elif word == "UNIQUE":
                column.is_unique = True
            elif word == "NOT" and nxt == "NULL":
                column.is_nullable = False
                i += 2
                continue
            elif word == "NULL":
                column.is_nullable = True
            elif word == "DEFAULT" and i + 1 < len(tokens):
                value, consumed = self._read_default(tokens, i + 1)
                column.default_value = value
                i += 1 + consumed
                continue
            elif word == "REFERENCES" and i + 1 < len(tokens):
                target = last_part(tokens[i + 1])
                ref_col = "id"
                consumed = 2
                if i + 2 < len(tokens) and tokens[i + 2].startswith("("):
                    cols = name_list(tokens[i + 2][1:-1])
                    if cols:
                        ref_col = cols[0]
                    consumed = 3
                column.foreign_key = ForeignKey(table=target, column=ref_col)
                i += consumed
                continue
            elif word in ("CHECK", "COMMENT", "COLLATE") and i + 1 < len(tokens):
                i += 2
                continue
            i += 1

    @staticmethod
    def _read_default(tokens: List[str], start: int) -> Tuple[str, int]:
        """Read a DEFAULT value: literal, signed number, call like now(), ::casts."""
        parts = [tokens[start]]
        i = start + 1
        if parts[0] in ("-", "+") and i < len(tokens):
            parts[0] += tokens[i]
            i += 1
        if i < len(tokens) and tokens[i].startswith("("):
            parts[0] += tokens[i]
            i += 1
        while i + 1 < len(tokens) and tokens[i] == "::":
            parts.append("::" + tokens[i + 1])
            i += 2
        return "".join(parts), i - start

    # -------------------------------------
    # ALTER TABLE ... ADD
    # -------------------------------------
    def _apply_alter_statements(self, text: str, drafts: Dict[str, _TableDraft]) -> None:
        for match in _ALTER_TABLE_RE.finditer(text):
            draft = drafts.get(last_part(match.group("name")).lower())
            if draft is None:
                continue
            for action in split_top_level(match.group("body")):
                m = _ALTER_ADD_RE.match(action.strip())
                if m:
                    self._classify_clause(draft, m.group(1))

    # -------------------------------------
    # Deferred constraints
    # -------------------------------------
    def _finalize(self, draft: _TableDraft) -> Table:
        if draft.pk_list:
            wanted = {c.lower() for c in draft.pk_list}
            for col in draft.columns:
                col.is_primary_key = col.name.lower() in wanted

        for cols in draft.unique_lists:
            if len(cols) == 1:
                col = draft.column(cols[0])
                if col is not None:
                    col.is_unique = True
            else:
                logger.info("[DDL] Composite UNIQUE(%s) on %s not mapped to columns",
                             ", ".join(cols), draft.name)

        for cols, ref_table, ref_cols in draft.fk_list:
            for idx, col_name in enumerate(cols):
                col = draft.column(col_name)
                if col is None:
                    continue
                ref_col = ref_cols[idx] if idx < len(ref_cols) else (ref_cols[0] if ref_cols else "id")
                col.foreign_key = ForeignKey(table=ref_table, column=ref_col)

        for col in draft.columns:
            if col.is_primary_key:
                col.is_nullable = False

        return Table(name=draft.name, columns=draft.columns)


_parser = None


def get_ddl_parser() -> DDLParser:
    global _parser
    if _parser is None:
        _parser = DDLParser()
    return _parser
