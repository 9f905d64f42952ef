# nlp_engine/column_spec_parser.py
"""
Column list phrases -> ColumnSpec.

    "order_number, total as decimal, status"
    "email unique, name required, price decimal(12,4)"
    "created at (timestamp) and is active: bool"

Rules:
- list split on commas (outside parentheses), "and", "&", ";", "plus"
- explicit type only after a separator (":", "as", "of type", "type",
  parentheses) or when written with parameters ("varchar(100)");
  otherwise the type is left to the inferencer
- inline modifiers: primary key / pk, unique, required / not null,
  optional / nullable, default <value>
- "timestamps" expands to created_at, updated_at
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from schema_engine.ddl_parser import split_top_level
from schema_engine.model import Column
from schema_engine.type_inferencer import get_type_inferencer
from utils.naming import normalize_identifier

# Type words a user may type -> canonical SQL type
TYPE_ALIASES = {
    "int": "INTEGER",
    "integer": "INTEGER",
    "number": "INTEGER",
    "bigint": "BIGINT",
    "smallint": "SMALLINT",
    "tinyint": "SMALLINT",
    "serial": "SERIAL",
    "text": "TEXT",
    "string": "VARCHAR(255)",
    "str": "VARCHAR(255)",
    "varchar": "VARCHAR(255)",
    "char": "CHAR(1)",
    "boolean": "BOOLEAN",
    "bool": "BOOLEAN",
    "date": "DATE",
    "datetime": "TIMESTAMP",
    "timestamp": "TIMESTAMP",
    "time": "TIME",
    "decimal": "DECIMAL(10,2)",
    "numeric": "DECIMAL(10,2)",
    "money": "DECIMAL(10,2)",
    "currency": "DECIMAL(10,2)",
    "float": "FLOAT",
    "double": "DOUBLE PRECISION",
    "real": "REAL",
    "json": "JSON",
    "jsonb": "JSONB",
    "uuid": "UUID",
    "blob": "BLOB",
    "binary": "BLOB",
}

TYPE_WORD = r"(?:" + "|".join(sorted(TYPE_ALIASES, key=len, reverse=True)) + r")"
TYPE_PARAMS = r"(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))"

EXPANSIONS = {
    "timestamps": ["created_at", "updated_at"],
    "timestamp_columns": ["created_at", "updated_at"],
}

_NOISE = {"a", "an", "the", "new", "also", "called", "named", "some", "appropriate"}

_SPLIT_RE = re.compile(r"\s*(?:;|&|\+|\band\b|\bplus\b)\s*")
_COL_WORD_RE = re.compile(r"\b(?:columns?|fields?|attributes?|properties|property)\b")

_PK_RE = re.compile(r"\b(?:primary\s+key|pk)\b")
_UNIQUE_RE = re.compile(r"\bunique\b")
_REQUIRED_RE = re.compile(r"\b(?:required|not\s+null|mandatory|non[-\s]?nullable)\b")
_NULLABLE_RE = re.compile(r"\b(?:optional|nullable)\b")
_DEFAULT_RE = re.compile(r"\b(?:default(?:s)?|defaulting)\s+(?:to\s+|of\s+)?(?P<value>'[^']*'|\"[^\"]*\"|[\w.\-]+)")

_TYPE_SEP_RE = re.compile(
    r"^(?P<name>.+?)\s*(?::|\bas\b|\bof\s+type\b|\btype\b)\s*(?:an?\s+)?(?P<type>" + TYPE_WORD
    + r")(?P<params>" + TYPE_PARAMS + r")?$")
_TYPE_PAREN_RE = re.compile(
    r"^(?P<name>.+?)\s*\(\s*(?P<type>" + TYPE_WORD + r")(?P<params>" + TYPE_PARAMS + r")?\s*\)$")
_TYPE_WITH_PARAMS_RE = re.compile(
    r"^(?P<name>.+?)\s+(?P<type>" + TYPE_WORD + r")(?P<params>" + TYPE_PARAMS + r")$")


def canonical_type(word: str, params: Optional[str] = None) -> Optional[str]:
    """'decimal', '(12, 4)' -> 'DECIMAL(12,4)'; unknown words -> None."""
    base = TYPE_ALIASES.get((word or "").strip().lower())
    if base is None:
        return None
    if not params:
        return base
    digits = re.sub(r"\s+", "", params.strip())
    return base.split("(")[0] + digits


@dataclass
class ColumnSpec:
    name: str
    type: Optional[str] = None
    primary_key: bool = False
    unique: bool = False
    nullable: Optional[bool] = None
    default: Optional[str] = None

    def to_column(self) -> Column:
        """Build the Column; missing types are inferred from the name."""
        column_type = self.type or get_type_inferencer().infer(self.name)
        nullable = self.nullable
        if self.primary_key:
            nullable = False
        return Column(
            name=self.name,
            type=column_type,
            is_primary_key=self.primary_key,
            is_unique=self.unique and not self.primary_key,
            is_nullable=True if nullable is None else nullable,
            default_value=self.default,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "primary_key": self.primary_key,
            "unique": self.unique,
            "nullable": self.nullable,
            "default": self.default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColumnSpec':
        return cls(
            name=data["name"],
            type=data.get("type"),
            primary_key=bool(data.get("primary_key")),
            unique=bool(data.get("unique")),
            nullable=data.get("nullable"),
            default=data.get("default"),
        )


def parse_column_spec(part: str) -> List[ColumnSpec]:
    """One list item -> zero or more specs (expansions yield several)."""
    text = part.strip().lower()
    if not text:
        return []

    default = None
    m = _DEFAULT_RE.search(text)
    if m:
        default = m.group("value")
        text = text[:m.start()] + text[m.end():]

    is_pk = bool(_PK_RE.search(text))
    unique = bool(_UNIQUE_RE.search(text))
    required = bool(_REQUIRED_RE.search(text))
    optional = bool(_NULLABLE_RE.search(text)) and not required
    for regex in (_PK_RE, _UNIQUE_RE, _REQUIRED_RE, _NULLABLE_RE):
        text = regex.sub(" ", text)
    text = re.sub(r"\(\s*\)", " ", text)
    text = re.sub(r"\s+", " ", text).strip(" ,:")

    column_type = None
    for regex in (_TYPE_SEP_RE, _TYPE_PAREN_RE, _TYPE_WITH_PARAMS_RE):
        m = regex.match(text)
        if m:
            column_type = canonical_type(m.group("type"), m.group("params"))
            text = m.group("name")
            break

    words = [w for w in re.findall(r"[a-z0-9_\-]+", text) if w not in _NOISE]
    name = normalize_identifier(" ".join(words))
    if not name or len(name) < 2:
        return []
    if name in EXPANSIONS and column_type is None:
        return [ColumnSpec(name=n) for n in EXPANSIONS[name]]

    nullable = None
    if required:
        nullable = False
    elif optional:
        nullable = True
    return [ColumnSpec(name=name, type=column_type, primary_key=is_pk, unique=unique,
                       nullable=nullable, default=default)]


def parse_column_specs(text: str) -> List[ColumnSpec]:
    """A column list phrase -> specs, in order, without duplicate names."""
    cleaned = _COL_WORD_RE.sub(" ", (text or "").lower())
    specs: List[ColumnSpec] = []
    seen = set()
    for chunk in split_top_level(cleaned, ","):
        for part in _SPLIT_RE.split(chunk):
            for spec in parse_column_spec(part):
                if spec.name not in seen:
                    seen.add(spec.name)
                    specs.append(spec)
    return specs
