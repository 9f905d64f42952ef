# schema_engine/type_inferencer.py
"""
==============================================================
COLUMN TYPE INFERENCER - column name -> SQL type
==============================================================

Pure and total: every name gets a type. Rules are evaluated in
order by FirstMatch, most specific first. Matching is token-aware:
"user_age" hits the integer rule, "image" and "message" do not.

    id                  -> SERIAL
    customer_id         -> INTEGER
    email               -> VARCHAR(255)
    phone_number        -> VARCHAR(20)
    unit_price          -> DECIMAL(10,2)
    created_at          -> TIMESTAMP
    is_deleted          -> TIMESTAMP
    is_active           -> BOOLEAN
    bio                 -> TEXT
    avatar_url          -> VARCHAR(500)
    status              -> VARCHAR(50)
    title               -> VARCHAR(100)
    anything_else       -> VARCHAR(255)
"""

import re
from typing import List

from utils.first_match import FirstMatch, Rule

DEFAULT_TYPE = "VARCHAR(255)"


def _tokens(name: str) -> List[str]:
    return [t for t in re.split(r"[_\W]+", name.lower()) if t]


def _has_token(*words):
    wanted = set(words)
    return lambda name: any(t in wanted for t in _tokens(name))


def _contains(*words):
    return lambda name: any(w in name.lower() for w in words)


def _starts_with(*prefixes):
    return lambda name: name.lower().startswith(prefixes)


TYPE_RULES = [
    Rule("primary_id", lambda n: n.lower() == "id", "SERIAL"),
    Rule("foreign_id", lambda n: n.lower().endswith("_id"), "INTEGER"),
    Rule("email", _contains("email"), "VARCHAR(255)"),
    Rule("secret", _contains("password", "hash"), "VARCHAR(255)"),
    Rule("phone", _has_token("phone", "mobile", "zip", "postal", "zipcode"), "VARCHAR(20)"),
    Rule("money", _contains("price", "cost", "amount", "total", "salary", "fee", "balance"), "DECIMAL(10,2)"),
    Rule("integer", _has_token("count", "quantity", "qty", "stock", "age", "number"), "INTEGER"),
    Rule("timestamp", lambda n: _contains("date", "time")(n) or n.lower().endswith("_at")
         or _has_token("created", "updated", "deleted")(n), "TIMESTAMP"),
    Rule("flag", lambda n: _starts_with("is_", "has_", "can_")(n)
         or _has_token("active", "enabled", "verified", "approved", "published")(n), "BOOLEAN"),
    Rule("long_text", _has_token("description", "content", "body", "text", "bio", "notes",
                                 "address", "comment", "summary"), "TEXT"),
    Rule("link", _has_token("url", "link", "image", "avatar", "photo", "thumbnail"), "VARCHAR(500)"),
    Rule("document", _has_token("json", "data", "meta", "metadata", "config", "settings",
                                "preferences"), "JSON"),
    Rule("uuid", _has_token("uuid", "guid"), "UUID"),
    Rule("enum_like", _has_token("status", "type", "role", "category", "gender", "level"), "VARCHAR(50)"),
    Rule("label", _has_token("name", "title", "label", "slug"), "VARCHAR(100)"),
]


class ColumnTypeInferencer:
    """Infers a SQL column type from a column name."""

    def __init__(self, rules=None, default: str = DEFAULT_TYPE):
        self.rules = FirstMatch(rules if rules is not None else TYPE_RULES, default=default)

    def infer(self, name: str) -> str:
        if not name or not name.strip():
            return self.rules.default
        return self.rules.evaluate(name.strip())

    def explain(self, name: str) -> str:
        """Name of the rule that decided the type ('default' when none did)."""
        rule = self.rules.match(name.strip()) if name else None
        return rule.name if rule else "default"


_inferencer = None


def get_type_inferencer() -> ColumnTypeInferencer:
    global _inferencer
    if _inferencer is None:
        _inferencer = ColumnTypeInferencer()
    return _inferencer


def infer_type(name: str) -> str:
    """Convenience wrapper around the shared inferencer."""
    return get_type_inferencer().infer(name)
