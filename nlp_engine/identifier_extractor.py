# nlp_engine/identifier_extractor.py
"""
==============================================================
IDENTIFIER EXTRACTOR - text -> candidate operand tokens
==============================================================

Generic fallback used by every command branch when its targeted
pattern fails to capture an operand.

    "Add the email column to customers please"
        -> ["email", "customers"]

Rules:
- tokens are [A-Za-z_][A-Za-z0-9_]*, lowercased
- fixed stop words dropped (articles, prepositions, command verbs,
  structural nouns, politeness words)
- single-character tokens dropped
- order and duplicates preserved
"""

import re
from typing import List

from utils.naming import normalize_identifier

ARTICLES = {"a", "an", "the", "some", "any", "this", "that", "each", "every"}

PREPOSITIONS = {
    "to", "in", "into", "on", "onto", "for", "from", "of", "with", "by", "at", "as", "about",
    "under", "between", "within", "inside", "via", "called", "named", "and", "or", "then",
}

COMMAND_VERBS = {
    "create", "add", "make", "build", "generate", "remove", "delete", "drop", "rename",
    "change", "set", "update", "modify", "alter", "put", "move", "assign", "link", "connect",
    "relate", "show", "display", "list", "describe", "give", "need", "want", "insert",
    "include", "includes", "including", "containing", "contains", "having", "has", "have",
    "new", "get", "use", "should", "be", "is", "are", "was", "do", "does", "mark", "convert",
    "apply", "turn",
}

STRUCTURAL_NOUNS = {
    "table", "tables", "column", "columns", "field", "fields", "attribute", "attributes",
    "schema", "database", "db", "entity", "entities", "model", "diagram",
}

POLITENESS = {
    "please", "kindly", "can", "could", "would", "will", "you", "me", "my", "we", "us", "our",
    "let", "lets", "like", "thanks", "thank", "just", "also", "now", "too", "appropriate",
    "it", "them", "those", "these", "they", "all", "both", "same", "i",
}

STOP_WORDS = ARTICLES | PREPOSITIONS | COMMAND_VERBS | STRUCTURAL_NOUNS | POLITENESS

# Cues that a command refers back to recently touched tables
ANAPHORA = ("them", "those", "these", "they", "it", "same", "also", "too", "both",
            "the new tables", "new tables", "all of them")

_ANAPHORA_RE = re.compile(r"\b(?:" + "|".join(re.escape(a) for a in ANAPHORA) + r")\b")

_TOKEN_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_POLITE_PREFIX_RE = re.compile(
    r"^(?:please|kindly|"
    r"(?:can|could|would|will)\s+you(?:\s+please)?|"
    r"i\s+(?:want|need|would\s+like)\s+(?:you\s+)?to|"
    r"i'd\s+like\s+(?:you\s+)?to|let'?s|let\s+us|go\s+ahead\s+and)\b[\s,]*"
)
_POLITE_SUFFIX_RE = re.compile(r"[\s,]*\b(?:please|thanks|thank\s+you)\s*$")

_LIST_SPLIT_RE = re.compile(r"\s*(?:,|&|\+|\band\b|\bplus\b)\s*")
_LIST_NOISE = {"a", "an", "the", "table", "tables", "new", "also", "then", "called", "named"}


def normalize_command(text: str) -> str:
    """
    Lowercase, collapse whitespace, drop trailing punctuation and
    leading/trailing politeness ("please", "can you", "i want to").
    """
    cleaned = re.sub(r"\s+", " ", (text or "").strip().lower())
    cleaned = cleaned.rstrip(".!?; ")
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _POLITE_PREFIX_RE.sub("", cleaned).strip()
        cleaned = _POLITE_SUFFIX_RE.sub("", cleaned).strip()
    return cleaned


def extract_identifiers(text: str) -> List[str]:
    """Candidate operand tokens (see module docstring)."""
    tokens = [t.lower() for t in _TOKEN_RE.findall(text or "")]
    return [t for t in tokens if len(t) > 1 and t not in STOP_WORDS]


def has_anaphora(text: str) -> bool:
    """True when the text refers back to earlier tables ("them", "those", "also", ...)."""
    return bool(_ANAPHORA_RE.search((text or "").lower()))


def split_name_list(text: str) -> List[str]:
    """
    Split "users, products and order items" into identifiers:
    ["users", "products", "order_items"].
    """
    names = []
    for part in _LIST_SPLIT_RE.split(text or ""):
        words = [w for w in re.findall(r"[A-Za-z0-9_\-]+", part.lower()) if w not in _LIST_NOISE]
        name = normalize_identifier(" ".join(words))
        if name and len(name) > 1:
            names.append(name)
    return names

