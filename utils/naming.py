# utils/naming.py
"""
Identifier helpers shared by the template library, the DDL parser,
FK auto-wiring and the command executor.

- singularize / pluralize work on the LAST snake_case segment
  ("order_items" -> "order_item")
- normalize_identifier turns free text into a snake_case name
- lookup helpers implement the exact -> singular/plural -> substring
  fallback used for every table and column reference
"""

import re
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar('T')

IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "analysis": "analyses",
    "index": "indices",
}
IRREGULAR_SINGULARS = {v: k for k, v in IRREGULAR_PLURALS.items()}

UNCOUNTABLE = {
    "data", "media", "metadata", "news", "series", "species", "info",
    "information", "equipment", "staff", "inventory", "feedback", "software",
}

# Minimum length for the bidirectional substring fallback
MIN_SUBSTRING_LENGTH = 3


def _split_last(name: str):
    if "_" in name:
        head, _, last = name.rpartition("_")
        return head + "_", last
    return "", name


def singularize(name: str) -> str:
    """users -> user, categories -> category, addresses -> address"""
    if not name:
        return name
    head, word = _split_last(name.lower())
    if word in UNCOUNTABLE or word in IRREGULAR_PLURALS:
        return head + word
    if word in IRREGULAR_SINGULARS:
        return head + IRREGULAR_SINGULARS[word]
    if len(word) > 3 and word.endswith("ies"):
        return head + word[:-3] + "y"
    if word.endswith(("sses", "xes", "zes", "ches", "shes")):
        return head + word[:-2]
    if word.endswith("uses") and not word.endswith("ouses"):
        return head + word[:-2]
    if word.endswith("s") and not word.endswith(("ss", "us", "is")) and len(word) > 1:
        return head + word[:-1]
    return head + word


def pluralize(name: str) -> str:
    """user -> users, category -> categories, address -> addresses"""
    if not name:
        return name
    head, word = _split_last(name.lower())
    if word in UNCOUNTABLE or word in IRREGULAR_SINGULARS:
        return head + word
    if word in IRREGULAR_PLURALS:
        return head + IRREGULAR_PLURALS[word]
    if singularize(word) != word:
        return head + word
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return head + word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return head + word + "es"
    return head + word + "s"


def normalize_identifier(text: str) -> str:
    """'Order Items' -> 'order_items', '"Users"' -> 'users'"""
    cleaned = text.strip().strip('`"[]\'').lower()
    cleaned = re.sub(r"[\s\-]+", "_", cleaned)
    cleaned = re.sub(r"[^\w]", "", cleaned)
    return re.sub(r"_+", "_", cleaned).strip("_")


def same_name(a: str, b: str) -> bool:
    """Case and singular/plural insensitive name equality."""
    a, b = a.lower(), b.lower()
    return a == b or singularize(a) == singularize(b)


def find_by_name(items: Iterable[T], name: str, key: Callable[[T], str] = lambda x: x.name,
                 allow_substring: bool = True) -> Optional[T]:
    """
    Case-insensitive lookup with fallback order:
    exact name -> singular/plural-insensitive name -> bidirectional substring.
    First match wins.
    """
    items = list(items)
    if not name:
        return None
    target = normalize_identifier(name)
    if not target:
        return None

    for item in items:
        if key(item).lower() == target:
            return item

    target_singular = singularize(target)
    for item in items:
        if singularize(key(item).lower()) == target_singular:
            return item

    if allow_substring and len(target) >= MIN_SUBSTRING_LENGTH:
        for item in items:
            candidate = key(item).lower()
            if len(candidate) >= MIN_SUBSTRING_LENGTH and (target in candidate or candidate in target):
                return item
    return None


def match_exact_or_inflected(items: Iterable[T], name: str,
                             key: Callable[[T], str] = lambda x: x.name) -> Optional[T]:
    """Lookup by exact, pluralized or singularized name only (no substring)."""
    return find_by_name(items, name, key=key, allow_substring=False)


def unique_name(base: str, taken: Iterable[str]) -> str:
    """Return base, or base_2, base_3, ... when already taken."""
    existing = {t.lower() for t in taken}
    if base.lower() not in existing:
        return base
    n = 2
    while f"{base}_{n}".lower() in existing:
        n += 1
    return f"{base}_{n}"


def humanize(name: str) -> str:
    """order_items -> Order Items"""
    return " ".join(part.capitalize() for part in name.replace("-", "_").split("_") if part)


def slugify(text: str) -> str:
    return normalize_identifier(text) or "item"


def names_list(names: List[str]) -> str:
    """Format names for a response: users, orders and products"""
    quoted = [f"**{n}**" for n in names]
    if len(quoted) <= 1:
        return "".join(quoted)
    return ", ".join(quoted[:-1]) + " and " + quoted[-1]
