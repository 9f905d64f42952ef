# utils/first_match.py
"""
==============================================================
FIRST MATCH - ordered (predicate, result) rule evaluation
==============================================================

Shared combinator behind the intent cascade and the column type
heuristics. Priority lives in the ORDER of the rule list, so the
list itself can be inspected and tested apart from any dispatch.

Usage:
    rules = FirstMatch([
        Rule.pattern("email", r"email", "VARCHAR(255)"),
        Rule("id", lambda n: n == "id", "SERIAL"),
    ], default="VARCHAR(255)")

    rules("user_email")      # -> "VARCHAR(255)"
    rules.match("id").name   # -> "id"
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional


@dataclass(frozen=True)
class Rule:
    """A named predicate and the result it yields when it holds."""
    name: str
    predicate: Callable[[Any], bool]
    result: Any

    @classmethod
    def pattern(cls, name: str, regex: str, result: Any, flags: int = 0) -> 'Rule':
        """Build a rule whose predicate is a regex search."""
        compiled = re.compile(regex, flags)
        return cls(name, lambda value: bool(compiled.search(value)), result)

    @classmethod
    def any_pattern(cls, name: str, regexes: Iterable[str], result: Any, flags: int = 0) -> 'Rule':
        """Build a rule that holds when any of the regexes matches."""
        compiled = [re.compile(r, flags) for r in regexes]
        return cls(name, lambda value: any(c.search(value) for c in compiled), result)


class FirstMatch:
    """
    Evaluates rules in order; the first rule whose predicate
    holds decides the result.
    """

    def __init__(self, rules: Iterable[Rule], default: Any = None):
        self.rules: List[Rule] = list(rules)
        self.default = default

    def match(self, value: Any) -> Optional[Rule]:
        """Return the first rule that holds for value, or None."""
        for rule in self.rules:
            if rule.predicate(value):
                return rule
        return None

    def evaluate(self, value: Any) -> Any:
        """Return the result of the first matching rule, else the default."""
        rule = self.match(value)
        return rule.result if rule is not None else self.default

    __call__ = evaluate

    def names(self) -> List[str]:
        """Rule names in priority order."""
        return [rule.name for rule in self.rules]

    def __len__(self):
        return len(self.rules)
