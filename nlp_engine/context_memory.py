# nlp_engine/context_memory.py
"""
Conversation context for anaphora resolution.

Tracks what the last commands touched so follow-ups work:
- "create users and orders"  -> recent_tables = [users, orders]
- "link them together"       -> "them" resolves to users, orders
- "add status to it"         -> "it" resolves to the most recent table
- "same for products"        -> repeats last_action with last_args

One context per session; the caller owns it and passes it in.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from config.settings import settings


class ConversationContext:
    """
    Session-scoped conversational state.

    recent_tables: touched table names, most-recent-first, deduplicated
                   (case-insensitive), capped at CONTEXT_MAX_TABLES
    last_action:   last successful intent
    last_args:     operands of that action that are worth repeating
                   (column specs, a colour, a type ...)
    """

    def __init__(self, recent_tables: Optional[List[str]] = None, last_action: Optional[str] = None,
                 max_tables: Optional[int] = None, last_args: Optional[Dict[str, Any]] = None):
        self.max_tables = max_tables or settings.CONTEXT_MAX_TABLES
        self.recent_tables: List[str] = []
        self.last_action = last_action
        self.last_args: Dict[str, Any] = dict(last_args or {})
        if recent_tables:
            self.remember(recent_tables)

    def remember(self, tables: Iterable[str], action: Optional[str] = None,
                 args: Optional[Dict[str, Any]] = None) -> None:
        """Move tables to the front (in the given order) and record the action."""
        fresh = []
        for name in tables:
            if name and name.lower() not in {f.lower() for f in fresh}:
                fresh.append(name)
        keep = [t for t in self.recent_tables if t.lower() not in {f.lower() for f in fresh}]
        self.recent_tables = (fresh + keep)[:self.max_tables]
        if action:
            self.last_action = action
            self.last_args = copy.deepcopy(args) if args else {}

    def forget(self, table: str) -> None:
        self.recent_tables = [t for t in self.recent_tables if t.lower() != table.lower()]

    def rename(self, old: str, new: str) -> None:
        self.recent_tables = [new if t.lower() == old.lower() else t for t in self.recent_tables]

    @property
    def last_table(self) -> Optional[str]:
        return self.recent_tables[0] if self.recent_tables else None

    def is_empty(self) -> bool:
        return not self.recent_tables and self.last_action is None

    def clear(self) -> None:
        """Reset for a new conversation."""
        self.recent_tables = []
        self.last_action = None
        self.last_args = {}

    def copy(self) -> 'ConversationContext':
        return ConversationContext(list(self.recent_tables), self.last_action, self.max_tables,
                                   copy.deepcopy(self.last_args))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recent_tables": list(self.recent_tables),
            "last_action": self.last_action,
            "last_args": copy.deepcopy(self.last_args),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ConversationContext':
        data = data or {}
        return cls(recent_tables=data.get("recent_tables") or [], last_action=data.get("last_action"),
                   last_args=data.get("last_args"))

    def __repr__(self):
        return "ConversationContext(recent_tables={0}, last_action={1})".format(
            self.recent_tables, self.last_action)
