# services/session_store.py
"""
==============================================================
SESSION STORE (BACKEND MEMORY)
==============================================================

Keeps one SessionState per session_id:
    schema   - the current schema document
    context  - ConversationContext (recent tables, last action)
    history  - commands applied so far, oldest first

Thread-safe: the FastAPI layer may serve several sessions at once.
No global context: every caller names its session.
"""

import logging
import threading
from typing import Dict, List, Optional

from config.settings import settings
from nlp_engine.context_memory import ConversationContext
from schema_engine.model import Schema

logger = logging.getLogger(__name__)

MAX_HISTORY = 500


class SessionState(object):
    """Schema + conversation context of one session."""

    def __init__(self, schema: Optional[Schema] = None, context: Optional[ConversationContext] = None,
                 history: Optional[List[str]] = None):
        self.schema = schema if schema is not None else Schema()
        self.context = context if context is not None else ConversationContext()
        self.history = list(history or [])

    def record(self, command: str):
        self.history.append(command)
        if len(self.history) > MAX_HISTORY:
            del self.history[:-MAX_HISTORY]

    def to_dict(self):
        return {
            "schema": self.schema.to_dict(),
            "context": self.context.to_dict(),
            "history": list(self.history),
        }

    def __repr__(self):
        return "SessionState(tables={0}, history={1})".format(len(self.schema.tables), len(self.history))


class SessionStore:
    """
    Manages session state for multiple sessions.

    Thread-safe implementation for concurrent access.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.RLock()
        self._default_session = settings.DEFAULT_SESSION_ID

    def _key(self, session_id: Optional[str]) -> str:
        return session_id or self._default_session

    def get(self, session_id: Optional[str] = None) -> SessionState:
        """Get the state for a session, creating an empty one on first use."""
        key = self._key(session_id)
        with self._lock:
            if key not in self._sessions:
                logger.debug("[STORE] New session %s", key)
                self._sessions[key] = SessionState()
            return self._sessions[key]

    def set(self, state: SessionState, session_id: Optional[str] = None):
        with self._lock:
            self._sessions[self._key(session_id)] = state

    def update_schema(self, schema: Schema, session_id: Optional[str] = None) -> SessionState:
        with self._lock:
            state = self.get(session_id)
            state.schema = schema
            return state

    def reset(self, session_id: Optional[str] = None) -> SessionState:
        """Drop the schema, context and history of a session."""
        key = self._key(session_id)
        with self._lock:
            logger.info("[STORE] Reset session %s", key)
            self._sessions[key] = SessionState()
            return self._sessions[key]

    def has_session(self, session_id: Optional[str] = None) -> bool:
        with self._lock:
            return self._key(session_id) in self._sessions

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def lock(self):
        """The store lock; hold it while running a command against a session."""
        return self._lock


_store = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore()
    return _store
