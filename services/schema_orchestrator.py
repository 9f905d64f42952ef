# -*- coding: utf-8 -*-
"""
Schema Orchestrator - single session-level entry point
Chains: session state → Command Executor → session state → (optional) storage

Every public method returns a plain dict the HTTP layer can hand back
as JSON. Failures never escape: they are logged and answered with
success=False.
"""

import logging
from typing import Any, Dict, List, Optional

from config.settings import settings
from nlp_engine import intent_classifier as intents
from services.command_executor import APOLOGY, CommandExecutor, CommandResult, get_command_executor
from services.session_store import SessionState, SessionStore, get_session_store
from schema_engine.model import Schema
from schema_engine.sql_exporter import SQLExporter
from storage.database import get_db

logger = logging.getLogger(__name__)


class SchemaOrchestrator:
    """
    Unified orchestrator for chat-driven schema editing.

    Flow:
    1. Look up (or create) the session state
    2. Run the command against the session schema and context
    3. Store the new schema and the command history
    4. Persist the document and command when storage is enabled
    """

    def __init__(self, store: Optional[SessionStore] = None, executor: Optional[CommandExecutor] = None,
                 db=None, persist: Optional[bool] = None):
        self.store = store or get_session_store()
        self.executor = executor or get_command_executor()
        self.exporter = SQLExporter()
        self.persist = settings.is_persistence_enabled() if persist is None else persist
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_db()
        return self._db

    # =====================================================
    # Chat
    # =====================================================
    def process(self, message: str, session_id: Optional[str] = None,
                new_conversation: bool = False) -> Dict[str, Any]:
        """
        Apply one chat message to a session.

        Returns:
            Dict with 'success', 'answer', 'intent', 'changed', 'schema', 'context'
        """
        try:
            with self.store.lock():
                if new_conversation:
                    self.store.reset(session_id)
                state = self._state(session_id)
                result = self.executor.run(state.schema, message, state.context)
                self._commit(state, message, result, session_id)
            logger.debug("[NLP] %s -> %s (changed=%s)", message, result.intent, result.changed)
            return self._response(result, state)
        except Exception as e:
            logger.error("[NLP] Chat turn failed for '%s': %s", message, e, exc_info=True)
            return {"success": False, "answer": APOLOGY, "intent": intents.UNKNOWN, "changed": False}

    def _state(self, session_id: Optional[str]) -> SessionState:
        """Session state; restored from storage the first time a saved session is seen."""
        if not self.store.has_session(session_id) and self.persist:
            saved = self._load_saved(session_id)
            if saved is not None:
                return self.store.update_schema(saved, session_id)
        return self.store.get(session_id)

    def _load_saved(self, session_id: Optional[str]) -> Optional[Schema]:
        try:
            return self.db.load_schema(session_id or settings.DEFAULT_SESSION_ID)
        except Exception as e:
            logger.error("[STORE] Could not load session %s: %s", session_id, e, exc_info=True)
            return None

    def _commit(self, state: SessionState, message: str, result: CommandResult, session_id: Optional[str]):
        state.schema = result.schema
        state.record(message)
        if not self.persist:
            return
        key = session_id or settings.DEFAULT_SESSION_ID
        try:
            self.db.log_command(key, message, result.intent)
            if result.changed:
                self.db.save_schema(key, result.schema)
        except Exception as e:
            logger.error("[STORE] Could not persist session %s: %s", key, e, exc_info=True)

    @staticmethod
    def _response(result: CommandResult, state: SessionState) -> Dict[str, Any]:
        return {
            "success": True,
            "answer": result.response,
            "intent": result.intent,
            "changed": result.changed,
            "schema": state.schema.to_dict(),
            "context": state.context.to_dict(),
        }

    # =====================================================
    # Schema operations
    # =====================================================
    def import_ddl(self, sql: str, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Merge CREATE TABLE statements into the session schema."""
        try:
            with self.store.lock():
                state = self._state(session_id)
                result = self.executor.run(state.schema, sql, state.context, intent=intents.IMPORT_SQL)
                self._commit(state, sql, result, session_id)
            response = self._response(result, state)
            response["success"] = result.changed
            response["tables"] = list(result.touched)
            return response
        except Exception as e:
            logger.error("[DDL] Import failed: %s", e, exc_info=True)
            return {"success": False, "answer": APOLOGY, "tables": []}

    def auto_categorize(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        try:
            with self.store.lock():
                state = self._state(session_id)
                result = self.executor.run(state.schema, "auto categorize", state.context,
                                           intent=intents.AUTO_CATEGORIZE)
                self._commit(state, "auto categorize", result, session_id)
            return self._response(result, state)
        except Exception as e:
            logger.error("[CATEGORIZE] Failed: %s", e, exc_info=True)
            return {"success": False, "answer": APOLOGY, "changed": False}

    def export_sql(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        with self.store.lock():
            schema = self._state(session_id).schema
            return {"success": True, "sql": self.exporter.export(schema)}

    def get_schema(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        with self.store.lock():
            state = self._state(session_id)
            return {
                "success": True,
                "schema": state.schema.to_dict(),
                "context": state.context.to_dict(),
                "history": list(state.history),
            }

    def load_schema(self, document: Dict[str, Any], session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Replace the session schema with a (partial) document. Keys that
        are missing from the document keep their current values.
        """
        try:
            with self.store.lock():
                state = self._state(session_id)
                merged = state.schema.to_dict()
                merged.update(document or {})
                state.schema = Schema.from_dict(merged)
                if self.persist:
                    self.db.save_schema(session_id or settings.DEFAULT_SESSION_ID, state.schema)
            logger.info("[STORE] Loaded schema with %d tables into %s", len(state.schema.tables), session_id)
            return {"success": True, "schema": state.schema.to_dict()}
        except Exception as e:
            logger.error("[STORE] Could not load document: %s", e, exc_info=True)
            return {"success": False, "answer": "That document could not be loaded."}

    def reset_session(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        self.store.reset(session_id)
        if self.persist:
            try:
                self.db.delete_schema(session_id or settings.DEFAULT_SESSION_ID)
            except Exception as e:
                logger.error("[STORE] Could not delete session %s: %s", session_id, e, exc_info=True)
        return {"success": True, "answer": "Session cleared."}

    def replay(self, commands: List[str]) -> Dict[str, Any]:
        """
        Rebuild a schema from scratch by applying commands in order with
        a fresh context. Deterministic: the same commands give the same
        schema.
        """
        state = SessionState()
        answers = []
        try:
            for command in commands:
                result = self.executor.run(state.schema, command, state.context)
                state.schema = result.schema
                state.record(command)
                answers.append({"command": command, "intent": result.intent, "answer": result.response})
        except Exception as e:
            logger.error("[NLP] Replay failed: %s", e, exc_info=True)
            return {"success": False, "answer": APOLOGY, "answers": answers}
        return {
            "success": True,
            "schema": state.schema.to_dict(),
            "context": state.context.to_dict(),
            "answers": answers,
        }


_orchestrator = None


def get_orchestrator() -> SchemaOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SchemaOrchestrator()
    return _orchestrator
