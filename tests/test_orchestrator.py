# tests/test_orchestrator.py
"""
Tests for session handling: per-session state, history, replay and the
optional SQLite persistence.
"""

import pytest

from schema_engine.model import Schema
from services.command_executor import CommandExecutor
from services.schema_orchestrator import SchemaOrchestrator
from services.session_store import SessionState, SessionStore
from storage.database import Database


@pytest.fixture
def orchestrator():
    return SchemaOrchestrator(store=SessionStore(), executor=CommandExecutor(), persist=False)


class TestSessionStore:

    def test_get_creates_empty_state(self):
        store = SessionStore()
        assert not store.has_session("a")
        state = store.get("a")
        assert state.schema.tables == []
        assert store.has_session("a")
        assert store.get("a") is state

    def test_sessions_are_isolated_and_reset(self):
        store = SessionStore()
        store.update_schema(Schema(name="first"), "a")
        assert store.get("b").schema.name is None
        store.reset("a")
        assert store.get("a").schema.name is None

    def test_history_is_capped(self, monkeypatch):
        monkeypatch.setattr("services.session_store.MAX_HISTORY", 3)
        state = SessionState()
        for i in range(5):
            state.record("command {0}".format(i))
        assert state.history == ["command 2", "command 3", "command 4"]


class TestChatTurns:

    def test_process_updates_session(self, orchestrator):
        response = orchestrator.process("create tables users, orders", session_id="s1")
        assert response["success"]
        assert response["changed"]
        assert [t["name"] for t in response["schema"]["tables"]] == ["users", "orders"]

        follow_up = orchestrator.process("add phone to them", session_id="s1")
        assert follow_up["changed"]
        state = orchestrator.get_schema("s1")
        assert state["history"] == ["create tables users, orders", "add phone to them"]

    def test_sessions_do_not_share_schema(self, orchestrator):
        orchestrator.process("create users table", session_id="s1")
        assert orchestrator.get_schema("s2")["schema"]["tables"] == []

    def test_new_conversation_resets(self, orchestrator):
        orchestrator.process("create users table", session_id="s1")
        response = orchestrator.process("create orders table", session_id="s1", new_conversation=True)
        assert [t["name"] for t in response["schema"]["tables"]] == ["orders"]

    def test_reset_session(self, orchestrator):
        orchestrator.process("create users table", session_id="s1")
        assert orchestrator.reset_session("s1")["success"]
        assert orchestrator.get_schema("s1")["schema"]["tables"] == []


class TestSchemaOperations:

    def test_import_and_export(self, orchestrator):
        response = orchestrator.import_ddl(
            "CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(255) UNIQUE);", "s1")
        assert response["success"]
        assert response["tables"] == ["users"]
        sql = orchestrator.export_sql("s1")["sql"]
        assert "CREATE TABLE users" in sql

    def test_import_without_statements(self, orchestrator):
        response = orchestrator.import_ddl("hello there", "s1")
        assert not response["success"]
        assert response["tables"] == []

    def test_auto_categorize(self, orchestrator):
        orchestrator.process("create an e-commerce schema", session_id="s1")
        response = orchestrator.auto_categorize("s1")
        assert response["changed"]
        assert response["schema"]["categories"]

    def test_partial_document_keeps_other_keys(self, orchestrator):
        orchestrator.process("create users table", session_id="s1")
        response = orchestrator.load_schema({"name": "shop"}, "s1")
        assert response["success"]
        assert response["schema"]["name"] == "shop"
        assert [t["name"] for t in response["schema"]["tables"]] == ["users"]

    def test_replay_is_deterministic(self, orchestrator):
        commands = ["create tables users, orders", "add phone to users", "auto categorize"]
        first = orchestrator.replay(commands)
        second = orchestrator.replay(commands)
        assert first["success"]
        assert first["schema"] == second["schema"]
        assert [a["command"] for a in first["answers"]] == commands


class TestPersistence:

    def test_session_restored_from_storage(self, tmp_path):
        db = Database(str(tmp_path / "sessions.db"))
        try:
            writer = SchemaOrchestrator(store=SessionStore(), executor=CommandExecutor(), db=db, persist=True)
            writer.process("create users table", session_id="p1")
            writer.process("hello", session_id="p1")
            assert [c["command"] for c in db.get_commands("p1")] == ["create users table", "hello"]

            reader = SchemaOrchestrator(store=SessionStore(), executor=CommandExecutor(), db=db, persist=True)
            tables = reader.get_schema("p1")["schema"]["tables"]
            assert [t["name"] for t in tables] == ["users"]

            reader.reset_session("p1")
            assert db.load_schema("p1") is None
        finally:
            db.close()
