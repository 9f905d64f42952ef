# tests/test_chat_api.py
"""
HTTP tests for the chat and schema endpoints, run in-process with
FastAPI's TestClient.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from app import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


def _session():
    return "test-" + uuid.uuid4().hex


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        assert "sessions" in data
        assert data["knowledge_dir"]


class TestChatEndpoint:

    def test_empty_message_is_rejected(self, client):
        response = client.post("/api/chat/", json={"message": "   "})
        assert response.status_code == 400

    def test_create_and_follow_up(self, client):
        session_id = _session()
        first = client.post("/api/chat/", json={"message": "create users table", "session_id": session_id})
        assert first.status_code == 200
        data = first.json()
        assert data["success"]
        assert data["intent"] == "create_table"
        assert data["context"]["recent_tables"] == ["users"]

        second = client.post("/api/chat/", json={"message": "add phone to it", "session_id": session_id})
        columns = [c["name"] for c in second.json()["schema"]["tables"][0]["columns"]]
        assert "phone" in columns

    def test_reset(self, client):
        session_id = _session()
        client.post("/api/chat/", json={"message": "create users table", "session_id": session_id})
        assert client.post("/api/chat/reset", json={"session_id": session_id}).json()["success"]
        assert client.get("/api/schema/" + session_id).json()["schema"]["tables"] == []


class TestSchemaEndpoints:

    def test_import_then_export(self, client):
        session_id = _session()
        response = client.post("/api/schema/{0}/import-ddl".format(session_id),
                               json={"sql": "CREATE TABLE users (id SERIAL PRIMARY KEY, name TEXT);"})
        assert response.json()["tables"] == ["users"]
        sql = client.get("/api/schema/{0}/sql".format(session_id)).json()["sql"]
        assert "CREATE TABLE users" in sql

    def test_put_and_delete(self, client):
        session_id = _session()
        document = {"name": "shop", "tables": [{"name": "items", "columns": [{"name": "id"}]}]}
        assert client.put("/api/schema/" + session_id, json=document).json()["success"]
        stored = client.get("/api/schema/" + session_id).json()["schema"]
        assert stored["name"] == "shop"
        assert [t["name"] for t in stored["tables"]] == ["items"]
        client.delete("/api/schema/" + session_id)
        assert client.get("/api/schema/" + session_id).json()["schema"]["tables"] == []

    def test_auto_categorize(self, client):
        session_id = _session()
        client.post("/api/chat/", json={"message": "create an e-commerce schema", "session_id": session_id})
        data = client.post("/api/schema/{0}/auto-categorize".format(session_id)).json()
        assert data["changed"]

    def test_replay(self, client):
        data = client.post("/api/schema/replay", json={"commands": ["create users table", "hello"]}).json()
        assert data["success"]
        assert [a["intent"] for a in data["answers"]] == ["create_table", "greeting"]
