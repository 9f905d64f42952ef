# controllers/schema_controller.py
"""
Schema document endpoints: read / replace / reset a session schema,
import DDL, export SQL, auto-categorize and replay command lists.
"""

from typing import Any, Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from services.schema_orchestrator import get_orchestrator

schema_router = APIRouter(tags=["Schema"])


class ImportRequest(BaseModel):
    sql: str = ""


class ReplayRequest(BaseModel):
    commands: List[str] = []


# Declared before /{session_id} routes so "replay" is not taken as a session id
@schema_router.post("/replay")
async def replay(payload: ReplayRequest):
    return get_orchestrator().replay(payload.commands)


@schema_router.get("/{session_id}")
async def get_schema(session_id: str):
    return get_orchestrator().get_schema(session_id)


@schema_router.put("/{session_id}")
async def put_schema(session_id: str, document: Dict[str, Any]):
    return get_orchestrator().load_schema(document, session_id)


@schema_router.delete("/{session_id}")
async def delete_schema(session_id: str):
    return get_orchestrator().reset_session(session_id)


@schema_router.post("/{session_id}/import-ddl")
async def import_ddl(session_id: str, payload: ImportRequest):
    return get_orchestrator().import_ddl(payload.sql, session_id)


@schema_router.get("/{session_id}/sql")
async def export_sql(session_id: str):
    return get_orchestrator().export_sql(session_id)


@schema_router.post("/{session_id}/auto-categorize")
async def auto_categorize(session_id: str):
    return get_orchestrator().auto_categorize(session_id)
