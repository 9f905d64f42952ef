import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from controllers.chat_controller import chat_router
from controllers.schema_controller import schema_router
from schema_engine import knowledge_base
from services.session_store import get_session_store


# =====================================================
# LOGGING
# =====================================================
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
                    format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# =====================================================
# APP INIT
# =====================================================
app = FastAPI(title="Conversational Schema Designer")


# =====================================================
# CORS
# =====================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =====================================================
# KNOWLEDGE BASE LOADER
# =====================================================
def load_knowledge() -> dict:
    """Load every knowledge-base file once so the first chat turn is not slowed down."""
    counts = {
        "templates": len(knowledge_base.table_templates()),
        "semantic_groups": len(knowledge_base.semantic_groups()),
        "fk_name_pairs": len(knowledge_base.fk_name_pairs()),
        "domain_presets": len(knowledge_base.domain_presets()),
    }
    logger.info("[KB] Knowledge base loaded: %s", counts)
    return counts


@app.on_event("startup")
def startup_event() -> None:
    logger.info("[*] Server startup initiated")
    load_knowledge()
    logger.info("[OK] Server is now accepting requests")


# =====================================================
# ROUTERS - ALL UNDER /api PREFIX
# =====================================================
app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
app.include_router(schema_router, prefix="/api/schema", tags=["Schema"])


# =====================================================
# HEALTH CHECK ENDPOINT
# =====================================================
@app.get("/health")
def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "UP",
        "sessions": len(get_session_store().session_ids()),
        "persistence": settings.is_persistence_enabled(),
        "knowledge_dir": settings.get_knowledge_dir(),
    }


# =====================================================
# SERVER ENTRY POINT
# =====================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app)
