# config/settings.py
"""
Configuration Management for the Schema Assistant

Handles logging, conversation memory, categorization thresholds,
knowledge-base location and the optional session storage backend.
All values can be overridden via environment variables.
"""

import os


class Settings(object):
    """
    Application settings with safe defaults.
    Can be overridden via environment variables.
    """

    # =====================================================
    # LOGGING
    # =====================================================

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', '%(asctime)s %(levelname)s %(name)s: %(message)s')

    # =====================================================
    # CONVERSATION MEMORY
    # =====================================================

    # Most-recent-first list of touched tables kept per session
    CONTEXT_MAX_TABLES = int(os.getenv('CONTEXT_MAX_TABLES', '10'))

    DEFAULT_SESSION_ID = os.getenv('DEFAULT_SESSION_ID', 'default')

    # =====================================================
    # HEURISTICS
    # =====================================================

    # Minimum semantic score a table needs before the auto-categorizer
    # assigns it to a pattern group (name hit = 10, column hint = 2, pattern = 1)
    AUTO_CATEGORY_MIN_SCORE = float(os.getenv('AUTO_CATEGORY_MIN_SCORE', '5'))

    # Directory holding table_templates.json, semantic_categories.json, ...
    # Empty means the JSON files shipped inside schema_engine/knowledge
    KNOWLEDGE_DIR = os.getenv('KNOWLEDGE_DIR', '')

    # =====================================================
    # STORAGE
    # =====================================================

    # Storage backend: only 'sqlite' is implemented
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'sqlite')
    SQLITE_DB_PATH = os.getenv('SQLITE_DB_PATH', 'schema_assistant.db')

    # If True, every chat turn saves the session schema and logs the command
    PERSIST_SESSIONS = os.getenv('PERSIST_SESSIONS', 'false').lower() == 'true'

    # =====================================================
    # API
    # =====================================================

    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    # =====================================================
    # CLASS METHODS
    # =====================================================

    @classmethod
    def get_knowledge_dir(cls):
        """Return the directory the knowledge-base JSON files are loaded from."""
        if cls.KNOWLEDGE_DIR:
            return cls.KNOWLEDGE_DIR
        base = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        return os.path.join(base, 'schema_engine', 'knowledge')

    @classmethod
    def get_sqlite_path(cls):
        """Return path to SQLite database"""
        return cls.SQLITE_DB_PATH

    @classmethod
    def is_sqlite(cls):
        """Check if using SQLite backend"""
        return cls.STORAGE_BACKEND == 'sqlite'

    @classmethod
    def is_persistence_enabled(cls):
        """Check if chat turns should be written to storage"""
        return cls.PERSIST_SESSIONS and cls.is_sqlite()


# Global settings instance
settings = Settings()
