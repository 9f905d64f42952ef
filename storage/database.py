# storage/database.py
"""
Database abstraction layer for the Schema Assistant.

Stores the latest schema document of each session and the log of
commands applied to it. SQLite only; the connection is shared between
request threads behind a lock.
"""

import json
import logging
import threading
from datetime import datetime, timezone

from config.settings import settings
from schema_engine.model import Schema
from storage.schema import init_database

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc).isoformat()


class Database(object):
    """
    Database abstraction layer.
    """

    def __init__(self, db_path=None):
        """Initialize database connection."""
        self.backend = settings.STORAGE_BACKEND
        self.db_path = db_path or settings.get_sqlite_path()
        self.conn = None
        self._lock = threading.Lock()
        self._connect()

    def _connect(self):
        """Establish database connection."""
        if self.backend != 'sqlite':
            logger.warning("[STORE] Backend '%s' not implemented, using SQLite", self.backend)
        self.conn = init_database(self.db_path)
        logger.info("[STORE] SQLite database connected: %s", self.db_path)

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    # =====================================================
    # SCHEMA DOCUMENTS
    # =====================================================

    def save_schema(self, session_id, schema):
        """Insert or replace the schema document of a session."""
        document = json.dumps(schema.to_dict())
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("""
                INSERT OR REPLACE INTO schema_documents (session_id, document, updated_at)
                VALUES (?, ?, ?)
            """, (session_id, document, _now()))
            self.conn.commit()

    def load_schema(self, session_id):
        """
        Load the schema document of a session.

        Returns:
            Schema, or None when the session was never saved
        """
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("SELECT document FROM schema_documents WHERE session_id = ?", (session_id,))
            row = cursor.fetchone()
        if row is None:
            return None
        return Schema.from_dict(json.loads(row["document"]))

    def delete_schema(self, session_id):
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM schema_documents WHERE session_id = ?", (session_id,))
            cursor.execute("DELETE FROM command_log WHERE session_id = ?", (session_id,))
            self.conn.commit()

    # =====================================================
    # COMMAND LOG
    # =====================================================

    def log_command(self, session_id, command, intent=None):
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("""
                INSERT INTO command_log (session_id, command, intent, created_at)
                VALUES (?, ?, ?, ?)
            """, (session_id, command, intent, _now()))
            self.conn.commit()

    def get_commands(self, session_id, limit=None):
        """
        Commands of a session, oldest first.

        Returns:
            List of dicts with command, intent, created_at
        """
        sql = "SELECT command, intent, created_at FROM command_log WHERE session_id = ? ORDER BY id"
        params = [session_id]
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        return [dict(row) for row in rows]


_db = None


def get_db():
    """Get or create global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db
