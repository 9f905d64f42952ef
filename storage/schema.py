# storage/schema.py
"""
Database schema definitions for the Schema Assistant session store.

Tables:
  - schema_documents: latest schema document (JSON) per session
  - command_log: every chat command applied to a session, in order
"""

import sqlite3


class Schema(object):
    """
    Storage table definitions (SQLite dialect).
    """

    # =====================================================
    # SCHEMA DOCUMENTS TABLE
    # =====================================================

    SCHEMA_DOCUMENTS_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_documents (
        session_id VARCHAR(255) PRIMARY KEY,
        document TEXT NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """

    # =====================================================
    # COMMAND LOG TABLE
    # =====================================================

    COMMAND_LOG_TABLE = """
    CREATE TABLE IF NOT EXISTS command_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id VARCHAR(255) NOT NULL,
        command TEXT NOT NULL,
        intent VARCHAR(100),
        created_at TIMESTAMP NOT NULL
    )
    """

    ALL_TABLES = [
        SCHEMA_DOCUMENTS_TABLE,
        COMMAND_LOG_TABLE,
    ]

    # =====================================================
    # INDEXES
    # =====================================================

    INDEXES = [
        "CREATE INDEX IF NOT EXISTS idx_command_log_session ON command_log(session_id, id)",
    ]


def init_database(db_path):
    """
    Initialize SQLite database with all required tables.

    Args:
        db_path: Path to SQLite database file (":memory:" for tests)

    Returns:
        Connection object
    """
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    cursor = conn.cursor()

    for table_sql in Schema.ALL_TABLES:
        cursor.execute(table_sql)

    for index_sql in Schema.INDEXES:
        cursor.execute(index_sql)

    conn.commit()
    return conn
