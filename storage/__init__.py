# storage/__init__.py
"""
Storage Module

Optional SQLite persistence for session schema documents and the command log.
"""

from storage.database import Database, get_db
from storage.schema import init_database

__all__ = [
    'Database',
    'get_db',
    'init_database',
]
