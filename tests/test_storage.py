# tests/test_storage.py
"""
Test suite for the SQLite session storage:
- schema documents (save / load / delete)
- command log
"""

import os
import tempfile
import unittest

from schema_engine.model import Category, Column, ForeignKey, Schema, Table
from storage.database import Database


def _sample_schema():
    return Schema(
        tables=[
            Table("users", [Column("id", "SERIAL", is_primary_key=True), Column("email", is_unique=True)],
                  category="cat_auth"),
            Table("orders", [Column("id", "SERIAL", is_primary_key=True),
                             Column("user_id", "INTEGER", foreign_key=ForeignKey("users", "id"))]),
        ],
        categories=[Category("cat_auth", "Auth", color="#3B82F6")],
        name="shop",
    )


class TestSchemaDocuments(unittest.TestCase):
    """Test schema document persistence"""

    def setUp(self):
        handle, self.db_path = tempfile.mkstemp(suffix='.db')
        os.close(handle)
        self.db = Database(self.db_path)

    def tearDown(self):
        self.db.close()
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def test_save_and_load(self):
        schema = _sample_schema()
        self.db.save_schema("s1", schema)
        loaded = self.db.load_schema("s1")
        self.assertEqual(loaded.to_dict(), schema.to_dict())

    def test_unknown_session(self):
        self.assertIsNone(self.db.load_schema("missing"))

    def test_save_replaces_previous_document(self):
        self.db.save_schema("s1", _sample_schema())
        self.db.save_schema("s1", Schema(name="empty"))
        loaded = self.db.load_schema("s1")
        self.assertEqual(loaded.tables, [])
        self.assertEqual(loaded.name, "empty")

    def test_survives_reconnect(self):
        self.db.save_schema("s1", _sample_schema())
        self.db.close()
        self.db = Database(self.db_path)
        self.assertEqual(self.db.load_schema("s1").table_names(), ["users", "orders"])

    def test_delete(self):
        self.db.save_schema("s1", _sample_schema())
        self.db.log_command("s1", "create users table", "create_table")
        self.db.delete_schema("s1")
        self.assertIsNone(self.db.load_schema("s1"))
        self.assertEqual(self.db.get_commands("s1"), [])


class TestCommandLog(unittest.TestCase):
    """Test command history persistence"""

    def setUp(self):
        self.db = Database(":memory:")

    def tearDown(self):
        self.db.close()

    def test_commands_in_order(self):
        self.db.log_command("s1", "create users table", "create_table")
        self.db.log_command("s1", "add phone to it", "add_column")
        self.db.log_command("s2", "hello", "greeting")

        commands = self.db.get_commands("s1")
        self.assertEqual([c["command"] for c in commands], ["create users table", "add phone to it"])
        self.assertEqual(commands[1]["intent"], "add_column")
        self.assertTrue(commands[0]["created_at"])

    def test_limit(self):
        for i in range(5):
            self.db.log_command("s1", "command {0}".format(i))
        self.assertEqual(len(self.db.get_commands("s1", limit=2)), 2)


if __name__ == '__main__':
    unittest.main()
