# tests/test_sql_export.py
"""
Tests for Schema -> DDL export, and that the exported DDL reads back
through the parser.
"""

from schema_engine.ddl_parser import DDLParser
from schema_engine.model import Category, Column, ForeignKey, Schema, Table
from schema_engine.sql_exporter import SQLExporter, quote_identifier


def _signature(table):
    return [
        (c.name, c.type, c.is_primary_key, c.is_unique, c.is_nullable,
         c.foreign_key.to_dict() if c.foreign_key else None, c.default_value)
        for c in table.columns
    ]


class TestExport:

    def test_reserved_words_are_quoted(self):
        assert quote_identifier("order") == '"order"'
        assert quote_identifier("user") == '"user"'
        assert quote_identifier("orders") == "orders"
        assert quote_identifier("first name") == '"first name"'

    def test_composite_primary_key_is_a_table_clause(self):
        table = Table("order_items", [
            Column("order_id", "INTEGER", is_primary_key=True),
            Column("product_id", "INTEGER", is_primary_key=True),
        ])
        sql = SQLExporter().export(Schema(tables=[table]))
        assert "PRIMARY KEY (order_id, product_id)" in sql
        assert "order_id INTEGER PRIMARY KEY" not in sql

    def test_category_comment_and_foreign_key_clause(self):
        schema = Schema(
            tables=[
                Table("users", [Column("id", "SERIAL", is_primary_key=True)], category="cat_auth"),
                Table("orders", [
                    Column("id", "SERIAL", is_primary_key=True),
                    Column("user_id", "INTEGER", foreign_key=ForeignKey("users", "id")),
                ]),
            ],
            categories=[Category("cat_auth", "Auth")],
        )
        sql = SQLExporter().export(schema)
        assert "-- Category: Auth\nCREATE TABLE users (" in sql
        assert "FOREIGN KEY (user_id) REFERENCES users(id)" in sql
        assert SQLExporter(include_categories=False).export(schema).count("-- Category") == 0

    def test_empty_schema_exports_nothing(self):
        assert SQLExporter().export(Schema()) == ""


class TestRoundTrip:

    def test_domain_schema_reads_back(self, conversation):
        conversation.say("create an e-commerce schema")
        conversation.say("create a blog")
        schema = conversation.schema
        assert len(schema.tables) >= 7

        parsed = {t.name: t for t in DDLParser().parse(SQLExporter().export(schema))}
        assert list(parsed) == schema.table_names()
        for table in schema.tables:
            assert _signature(parsed[table.name]) == _signature(table), table.name

    def test_hand_built_schema_reads_back(self):
        schema = Schema(tables=[
            Table("order", [
                Column("id", "SERIAL", is_primary_key=True),
                Column("key", "VARCHAR(50)", is_unique=True, is_nullable=False),
                Column("note", "TEXT", default_value="'none'"),
            ]),
        ])
        parsed = DDLParser().parse(SQLExporter().export(schema))
        assert _signature(parsed[0]) == _signature(schema.tables[0])
        assert parsed[0].name == "order"
