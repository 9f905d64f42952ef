# tests/test_template_library.py
"""
Tests for table archetype lookup, related tables and domain presets.
"""

import json

from config.settings import Settings
from schema_engine import knowledge_base
from schema_engine.template_library import BASELINE_COLUMNS, TableTemplateLibrary

ECOMMERCE_TABLES = ["users", "products", "categories", "orders", "order_items", "payments", "reviews"]


class TestTemplateLookup:

    def setup_method(self):
        self.library = TableTemplateLibrary()

    def test_name_variants_resolve_to_one_archetype(self):
        for name in ("order_item", "order_items", "Order Items", "orderitems"):
            assert self.library.template_key(name) == "order_item", name

    def test_unknown_name_has_no_archetype(self):
        assert self.library.template_key("zzqx") is None
        assert not self.library.has_template("zzqx")

    def test_baseline_columns_for_unknown_tables(self):
        columns = self.library.get_columns("zzqx")
        assert [c.name for c in columns] == BASELINE_COLUMNS
        assert columns[0].is_primary_key
        assert not columns[0].is_nullable

    def test_user_template(self):
        columns = {c.name: c for c in self.library.get_columns("users")}
        assert columns["id"].is_primary_key
        assert columns["id"].type == "SERIAL"
        assert columns["email"].is_unique
        assert not columns["email"].is_nullable
        assert columns["username"].type == "VARCHAR(50)"

    def test_get_columns_returns_fresh_copies(self):
        first = self.library.get_columns("users")
        first[0].is_primary_key = False
        first.append(first[0])
        second = self.library.get_columns("users")
        assert second[0].is_primary_key
        assert len(second) == len(first) - 1


class TestPresets:

    def setup_method(self):
        self.library = TableTemplateLibrary()

    def test_related_tables_are_plural(self):
        assert self.library.related_tables("orders") == ["order_items", "payments", "invoices", "customers"]
        assert self.library.related_tables("zzqx") == []

    def test_domain_tables(self):
        assert self.library.domain_tables("an e-commerce app") == ECOMMERCE_TABLES
        assert self.library.domain_name("build me a blog") == "blog"
        assert self.library.domain_tables("a spaceship") is None

    def test_injected_templates(self):
        library = TableTemplateLibrary(templates={"widget": ["id", {"name": "label", "unique": True}]})
        columns = library.get_columns("widgets")
        assert [c.name for c in columns] == ["id", "label"]
        assert columns[1].is_unique
        assert columns[1].type == "VARCHAR(100)"


class TestKnowledgeDir:

    def test_override_directory(self, tmp_path, monkeypatch):
        (tmp_path / "table_templates.json").write_text(
            json.dumps({"templates": {"widget": ["id", "gizmo_count"]}}), encoding="utf-8")
        monkeypatch.setattr(Settings, "KNOWLEDGE_DIR", str(tmp_path))
        knowledge_base.clear_cache()
        try:
            library = TableTemplateLibrary()
            assert library.template_key("widgets") == "widget"
            assert [c.name for c in library.get_columns("widgets")] == ["id", "gizmo_count"]
            assert library.template_key("orders") is None
        finally:
            monkeypatch.undo()
            knowledge_base.clear_cache()
        assert TableTemplateLibrary().template_key("orders") == "order"

    def test_missing_files_load_as_empty(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Settings, "KNOWLEDGE_DIR", str(tmp_path))
        knowledge_base.clear_cache()
        try:
            assert knowledge_base.table_templates() == {}
            assert knowledge_base.semantic_groups() == []
        finally:
            monkeypatch.undo()
            knowledge_base.clear_cache()
