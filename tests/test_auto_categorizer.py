# tests/test_auto_categorizer.py
"""
Tests for union-find grouping and the semantic + FK-graph categorizer.
"""

from schema_engine.auto_categorizer import AutoCategorizer, SemanticMatcher, get_auto_categorizer
from schema_engine.disjoint_set import DisjointSet
from schema_engine.model import Category, Column, ForeignKey, Schema, Table
from schema_engine.template_library import TableTemplateLibrary
from services.command_executor import CommandExecutor


class TestDisjointSet:

    def test_union_and_find(self):
        dsu = DisjointSet(["a", "b", "c", "d"])
        assert dsu.union("a", "b")
        assert not dsu.union("b", "a"), "already joined"
        assert dsu.connected("a", "b")
        assert not dsu.connected("a", "c")

    def test_groups_keep_insertion_order(self):
        dsu = DisjointSet(["a", "b", "c", "d", "e"])
        dsu.union("d", "b")
        dsu.union("e", "a")
        assert dsu.groups() == [["a", "e"], ["b", "d"], ["c"]]

    def test_add_and_membership(self):
        dsu = DisjointSet()
        dsu.add("x")
        dsu.add("x")
        assert "x" in dsu
        assert "y" not in dsu
        assert len(dsu) == 1


def _template_schema(*names):
    library = TableTemplateLibrary()
    return Schema(tables=[Table(name, library.get_columns(name)) for name in names])


class TestSemanticPhase:

    def setup_method(self):
        self.categorizer = AutoCategorizer()

    def test_template_tables_land_in_their_groups(self):
        schema = _template_schema("users", "products", "orders")
        result = self.categorizer.categorize(schema)
        assert result.changed
        summary = result.summary()
        assert summary["Users & Auth"] == ["users"]
        assert summary["Products & Catalog"] == ["products"]
        assert summary["Orders & Sales"] == ["orders"]
        assert [c.name for c in result.created] == ["Users & Auth", "Products & Catalog", "Orders & Sales"]

    def test_input_schema_is_untouched(self):
        schema = _template_schema("users", "orders")
        before = schema.to_dict()
        self.categorizer.categorize(schema)
        assert schema.to_dict() == before

    def test_second_run_changes_nothing(self):
        schema = _template_schema("users", "products", "orders", "reviews")
        first = self.categorizer.categorize(schema)
        second = self.categorizer.categorize(first.schema)
        assert not second.changed
        assert second.schema.to_dict() == first.schema.to_dict()

    def test_existing_category_with_same_name_is_reused(self):
        schema = _template_schema("users")
        schema.categories.append(Category("cat_custom", "Users & Auth", color="#000000"))
        result = self.categorizer.categorize(schema)
        assert result.created == []
        assert result.assignments == {"users": "cat_custom"}


class TestGraphPhase:

    def setup_method(self):
        self.categorizer = AutoCategorizer()

    def test_unknown_table_inherits_from_fk_neighbour(self):
        schema = _template_schema("users")
        schema.tables.append(Table("zzqx_links", [
            Column("id", "SERIAL", is_primary_key=True),
            Column("user_id", "INTEGER", foreign_key=ForeignKey("users", "id")),
        ]))
        result = self.categorizer.categorize(schema)
        assert result.assignments["zzqx_links"] == result.assignments["users"]

    def test_connected_unknown_tables_form_a_component(self):
        schema = Schema(tables=[
            Table("alpha", [Column("id", "SERIAL", is_primary_key=True)]),
            Table("beta", [Column("id", "SERIAL", is_primary_key=True),
                           Column("alpha_id", "INTEGER", foreign_key=ForeignKey("alpha", "id"))]),
            Table("gamma", [Column("id", "SERIAL", is_primary_key=True),
                            Column("alpha_id", "INTEGER", foreign_key=ForeignKey("alpha", "id"))]),
            Table("lonely", [Column("id", "SERIAL", is_primary_key=True)]),
        ])
        result = self.categorizer.categorize(schema)
        assert result.summary() == {"Alpha": ["alpha", "beta", "gamma"]}
        assert "lonely" not in result.assignments

    def test_nothing_to_do(self):
        result = self.categorizer.categorize(Schema(tables=[Table("lonely", [Column("id")])]))
        assert not result.changed
        assert result.assignments == {}


class TestSemanticMatcher:

    def test_match_existing_category(self):
        matcher = SemanticMatcher()
        schema = Schema(categories=[Category("cat_sales", "Sales"), Category("cat_auth", "Auth")])
        assert matcher.match_existing_category("orders", schema).id == "cat_sales"
        assert matcher.match_existing_category("roles", schema).id == "cat_auth"
        assert matcher.match_existing_category("zzqx", schema) is None


class TestSharedInstance:

    def test_executor_uses_shared_categorizer(self):
        shared = get_auto_categorizer()
        assert get_auto_categorizer() is shared
        assert CommandExecutor().categorizer is shared
