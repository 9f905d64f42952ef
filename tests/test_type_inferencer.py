# tests/test_type_inferencer.py
"""
Tests for column name -> SQL type inference.
"""

from schema_engine.type_inferencer import TYPE_RULES, ColumnTypeInferencer, infer_type


class TestTypeInference:

    def setup_method(self):
        self.inferencer = ColumnTypeInferencer()

    def test_keys_and_references(self):
        assert self.inferencer.infer("id") == "SERIAL"
        assert self.inferencer.infer("ID") == "SERIAL"
        assert self.inferencer.infer("customer_id") == "INTEGER"

    def test_contact_and_money(self):
        assert self.inferencer.infer("email") == "VARCHAR(255)"
        assert self.inferencer.infer("phone_number") == "VARCHAR(20)", "phone must win over number"
        assert self.inferencer.infer("unit_price") == "DECIMAL(10,2)"

    def test_flags_and_timestamps(self):
        assert self.inferencer.infer("created_at") == "TIMESTAMP"
        assert self.inferencer.infer("is_deleted") == "TIMESTAMP", "deleted is checked before the is_ prefix"
        assert self.inferencer.infer("is_active") == "BOOLEAN"
        assert self.inferencer.infer("has_children") == "BOOLEAN"
        assert self.inferencer.explain("verified") == "flag"

    def test_text_links_and_labels(self):
        assert self.inferencer.infer("bio") == "TEXT"
        assert self.inferencer.infer("avatar_url") == "VARCHAR(500)"
        assert self.inferencer.infer("image") == "VARCHAR(500)"
        assert self.inferencer.infer("status") == "VARCHAR(50)"
        assert self.inferencer.infer("title") == "VARCHAR(100)"

    def test_token_aware_matching(self):
        # "message" contains "age", but not as a token
        assert self.inferencer.infer("message") == "VARCHAR(255)"
        assert self.inferencer.infer("user_age") == "INTEGER"

    def test_total_over_any_name(self):
        assert self.inferencer.infer("anything_else") == "VARCHAR(255)"
        assert self.inferencer.infer("") == "VARCHAR(255)"
        assert self.inferencer.infer("   ") == "VARCHAR(255)"

    def test_explain_names_the_deciding_rule(self):
        assert self.inferencer.explain("email") == "email"
        assert self.inferencer.explain("xyz") == "default"
        assert TYPE_RULES[0].name == "primary_id"

    def test_module_wrapper(self):
        assert infer_type("quantity") == "INTEGER"
