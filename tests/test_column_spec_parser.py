# tests/test_column_spec_parser.py
"""
Tests for column list phrases -> ColumnSpec.
"""

from nlp_engine.column_spec_parser import ColumnSpec, canonical_type, parse_column_specs


def _names(specs):
    return [s.name for s in specs]


class TestColumnLists:

    def test_plain_names_leave_type_to_inference(self):
        specs = parse_column_specs("order_number, total, status")
        assert _names(specs) == ["order_number", "total", "status"]
        assert all(s.type is None for s in specs)

    def test_and_joins_multi_word_names(self):
        assert _names(parse_column_specs("first name and last name")) == ["first_name", "last_name"]

    def test_duplicates_are_dropped(self):
        assert _names(parse_column_specs("email, email, Email")) == ["email"]

    def test_timestamps_expand(self):
        assert _names(parse_column_specs("title, timestamps")) == ["title", "created_at", "updated_at"]

    def test_column_words_are_ignored(self):
        assert _names(parse_column_specs("price and stock columns")) == ["price", "stock"]


class TestExplicitTypes:

    def test_type_after_separator(self):
        spec = parse_column_specs("price as decimal(12,4)")[0]
        assert spec.name == "price"
        assert spec.type == "DECIMAL(12,4)"

        spec = parse_column_specs("is_active: bool")[0]
        assert (spec.name, spec.type) == ("is_active", "BOOLEAN")

    def test_type_in_parentheses(self):
        spec = parse_column_specs("created at (timestamp)")[0]
        assert (spec.name, spec.type) == ("created_at", "TIMESTAMP")

    def test_canonical_type(self):
        assert canonical_type("decimal", "(12, 4)") == "DECIMAL(12,4)"
        assert canonical_type("varchar", "(100)") == "VARCHAR(100)"
        assert canonical_type("int") == "INTEGER"
        assert canonical_type("foo") is None


class TestModifiers:

    def test_unique_required_optional(self):
        specs = {s.name: s for s in parse_column_specs("email unique, name required, phone optional")}
        assert specs["email"].unique
        assert specs["name"].nullable is False
        assert specs["phone"].nullable is True

    def test_primary_key(self):
        column = parse_column_specs("sku pk")[0].to_column()
        assert column.name == "sku"
        assert column.is_primary_key
        assert not column.is_nullable

    def test_default_value(self):
        spec = parse_column_specs("status default 'active'")[0]
        assert spec.name == "status"
        assert spec.default == "'active'"


class TestColumnSpec:

    def test_to_column_infers_missing_type(self):
        column = ColumnSpec("price").to_column()
        assert column.type == "DECIMAL(10,2)"
        assert column.is_nullable

    def test_dict_round_trip(self):
        spec = ColumnSpec("email", type="TEXT", unique=True, nullable=False)
        assert ColumnSpec.from_dict(spec.to_dict()) == spec
