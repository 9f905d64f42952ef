# tests/test_identifier_extractor.py
"""
Tests for operand extraction and command normalization.
"""

from nlp_engine.identifier_extractor import (extract_identifiers, has_anaphora, normalize_command,
                                             split_name_list)


class TestExtractIdentifiers:

    def test_stop_words_are_dropped(self):
        assert extract_identifiers("Add the email column to customers please") == ["email", "customers"]

    def test_order_and_duplicates_are_kept(self):
        assert extract_identifiers("link orders to users and orders") == ["orders", "users", "orders"]

    def test_single_characters_are_dropped(self):
        assert extract_identifiers("add x to y") == []

    def test_empty_text(self):
        assert extract_identifiers("") == []
        assert extract_identifiers(None) == []


class TestNormalizeCommand:

    def test_politeness_is_stripped(self):
        assert normalize_command("Can you please create a users table?") == "create a users table"
        assert normalize_command("I want to add email to users, please") == "add email to users"
        assert normalize_command("  Add   EMAIL to users. ") == "add email to users"


class TestNameLists:

    def test_split_name_list(self):
        assert split_name_list("users, products and order items") == ["users", "products", "order_items"]
        assert split_name_list("the users table & orders") == ["users", "orders"]

    def test_anaphora(self):
        assert has_anaphora("link them together")
        assert has_anaphora("add status to it")
        assert not has_anaphora("create users")
