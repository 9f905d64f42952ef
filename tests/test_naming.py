# tests/test_naming.py
"""
Tests for identifier helpers and the ordered rule combinator.
"""

from utils.first_match import FirstMatch, Rule
from utils.naming import (find_by_name, humanize, names_list, normalize_identifier, pluralize,
                          same_name, singularize, unique_name)


class TestInflection:

    def test_singularize(self):
        cases = {
            "users": "user",
            "categories": "category",
            "addresses": "address",
            "order_items": "order_item",
            "people": "person",
            "status": "status",
            "statuses": "status",
            "boxes": "box",
            "data": "data",
            "houses": "house",
        }
        for plural, expected in cases.items():
            assert singularize(plural) == expected, plural

    def test_pluralize(self):
        cases = {
            "user": "users",
            "category": "categories",
            "address": "addresses",
            "person": "people",
            "box": "boxes",
            "users": "users",
            "key": "keys",
        }
        for singular, expected in cases.items():
            assert pluralize(singular) == expected, singular

    def test_same_name_ignores_case_and_number(self):
        assert same_name("Users", "user")
        assert not same_name("users", "orders")


class TestIdentifiers:

    def test_normalize_identifier(self):
        assert normalize_identifier("Order Items") == "order_items"
        assert normalize_identifier('"Users"') == "users"
        assert normalize_identifier("e-mail  address") == "e_mail_address"

    def test_unique_name(self):
        assert unique_name("cat_sales", []) == "cat_sales"
        assert unique_name("cat_sales", ["cat_sales"]) == "cat_sales_2"
        assert unique_name("cat_sales", ["cat_sales", "CAT_SALES_2"]) == "cat_sales_3"

    def test_humanize_and_names_list(self):
        assert humanize("order_items") == "Order Items"
        assert names_list(["a", "b", "c"]) == "**a**, **b** and **c**"
        assert names_list(["a"]) == "**a**"
        assert names_list([]) == ""


class _Named(object):
    def __init__(self, name):
        self.name = name


class TestFindByName:

    def setup_method(self):
        self.items = [_Named("users"), _Named("order_items"), _Named("Products")]

    def test_exact_match_is_case_insensitive(self):
        assert find_by_name(self.items, "PRODUCTS").name == "Products"

    def test_singular_plural_fallback(self):
        assert find_by_name(self.items, "user").name == "users"
        assert find_by_name(self.items, "order_item").name == "order_items"

    def test_substring_fallback(self):
        assert find_by_name(self.items, "order").name == "order_items"

    def test_short_names_do_not_substring_match(self):
        assert find_by_name(self.items, "us") is None
        assert find_by_name(self.items, "order", allow_substring=False) is None


class TestFirstMatch:

    def test_first_matching_rule_wins(self):
        rules = FirstMatch([
            Rule("id", lambda n: n == "id", "SERIAL"),
            Rule.pattern("email", r"email", "VARCHAR(255)"),
            Rule.pattern("anything", r".", "TEXT"),
        ], default="VARCHAR(255)")

        assert rules("id") == "SERIAL"
        assert rules("user_email") == "VARCHAR(255)"
        assert rules("bio") == "TEXT"
        assert rules.match("bio").name == "anything"

    def test_default_when_nothing_matches(self):
        rules = FirstMatch([Rule.any_pattern("num", [r"^\d+$", r"^-\d+$"], "number")], default="text")
        assert rules("42") == "number"
        assert rules("-7") == "number"
        assert rules("abc") == "text"
        assert rules.match("abc") is None

    def test_names_keep_priority_order(self):
        rules = FirstMatch([Rule("b", bool, 1), Rule("a", bool, 2)])
        assert rules.names() == ["b", "a"]
        assert len(rules) == 2
