# tests/test_context_memory.py
"""
Tests for the per-session conversation context.
"""

from nlp_engine.context_memory import ConversationContext


class TestRecentTables:

    def test_most_recent_first(self):
        context = ConversationContext()
        context.remember(["users", "orders"])
        context.remember(["products"])
        assert context.recent_tables == ["products", "users", "orders"]
        assert context.last_table == "products"

    def test_dedup_is_case_insensitive(self):
        context = ConversationContext(["users", "orders"])
        context.remember(["Users"])
        assert context.recent_tables == ["Users", "orders"]

    def test_capped(self):
        context = ConversationContext(max_tables=3)
        context.remember(["a1", "a2", "a3", "a4", "a5"])
        assert context.recent_tables == ["a1", "a2", "a3"]

    def test_forget_and_rename(self):
        context = ConversationContext(["users", "orders"])
        context.rename("USERS", "customers")
        assert context.recent_tables == ["customers", "orders"]
        context.forget("orders")
        assert context.recent_tables == ["customers"]


class TestLastAction:

    def test_action_args_are_copied(self):
        args = {"columns": [{"name": "email"}]}
        context = ConversationContext()
        context.remember(["users"], "add_column", args)
        args["columns"].append({"name": "phone"})
        assert context.last_action == "add_column"
        assert context.last_args == {"columns": [{"name": "email"}]}

    def test_remember_without_action_keeps_last_action(self):
        context = ConversationContext()
        context.remember(["users"], "color", {"color": "#3B82F6"})
        context.remember(["orders"])
        assert context.last_action == "color"
        assert context.last_args == {"color": "#3B82F6"}

    def test_clear(self):
        context = ConversationContext(["users"], last_action="add_column")
        assert not context.is_empty()
        context.clear()
        assert context.is_empty()
        assert context.last_table is None


class TestSerialization:

    def test_dict_round_trip(self):
        context = ConversationContext()
        context.remember(["users", "orders"], "set_unique", {"column": "email"})
        restored = ConversationContext.from_dict(context.to_dict())
        assert restored.recent_tables == ["users", "orders"]
        assert restored.last_action == "set_unique"
        assert restored.last_args == {"column": "email"}

    def test_copy_is_independent(self):
        context = ConversationContext(["users"])
        clone = context.copy()
        clone.remember(["orders"])
        assert context.recent_tables == ["users"]
        assert clone.recent_tables == ["orders", "users"]
