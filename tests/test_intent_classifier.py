# tests/test_intent_classifier.py
"""
Tests for the ordered intent cascade.
"""

from nlp_engine import intent_classifier as intents
from nlp_engine.context_memory import ConversationContext
from nlp_engine.intent_classifier import IntentClassifier


class TestConversational:

    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_short_replies(self):
        assert self.classifier.classify("hello") == intents.GREETING
        assert self.classifier.classify("Thanks!") == intents.THANKS
        assert self.classifier.classify("bye") == intents.BYE
        assert self.classifier.classify("help") == intents.HELP

    def test_clear_and_stats(self):
        assert self.classifier.classify("clear the schema") == intents.CLEAR
        assert self.classifier.classify("stats") == intents.STATS
        assert self.classifier.classify("how many tables do I have?") == intents.STATS

    def test_empty_and_gibberish(self):
        assert self.classifier.classify("") == intents.UNKNOWN
        assert self.classifier.classify("   ") == intents.UNKNOWN
        assert self.classifier.classify("blah blah") == intents.UNKNOWN


class TestCreation:

    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_table_lists(self):
        assert self.classifier.classify("Create tables users, products, orders with appropriate columns") \
            == intents.CREATE_TABLES
        assert self.classifier.classify("create an e-commerce schema") == intents.CREATE_TABLES

    def test_single_table(self):
        assert self.classifier.classify("Create orders table with order_number, total, status") \
            == intents.CREATE_TABLE
        assert self.classifier.classify("create categories table") == intents.CREATE_TABLE

    def test_table_in_category(self):
        assert self.classifier.classify("create posts table in Content category") \
            == intents.CREATE_TABLE_IN_CATEGORY

    def test_pasted_ddl(self):
        assert self.classifier.classify("CREATE TABLE t (a INT)") == intents.IMPORT_SQL
        assert self.classifier.explain("CREATE TABLE t (a INT)") == "ddl_paste"


class TestColumnsAndEdits:

    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_add_columns(self):
        assert self.classifier.classify("Add email column to customers") == intents.ADD_COLUMN
        assert self.classifier.classify("add price, stock columns to products") == intents.ADD_COLUMNS
        assert self.classifier.classify("add phone to it") == intents.ADD_COLUMN

    def test_renames(self):
        assert self.classifier.classify("rename users to customers") == intents.RENAME_TABLE
        assert self.classifier.classify("rename email to email_address in users") == intents.RENAME_COLUMN

    def test_constraints(self):
        assert self.classifier.classify("make email unique") == intents.SET_UNIQUE
        assert self.classifier.classify("set sku as primary key in products") == intents.SET_PK
        assert self.classifier.classify("make phone optional") == intents.SET_NULLABLE
        assert self.classifier.classify("make name required in customers") == intents.SET_REQUIRED

    def test_types_and_colours(self):
        assert self.classifier.classify("change price to decimal") == intents.CHANGE_TYPE
        assert self.classifier.classify("change price to decimal(12,4)") == intents.CHANGE_TYPE
        assert self.classifier.classify("color users blue") == intents.COLOR

    def test_removals(self):
        assert self.classifier.classify("delete the logs table") == intents.REMOVE_TABLE
        assert self.classifier.classify("remove phone from customers") == intents.REMOVE_COLUMN

    def test_reports(self):
        assert self.classifier.classify("describe users") == intents.DESCRIBE
        assert self.classifier.classify("optimize") == intents.OPTIMIZE
        assert self.classifier.classify("suggest tables") == intents.SUGGEST


class TestRelationshipsAndCategories:

    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_explicit_links(self):
        assert self.classifier.explain("orders belongs to users") == "add_fk_belongs_to"
        assert self.classifier.explain("users has many orders") == "add_fk_has_many"
        assert self.classifier.explain("link orders to users") == "add_fk_link_pair"
        for text in ("orders belongs to users", "users has many orders", "link orders to users"):
            assert self.classifier.classify(text) == intents.ADD_FK, text

    def test_auto_links(self):
        assert self.classifier.classify("link them together") == intents.ADD_FKS_AUTO

    def test_remove_relationship_beats_remove_table(self):
        assert self.classifier.classify("remove the relationship between orders and users") == intents.REMOVE_FK

    def test_column_named_like_a_relation_word(self):
        assert self.classifier.classify("remove the links column from posts") == intents.REMOVE_COLUMN
        assert self.classifier.classify("drop the references field") == intents.REMOVE_COLUMN
        assert self.classifier.classify("remove the links between posts and tags") == intents.REMOVE_FK

    def test_category_commands(self):
        assert self.classifier.classify("auto categorize") == intents.AUTO_CATEGORIZE
        assert self.classifier.classify("move orders to the Sales category") == intents.ASSIGN_CATEGORY
        assert self.classifier.classify("create category Auth with users, sessions") == intents.CREATE_CATEGORY
        assert self.classifier.classify("delete the Sales category") == intents.REMOVE_CATEGORY


class TestContextFallback:

    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_same_for_repeats_last_action(self):
        context = ConversationContext(["customers"], last_action=intents.ADD_COLUMN)
        assert self.classifier.classify("same for orders", context) == intents.ADD_COLUMN
        assert self.classifier.explain("same for orders", context) == "context_repeat"

    def test_non_repeatable_action_is_not_repeated(self):
        context = ConversationContext(["customers"], last_action=intents.CREATE_TABLE)
        assert self.classifier.classify("same for orders", context) == intents.UNKNOWN

    def test_rule_order(self):
        names = self.classifier.rule_names()
        assert names[0] == "ddl_paste"
        assert names[-1] == "context_repeat"
        assert names.index("remove_fk") < names.index("remove_table")
        assert names.index("set_nullable") < names.index("set_required")
