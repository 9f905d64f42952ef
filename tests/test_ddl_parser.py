# tests/test_ddl_parser.py
"""
Tests for the dialect-tolerant CREATE TABLE reader.
"""

from schema_engine.ddl_parser import DDLParser, split_top_level, strip_comments
from schema_engine.model import ForeignKey


def _by_name(tables):
    return {t.name: t for t in tables}


class TestColumnDefinitions:

    def setup_method(self):
        self.parser = DDLParser()

    def test_types_and_table_level_primary_key(self):
        tables = self.parser.parse("CREATE TABLE t (a INT, b DECIMAL(10,2), PRIMARY KEY(a))")
        assert len(tables) == 1
        a = tables[0].get_column("a")
        b = tables[0].get_column("b")
        assert a.is_primary_key and not a.is_nullable
        assert a.type == "INT"
        assert b.type == "DECIMAL(10,2)"
        assert not b.is_primary_key

    def test_comments_schema_prefix_and_modifiers(self):
        sql = """
        -- users of the shop
        CREATE TABLE IF NOT EXISTS public.users (
            id SERIAL PRIMARY KEY, /* surrogate key */
            email VARCHAR(255) NOT NULL UNIQUE,
            status VARCHAR(20) DEFAULT 'active',
            created_at TIMESTAMP DEFAULT now()
        );
        """
        users = self.parser.parse(sql)[0]
        assert users.name == "users"
        assert users.column_names() == ["id", "email", "status", "created_at"]
        email = users.get_column("email")
        assert email.is_unique and not email.is_nullable
        assert users.get_column("status").default_value == "'active'"
        assert users.get_column("created_at").default_value == "now()"

    def test_serial_is_primary_key(self):
        table = self.parser.parse("CREATE TABLE t (id SERIAL, name TEXT)")[0]
        assert table.get_column("id").is_primary_key
        assert not table.get_column("id").is_nullable
        assert table.get_column("name").is_nullable

    def test_mysql_backticks_auto_increment_and_index(self):
        sql = ("CREATE TABLE `products` (`id` INT NOT NULL AUTO_INCREMENT, `name` VARCHAR(100), "
               "PRIMARY KEY (`id`), KEY idx_name (`name`)) ENGINE=InnoDB;")
        products = self.parser.parse(sql)[0]
        assert products.name == "products"
        assert products.column_names() == ["id", "name"]
        assert products.get_column("id").is_primary_key

    def test_table_level_unique(self):
        table = self.parser.parse("CREATE TABLE t (id INT PRIMARY KEY, email TEXT, UNIQUE (email))")[0]
        assert table.get_column("email").is_unique

    def test_composite_unique_leaves_columns_alone(self):
        table = self.parser.parse(
            "CREATE TABLE t (id INT PRIMARY KEY, org_id INT, slug TEXT, UNIQUE (org_id, slug))")[0]
        assert not table.get_column("org_id").is_unique
        assert not table.get_column("slug").is_unique


class TestForeignKeys:

    def setup_method(self):
        self.parser = DDLParser()

    def test_inline_references(self):
        sql = ("CREATE TABLE users (id SERIAL PRIMARY KEY);"
               "CREATE TABLE orders (id SERIAL PRIMARY KEY, user_id INTEGER REFERENCES users(id));")
        orders = _by_name(self.parser.parse(sql))["orders"]
        assert orders.get_column("user_id").foreign_key == ForeignKey("users", "id")

    def test_table_level_foreign_key(self):
        sql = ("CREATE TABLE orders (id INT PRIMARY KEY, customer_id INT, "
               "CONSTRAINT fk_customer FOREIGN KEY (customer_id) REFERENCES public.customers (id));")
        orders = self.parser.parse(sql)[0]
        assert orders.get_column("customer_id").foreign_key == ForeignKey("customers", "id")

    def test_alter_table_add_constraint(self):
        sql = ("CREATE TABLE users (id INT PRIMARY KEY);\n"
               "CREATE TABLE orders (id INT PRIMARY KEY, user_id INT);\n"
               "ALTER TABLE orders ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES users(id);")
        orders = _by_name(self.parser.parse(sql))["orders"]
        assert orders.get_column("user_id").foreign_key == ForeignKey("users", "id")

    def test_composite_primary_key(self):
        sql = ("CREATE TABLE order_items (order_id INT, product_id INT, qty INT, "
               "PRIMARY KEY (order_id, product_id))")
        table = self.parser.parse(sql)[0]
        assert [c.name for c in table.primary_keys()] == ["order_id", "product_id"]
        assert not table.get_column("qty").is_primary_key


class TestEdgeCases:

    def setup_method(self):
        self.parser = DDLParser()

    def test_no_create_table_yields_nothing(self):
        assert self.parser.parse("SELECT * FROM users;") == []
        assert self.parser.parse("") == []

    def test_table_without_columns_is_dropped(self):
        assert self.parser.parse("CREATE TABLE empty (PRIMARY KEY (id))") == []

    def test_last_definition_wins(self):
        tables = self.parser.parse("CREATE TABLE a (x INT); CREATE TABLE a (y TEXT);")
        assert len(tables) == 1
        assert tables[0].column_names() == ["y"]

    def test_looks_like_ddl(self):
        assert DDLParser.looks_like_ddl("CREATE TABLE t (a INT)")
        assert not DDLParser.looks_like_ddl("create users table")
        assert not DDLParser.looks_like_ddl("")


class TestScanning:

    def test_split_top_level_honours_parentheses_and_quotes(self):
        assert split_top_level("a, b(1,2), 'x,y'") == ["a", "b(1,2)", "'x,y'"]

    def test_strip_comments_keeps_string_literals(self):
        text = strip_comments("a -- gone\nb '--kept' /* gone */ c")
        assert "gone" not in text
        assert "'--kept'" in text
