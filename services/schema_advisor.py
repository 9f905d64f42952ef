# -*- coding: utf-8 -*-
"""
Schema Advisor - read-only reports over a schema
Builds the describe / stats / optimize / suggest / help answers and the
short conversational replies. Never modifies the schema.
"""

from typing import Dict, List, Optional

from schema_engine.model import Schema, Table
from schema_engine.template_library import get_template_library
from utils.naming import match_exact_or_inflected, names_list

MAX_COLUMNS_PER_TABLE = 30
MAX_SUGGESTIONS = 5


class SchemaAdvisor:
    """Formats reports about a schema"""

    def __init__(self):
        self.templates = self._init_templates()
        self.library = get_template_library()

    def _init_templates(self) -> Dict[str, str]:
        """Initialize response templates"""
        return {
            'empty': "The schema is empty. Try *create tables users, products, orders* or *create an e-commerce schema*.",
            'schema_header': "Your schema has **{tables}** table{tables_s} and **{relations}** relationship{relations_s}:\n",
            'table_header': "**{name}**{category} ({count} column{count_s})",
            'stats': ("**Schema statistics**\n\n"
                      "- Tables: **{tables}**\n"
                      "- Columns: **{columns}** (avg {avg:.1f} per table)\n"
                      "- Relationships: **{relations}**\n"
                      "- Categories: **{categories}**\n"
                      "- Uncategorized tables: **{uncategorized}**\n"
                      "- Largest table: **{largest}**"),
            'no_issues': "Looks good! I didn't find any issues in **{tables}** table{tables_s}.",
            'issues': "I found **{count}** thing{count_s} worth a look:\n\n{details}",
            'suggest_tables': "**Tables you might add:**\n{details}",
            'suggest_columns': "**Columns you might add:**\n{details}",
            'nothing_to_suggest': "Nothing to add right now. The schema already covers the usual companion tables.",
            'greeting': "Hi! Describe the tables you need and I'll build the schema. Type *help* to see what I understand.",
            'thanks': "You're welcome! Anything else to add to the schema?",
            'bye': "Bye! Your schema is saved in this session.",
        }

    # -------------------------------------
    # Conversational
    # -------------------------------------
    def greeting(self) -> str:
        return self.templates['greeting']

    def thanks(self) -> str:
        return self.templates['thanks']

    def bye(self) -> str:
        return self.templates['bye']

    def help_text(self) -> str:
        """Command overview"""
        return "\n".join([
            "**Here's what I can do:**",
            "",
            "**Tables**",
            "- *create tables users, products, orders*",
            "- *create orders table with order_number, total, status*",
            "- *create an e-commerce schema*",
            "- *rename users to customers* / *delete the logs table*",
            "",
            "**Columns**",
            "- *add email column to customers*",
            "- *add price as decimal(12,2), stock to products*",
            "- *rename email to email_address in users* / *remove phone from users*",
            "- *make email unique* / *make name required* / *set sku as primary key*",
            "- *change price to decimal*",
            "",
            "**Relationships**",
            "- *link them together* / *detect foreign keys*",
            "- *orders belongs to users* / *users has many orders*",
            "- *remove the relationship between orders and users*",
            "",
            "**Categories**",
            "- *auto categorize* / *create category Auth with users, sessions*",
            "- *move orders to Sales category* / *delete the Sales category*",
            "",
            "**Other**",
            "- *describe users* / *stats* / *optimize* / *suggest* / *clear*",
            "- paste `CREATE TABLE ...` statements to import them",
        ])

    # -------------------------------------
    # Describe
    # -------------------------------------
    def describe_schema(self, schema: Schema) -> str:
        """Overview of every table"""
        if not schema.tables:
            return self.templates['empty']

        relations = sum(len(t.foreign_keys()) for t in schema.tables)
        lines = [self.templates['schema_header'].format(
            tables=len(schema.tables), tables_s=self._s(len(schema.tables)),
            relations=relations, relations_s=self._s(relations),
        )]
        for table in schema.tables:
            lines.append("- " + self._table_header(table, schema) + ": " + ", ".join(table.column_names()))
        return "\n".join(lines)

    def describe_table(self, table: Table, schema: Schema) -> str:
        """Column listing of one table"""
        lines = [self._table_header(table, schema)]
        for column in table.columns:
            lines.append("- " + self._format_column(column))
        incoming = [
            f"{other.name}.{c.name}"
            for other in schema.tables for c in other.foreign_keys()
            if c.foreign_key.table.lower() == table.name.lower() and other is not table
        ]
        if incoming:
            lines.append("")
            lines.append("Referenced by: " + ", ".join(incoming))
        return "\n".join(lines)

    def describe_tables(self, tables: List[Table], schema: Schema) -> str:
        return "\n\n".join(self.describe_table(t, schema) for t in tables)

    def _table_header(self, table: Table, schema: Schema) -> str:
        category = schema.category_name(table.category)
        return self.templates['table_header'].format(
            name=table.name,
            category=f" [{category}]" if category else "",
            count=len(table.columns),
            count_s=self._s(len(table.columns)),
        )

    @staticmethod
    def _format_column(column) -> str:
        """`email` VARCHAR(255) UNIQUE NOT NULL → users.id"""
        parts = [f"`{column.name}` {column.type}"]
        if column.is_primary_key:
            parts.append("PK")
        if column.is_unique and not column.is_primary_key:
            parts.append("UNIQUE")
        if not column.is_nullable and not column.is_primary_key:
            parts.append("NOT NULL")
        if column.default_value is not None:
            parts.append(f"DEFAULT {column.default_value}")
        if column.foreign_key:
            parts.append(f"→ {column.foreign_key.table}.{column.foreign_key.column}")
        return " ".join(parts)

    # -------------------------------------
    # Stats
    # -------------------------------------
    def stats(self, schema: Schema) -> str:
        if not schema.tables:
            return self.templates['empty']
        columns = sum(len(t.columns) for t in schema.tables)
        largest = max(schema.tables, key=lambda t: len(t.columns))
        return self.templates['stats'].format(
            tables=len(schema.tables),
            columns=columns,
            avg=columns / len(schema.tables),
            relations=sum(len(t.foreign_keys()) for t in schema.tables),
            categories=len(schema.categories),
            uncategorized=len([t for t in schema.tables if not t.category]),
            largest=f"{largest.name} ({len(largest.columns)} columns)",
        )

    # -------------------------------------
    # Optimize
    # -------------------------------------
    def find_issues(self, schema: Schema) -> List[str]:
        """Design problems, one line each, in table order"""
        issues = []
        linked = set()
        for table in schema.tables:
            for column in table.foreign_keys():
                linked.add(table.name.lower())
                linked.add(column.foreign_key.table.lower())

        for table in schema.tables:
            if not table.primary_keys():
                issues.append(f"**{table.name}** has no primary key. Try *set id as primary key in {table.name}*.")
            for column in table.columns:
                name = column.name.lower()
                if name.endswith("_id") and name != "id" and column.foreign_key is None:
                    target = match_exact_or_inflected(schema.tables, name[:-3])
                    if target is not None and target is not table:
                        issues.append(f"**{table.name}.{column.name}** looks like a reference to "
                                      f"**{target.name}** but isn't linked. Try *link all tables*.")
                if "email" in name and not column.is_unique and not column.is_primary_key:
                    issues.append(f"**{table.name}.{column.name}** is usually unique. "
                                  f"Try *make {column.name} unique in {table.name}*.")
            if len(table.columns) > MAX_COLUMNS_PER_TABLE:
                issues.append(f"**{table.name}** has {len(table.columns)} columns; consider splitting it.")
            if table.columns and not any(c.name.lower() in ("created_at", "createdat") for c in table.columns):
                issues.append(f"**{table.name}** has no `created_at` timestamp.")
            if len(schema.tables) > 1 and table.name.lower() not in linked:
                issues.append(f"**{table.name}** isn't related to any other table.")
        if schema.categories:
            loose = [t.name for t in schema.tables if not t.category]
            if loose:
                issues.append(f"{names_list(loose)} {'has' if len(loose) == 1 else 'have'} no category. "
                              f"Try *auto categorize*.")
        return issues

    def optimize(self, schema: Schema) -> str:
        if not schema.tables:
            return self.templates['empty']
        issues = self.find_issues(schema)
        if not issues:
            return self.templates['no_issues'].format(
                tables=len(schema.tables), tables_s=self._s(len(schema.tables)))
        return self.templates['issues'].format(
            count=len(issues), count_s=self._s(len(issues)),
            details="\n".join(f"- {i}" for i in issues),
        )

    # -------------------------------------
    # Suggest
    # -------------------------------------
    def suggested_tables(self, schema: Schema) -> List[str]:
        """Related tables of existing tables that are not modelled yet"""
        suggestions: List[str] = []
        for table in schema.tables:
            for related in self.library.related_tables(table.name):
                if match_exact_or_inflected(schema.tables, related) is not None:
                    continue
                if related not in suggestions:
                    suggestions.append(related)
        return suggestions[:MAX_SUGGESTIONS]

    def suggest(self, schema: Schema, table: Optional[Table] = None) -> str:
        if not schema.tables:
            return self.templates['empty']

        sections = []
        tables = self.suggested_tables(schema)
        if tables:
            sections.append(self.templates['suggest_tables'].format(
                details="\n".join(f"- **{t}** (*create {t} table*)" for t in tables)))

        scope = [table] if table is not None else schema.tables
        column_lines = []
        for t in scope:
            missing = [c for c in ("created_at", "updated_at") if not t.has_column(c)]
            if missing:
                column_lines.append(f"- **{t.name}**: {', '.join(missing)} "
                                    f"(*add {' and '.join(missing)} to {t.name}*)")
        if column_lines:
            sections.append(self.templates['suggest_columns'].format(details="\n".join(column_lines)))

        if not sections:
            return self.templates['nothing_to_suggest']
        return "\n\n".join(sections)

    @staticmethod
    def _s(count: int) -> str:
        return "" if count == 1 else "s"


_advisor = None


def get_schema_advisor() -> SchemaAdvisor:
    global _advisor
    if _advisor is None:
        _advisor = SchemaAdvisor()
    return _advisor
