# schema_engine/sql_exporter.py
"""
SQL export - Schema -> CREATE TABLE statements.

Output stays inside the grammar accepted by DDLParser:
- single pk inline (PRIMARY KEY), composite pk as a table-level clause
- inline UNIQUE / NOT NULL (non-pk only) / DEFAULT
- trailing FOREIGN KEY (...) REFERENCES t(c) clauses
- "-- Category: ..." comment above categorized tables
"""

import re
from typing import List

from schema_engine.model import Schema, Table

_PLAIN_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RESERVED_WORDS = {
    "order", "user", "group", "table", "select", "from", "where", "key", "index", "check",
    "primary", "foreign", "unique", "default", "references", "constraint", "like", "to",
}

INDENT = "    "


def quote_identifier(name: str) -> str:
    if _PLAIN_IDENT.match(name) and name.lower() not in RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


class SQLExporter:
    """Render a Schema as portable DDL."""

    def __init__(self, include_categories: bool = True):
        self.include_categories = include_categories

    def export(self, schema: Schema) -> str:
        blocks = []
        if schema.name:
            blocks.append("-- Schema: {0}".format(schema.name))
        for table in schema.tables:
            blocks.append(self.export_table(table, schema))
        return "\n\n".join(blocks) + ("\n" if blocks else "")

    def export_table(self, table: Table, schema: Schema = None) -> str:
        lines = []
        if self.include_categories and schema is not None and table.category:
            category_name = schema.category_name(table.category)
            if category_name:
                lines.append("-- Category: {0}".format(category_name))

        pks = table.primary_keys()
        composite = len(pks) > 1
        clauses = [self._column_clause(col, inline_pk=not composite) for col in table.columns]

        if composite:
            clauses.append("PRIMARY KEY ({0})".format(", ".join(quote_identifier(c.name) for c in pks)))
        for col in table.foreign_keys():
            clauses.append("FOREIGN KEY ({0}) REFERENCES {1}({2})".format(
                quote_identifier(col.name),
                quote_identifier(col.foreign_key.table),
                quote_identifier(col.foreign_key.column),
            ))

        lines.append("CREATE TABLE {0} (".format(quote_identifier(table.name)))
        lines.append(",\n".join(INDENT + c for c in clauses))
        lines.append(");")
        return "\n".join(lines)

    @staticmethod
    def _column_clause(col, inline_pk: bool) -> str:
        parts: List[str] = [quote_identifier(col.name), col.type or "VARCHAR(255)"]
        if col.is_primary_key and inline_pk:
            parts.append("PRIMARY KEY")
        if col.is_unique and not col.is_primary_key:
            parts.append("UNIQUE")
        if not col.is_nullable and not col.is_primary_key:
            parts.append("NOT NULL")
        if col.default_value is not None and str(col.default_value) != "":
            parts.append("DEFAULT {0}".format(col.default_value))
        return " ".join(parts)


def export_sql(schema: Schema) -> str:
    return SQLExporter().export(schema)
