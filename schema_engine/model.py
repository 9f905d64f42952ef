# schema_engine/model.py
"""
==============================================================
SCHEMA MODEL - passive entities of the schema designer
==============================================================

Column, ForeignKey, Table, Category and Schema.

Invariants kept by the mutating helpers on Schema:
- a column's foreign_key.table names an existing table
  (rename rewrites references, delete strips them)
- a table's category references an existing category or is None

Serialization follows the document shape shared with the rendering
and persistence layers (camelCase keys). Partial documents are
accepted; snake_case keys are read as well. Unknown table keys
(x, y, position, width, ...) are kept untouched in Table.display.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from utils.naming import find_by_name, normalize_identifier, slugify, unique_name

DEFAULT_COLUMN_TYPE = "VARCHAR(255)"

_TABLE_KEYS = {"name", "columns", "category", "categoryId", "category_id", "color"}


def _pick(data: Dict[str, Any], *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class ForeignKey:
    table: str
    column: str = "id"

    def to_dict(self) -> Dict[str, str]:
        return {"table": self.table, "column": self.column}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['ForeignKey']:
        if not data or not data.get("table"):
            return None
        return cls(table=data["table"], column=data.get("column") or "id")


@dataclass
class Column:
    name: str
    type: str = DEFAULT_COLUMN_TYPE
    is_primary_key: bool = False
    is_unique: bool = False
    is_nullable: Optional[bool] = None
    foreign_key: Optional[ForeignKey] = None
    default_value: Optional[str] = None

    def __post_init__(self):
        if self.is_nullable is None:
            self.is_nullable = not self.is_primary_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "isPrimaryKey": self.is_primary_key,
            "isUnique": self.is_unique,
            "isNullable": self.is_nullable,
            "foreignKey": self.foreign_key.to_dict() if self.foreign_key else None,
            "defaultValue": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        is_pk = bool(_pick(data, "isPrimaryKey", "is_primary_key", "primary_key", default=False))
        nullable = _pick(data, "isNullable", "is_nullable", "nullable")
        return cls(
            name=data["name"],
            type=_pick(data, "type", default=DEFAULT_COLUMN_TYPE),
            is_primary_key=is_pk,
            is_unique=bool(_pick(data, "isUnique", "is_unique", "unique", default=False)),
            is_nullable=bool(nullable) if nullable is not None else None,
            foreign_key=ForeignKey.from_dict(_pick(data, "foreignKey", "foreign_key")),
            default_value=_pick(data, "defaultValue", "default_value", "default"),
        )


@dataclass
class Table:
    name: str
    columns: List[Column] = field(default_factory=list)
    category: Optional[str] = None
    color: Optional[str] = None
    display: Dict[str, Any] = field(default_factory=dict)

    def get_column(self, name: str, fuzzy: bool = True) -> Optional[Column]:
        """Case-insensitive column lookup (exact -> singular/plural -> substring)."""
        if not fuzzy:
            for column in self.columns:
                if column.name.lower() == name.lower():
                    return column
            return None
        return find_by_name(self.columns, name)

    def has_column(self, name: str) -> bool:
        return self.get_column(name, fuzzy=False) is not None

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def primary_keys(self) -> List[Column]:
        return [c for c in self.columns if c.is_primary_key]

    def foreign_keys(self) -> List[Column]:
        return [c for c in self.columns if c.foreign_key is not None]

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.display)
        data.update({
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "category": self.category,
        })
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        return cls(
            name=data["name"],
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
            category=_pick(data, "category", "categoryId", "category_id"),
            color=data.get("color"),
            display={k: copy.deepcopy(v) for k, v in data.items() if k not in _TABLE_KEYS},
        )


@dataclass
class Category:
    id: str
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name, "color": self.color, "description": self.description}
        if self.icon is not None:
            data["icon"] = self.icon
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=str(data.get("id") or data["name"]),
            name=data["name"],
            color=data.get("color"),
            description=data.get("description"),
            icon=data.get("icon"),
        )


@dataclass
class Schema:
    tables: List[Table] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # -------------------------------------
    # Lookup
    # -------------------------------------
    def copy(self) -> 'Schema':
        return copy.deepcopy(self)

    def get_table(self, name: str, fuzzy: bool = True) -> Optional[Table]:
        """Case-insensitive table lookup (exact -> singular/plural -> substring)."""
        if not name:
            return None
        if not fuzzy:
            for table in self.tables:
                if table.name.lower() == name.lower():
                    return table
            return None
        return find_by_name(self.tables, name)

    def has_table(self, name: str) -> bool:
        return self.get_table(name, fuzzy=False) is not None

    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_category(self, ref: str) -> Optional[Category]:
        """Find a category by id, then by name (case-insensitive, fuzzy)."""
        if not ref:
            return None
        for category in self.categories:
            if category.id == ref:
                return category
        return find_by_name(self.categories, ref, key=lambda c: normalize_identifier(c.name))

    def category_name(self, category_id: Optional[str]) -> Optional[str]:
        for category in self.categories:
            if category.id == category_id:
                return category.name
        return None

    def tables_in_category(self, category_id: str) -> List[Table]:
        return [t for t in self.tables if t.category == category_id]

    # -------------------------------------
    # Mutations that keep invariants
    # -------------------------------------
    def add_table(self, table: Table) -> Table:
        self.tables.append(table)
        return table

    def remove_table(self, name: str) -> int:
        """Remove a table and strip every FK pointing at it. Returns stripped FK count."""
        target = self.get_table(name, fuzzy=False)
        if target is None:
            return 0
        self.tables.remove(target)
        stripped = 0
        for table in self.tables:
            for column in table.columns:
                if column.foreign_key and column.foreign_key.table.lower() == target.name.lower():
                    column.foreign_key = None
                    stripped += 1
        return stripped

    def rename_table(self, old: str, new: str) -> int:
        """Rename a table and rewrite FK references. Returns rewritten FK count."""
        target = self.get_table(old, fuzzy=False)
        if target is None:
            return 0
        old_name = target.name
        target.name = new
        rewritten = 0
        for table in self.tables:
            for column in table.columns:
                if column.foreign_key and column.foreign_key.table.lower() == old_name.lower():
                    column.foreign_key.table = new
                    rewritten += 1
        return rewritten

    def remove_column(self, table_name: str, column_name: str) -> int:
        """Remove a column and strip FKs that reference it. Returns stripped FK count."""
        table = self.get_table(table_name, fuzzy=False)
        if table is None:
            return 0
        column = table.get_column(column_name, fuzzy=False)
        if column is None:
            return 0
        table.columns.remove(column)
        stripped = 0
        for other in self.tables:
            for col in other.columns:
                fk = col.foreign_key
                if fk and fk.table.lower() == table.name.lower() and fk.column.lower() == column.name.lower():
                    col.foreign_key = None
                    stripped += 1
        return stripped

    def rename_column(self, table_name: str, old: str, new: str) -> int:
        """Rename a column and rewrite FKs that reference it. Returns rewritten FK count."""
        table = self.get_table(table_name, fuzzy=False)
        if table is None:
            return 0
        column = table.get_column(old, fuzzy=False)
        if column is None:
            return 0
        old_name = column.name
        column.name = new
        rewritten = 0
        for other in self.tables:
            for col in other.columns:
                fk = col.foreign_key
                if fk and fk.table.lower() == table.name.lower() and fk.column.lower() == old_name.lower():
                    fk.column = new
                    rewritten += 1
        return rewritten

    def add_category(self, category: Category) -> Category:
        self.categories.append(category)
        return category

    def new_category_id(self, name: str) -> str:
        """cat_<slug>, with _2, _3 ... when taken."""
        return unique_name("cat_" + slugify(name), [c.id for c in self.categories])

    def remove_category(self, category_id: str) -> int:
        """Delete a category; member tables become uncategorized. Returns member count."""
        category = next((c for c in self.categories if c.id == category_id), None)
        if category is None:
            return 0
        self.categories.remove(category)
        cleared = 0
        for table in self.tables:
            if table.category == category_id:
                table.category = None
                cleared += 1
        return cleared

    def repair(self) -> None:
        """Strip dangling FK and category references (used after loading documents)."""
        names = {t.name.lower() for t in self.tables}
        category_ids = {c.id for c in self.categories}
        for table in self.tables:
            if table.category is not None and table.category not in category_ids:
                table.category = None
            for column in table.columns:
                if column.foreign_key and column.foreign_key.table.lower() not in names:
                    column.foreign_key = None

    # -------------------------------------
    # Serialization
    # -------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tables": [t.to_dict() for t in self.tables],
            "categories": [c.to_dict() for c in self.categories],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Schema':
        data = data or {}
        schema = cls(
            tables=[Table.from_dict(t) for t in data.get("tables") or []],
            categories=[Category.from_dict(c) for c in data.get("categories") or []],
            name=data.get("name"),
            created_at=_pick(data, "createdAt", "created_at"),
            updated_at=_pick(data, "updatedAt", "updated_at"),
        )
        schema.repair()
        return schema
