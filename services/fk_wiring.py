# services/fk_wiring.py
"""
==============================================================
FK AUTO-WIRING - naming conventions -> foreign keys
==============================================================

Primary pass:
    every *_id column (not "id", no FK yet): strip "_id" and match a
    table by exact / plural / singular name. Self references are
    skipped. Target column is the table's single pk, else "id".

        orders.user_id      -> users.id
        order_items.order_id -> orders.id

Secondary pass (knowledge/fk_name_pairs.json), for columns still
unwired that end in _id or _by:

        posts.author_id     -> users.id      (author -> user)
        tasks.created_by    -> users.id
        employees.manager_id -> employees.id (self reference allowed)

Mutates the schema it is given; callers pass a working copy.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from schema_engine import knowledge_base
from schema_engine.model import Column, ForeignKey, Schema, Table
from utils.naming import match_exact_or_inflected

logger = logging.getLogger(__name__)


@dataclass
class WiredRelation:
    source_table: str
    column: str
    target_table: str
    target_column: str
    rule: str = "naming"

    def describe(self) -> str:
        return "{0}.{1} → {2}.{3}".format(self.source_table, self.column, self.target_table, self.target_column)


def target_column_for(table: Table) -> str:
    """The column an FK into this table points at."""
    pks = table.primary_keys()
    if len(pks) == 1:
        return pks[0].name
    return "id"


def _stem(column_name: str) -> Optional[str]:
    lowered = column_name.lower()
    if lowered.endswith("_id") and len(lowered) > 3:
        return lowered[:-3]
    if lowered.endswith("_by") and len(lowered) > 3:
        return lowered
    return None


def wire_column(schema: Schema, table: Table, column: Column,
                targets: Optional[Iterable[str]] = None) -> Optional[WiredRelation]:
    """Wire one column by naming convention. Returns the relation or None."""
    if column.foreign_key is not None or column.name.lower() == "id":
        return None
    allowed = {n.lower() for n in targets} if targets is not None else None

    def acceptable(target):
        return target is not None and (allowed is None or target.name.lower() in allowed)

    # Primary: <table>_id, never self
    if column.name.lower().endswith("_id"):
        target = match_exact_or_inflected(schema.tables, column.name[:-3])
        if acceptable(target) and target is not table:
            column.foreign_key = ForeignKey(target.name, target_column_for(target))
            return WiredRelation(table.name, column.name, target.name, column.foreign_key.column)

    # Secondary: keyword conventions, self reference allowed
    stem = _stem(column.name)
    if stem is None:
        return None
    target = _match_name_pair(schema, stem)
    if not acceptable(target):
        return None
    column.foreign_key = ForeignKey(target.name, target_column_for(target))
    return WiredRelation(table.name, column.name, target.name, column.foreign_key.column, rule="name_pair")


def auto_wire_foreign_keys(schema: Schema, source_tables: Optional[Iterable[str]] = None,
                           target_tables: Optional[Iterable[str]] = None) -> List[WiredRelation]:
    """
    Set missing foreign keys from column naming conventions.

    source_tables restricts which tables get new FKs, target_tables
    which tables they may point at. Returns the relations added.
    """
    sources = {n.lower() for n in source_tables} if source_tables is not None else None
    targets = list(target_tables) if target_tables is not None else None
    wired: List[WiredRelation] = []
    for table in schema.tables:
        if sources is not None and table.name.lower() not in sources:
            continue
        for column in table.columns:
            relation = wire_column(schema, table, column, targets)
            if relation is not None:
                logger.debug("[EXEC] Wired %s (%s)", relation.describe(), relation.rule)
                wired.append(relation)
    return wired


def _match_name_pair(schema: Schema, stem: str) -> Optional[Table]:
    for pair in knowledge_base.fk_name_pairs():
        keyword = pair.get("column", "").lower()
        if not keyword or keyword not in stem:
            continue
        target = match_exact_or_inflected(schema.tables, pair.get("table", ""))
        if target is not None:
            return target
    return None


def existing_relations(schema: Schema, source_tables: Optional[Iterable[str]] = None) -> List[WiredRelation]:
    """All FKs currently set (optionally only those leaving source_tables)."""
    allowed = {n.lower() for n in source_tables} if source_tables is not None else None
    relations = []
    for table in schema.tables:
        if allowed is not None and table.name.lower() not in allowed:
            continue
        for column in table.foreign_keys():
            relations.append(WiredRelation(table.name, column.name, column.foreign_key.table,
                                           column.foreign_key.column, rule="existing"))
    return relations
