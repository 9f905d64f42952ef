# schema_engine/auto_categorizer.py
"""
==============================================================
AUTO-CATEGORIZER - semantic + FK-graph table grouping
==============================================================

Partitions the currently uncategorized tables into categories.

Phase 1 - semantic scoring (per uncategorized table, per group):
    table name hits a group keyword     +10
    column name is a group hint         +2 per column
    column token hits a group pattern   +1 per column
    group priority / 100                tiebreak
  Best group wins when it reaches AUTO_CATEGORY_MIN_SCORE.

Phase 2 - graph fallback over what is left:
    a) inherit the category of an FK neighbour (either direction),
       repeated until nothing changes
    b) union-find over the rest; each component of size > 1 becomes
       a category named after its best-connected table

Both phases plan against the input snapshot; categories are
materialised at the end on a copy. Re-running on the result reports
changed=False.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from config.settings import settings
from schema_engine import knowledge_base
from schema_engine.disjoint_set import DisjointSet
from schema_engine.model import Category, Schema, Table
from utils.naming import humanize, normalize_identifier, singularize

logger = logging.getLogger(__name__)

NAME_WEIGHT = 10.0
HINT_WEIGHT = 2.0
PATTERN_WEIGHT = 1.0


def _squash(text: str) -> str:
    return normalize_identifier(text).replace("_", "")


def _name_tokens(name: str) -> List[str]:
    return [singularize(t) for t in normalize_identifier(name).split("_") if t]


@dataclass
class CategorizationResult:
    schema: Schema
    created: List[Category] = field(default_factory=list)
    assignments: Dict[str, str] = field(default_factory=dict)   # table name -> category id
    changed: bool = False

    def summary(self) -> Dict[str, List[str]]:
        """Category name -> assigned table names, in assignment order."""
        grouped: Dict[str, List[str]] = {}
        for table_name, category_id in self.assignments.items():
            name = self.schema.category_name(category_id) or category_id
            grouped.setdefault(name, []).append(table_name)
        return grouped


class SemanticMatcher:
    """Scores table names and columns against the semantic pattern groups."""

    def __init__(self, groups: Optional[List[dict]] = None):
        self._groups = groups

    @property
    def groups(self) -> List[dict]:
        return self._groups if self._groups is not None else knowledge_base.semantic_groups()

    def name_matches(self, table_name: str, group: dict) -> bool:
        keywords = {singularize(k) for k in group.get("keywords", [])}
        tokens = _name_tokens(table_name)
        if singularize(normalize_identifier(table_name)) in keywords:
            return True
        return any(t in keywords for t in tokens)

    def score(self, table: Table, group: dict) -> float:
        total = 0.0
        if self.name_matches(table.name, group):
            total += NAME_WEIGHT
        hints = {h.lower() for h in group.get("column_hints", [])}
        patterns = [p.lower() for p in group.get("column_patterns", [])]
        for column in table.columns:
            name = column.name.lower()
            if name in hints:
                total += HINT_WEIGHT
            tokens = [t for t in name.split("_") if t]
            if any(t.startswith(p) for t in tokens for p in patterns):
                total += PATTERN_WEIGHT
        return total + group.get("priority", 0) / 100.0

    def best_group(self, table: Table, threshold: float) -> Optional[Tuple[dict, float]]:
        best = None
        for group in self.groups:
            s = self.score(table, group)
            if best is None or s > best[1]:
                best = (group, s)
        if best is None or best[1] < threshold:
            return None
        return best

    def category_matches_group(self, category: Category, group: dict) -> bool:
        cat = _squash(category.name)
        if not cat:
            return False
        if cat == _squash(group["name"]):
            return True
        if cat in {_squash(a) for a in group.get("aliases", [])}:
            return True
        keywords = {singularize(k) for k in group.get("keywords", [])}
        aliases = {normalize_identifier(a) for a in group.get("aliases", [])}
        tokens = [t for t in normalize_identifier(category.name).split("_") if t]
        return any(singularize(t) in keywords or t in aliases for t in tokens)

    def match_existing_category(self, table_name: str, schema: Schema) -> Optional[Category]:
        """
        First existing category whose name fits a group the table name
        belongs to (groups tried by priority). None when nothing fits.
        """
        if not schema.categories:
            return None
        groups = [g for g in self.groups if self.name_matches(table_name, g)]
        groups.sort(key=lambda g: -g.get("priority", 0))
        for group in groups:
            for category in schema.categories:
                if self.category_matches_group(category, group):
                    return category
        return None


class AutoCategorizer:
    """
    Groups uncategorized tables into categories.

    Usage:
        result = AutoCategorizer().categorize(schema)
        result.schema      # new schema (input untouched)
        result.created     # categories that did not exist before
        result.changed     # False when there was nothing to do
    """

    def __init__(self, matcher: Optional[SemanticMatcher] = None, min_score: Optional[float] = None):
        self.matcher = matcher or SemanticMatcher()
        self.min_score = settings.AUTO_CATEGORY_MIN_SCORE if min_score is None else min_score

    def categorize(self, schema: Schema) -> CategorizationResult:
        snapshot = schema
        existing = {t.name: t.category for t in snapshot.tables if t.category}
        pending = [t for t in snapshot.tables if not t.category]
        if not pending:
            return CategorizationResult(schema=schema.copy())

        # plan: table name -> ("existing", id) | ("group", group name) | ("component", hub name)
        plan: Dict[str, Tuple[str, str]] = {}
        groups_by_name: Dict[str, dict] = {}

        # Phase 1: semantic scoring
        for table in pending:
            best = self.matcher.best_group(table, self.min_score)
            if best is None:
                continue
            group, score = best
            groups_by_name[group["name"]] = group
            plan[table.name] = ("group", group["name"])
            logger.debug("[CATEGORIZE] %s -> %s (score %.2f)", table.name, group["name"], score)

        # Phase 2a: inherit through FK edges until a fixpoint
        neighbours = self._neighbours(snapshot)
        changed = True
        while changed:
            changed = False
            for table in pending:
                if table.name in plan:
                    continue
                for other in neighbours.get(table.name, []):
                    if other in existing:
                        plan[table.name] = ("existing", existing[other])
                    elif other in plan:
                        plan[table.name] = plan[other]
                    else:
                        continue
                    logger.debug("[CATEGORIZE] %s inherits from %s", table.name, other)
                    changed = True
                    break

        # Phase 2b: connected components over the rest
        remaining = [t.name for t in pending if t.name not in plan]
        dsu = DisjointSet(remaining)
        for name in remaining:
            for other in neighbours.get(name, []):
                if other in dsu:
                    dsu.union(name, other)
        for component in dsu.groups():
            if len(component) < 2:
                continue
            hub = max(component, key=lambda n: (len(neighbours.get(n, [])), -component.index(n)))
            for name in component:
                plan[name] = ("component", hub)

        if not plan:
            return CategorizationResult(schema=schema.copy())

        return self._materialize(snapshot, plan, groups_by_name)

    @staticmethod
    def _neighbours(schema: Schema) -> Dict[str, List[str]]:
        """Undirected FK adjacency by table name, in deterministic order."""
        names = {t.name.lower(): t.name for t in schema.tables}
        adjacency: Dict[str, List[str]] = {t.name: [] for t in schema.tables}
        for table in schema.tables:
            for column in table.foreign_keys():
                target = names.get(column.foreign_key.table.lower())
                if target is None or target == table.name:
                    continue
                if target not in adjacency[table.name]:
                    adjacency[table.name].append(target)
                if table.name not in adjacency[target]:
                    adjacency[target].append(table.name)
        return adjacency

    def _materialize(self, snapshot: Schema, plan, groups_by_name) -> CategorizationResult:
        result_schema = snapshot.copy()
        created: List[Category] = []
        resolved: Dict[Tuple[str, str], str] = {}
        palette = knowledge_base.category_palette() or ["#64748B"]

        def category_for(key: Tuple[str, str]) -> str:
            if key in resolved:
                return resolved[key]
            kind, value = key
            if kind == "existing":
                resolved[key] = value
                return value
            if kind == "group":
                group = groups_by_name[value]
                name, color = group["name"], group.get("color")
                icon, description = group.get("icon"), group.get("description")
            else:
                name = humanize(value)
                color = palette[len(result_schema.categories) % len(palette)]
                icon, description = None, "Tables connected to {0}".format(value)
            reuse = next((c for c in result_schema.categories if c.name.lower() == name.lower()), None)
            if reuse is not None:
                resolved[key] = reuse.id
                return reuse.id
            category = Category(
                id=result_schema.new_category_id(name),
                name=name,
                color=color or palette[len(result_schema.categories) % len(palette)],
                description=description,
                icon=icon,
            )
            result_schema.add_category(category)
            created.append(category)
            resolved[key] = category.id
            return category.id

        assignments: Dict[str, str] = {}
        for table in result_schema.tables:
            key = plan.get(table.name)
            if key is None:
                continue
            table.category = category_for(key)
            assignments[table.name] = table.category

        logger.info("[CATEGORIZE] Assigned %d table(s), created %d categor%s",
                    len(assignments), len(created), "y" if len(created) == 1 else "ies")
        return CategorizationResult(schema=result_schema, created=created,
                                    assignments=assignments, changed=bool(assignments))


_categorizer = None


def get_auto_categorizer() -> AutoCategorizer:
    global _categorizer
    if _categorizer is None:
        _categorizer = AutoCategorizer()
    return _categorizer
