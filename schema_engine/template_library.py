# schema_engine/template_library.py
"""
==============================================================
TABLE TEMPLATE LIBRARY - table name -> default columns
==============================================================

Lookup order (first hit wins):
1. exact archetype key             "order_item"
2. plural / underscore variants    "order_items", "Order Items", "orderitems"
3. bidirectional substring         "user_profiles" -> user
   (head noun first, then any token, then longest key first; min length 3)
4. baseline                        id, name, created_at, updated_at

get_columns() never returns an empty list and always returns fresh
copies: callers flip pk/fk flags in place.
"""

import logging
import re
from typing import Dict, List, Optional

from schema_engine import knowledge_base
from schema_engine.model import Column
from schema_engine.type_inferencer import get_type_inferencer
from utils.naming import MIN_SUBSTRING_LENGTH, normalize_identifier, pluralize, singularize

logger = logging.getLogger(__name__)

BASELINE_COLUMNS = ["id", "name", "created_at", "updated_at"]


def _squash(key: str) -> str:
    return key.replace("_", "")


class TableTemplateLibrary:
    """Archetype column sets backed by knowledge/table_templates.json."""

    def __init__(self, templates: Optional[Dict[str, list]] = None):
        self._templates = templates
        self.inferencer = get_type_inferencer()

    @property
    def templates(self) -> Dict[str, list]:
        if self._templates is None:
            return knowledge_base.table_templates()
        return self._templates

    # -------------------------------------
    # Lookup
    # -------------------------------------
    def template_key(self, name: str) -> Optional[str]:
        """Resolve a table name to an archetype key, or None for the baseline."""
        key = normalize_identifier(name or "")
        if not key:
            return None
        templates = self.templates

        # 1. exact
        if key in templates:
            return key

        # 2. plural / underscore-normalised variants
        singular = singularize(key)
        if singular in templates:
            return singular
        squashed = {_squash(k): k for k in templates}
        for variant in (_squash(key), _squash(singular), singularize(_squash(key))):
            if variant in squashed:
                return squashed[variant]

        # 3. bidirectional substring
        return self._substring_match(key)

    def _substring_match(self, key: str) -> Optional[str]:
        tokens = [singularize(t) for t in key.split("_") if t]
        head = tokens[-1] if tokens else ""
        candidates = []
        for archetype in self.templates:
            if len(archetype) < MIN_SUBSTRING_LENGTH or len(key) < MIN_SUBSTRING_LENGTH:
                continue
            if archetype in key or key in archetype:
                if archetype == head:
                    rank = 0
                elif archetype in tokens:
                    rank = 1
                else:
                    rank = 2
                candidates.append((rank, -len(archetype), archetype))
        if not candidates:
            return None
        candidates.sort()
        return candidates[0][2]

    def has_template(self, name: str) -> bool:
        return self.template_key(name) is not None

    def get_columns(self, name: str) -> List[Column]:
        """Default columns for a table name. Never empty."""
        key = self.template_key(name)
        if key is None:
            logger.debug("[TEMPLATE] No archetype for '%s', using baseline", name)
            specs = BASELINE_COLUMNS
        else:
            logger.debug("[TEMPLATE] '%s' -> archetype '%s'", name, key)
            specs = self.templates[key] or BASELINE_COLUMNS
        return [self.build_column(spec) for spec in specs]

    def build_column(self, spec) -> Column:
        """Build a Column from a template entry (bare name or dict)."""
        if isinstance(spec, str):
            spec = {"name": spec}
        name = spec["name"]
        is_pk = spec.get("primary_key", name == "id")
        nullable = spec.get("nullable")
        return Column(
            name=name,
            type=spec.get("type") or self.inferencer.infer(name),
            is_primary_key=is_pk,
            is_unique=bool(spec.get("unique", False)),
            is_nullable=(not is_pk) if nullable is None else bool(nullable) and not is_pk,
            default_value=spec.get("default"),
        )

    # -------------------------------------
    # Related tables and domain presets
    # -------------------------------------
    def related_tables(self, name: str) -> List[str]:
        """Companion tables usually modelled next to this one (plural names)."""
        key = self.template_key(name)
        if key is None:
            return []
        related = knowledge_base.related_templates().get(key, [])
        return [pluralize(r) for r in related]

    def domain_tables(self, text: str) -> Optional[List[str]]:
        """Map a domain phrase ("an e-commerce app", "blog") to its preset table list."""
        domain = self.domain_name(text)
        if domain is None:
            return None
        return list(knowledge_base.domain_presets()[domain].get("tables", []))

    def domain_name(self, text: str) -> Optional[str]:
        """Longest domain alias found in the text, as a preset key."""
        lowered = (text or "").lower()
        best = None
        for domain, preset in knowledge_base.domain_presets().items():
            for alias in preset.get("aliases", []):
                if re.search(r"(?<![\w-])" + re.escape(alias) + r"(?![\w-])", lowered):
                    if best is None or len(alias) > best[0]:
                        best = (len(alias), domain)
        return best[1] if best else None


_library = None


def get_template_library() -> TableTemplateLibrary:
    global _library
    if _library is None:
        _library = TableTemplateLibrary()
    return _library
