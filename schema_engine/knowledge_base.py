# schema_engine/knowledge_base.py
"""
Loader for the static heuristic knowledge bases.

    table_templates.json      archetype columns, related tables, domain presets
    semantic_categories.json  pattern groups for categorization
    fk_name_pairs.json        column keyword -> table keyword conventions

Files are read once from settings.get_knowledge_dir() and cached.
"""

import json
import logging
import os

from config.settings import settings

logger = logging.getLogger(__name__)

TEMPLATES_FILE = "table_templates.json"
CATEGORIES_FILE = "semantic_categories.json"
FK_PAIRS_FILE = "fk_name_pairs.json"

_CACHE = {}


def load_knowledge(filename):
    """Load a knowledge JSON file (cached). Missing or broken files yield {}."""
    if filename in _CACHE:
        return _CACHE[filename]

    path = os.path.join(settings.get_knowledge_dir(), filename)
    data = {}
    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            logger.debug("[KB] Loaded %s", path)
        except (OSError, ValueError) as e:
            logger.error("[KB] Could not read %s: %s", path, e, exc_info=True)
    else:
        logger.warning("[KB] Knowledge file not found: %s", path)

    _CACHE[filename] = data
    return data


def clear_cache():
    """Forget loaded files (used when KNOWLEDGE_DIR changes)."""
    _CACHE.clear()


def table_templates():
    return load_knowledge(TEMPLATES_FILE).get("templates", {})


def related_templates():
    return load_knowledge(TEMPLATES_FILE).get("related", {})


def domain_presets():
    return load_knowledge(TEMPLATES_FILE).get("domains", {})


def semantic_groups():
    return load_knowledge(CATEGORIES_FILE).get("groups", [])


def category_palette():
    return load_knowledge(CATEGORIES_FILE).get("palette", [])


def named_colors():
    return load_knowledge(CATEGORIES_FILE).get("named_colors", {})


def fk_name_pairs():
    return load_knowledge(FK_PAIRS_FILE).get("pairs", [])
