# services/command_executor.py
"""
==============================================================
COMMAND EXECUTOR - intent + text -> new schema + response
==============================================================

execute(schema, text, context) -> (new_schema, response)

- never mutates the given schema: every branch works on schema.copy()
- operands: targeted regexes first, then extracted identifiers, then
  the conversation context when the text refers back ("them", "it",
  "same for ...")
- success: the copy is returned, the context remembers the touched
  tables and the action
- missing / ambiguous operands: a deep-equal copy of the ORIGINAL
  schema is returned with a clarification and an example
- unexpected errors are logged and answered with an apology

Pure function of (schema, text, context): no clock, no randomness.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from nlp_engine import intent_classifier as intents
from nlp_engine.column_spec_parser import (TYPE_ALIASES, TYPE_PARAMS, ColumnSpec, canonical_type,
                                           parse_column_specs)
from nlp_engine.context_memory import ConversationContext
from nlp_engine.identifier_extractor import (extract_identifiers, has_anaphora, normalize_command,
                                             split_name_list)
from nlp_engine.intent_classifier import IntentClassifier, creation_kind, get_intent_classifier
from schema_engine import knowledge_base
from schema_engine.auto_categorizer import AutoCategorizer, SemanticMatcher, get_auto_categorizer
from schema_engine.ddl_parser import DDLParser, get_ddl_parser
from schema_engine.model import Category, Column, ForeignKey, Schema, Table
from schema_engine.template_library import TableTemplateLibrary, get_template_library
from schema_engine.type_inferencer import get_type_inferencer
from services.fk_wiring import (auto_wire_foreign_keys, existing_relations,
                                target_column_for, wire_column)
from services.schema_advisor import SchemaAdvisor, get_schema_advisor
from utils.naming import match_exact_or_inflected, names_list, normalize_identifier, singularize

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, something went wrong while applying that command. Your schema was not changed."
DEFAULT_CATEGORY_COLOR = "#64748B"

NAME = intents.NAME
_ANAPHORIC_WORDS = {"it", "them", "those", "these", "they", "both", "all", "each", "everything"}
_NOISE_TARGETS = intents.NOISE_TARGETS
_NAME_NOISE = {"schema", "database", "db", "app", "application", "system", "diagram", "model",
               "appropriate", "columns", "column", "fields"}
_CONSTRAINT_WORDS = {
    "primary", "key", "pk", "unique", "required", "nullable", "optional", "null", "nulls", "mandatory",
    "not", "non", "allow", "allows", "allowing", "duplicates", "duplicate", "distinct", "values", "value",
    "empty", "blank", "cannot", "can't", "constraint", "type", "types", "colour", "color", "longer", "again",
}
_TYPE_WORDS = set(TYPE_ALIASES)

_VERB_CREATE = r"(?:create|make|build|generate|add|design|set\s+up|new|i\s+need|give\s+me|start)"
_CREATE_PREFIX_RE = re.compile(r"^(?:also\s+|now\s+|then\s+)?" + _VERB_CREATE + r"\b\s*(?P<rest>.*)$")
_WITH_RE = re.compile(r"\s+(?:with|having|containing|including|that\s+(?:has|have))\s+(?:the\s+)?(?:following\s+)?")
_HEAD_NOISE_RE = re.compile(r"^(?:(?:a|an|the|some|new|few|couple\s+of|following|me)\s+)+")
_ADD_VERB_RE = re.compile(r"^(?:also\s+|now\s+|then\s+)?(?:add|insert|include|append|put|give|attach)\b\s*(?P<rest>.*)$")
_NEEDS_RE = re.compile(r"^(?P<target>" + NAME + r")(?:\s+tables?)?\s+(?:needs?|should\s+have|requires?|must\s+have)\s+(?P<rest>.+)$")
_TARGET_RE = re.compile(r"\b(?:to|into|on|in|for)\s+(?:the\s+|my\s+|our\s+)?(?P<target>" + NAME + r")(?:\s+tables?)?\b")
_DOTTED_RE = re.compile(r"\b(?P<table>" + NAME + r")\.(?P<column>" + NAME + r")\b")
_SLOT_TABLE_RE = re.compile(r"\b(?:in|on|of|for|from|to)\s+(?:the\s+)?(?P<table>" + NAME + r")(?:\s+tables?)?\b")
_IN_CATEGORY_RE = re.compile(
    r"\s+(?:in|into|under|inside|within|to)\s+(?:the\s+)?(?P<cat>[a-z0-9_&\s-]+?)\s+(?:category|group|section)\b")

_REMOVE_VERB = r"(?:remove|delete|drop|get\s+rid\s+of|destroy)"
_COL_WORD = r"(?:columns?|fields?|attributes?)"
_REMOVE_TABLE_RE = re.compile(r"^" + _REMOVE_VERB + r"\s+(?P<rest>.+)$")
_REMOVE_COL_FROM_RE = re.compile(
    r"^" + _REMOVE_VERB + r"\s+(?:the\s+)?(?:" + _COL_WORD + r"\s+)?(?P<cols>.+?)(?:\s+" + _COL_WORD + r")?"
    r"\s+(?:from|in|on|of)\s+(?:the\s+)?(?P<table>" + NAME + r")(?:\s+tables?)?$")
_REMOVE_COL_RE = re.compile(
    r"^" + _REMOVE_VERB + r"\s+(?:the\s+)?(?:" + _COL_WORD + r"\s+)?(?P<cols>.+?)(?:\s+" + _COL_WORD + r")?$")

_RENAME_TABLE_RES = [
    re.compile(r"\brename\s+(?:the\s+)?(?:table\s+)?(?P<old>" + NAME + r")(?:\s+tables?)?\s+(?:to|as|into)\s+(?P<new>[a-z_][a-z0-9_ ]*)$"),
    re.compile(r"\bchange\s+(?:the\s+)?(?:table\s+)?name\s+of\s+(?:the\s+)?(?P<old>" + NAME + r")(?:\s+tables?)?\s+to\s+(?P<new>[a-z_][a-z0-9_ ]*)$"),
]
_RENAME_COLUMN_RES = [
    re.compile(r"\brename\s+(?:the\s+)?(?:" + _COL_WORD + r"\s+)?(?P<table>" + NAME + r")\.(?P<column>" + NAME
               + r")\s+(?:to|as)\s+(?P<new>" + NAME + r")"),
    re.compile(r"\brename\s+(?:the\s+)?(?:" + _COL_WORD + r"\s+)?(?P<column>" + NAME + r")\s+(?:" + _COL_WORD
               + r"\s+)?(?:in|on|of|from)\s+(?:the\s+)?(?P<table>" + NAME + r")(?:\s+tables?)?\s+(?:to|as)\s+(?P<new>" + NAME + r")"),
    re.compile(r"\brename\s+(?:the\s+)?(?:" + _COL_WORD + r"\s+)?(?P<column>" + NAME + r")\s+(?:" + _COL_WORD
               + r"\s+)?(?:to|as)\s+(?P<new>" + NAME + r")(?:\s+(?:in|on|of|for)\s+(?:the\s+)?(?P<table>" + NAME + r"))?"),
    re.compile(r"\bchange\s+(?:the\s+)?(?:column|field)\s+name\s+(?:of\s+)?(?P<column>" + NAME
               + r")(?:\s+(?:in|on|of)\s+(?:the\s+)?(?P<table>" + NAME + r"))?\s+to\s+(?P<new>" + NAME + r")"),
]

_HAS_MANY_RE = re.compile(r"\b(?P<parent>" + NAME + r")\s+(?:has|have)\s+(?:many|multiple|several|one|an?)\s+(?P<child>" + NAME + r")\b")
_BELONGS_TO_RE = re.compile(r"\b(?P<child>" + NAME + r")\s+belongs?\s+to\s+(?:an?\s+|the\s+)?(?P<parent>" + NAME + r")\b")
_REFERENCES_RE = re.compile(
    r"\b(?P<table>" + NAME + r")\.(?P<column>" + NAME + r")\b.*?(?:\b(?:references?|to|points?\s+to)\b|->)\s*(?:the\s+)?"
    r"(?P<target>" + NAME + r")(?:\.(?P<target_column>" + NAME + r"))?")
_LINK_PAIR_RE = re.compile(
    r"^(?:link|connect|relate|associate)\s+(?:the\s+)?(?P<a>" + NAME + r")(?:\s+tables?)?\s+(?:to|with|and)\s+(?:the\s+)?(?P<b>" + NAME + r")")
_BETWEEN_RE = re.compile(
    r"\b(?:foreign\s+key|fk|relationship|relation|reference|link)\s+(?:from\s+|between\s+|on\s+)?(?:the\s+)?(?P<a>" + NAME
    + r")(?:\s+tables?)?\s+(?:to|and|references?|->|pointing\s+to)\s+(?:the\s+)?(?P<b>" + NAME + r")")

_UNASSIGN_RE = re.compile(r"\bfrom\b.*\b(?:category|group|section)\b|\b(?:uncategori[sz]e|unassign|ungroup)\b")
_UNASSIGN_TABLES_RE = re.compile(
    r"^(?:remove|take|move|unassign|detach|uncategori[sz]e|ungroup)\s+(?P<tables>.+?)(?:\s+(?:out\s+of|from)\b.*)?$")
_ASSIGN_RES = [
    re.compile(r"^(?:move|assign|put|add|place|set|group|categori[sz]e|tag|file|mark)\s+(?P<tables>.+?)\s+(?:to|in|into|under|as)\s+"
               r"(?:the\s+)?(?P<cat>.+?)\s+(?:category|group|section)$"),
    re.compile(r"^(?:set|change)\s+(?:the\s+)?(?:category|group)\s+(?:of|for)\s+(?:the\s+)?(?P<tables>.+?)\s+(?:to|as)\s+"
               r"(?:the\s+)?(?P<cat>.+?)(?:\s+(?:category|group|section))?$"),
    re.compile(r"^(?:set|change|update)\s+(?:the\s+)?(?P<tables>" + NAME + r")(?:\s+tables?)?(?:'s)?\s+(?:category|group)\s+(?:to|as)\s+"
               r"(?:the\s+)?(?P<cat>.+?)(?:\s+(?:category|group|section))?$"),
    re.compile(r"^move\s+(?P<tables>.+?)\s+(?:to|into|under)\s+(?:the\s+)?(?P<cat>.+?)(?:\s+(?:category|group|section))?$"),
]
_CREATE_CATEGORY_RES = [
    re.compile(r"^(?:create|make|add|new|define|set\s+up|start)\s+(?:a\s+|an\s+|the\s+)?(?:new\s+)?(?:category|group|section)\s+"
               r"(?:called\s+|named\s+)?(?P<name>.+?)(?:\s+(?:with|containing|including|for)\s+(?P<members>.+))?$"),
    re.compile(r"^(?:create|make|add|new|define|set\s+up|start)\s+(?:a\s+|an\s+|the\s+)?(?:new\s+)?(?P<name>.+?)\s+"
               r"(?:category|group|section)(?:\s+(?:with|containing|including|for)\s+(?P<members>.+))?$"),
]
_REMOVE_CATEGORY_RES = [
    re.compile(r"(?:remove|delete|drop|dissolve|get\s+rid\s+of)\s+(?:the\s+)?(?:category|group|section)\s+(?:called\s+|named\s+)?(?P<name>.+)$"),
    re.compile(r"(?:remove|delete|drop|dissolve|get\s+rid\s+of)\s+(?:the\s+)?(?P<name>.+?)\s+(?:category|group|section)$"),
]

_TYPE_TARGET_RES = [
    re.compile(r"\b(?:to|as|into)\s+(?:an?\s+)?(?P<type>[a-z]+)(?P<params>" + TYPE_PARAMS + r")?\s*$"),
    re.compile(r"\b(?P<type>[a-z]+)(?P<params>" + TYPE_PARAMS + r")?\s*$"),
]
_UNSET_UNIQUE_RE = re.compile(r"\bnot\s+unique\b|\bnon[-\s]?unique\b|\bno\s+longer\s+unique\b|\b(?:remove|drop)\s+(?:the\s+)?unique")
_HEX_RE = re.compile(r"#(?:[0-9a-f]{6}|[0-9a-f]{3})\b")


@dataclass
class CommandResult:
    schema: Schema
    response: str
    intent: str
    changed: bool = False
    touched: List[str] = field(default_factory=list)


@dataclass
class _Outcome:
    response: str
    changed: bool = False
    touched: List[str] = field(default_factory=list)
    ok: Optional[bool] = None
    args: Optional[Dict[str, Any]] = None
    schema: Optional[Schema] = None
    forgotten: List[str] = field(default_factory=list)
    renamed: List[Tuple[str, str]] = field(default_factory=list)
    reset_context: bool = False


class _Turn(object):
    """One command being executed: the working copy plus the parsed text."""

    def __init__(self, schema: Schema, text: str, raw: str, context: ConversationContext, intent: str):
        self.schema = schema
        self.text = text
        self.raw = raw
        self.context = context
        self.intent = intent


def _clarify(message: str, example: str) -> _Outcome:
    return _Outcome("{0} For example: *{1}*".format(message, example))


def _s(count: int) -> str:
    return "" if count == 1 else "s"


def _display_name(phrase: str) -> str:
    """'users & auth' -> 'Users & Auth'"""
    words = [w for w in re.split(r"[\s_]+", phrase.strip()) if w]
    return " ".join(w if not w[0].isalpha() else w[0].upper() + w[1:] for w in words)


class CommandExecutor:
    """
    Applies one natural language command to a schema.

    Usage:
        executor = CommandExecutor()
        context = ConversationContext()
        schema, answer = executor.execute(Schema(), "create tables users, orders", context)
        schema, answer = executor.execute(schema, "link them together", context)
    """

    def __init__(self, classifier: Optional[IntentClassifier] = None,
                 templates: Optional[TableTemplateLibrary] = None,
                 parser: Optional[DDLParser] = None,
                 categorizer: Optional[AutoCategorizer] = None,
                 advisor: Optional[SchemaAdvisor] = None):
        self.classifier = classifier or get_intent_classifier()
        self.templates = templates or get_template_library()
        self.parser = parser or get_ddl_parser()
        self.categorizer = categorizer or get_auto_categorizer()
        self.advisor = advisor or get_schema_advisor()
        self.matcher = SemanticMatcher()
        self.inferencer = get_type_inferencer()

        self._handlers = {
            intents.CREATE_TABLES: self._create_tables,
            intents.CREATE_TABLE: self._create_table,
            intents.CREATE_TABLE_IN_CATEGORY: self._create_table_in_category,
            intents.ADD_COLUMN: self._add_columns,
            intents.ADD_COLUMNS: self._add_columns,
            intents.REMOVE_TABLE: self._remove_table,
            intents.REMOVE_COLUMN: self._remove_column,
            intents.RENAME_TABLE: self._rename_table,
            intents.RENAME_COLUMN: self._rename_column,
            intents.ADD_FK: self._add_fk,
            intents.ADD_FKS_AUTO: self._add_fks_auto,
            intents.REMOVE_FK: self._remove_fk,
            intents.SET_PK: self._set_pk,
            intents.SET_UNIQUE: self._set_unique,
            intents.SET_NULLABLE: self._set_nullable,
            intents.SET_REQUIRED: self._set_required,
            intents.CHANGE_TYPE: self._change_type,
            intents.COLOR: self._color,
            intents.ASSIGN_CATEGORY: self._assign_category,
            intents.CREATE_CATEGORY: self._create_category,
            intents.REMOVE_CATEGORY: self._remove_category,
            intents.AUTO_CATEGORIZE: self._auto_categorize,
            intents.IMPORT_SQL: self._import_sql,
            intents.CLEAR: self._clear,
            intents.DESCRIBE: self._describe,
            intents.STATS: lambda turn: _Outcome(self.advisor.stats(turn.schema), ok=True),
            intents.OPTIMIZE: lambda turn: _Outcome(self.advisor.optimize(turn.schema), ok=True),
            intents.SUGGEST: self._suggest,
            intents.HELP: lambda turn: _Outcome(self.advisor.help_text(), ok=True),
            intents.GREETING: lambda turn: _Outcome(self.advisor.greeting(), ok=True),
            intents.THANKS: lambda turn: _Outcome(self.advisor.thanks(), ok=True),
            intents.BYE: lambda turn: _Outcome(self.advisor.bye(), ok=True),
        }

    # =====================================================
    # Entry points
    # =====================================================
    def execute(self, schema: Schema, text: str, context: ConversationContext) -> Tuple[Schema, str]:
        result = self.run(schema, text, context)
        return result.schema, result.response

    def run(self, schema: Schema, text: str, context: Optional[ConversationContext] = None,
            intent: Optional[str] = None) -> CommandResult:
        """Classify (unless intent is given) and apply one command."""
        context = context if context is not None else ConversationContext()
        if not (text or "").strip():
            return CommandResult(schema.copy(), self._unknown_text(text), intents.UNKNOWN)

        try:
            intent = intent or self.classifier.classify(text, context)
            turn = _Turn(schema.copy(), normalize_command(text), text, context, intent)
            handler = self._handlers.get(intent, self._unknown)
            outcome = handler(turn)
        except Exception as e:
            logger.error("[EXEC] Failed to apply '%s': %s", text, e, exc_info=True)
            return CommandResult(schema.copy(), APOLOGY, intent or intents.UNKNOWN)

        if outcome.changed:
            new_schema = outcome.schema if outcome.schema is not None else turn.schema
        else:
            new_schema = schema.copy()

        if outcome.reset_context:
            context.clear()
        else:
            for name in outcome.forgotten:
                context.forget(name)
            for old, new in outcome.renamed:
                context.rename(old, new)
            succeeded = outcome.changed if outcome.ok is None else outcome.ok
            if succeeded:
                action = intent if intent in intents.MUTATING_INTENTS else None
                context.remember(outcome.touched, action, outcome.args)

        logger.info("[EXEC] %s -> changed=%s touched=%s", intent, outcome.changed, outcome.touched)
        return CommandResult(new_schema, outcome.response, intent, outcome.changed, list(outcome.touched))

    # =====================================================
    # Lookup helpers
    # =====================================================
    @staticmethod
    def _no_table(name: str, schema: Schema) -> str:
        if not schema.tables:
            return "I couldn't find a table named **{0}**. The schema has no tables yet.".format(name)
        return "I couldn't find a table named **{0}**. Current tables: {1}.".format(
            name, names_list(schema.table_names()))

    @staticmethod
    def _no_column(name: str, table: Table) -> str:
        return "**{0}** has no column **{1}**. Its columns are: {2}.".format(
            table.name, name, ", ".join(table.column_names()) or "none")

    def _context_tables(self, turn: _Turn) -> List[Table]:
        """Tables the text refers back to: "it" -> the last one, otherwise all recent."""
        recent = [turn.schema.get_table(n, fuzzy=False) for n in turn.context.recent_tables]
        recent = [t for t in recent if t is not None]
        if not recent:
            return []
        if re.search(r"\bit\b", turn.text) and not re.search(r"\b(?:them|those|these|they|both|all)\b", turn.text):
            return recent[:1]
        return recent

    def _mentioned_tables(self, text: str, schema: Schema, exclude=()) -> List[Table]:
        """Existing tables named by identifiers in the text (exact / inflected only)."""
        found: List[Table] = []
        skip = {e.lower() for e in exclude}
        for token in extract_identifiers(text):
            if token in skip:
                continue
            table = match_exact_or_inflected(schema.tables, token)
            if table is not None and table not in found:
                found.append(table)
        return found

    def _resolve_table_names(self, schema: Schema, names: List[str]) -> Tuple[List[Table], List[str]]:
        tables, missing = [], []
        for name in names:
            table = schema.get_table(name)
            if table is None:
                missing.append(name)
            elif table not in tables:
                tables.append(table)
        return tables, missing

    def _tables_from_phrase(self, turn: _Turn, phrase: str) -> Tuple[List[Table], List[str]]:
        """A list phrase ("users and orders", "them", "it") -> tables, missing names."""
        words = set(re.findall(r"[a-z_]+", phrase))
        if words and words <= (_ANAPHORIC_WORDS | {"the", "of", "tables", "table", "new", "same", "too", "also"}):
            return self._context_tables(turn), []
        names = [n for n in split_name_list(phrase) if n not in _ANAPHORIC_WORDS]
        return self._resolve_table_names(turn.schema, names)

    def _locate_column(self, turn: _Turn, column_name: str,
                       table: Optional[Table] = None) -> Tuple[Optional[Table], Optional[Column], Optional[str]]:
        """
        Find a column by name. With a table: look inside it. Without:
        a unique match across tables, preferring recently touched tables.
        """
        if table is not None:
            column = table.get_column(column_name)
            if column is None:
                return None, None, self._no_column(column_name, table)
            return table, column, None

        hits = [(t, t.get_column(column_name, fuzzy=False)) for t in turn.schema.tables]
        hits = [(t, c) for t, c in hits if c is not None]
        if not hits:
            hits = [(t, t.get_column(column_name)) for t in turn.schema.tables]
            hits = [(t, c) for t, c in hits if c is not None]
        if len(hits) == 1:
            return hits[0][0], hits[0][1], None
        if not hits:
            return None, None, "I couldn't find a column named **{0}** in any table.".format(column_name)
        for recent in turn.context.recent_tables:
            for t, c in hits:
                if t.name.lower() == recent.lower():
                    return t, c, None
        return None, None, "**{0}** exists in {1}. Which table did you mean? For example: *... {0} in {2}*".format(
            column_name, names_list([t.name for t, _ in hits]), hits[0][0].name)

    def _slot_table(self, turn: _Turn) -> Tuple[Optional[Table], Optional[str]]:
        """Table named after in/on/of/for/from/to."""
        for m in _SLOT_TABLE_RE.finditer(turn.text):
            token = m.group("table")
            if token in _ANAPHORIC_WORDS:
                context_tables = self._context_tables(turn)
                if context_tables:
                    return context_tables[0], token
                continue
            table = match_exact_or_inflected(turn.schema.tables, token)
            if table is not None:
                return table, token
        return None, None

    def _column_target(self, turn: _Turn, ignore=frozenset()) -> Tuple[Optional[Table], Optional[Column], Optional[str]]:
        """
        Resolve the (table, column) a constraint / type / rename command
        is about. Order: dotted t.c -> "c in T" -> "T c" -> unique column
        across tables -> the column of the previous command.
        """
        schema, text = turn.schema, turn.text
        dotted = _DOTTED_RE.search(text)
        if dotted:
            table = schema.get_table(dotted.group("table"))
            if table is None:
                return None, None, self._no_table(dotted.group("table"), schema)
            return self._locate_column(turn, dotted.group("column"), table)

        tokens = [t for t in extract_identifiers(text) if t not in ignore]
        table, table_token = self._slot_table(turn)
        if table is None:
            for token in tokens:
                candidate = match_exact_or_inflected(schema.tables, token)
                if candidate is None:
                    continue
                if any(o != token and candidate.get_column(o, fuzzy=False) for o in tokens):
                    table, table_token = candidate, token
                    break
        candidates = [t for t in tokens if t != table_token and t not in _ANAPHORIC_WORDS]

        for token in candidates:
            if table is not None and table.get_column(token, fuzzy=False):
                return self._locate_column(turn, token, table)
            if table is None and any(t.get_column(token, fuzzy=False) for t in schema.tables):
                return self._locate_column(turn, token, None)
        if candidates:
            return self._locate_column(turn, candidates[0], table)

        last_column = turn.context.last_args.get("column")
        if last_column:
            target = table or next(iter(self._context_tables(turn)), None)
            if target is not None:
                return self._locate_column(turn, last_column, target)
        return None, None, None

    # =====================================================
    # Create
    # =====================================================
    def _split_creation(self, text: str) -> Tuple[str, Optional[str]]:
        """'create orders table with a, b' -> ('orders table', 'a, b')"""
        m = _CREATE_PREFIX_RE.match(text)
        rest = m.group("rest") if m else text
        parts = _WITH_RE.split(rest, maxsplit=1)
        head = parts[0].strip()
        columns = parts[1].strip() if len(parts) > 1 else None
        return head, columns

    @staticmethod
    def _table_name_from_head(head: str) -> Optional[str]:
        head = _HEAD_NOISE_RE.sub("", head.strip())
        m = re.match(r"^tables?\s+(?:called\s+|named\s+|for\s+)?(?P<name>.+)$", head)
        if m:
            head = m.group("name")
        else:
            m = re.match(r"^(?P<name>.+?)\s+tables?(?:\s+(?:called|named)\s+(?P<alias>.+))?$", head)
            if m:
                head = m.group("alias") or m.group("name")
        words = [w for w in re.findall(r"[a-z0-9_\-]+", _HEAD_NOISE_RE.sub("", head)) if w not in _NAME_NOISE]
        name = normalize_identifier(" ".join(words))
        if not name or name in ("table", "tables"):
            return None
        return name

    def _table_names_from_head(self, head: str) -> List[str]:
        head = _HEAD_NOISE_RE.sub("", head.strip())
        head = re.sub(r"^tables?\s*(?:called|named|for|:)?\s*", "", head)
        head = re.sub(r"\s+tables?$", "", head)
        names = []
        for name in split_name_list(head):
            parts = [p for p in name.split("_") if p not in _NAME_NOISE]
            name = "_".join(parts)
            if name and name not in names:
                names.append(name)
        return names

    def _columns_from_specs(self, specs: List[ColumnSpec]) -> List[Column]:
        """Explicit columns plus an id primary key and created_at when missing."""
        columns = [spec.to_column() for spec in specs]
        id_column = next((c for c in columns if c.name.lower() == "id"), None)
        if not any(c.is_primary_key for c in columns):
            if id_column is not None:
                id_column.is_primary_key = True
                id_column.is_nullable = False
                id_column.is_unique = False
            else:
                columns.insert(0, Column(name="id", type=self.inferencer.infer("id"),
                                         is_primary_key=True, is_nullable=False))
        if not any(c.name.lower() == "created_at" for c in columns):
            columns.append(Column(name="created_at", type=self.inferencer.infer("created_at")))
        return columns

    def _build_tables(self, turn: _Turn, names: List[str],
                      specs: Optional[List[ColumnSpec]] = None) -> Tuple[List[Table], List[str]]:
        created, skipped = [], []
        for name in names:
            existing = match_exact_or_inflected(turn.schema.tables, name)
            if existing is not None:
                skipped.append(existing.name)
                continue
            columns = self._columns_from_specs(specs) if specs else self.templates.get_columns(name)
            created.append(turn.schema.add_table(Table(name=name, columns=columns)))
        return created, skipped

    def _after_create(self, turn: _Turn, created: List[Table],
                      category: Optional[Category] = None) -> List[str]:
        """Wire FKs in both directions and place the new tables in categories. Returns note lines."""
        names = [t.name for t in created]
        wired = auto_wire_foreign_keys(turn.schema, source_tables=names)
        wired += auto_wire_foreign_keys(turn.schema, target_tables=names)
        notes = []
        if wired:
            notes.append("Linked: " + ", ".join(r.describe() for r in wired) + ".")

        placed: Dict[str, List[str]] = {}
        for table in created:
            target = category
            if target is None and turn.schema.categories:
                target = self.matcher.match_existing_category(table.name, turn.schema)
            if target is not None:
                table.category = target.id
                placed.setdefault(target.name, []).append(table.name)
        for category_name, tables in placed.items():
            notes.append("Added {0} to category **{1}**.".format(names_list(tables), category_name))
        return notes

    @staticmethod
    def _describe_created(table: Table) -> str:
        return "**{0}** ({1})".format(table.name, ", ".join(table.column_names()))

    def _create_tables(self, turn: _Turn, text: Optional[str] = None,
                       category: Optional[Category] = None) -> _Outcome:
        head, _ = self._split_creation(text or turn.text)
        has_list = bool(re.search(r",|&|\band\b", head))
        preset = None if has_list else self.templates.domain_tables(head)
        names = list(preset) if preset else self._table_names_from_head(head)
        if not names:
            return _clarify("Which tables should I create?", "create tables users, products, orders")

        created, skipped = self._build_tables(turn, names)
        if not created:
            return _Outcome("{0} already exist{1}. Nothing to create.".format(
                names_list(skipped), "s" if len(skipped) == 1 else ""))

        notes = self._after_create(turn, created, category)
        lines = ["Created {0} table{1}:".format(len(created), _s(len(created)))]
        lines.extend("- " + self._describe_created(t) for t in created)
        if preset:
            lines[0] = "Created a **{0}** schema with {1} table{2}:".format(
                self.templates.domain_name(head).replace("_", " "), len(created), _s(len(created)))
        if skipped:
            notes.append("Skipped {0} (already exist{1}).".format(names_list(skipped), "s" if len(skipped) == 1 else ""))
        if notes:
            lines.append("")
            lines.extend(notes)
        return _Outcome("\n".join(lines), changed=True, touched=[t.name for t in created])

    def _create_table(self, turn: _Turn, text: Optional[str] = None,
                      category: Optional[Category] = None) -> _Outcome:
        head, columns_text = self._split_creation(text or turn.text)
        name = self._table_name_from_head(head)
        if not name:
            return _clarify("What should the new table be called?", "create orders table with order_number, total, status")

        existing = match_exact_or_inflected(turn.schema.tables, name)
        if existing is not None:
            if category is not None and existing.category != category.id:
                existing.category = category.id
                return _Outcome("Table **{0}** already exists; moved it to category **{1}**.".format(
                    existing.name, category.name), changed=True, touched=[existing.name])
            return _Outcome("Table **{0}** already exists. To extend it, try *add status column to {0}*.".format(
                existing.name))

        specs = parse_column_specs(columns_text) if columns_text else []
        created, _ = self._build_tables(turn, [name], specs)
        table = created[0]
        notes = self._after_create(turn, created, category)
        source = "" if specs else " (from the **{0}** template)".format(
            self.templates.template_key(name) or "default")
        lines = ["Created table **{0}** with {1} column{2}{3}: {4}.".format(
            table.name, len(table.columns), _s(len(table.columns)), source, ", ".join(table.column_names()))]
        lines.extend(notes)
        return _Outcome("\n".join(lines), changed=True, touched=[table.name])

    def _create_table_in_category(self, turn: _Turn) -> _Outcome:
        matches = list(_IN_CATEGORY_RE.finditer(turn.text))
        if not matches:
            return self._create_table(turn)
        m = matches[-1]
        stripped = (turn.text[:m.start()] + turn.text[m.end():]).strip()
        category, created = self._ensure_category(turn.schema, m.group("cat"))
        if creation_kind(stripped) == intents.CREATE_TABLES:
            outcome = self._create_tables(turn, stripped, category)
        else:
            outcome = self._create_table(turn, stripped, category)
        if created and outcome.changed:
            outcome.response = "Created category **{0}**.\n{1}".format(category.name, outcome.response)
        return outcome

    # =====================================================
    # Columns
    # =====================================================
    @staticmethod
    def _last_target(text: str):
        last = None
        for m in _TARGET_RE.finditer(text):
            if m.group("target") not in _NOISE_TARGETS:
                last = m
        return last

    def _add_columns(self, turn: _Turn) -> _Outcome:
        text = turn.text
        operand, target_phrase = None, None
        m = _NEEDS_RE.match(text)
        if m:
            operand, target_phrase = m.group("rest"), m.group("target")
        else:
            m = _ADD_VERB_RE.match(text)
            source = m.group("rest") if m else text
            target = self._last_target(source)
            if target is not None:
                target_phrase = target.group("target")
            if m:
                operand = source[:target.start()] if target is not None else source

        specs = parse_column_specs(operand) if operand else []
        specs = [s for s in specs if s.name not in _ANAPHORIC_WORDS]
        if not specs:
            specs = [ColumnSpec.from_dict(d) for d in turn.context.last_args.get("columns", [])]
        if not specs:
            return _clarify("Which column should I add?", "add email column to customers")

        if target_phrase in _ANAPHORIC_WORDS:
            tables = self._context_tables(turn)
        elif target_phrase:
            table = turn.schema.get_table(target_phrase)
            if table is None:
                return _Outcome(self._no_table(target_phrase, turn.schema))
            tables = [table]
        else:
            tables = self._context_tables(turn)[:1]
        if not tables:
            return _clarify("Which table should get {0}?".format(names_list([s.name for s in specs])),
                            "add {0} to customers".format(specs[0].name))

        lines, touched = [], []
        for table in tables:
            added, skipped, wired = [], [], []
            for spec in specs:
                if table.has_column(spec.name):
                    skipped.append(spec.name)
                    continue
                column = spec.to_column()
                if column.is_primary_key:
                    for other in table.columns:
                        other.is_primary_key = False
                table.columns.append(column)
                added.append(column)
                relation = wire_column(turn.schema, table, column)
                if relation is not None:
                    wired.append(relation)
            if added:
                touched.append(table.name)
                lines.append("Added {0} to **{1}**.".format(
                    ", ".join("**{0}** ({1})".format(c.name, c.type) for c in added), table.name))
            if wired:
                lines.append("Linked: " + ", ".join(r.describe() for r in wired) + ".")
            if skipped:
                lines.append("**{0}** already has {1}.".format(table.name, ", ".join(skipped)))

        return _Outcome("\n".join(lines), changed=bool(touched), touched=touched,
                        args={"columns": [s.to_dict() for s in specs]})

    def _remove_column(self, turn: _Turn) -> _Outcome:
        text, schema = turn.text, turn.schema
        targets: List[Tuple[Optional[Table], str]] = []

        for m in _DOTTED_RE.finditer(text):
            table = schema.get_table(m.group("table"))
            if table is None:
                return _Outcome(self._no_table(m.group("table"), schema))
            targets.append((table, m.group("column")))

        if not targets:
            m = _REMOVE_COL_FROM_RE.match(text)
            if m:
                table_token = m.group("table")
                if table_token in _ANAPHORIC_WORDS:
                    table = next(iter(self._context_tables(turn)), None)
                else:
                    table = schema.get_table(table_token)
                if table is None:
                    return _Outcome(self._no_table(table_token, schema))
                targets = [(table, c) for c in split_name_list(m.group("cols"))]
            else:
                m = _REMOVE_COL_RE.match(text)
                if m:
                    targets = [(None, c) for c in split_name_list(m.group("cols"))]
                else:
                    slot, _ = self._slot_table(turn)
                    last = [c.get("name") for c in turn.context.last_args.get("columns", [])]
                    targets = [(slot, c) for c in last if c]
        if not targets:
            return _clarify("Which column should I remove?", "remove phone from customers")

        removed, stripped = [], 0
        for table, column_name in targets:
            owner, column, error = self._locate_column(turn, column_name, table)
            if error:
                return _Outcome(error)
            stripped += schema.remove_column(owner.name, column.name)
            removed.append((owner.name, column.name))

        response = "Removed {0}.".format(", ".join("**{0}.{1}**".format(t, c) for t, c in removed))
        if stripped:
            response += " Cleared {0} foreign key{1} that pointed at it.".format(stripped, _s(stripped))
        return _Outcome(response, changed=True, touched=[t for t, _ in removed],
                        args={"columns": [{"name": c} for _, c in removed]})

    def _rename_column(self, turn: _Turn) -> _Outcome:
        for regex in _RENAME_COLUMN_RES:
            m = regex.search(turn.text)
            if m:
                break
        else:
            return _clarify("Which column should I rename, and to what?", "rename email to email_address in users")

        table = None
        table_name = m.groupdict().get("table")
        if table_name:
            table = turn.schema.get_table(table_name)
            if table is None:
                return _Outcome(self._no_table(table_name, turn.schema))
        owner, column, error = self._locate_column(turn, m.group("column"), table)
        if error:
            return _Outcome(error)
        return self._apply_column_rename(turn, owner, column, m.group("new"))

    def _apply_column_rename(self, turn: _Turn, table: Table, column: Column, new_name: str) -> _Outcome:
        new_name = normalize_identifier(new_name)
        if column.name.lower() == new_name:
            return _Outcome("**{0}.{1}** already has that name.".format(table.name, column.name))
        if table.get_column(new_name, fuzzy=False) is not None:
            return _Outcome("**{0}** already has a column named **{1}**.".format(table.name, new_name))
        old_name = column.name
        rewritten = turn.schema.rename_column(table.name, old_name, new_name)
        response = "Renamed **{0}.{1}** to **{2}**.".format(table.name, old_name, new_name)
        if rewritten:
            response += " Updated {0} foreign key{1}.".format(rewritten, _s(rewritten))
        return _Outcome(response, changed=True, touched=[table.name])

    # =====================================================
    # Tables
    # =====================================================
    def _remove_table(self, turn: _Turn) -> _Outcome:
        m = _REMOVE_TABLE_RE.match(turn.text)
        phrase = m.group("rest") if m else turn.text
        tables, missing = self._tables_from_phrase(turn, phrase)
        if missing and not tables:
            return _Outcome(self._no_table(missing[0], turn.schema))
        if not tables:
            return _clarify("Which table should I delete?", "delete the logs table")

        names, stripped = [], 0
        for table in tables:
            names.append(table.name)
            stripped += turn.schema.remove_table(table.name)
        response = "Deleted table{0} {1}.".format(_s(len(names)), names_list(names))
        if stripped:
            response += " Removed {0} foreign key{1} that referenced {2}.".format(
                stripped, _s(stripped), "it" if len(names) == 1 else "them")
        if missing:
            response += " Not found: {0}.".format(", ".join(missing))
        return _Outcome(response, changed=True, forgotten=names)

    def _rename_table(self, turn: _Turn) -> _Outcome:
        for regex in _RENAME_TABLE_RES:
            m = regex.search(turn.text)
            if m:
                break
        else:
            return _clarify("Which table should I rename, and to what?", "rename users to customers")

        old, new = m.group("old"), normalize_identifier(m.group("new"))
        if old in _ANAPHORIC_WORDS:
            table = next(iter(self._context_tables(turn)), None)
        else:
            table = turn.schema.get_table(old)
        if table is None:
            # "rename email to email_address": a unique column, not a table
            owner, column, error = self._locate_column(turn, old, None)
            if column is not None:
                return self._apply_column_rename(turn, owner, column, new)
            return _Outcome(self._no_table(old, turn.schema))

        if not new:
            return _clarify("What should the new name be?", "rename users to customers")
        clash = turn.schema.get_table(new, fuzzy=False)
        if clash is not None and clash is not table:
            return _Outcome("There is already a table named **{0}**.".format(clash.name))
        if table.name == new:
            return _Outcome("**{0}** already has that name.".format(table.name))

        old_name = table.name
        rewritten = turn.schema.rename_table(old_name, new)
        response = "Renamed table **{0}** to **{1}**.".format(old_name, new)
        if rewritten:
            response += " Updated {0} foreign key reference{1}.".format(rewritten, _s(rewritten))
        return _Outcome(response, changed=True, touched=[new], renamed=[(old_name, new)])

    # =====================================================
    # Relationships
    # =====================================================
    @staticmethod
    def _fk_column_type(target: Table) -> str:
        pks = target.primary_keys()
        pk_type = pks[0].type.upper() if len(pks) == 1 else "INTEGER"
        return {"SERIAL": "INTEGER", "BIGSERIAL": "BIGINT", "SMALLSERIAL": "SMALLINT"}.get(pk_type, pk_type)

    def _fk_operands(self, turn: _Turn):
        """-> (source table name, source column or None, target table name, target column or None, flippable)"""
        text = turn.text
        m = _REFERENCES_RE.search(text)
        if m:
            return m.group("table"), m.group("column"), m.group("target"), m.group("target_column"), False
        m = _HAS_MANY_RE.search(text)
        if m:
            return m.group("child"), None, m.group("parent"), None, False
        m = _BELONGS_TO_RE.search(text)
        if m:
            return m.group("child"), None, m.group("parent"), None, False
        m = _LINK_PAIR_RE.search(text) or _BETWEEN_RE.search(text)
        if m:
            return m.group("a"), None, m.group("b"), None, True
        return None

    def _add_fk(self, turn: _Turn) -> _Outcome:
        operands = self._fk_operands(turn)
        if operands is None:
            return _clarify("Which tables should I link?", "link orders to users")
        source_name, column_name, target_name, target_column, flippable = operands
        schema = turn.schema

        source = schema.get_table(source_name)
        if source is None:
            return _Outcome(self._no_table(source_name, schema))
        target = schema.get_table(target_name)
        if target is None:
            return _Outcome(self._no_table(target_name, schema))

        if column_name is None:
            column_name = singularize(target.name) + "_id"
            reverse_name = singularize(source.name) + "_id"
            if (flippable and source is not target and not source.has_column(column_name)
                    and target.has_column(reverse_name)):
                source, target = target, source
                column_name = reverse_name

        if target_column is None:
            target_column = target_column_for(target)
        elif target.get_column(target_column, fuzzy=False) is None:
            return _Outcome(self._no_column(target_column, target))

        column = source.get_column(column_name, fuzzy=False)
        created = False
        if column is None:
            column = Column(name=normalize_identifier(column_name), type=self._fk_column_type(target))
            source.columns.append(column)
            created = True

        fk = ForeignKey(target.name, target_column)
        if column.foreign_key == fk:
            return _Outcome("**{0}.{1}** already references **{2}.{3}**.".format(
                source.name, column.name, target.name, target_column), ok=True, touched=[source.name, target.name])

        previous = column.foreign_key
        column.foreign_key = fk
        response = "Linked **{0}.{1}** → **{2}.{3}**.".format(source.name, column.name, target.name, target_column)
        if created:
            response += " Created column **{0}** ({1}) on **{2}**.".format(column.name, column.type, source.name)
        if previous is not None:
            response += " It used to reference **{0}.{1}**.".format(previous.table, previous.column)
        return _Outcome(response, changed=True, touched=[source.name, target.name])

    def _add_fks_auto(self, turn: _Turn) -> _Outcome:
        restrict = None
        if has_anaphora(turn.text):
            context_tables = self._context_tables(turn)
            if context_tables:
                restrict = [t.name for t in context_tables]
        else:
            mentioned = self._mentioned_tables(turn.text, turn.schema)
            if mentioned:
                restrict = [t.name for t in mentioned]
        if not turn.schema.tables:
            return _clarify("There are no tables to link yet.", "create tables users, orders")

        wired = auto_wire_foreign_keys(turn.schema, source_tables=restrict)
        scope = restrict or turn.schema.table_names()
        if wired:
            touched = []
            for relation in wired:
                for name in (relation.source_table, relation.target_table):
                    if name not in touched:
                        touched.append(name)
            lines = ["Added {0} relationship{1}:".format(len(wired), _s(len(wired)))]
            lines.extend("- " + r.describe() for r in wired)
            return _Outcome("\n".join(lines), changed=True, touched=touched)

        existing = existing_relations(turn.schema, restrict)
        if existing:
            lines = ["These tables are already linked:"]
            lines.extend("- " + r.describe() for r in existing)
            return _Outcome("\n".join(lines), ok=True, touched=list(scope))
        return _clarify("I couldn't find any `*_id` columns in {0} that match another table.".format(
            names_list(list(scope))), "link orders to users")

    def _remove_fk(self, turn: _Turn) -> _Outcome:
        schema, text = turn.schema, turn.text
        cleared: List[Tuple[str, str]] = []

        def clear(table: Table, column: Column):
            if column.foreign_key is not None:
                column.foreign_key = None
                cleared.append((table.name, column.name))

        dotted = list(_DOTTED_RE.finditer(text))
        if dotted:
            for m in dotted:
                table = schema.get_table(m.group("table"))
                if table is None:
                    return _Outcome(self._no_table(m.group("table"), schema))
                column = table.get_column(m.group("column"))
                if column is None:
                    return _Outcome(self._no_column(m.group("column"), table))
                clear(table, column)
        else:
            tables = self._mentioned_tables(text, schema)
            if not tables and has_anaphora(text):
                tables = self._context_tables(turn)
            if len(tables) >= 2:
                names = {t.name.lower() for t in tables}
                for table in tables:
                    for column in table.foreign_keys():
                        if column.foreign_key.table.lower() in names:
                            clear(table, column)
            elif len(tables) == 1:
                table = tables[0]
                tokens = [t for t in extract_identifiers(text) if match_exact_or_inflected([table], t) is None]
                columns = [table.get_column(t, fuzzy=False) for t in tokens]
                columns = [c for c in columns if c is not None]
                for column in columns or table.foreign_keys():
                    clear(table, column)
            elif re.search(r"\ball\b|\bevery\b", text):
                for table in schema.tables:
                    for column in table.foreign_keys():
                        clear(table, column)
            else:
                return _clarify("Which relationship should I remove?",
                                "remove the relationship between orders and users")

        if not cleared:
            return _Outcome("There was no foreign key to remove there.")
        touched = []
        for name, _ in cleared:
            if name not in touched:
                touched.append(name)
        return _Outcome("Removed foreign key{0} on {1}.".format(
            _s(len(cleared)), ", ".join("**{0}.{1}**".format(t, c) for t, c in cleared)),
            changed=True, touched=touched)

    # =====================================================
    # Constraints, types, colours
    # =====================================================
    def _constraint_target(self, turn: _Turn, example: str):
        table, column, error = self._column_target(turn, _CONSTRAINT_WORDS)
        if error:
            return None, None, _Outcome(error)
        if column is None:
            return None, None, _clarify("Which column do you mean?", example)
        return table, column, None

    def _set_pk(self, turn: _Turn) -> _Outcome:
        table, column, failure = self._constraint_target(turn, "set sku as primary key in products")
        if failure:
            return failure
        pks = table.primary_keys()
        if column.is_primary_key and len(pks) == 1:
            return _Outcome("**{0}.{1}** is already the primary key.".format(table.name, column.name), ok=True,
                            touched=[table.name])
        for other in table.columns:
            other.is_primary_key = False
        column.is_primary_key = True
        column.is_nullable = False
        response = "**{0}.{1}** is now the primary key of **{0}**.".format(table.name, column.name)
        previous = [c.name for c in pks if c is not column]
        if previous:
            response += " ({0} no longer {1}.)".format(", ".join(previous), "is" if len(previous) == 1 else "are")
        return _Outcome(response, changed=True, touched=[table.name], args={"column": column.name})

    def _set_unique(self, turn: _Turn) -> _Outcome:
        table, column, failure = self._constraint_target(turn, "make email unique in users")
        if failure:
            return failure
        unique = not _UNSET_UNIQUE_RE.search(turn.text)
        if column.is_unique == unique:
            return _Outcome("**{0}.{1}** is already {2}.".format(
                table.name, column.name, "unique" if unique else "not unique"), ok=True, touched=[table.name])
        column.is_unique = unique
        return _Outcome("**{0}.{1}** is {2} unique.".format(table.name, column.name, "now" if unique else "no longer"),
                        changed=True, touched=[table.name], args={"column": column.name})

    def _set_nullable(self, turn: _Turn) -> _Outcome:
        table, column, failure = self._constraint_target(turn, "make phone optional in customers")
        if failure:
            return failure
        if column.is_primary_key:
            return _Outcome("**{0}.{1}** is the primary key, so it can't be nullable.".format(table.name, column.name))
        if column.is_nullable:
            return _Outcome("**{0}.{1}** is already optional.".format(table.name, column.name), ok=True,
                            touched=[table.name])
        column.is_nullable = True
        return _Outcome("**{0}.{1}** is now optional (NULL allowed).".format(table.name, column.name),
                        changed=True, touched=[table.name], args={"column": column.name})

    def _set_required(self, turn: _Turn) -> _Outcome:
        table, column, failure = self._constraint_target(turn, "make name required in customers")
        if failure:
            return failure
        if not column.is_nullable:
            return _Outcome("**{0}.{1}** is already required.".format(table.name, column.name), ok=True,
                            touched=[table.name])
        column.is_nullable = False
        return _Outcome("**{0}.{1}** is now required (NOT NULL).".format(table.name, column.name),
                        changed=True, touched=[table.name], args={"column": column.name})

    def _change_type(self, turn: _Turn) -> _Outcome:
        new_type, word = None, None
        for regex in _TYPE_TARGET_RES:
            m = regex.search(turn.text)
            if m:
                word = m.group("type")
                new_type = canonical_type(word, m.group("params"))
                if new_type is not None:
                    break
        if new_type is None:
            new_type = turn.context.last_args.get("type")
        if new_type is None:
            if word and word not in _CONSTRAINT_WORDS:
                return _clarify("I don't know the type **{0}**.".format(word), "change price to decimal")
            return _clarify("Which type should the column get?", "change price to decimal(12,2)")

        table, column, error = self._column_target(turn, _CONSTRAINT_WORDS | _TYPE_WORDS)
        if error:
            return _Outcome(error)
        if column is None:
            return _clarify("Which column should change type?", "change price to decimal")
        if column.type == new_type:
            return _Outcome("**{0}.{1}** is already {2}.".format(table.name, column.name, new_type), ok=True,
                            touched=[table.name])
        old_type = column.type
        column.type = new_type
        return _Outcome("Changed **{0}.{1}** from {2} to **{3}**.".format(table.name, column.name, old_type, new_type),
                        changed=True, touched=[table.name], args={"column": column.name, "type": new_type})

    def _color(self, turn: _Turn) -> _Outcome:
        hex_match = _HEX_RE.search(turn.raw.lower())
        color, word = None, None
        if hex_match:
            color = hex_match.group(0)
        else:
            named = knowledge_base.named_colors()
            for token in re.findall(r"[a-z]+", turn.text):
                if token in named:
                    color, word = named[token], token
                    break
        if color is None:
            color = turn.context.last_args.get("color")
        if color is None:
            return _clarify("Which colour should I use?", "color users blue")

        if re.search(r"\b(?:category|group)\b", turn.text):
            category = self._category_in_text(turn)
            if category is None:
                return _clarify("Which category should I colour?", "color the Sales category green")
            category.color = color
            return _Outcome("Category **{0}** is now {1}.".format(category.name, color), changed=True,
                            args={"color": color})

        tables = self._mentioned_tables(turn.text, turn.schema, exclude=[word] if word else ())
        if not tables:
            tables = self._context_tables(turn) if has_anaphora(turn.text) else []
        if not tables:
            return _clarify("Which table should I colour?", "color users blue")
        for table in tables:
            table.color = color
        return _Outcome("Coloured {0} {1}.".format(names_list([t.name for t in tables]), word or color),
                        changed=True, touched=[t.name for t in tables], args={"color": color})

    # =====================================================
    # Categories
    # =====================================================
    def _category_in_text(self, turn: _Turn) -> Optional[Category]:
        squashed = normalize_identifier(turn.text)
        for category in turn.schema.categories:
            if normalize_identifier(category.name) and normalize_identifier(category.name) in squashed:
                return category
        for token in extract_identifiers(turn.text):
            if token in ("category", "group"):
                continue
            category = turn.schema.get_category(token)
            if category is not None:
                return category
        return None

    def _ensure_category(self, schema: Schema, phrase: str) -> Tuple[Category, bool]:
        """Existing category by id / name, or a new one. Returns (category, created)."""
        phrase = re.sub(r"^(?:the|a|an|new)\s+", "", phrase.strip())
        category = schema.get_category(phrase)
        if category is not None:
            return category, False
        name = _display_name(phrase)
        color, icon, description = None, None, None
        probe = Category(id="", name=name)
        for group in self.matcher.groups:
            if self.matcher.category_matches_group(probe, group):
                color, icon, description = group.get("color"), group.get("icon"), group.get("description")
                break
        if color is None:
            palette = knowledge_base.category_palette() or [DEFAULT_CATEGORY_COLOR]
            color = palette[len(schema.categories) % len(palette)]
        category = Category(id=schema.new_category_id(name), name=name, color=color,
                            description=description, icon=icon)
        schema.add_category(category)
        logger.debug("[EXEC] Created category %s (%s)", category.name, category.id)
        return category, True

    def _assign_category(self, turn: _Turn) -> _Outcome:
        text = turn.text
        if _UNASSIGN_RE.search(text):
            m = _UNASSIGN_TABLES_RE.match(text)
            phrase = m.group("tables") if m else text
            tables, missing = self._tables_from_phrase(turn, phrase)
            if not tables:
                if missing:
                    return _Outcome(self._no_table(missing[0], turn.schema))
                return _clarify("Which table should leave its category?", "remove orders from the Sales category")
            for table in tables:
                table.category = None
            return _Outcome("{0} no longer {1} a category.".format(
                names_list([t.name for t in tables]), "has" if len(tables) == 1 else "have"),
                changed=True, touched=[t.name for t in tables])

        for regex in _ASSIGN_RES:
            m = regex.match(text)
            if m:
                break
        else:
            m = None
        if m is None:
            category_id = turn.context.last_args.get("category")
            category = turn.schema.get_category(category_id) if category_id else None
            tables = self._mentioned_tables(text, turn.schema)
            if category is None or not tables:
                return _clarify("Which table goes into which category?", "move orders to the Sales category")
            created = False
        else:
            tables, missing = self._tables_from_phrase(turn, m.group("tables"))
            if missing:
                return _Outcome(self._no_table(missing[0], turn.schema))
            if not tables:
                return _clarify("Which table goes into that category?", "move orders to the Sales category")
            category, created = self._ensure_category(turn.schema, m.group("cat"))

        for table in tables:
            table.category = category.id
        response = "Moved {0} to category **{1}**.".format(names_list([t.name for t in tables]), category.name)
        if created:
            response = "Created category **{0}**. ".format(category.name) + response
        return _Outcome(response, changed=True, touched=[t.name for t in tables], args={"category": category.id})

    def _create_category(self, turn: _Turn) -> _Outcome:
        for regex in _CREATE_CATEGORY_RES:
            m = regex.match(turn.text)
            if m and m.group("name").strip():
                break
        else:
            return _clarify("What should the category be called?", "create category Auth with users, sessions")

        name_phrase = m.group("name").strip()
        existing = next((c for c in turn.schema.categories
                         if normalize_identifier(c.name) == normalize_identifier(name_phrase)), None)
        members, missing = [], []
        if m.group("members"):
            members, missing = self._resolve_table_names(
                turn.schema, [n for n in split_name_list(m.group("members")) if n not in _ANAPHORIC_WORDS])
            if has_anaphora(m.group("members")):
                members.extend(t for t in self._context_tables(turn) if t not in members)

        if existing is not None and not members:
            return _Outcome("Category **{0}** already exists.".format(existing.name))
        category, created = self._ensure_category(turn.schema, name_phrase)
        for table in members:
            table.category = category.id

        response = "Created category **{0}**.".format(category.name) if created else \
            "Category **{0}** already exists.".format(category.name)
        if members:
            response += " Added {0}.".format(names_list([t.name for t in members]))
        if missing:
            response += " Not found: {0}.".format(", ".join(missing))
        return _Outcome(response, changed=True, touched=[t.name for t in members], args={"category": category.id})

    def _remove_category(self, turn: _Turn) -> _Outcome:
        for regex in _REMOVE_CATEGORY_RES:
            m = regex.search(turn.text)
            if m:
                break
        else:
            return _clarify("Which category should I delete?", "delete the Sales category")
        phrase = re.sub(r"^(?:the|a|an)\s+", "", m.group("name").strip())
        category = turn.schema.get_category(phrase)
        if category is None:
            names = [c.name for c in turn.schema.categories]
            if not names:
                return _Outcome("There are no categories yet.")
            return _Outcome("I couldn't find a category **{0}**. Categories: {1}.".format(phrase, names_list(names)))
        members = [t.name for t in turn.schema.tables_in_category(category.id)]
        turn.schema.remove_category(category.id)
        response = "Deleted category **{0}**.".format(category.name)
        if members:
            response += " {0} {1} now uncategorized.".format(names_list(members), "is" if len(members) == 1 else "are")
        return _Outcome(response, changed=True, touched=members)

    def _auto_categorize(self, turn: _Turn) -> _Outcome:
        if not turn.schema.tables:
            return _clarify("There are no tables to categorize yet.", "create an e-commerce schema")
        result = self.categorizer.categorize(turn.schema)
        if not result.changed:
            loose = [t.name for t in turn.schema.tables if not t.category]
            if not loose:
                return _Outcome("Every table already has a category.", ok=True)
            return _Outcome("I couldn't find a good category for {0}. Try *move {1} to the Sales category*.".format(
                names_list(loose), loose[0]))
        lines = ["Organized {0} table{1} into categories:".format(len(result.assignments), _s(len(result.assignments)))]
        for category_name, tables in result.summary().items():
            lines.append("- **{0}**: {1}".format(category_name, ", ".join(tables)))
        return _Outcome("\n".join(lines), changed=True, schema=result.schema, touched=list(result.assignments))

    # =====================================================
    # Import, clear, reports
    # =====================================================
    def _import_sql(self, turn: _Turn) -> _Outcome:
        parsed = self.parser.parse(turn.raw)
        if not parsed:
            return _Outcome("Nothing parsed: I couldn't find a CREATE TABLE statement with columns.")
        imported, replaced = merge_tables(turn.schema, parsed)
        for table in imported:
            if turn.schema.categories:
                category = self.matcher.match_existing_category(table.name, turn.schema)
                if category is not None:
                    table.category = category.id
        names = [t.name for t in parsed]
        response = "Imported {0} table{1}: {2}.".format(len(names), _s(len(names)), names_list(names))
        if replaced:
            response += " Replaced the existing definition of {0}.".format(names_list(replaced))
        return _Outcome(response, changed=True, touched=names)

    def _clear(self, turn: _Turn) -> _Outcome:
        if not turn.schema.tables and not turn.schema.categories:
            return _Outcome("The schema is already empty.", ok=True, reset_context=True)
        count = len(turn.schema.tables)
        fresh = Schema(name=turn.schema.name, created_at=turn.schema.created_at)
        return _Outcome("Cleared the schema ({0} table{1} removed).".format(count, _s(count)),
                        changed=True, schema=fresh, reset_context=True)

    def _describe(self, turn: _Turn) -> _Outcome:
        tables = self._mentioned_tables(turn.text, turn.schema)
        if not tables and has_anaphora(turn.text):
            tables = self._context_tables(turn)
        if tables:
            return _Outcome(self.advisor.describe_tables(tables, turn.schema), ok=True,
                            touched=[t.name for t in tables])
        return _Outcome(self.advisor.describe_schema(turn.schema), ok=True)

    def _suggest(self, turn: _Turn) -> _Outcome:
        tables = self._mentioned_tables(turn.text, turn.schema)
        return _Outcome(self.advisor.suggest(turn.schema, tables[0] if tables else None), ok=True)

    @staticmethod
    def _unknown_text(text: str) -> str:
        return ("I'm not sure what you want me to do{0}. Try *create tables users, orders*, "
                "*add email to users*, *link them together* or type *help*.").format(
                    " with \"{0}\"".format(text.strip()) if text and text.strip() else "")

    def _unknown(self, turn: _Turn) -> _Outcome:
        return _Outcome(self._unknown_text(turn.raw))


def merge_tables(schema: Schema, tables: List[Table]) -> Tuple[List[Table], List[str]]:
    """
    Merge parsed tables into schema by case-insensitive name. A replaced
    table keeps its category, colour and display attributes. Dangling
    references are stripped afterwards. Returns (new tables, replaced names).
    """
    added, replaced = [], []
    for table in tables:
        existing = schema.get_table(table.name, fuzzy=False)
        if existing is None:
            schema.add_table(table)
            added.append(table)
            continue
        table.category = existing.category
        table.color = existing.color
        table.display = dict(existing.display)
        schema.tables[schema.tables.index(existing)] = table
        replaced.append(table.name)
    schema.repair()
    return added, replaced


_executor = None


def get_command_executor() -> CommandExecutor:
    global _executor
    if _executor is None:
        _executor = CommandExecutor()
    return _executor
