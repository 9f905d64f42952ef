# nlp_engine/intent_classifier.py
"""
==============================================================
INTENT CLASSIFIER - text -> schema command intent
==============================================================

Ordered cascade, first match wins. The order IS the behaviour:
relationship phrasing must be seen before generic "add", category
phrasing before table creation, "not required" before "required".

Stages:
0. pasted DDL                       -> import_sql
1. short conversational             -> greeting / thanks / bye / help / clear / stats
2. relationships                    -> remove_fk / add_fk / add_fks_auto
3. categories                       -> auto_categorize / assign_category /
                                       remove_category / create_table_in_category /
                                       create_category
4. edits                            -> rename_column / rename_table / set_pk /
                                       set_unique / set_nullable / set_required /
                                       color / change_type / remove_column /
                                       remove_table / optimize / suggest / describe
5. additions                        -> add_columns / add_column / create_tables /
                                       create_table
6. context fallback                 -> repeat last action on "them" / "same" / "also"
7. unknown

Examples:
- "Create tables users, products, orders"     -> create_tables
- "Create orders table with total, status"    -> create_table
- "Create posts table in Content category"    -> create_table_in_category
- "Add email column to customers"             -> add_column
- "link them together"                        -> add_fks_auto
- "orders belongs to users"                   -> add_fk
"""

import logging
import re
from collections import namedtuple
from typing import List, Optional, Tuple

from nlp_engine.column_spec_parser import TYPE_PARAMS as TYPE_PARAMS_GROUP, TYPE_WORD
from nlp_engine.context_memory import ConversationContext
from nlp_engine.identifier_extractor import has_anaphora, normalize_command
from schema_engine.ddl_parser import DDLParser
from schema_engine.template_library import get_template_library
from utils.first_match import FirstMatch, Rule

logger = logging.getLogger(__name__)

# =====================================================
# Intents
# =====================================================
CREATE_TABLES = "create_tables"
CREATE_TABLE = "create_table"
CREATE_TABLE_IN_CATEGORY = "create_table_in_category"
ADD_COLUMN = "add_column"
ADD_COLUMNS = "add_columns"
REMOVE_TABLE = "remove_table"
REMOVE_COLUMN = "remove_column"
RENAME_TABLE = "rename_table"
RENAME_COLUMN = "rename_column"
ADD_FK = "add_fk"
ADD_FKS_AUTO = "add_fks_auto"
REMOVE_FK = "remove_fk"
SET_PK = "set_pk"
SET_UNIQUE = "set_unique"
SET_NULLABLE = "set_nullable"
SET_REQUIRED = "set_required"
DESCRIBE = "describe"
CLEAR = "clear"
HELP = "help"
STATS = "stats"
GREETING = "greeting"
THANKS = "thanks"
BYE = "bye"
CHANGE_TYPE = "change_type"
COLOR = "color"
OPTIMIZE = "optimize"
SUGGEST = "suggest"
ASSIGN_CATEGORY = "assign_category"
CREATE_CATEGORY = "create_category"
REMOVE_CATEGORY = "remove_category"
AUTO_CATEGORIZE = "auto_categorize"
IMPORT_SQL = "import_sql"
UNKNOWN = "unknown"

ALL_INTENTS = [
    CREATE_TABLES, CREATE_TABLE, CREATE_TABLE_IN_CATEGORY, ADD_COLUMN, ADD_COLUMNS,
    REMOVE_TABLE, REMOVE_COLUMN, RENAME_TABLE, RENAME_COLUMN, ADD_FK, ADD_FKS_AUTO,
    REMOVE_FK, SET_PK, SET_UNIQUE, SET_NULLABLE, SET_REQUIRED, DESCRIBE, CLEAR, HELP,
    STATS, GREETING, THANKS, BYE, CHANGE_TYPE, COLOR, OPTIMIZE, SUGGEST, ASSIGN_CATEGORY,
    CREATE_CATEGORY, REMOVE_CATEGORY, AUTO_CATEGORIZE, IMPORT_SQL, UNKNOWN,
]

# Intents that mutate the schema (conversational / read-only ones excluded)
MUTATING_INTENTS = {
    CREATE_TABLES, CREATE_TABLE, CREATE_TABLE_IN_CATEGORY, ADD_COLUMN, ADD_COLUMNS,
    REMOVE_TABLE, REMOVE_COLUMN, RENAME_TABLE, RENAME_COLUMN, ADD_FK, ADD_FKS_AUTO,
    REMOVE_FK, SET_PK, SET_UNIQUE, SET_NULLABLE, SET_REQUIRED, CLEAR, CHANGE_TYPE, COLOR,
    ASSIGN_CATEGORY, CREATE_CATEGORY, REMOVE_CATEGORY, AUTO_CATEGORIZE, IMPORT_SQL,
}

# Actions that "same for X" / "them too" may repeat
REPEATABLE_INTENTS = {
    ADD_COLUMN, ADD_COLUMNS, SET_UNIQUE, SET_REQUIRED, SET_NULLABLE, COLOR, CHANGE_TYPE,
    ADD_FKS_AUTO, ASSIGN_CATEGORY, REMOVE_COLUMN,
}

# =====================================================
# Vocabulary
# =====================================================
NAME = r"[a-z_][a-z0-9_]*"
COL_WORD = r"(?:columns?|fields?|attributes?|properties|property)"
FK_WORD = r"(?:foreign\s+keys?|fks?|relationships?|relations?|links?|references?)"
CATEGORY_WORD = r"(?:category|group|section)"
# "category" followed by "column" / "table" names a thing, not a category
NOT_OBJECT = r"(?!\s+(?:columns?|fields?|attributes?|tables?)\b)"
TYPE_PARAMS = TYPE_PARAMS_GROUP + "?"
COLOR_WORD = (r"(?:red|orange|amber|yellow|lime|green|teal|cyan|blue|indigo|purple|violet|pink|"
              r"rose|gray|grey|black|white|brown)")
NOISE_TARGETS = {"schema", "database", "db", "diagram", "canvas", "model", "app", "application", "system"}

# A creation sentence ("create ...", "add a users table ...") never means a constraint edit
CREATION_RE = re.compile(
    r"^(?:create|build|generate|design|new\b|"
    r"(?:make|add|set\s+up)\s+(?:me\s+)?(?:a\s+|an\s+|the\s+)?(?:new\s+)?(?:" + NAME + r"\s+){0,3}tables?\b)"
)

Query = namedtuple("Query", ["text", "plain", "raw", "context"])

# (name, predicate, intent); predicates receive a Query
IntentRule = Rule


def _search(*patterns):
    compiled = [re.compile(p) for p in patterns]
    return lambda q: any(c.search(q.text) for c in compiled)


def _plain(*patterns):
    compiled = [re.compile(p) for p in patterns]
    return lambda q: any(c.search(q.plain) for c in compiled)


def _not_creation(predicate):
    return lambda q: not CREATION_RE.search(q.text) and predicate(q)


def _without_column_word(predicate):
    return lambda q: not _COL_WORD_RE.search(q.text) and predicate(q)


# =====================================================
# Stage 5 helpers (positional add/create logic)
# =====================================================
_ADD_VERB_RE = re.compile(r"^(?:also\s+|now\s+|then\s+)?(?:add|insert|include|append|put|give|attach)\b(?P<rest>.*)$")
_CREATE_VERB_RE = re.compile(
    r"^(?:also\s+|now\s+|then\s+)?(?:create|make|build|generate|add|design|set\s+up|new|"
    r"i\s+need|give\s+me|start)\b(?P<rest>.*)$")
_NEEDS_RE = re.compile(r"^(?!i\b|we\b|you\b|they\b)(?P<target>" + NAME + r")(?:\s+tables?)?\s+(?:needs?|should\s+have|requires?|must\s+have)\s+(?P<rest>.+)$")
_COL_WORD_RE = re.compile(r"\b" + COL_WORD + r"\b")
_PLURAL_COL_WORD_RE = re.compile(r"\b(?:columns|fields|attributes|properties)\b")
_TABLE_WORD_RE = re.compile(r"\btables?\b")
_TARGET_RE = re.compile(r"\b(?:to|into|on|in|for)\s+(?:the\s+|my\s+|our\s+)?(?P<target>" + NAME + r")")
_HEAD_END_RE = re.compile(r"\b(?:with|having|containing|including|that\s+(?:has|have)|where)\b")


def add_column_kind(text: str) -> Optional[str]:
    """add_column / add_columns when the sentence adds columns, else None."""
    m = _NEEDS_RE.match(text)
    if m:
        return ADD_COLUMNS if _is_plural_operand(m.group("rest")) else ADD_COLUMN

    m = _ADD_VERB_RE.match(text)
    if not m:
        return None
    rest = m.group("rest")
    col = _COL_WORD_RE.search(rest)
    tbl = _TABLE_WORD_RE.search(rest)
    target = _TARGET_RE.search(rest)
    if target and target.group("target") in NOISE_TARGETS:
        target = None

    if col and (tbl is None or col.start() < tbl.start()):
        operand = rest[:col.end()]
    elif tbl is None and target is not None:
        operand = rest[:target.start()]
    elif tbl is not None and target is not None and target.start() < tbl.start():
        operand = rest[:target.start()]
    else:
        return None
    return ADD_COLUMNS if _is_plural_operand(operand) else ADD_COLUMN


def _is_plural_operand(operand: str) -> bool:
    return bool(_PLURAL_COL_WORD_RE.search(operand) or "," in operand or "&" in operand
                or re.search(r"\band\b", operand))


def creation_kind(text: str) -> Optional[str]:
    """create_tables / create_table for creation phrasing, else None."""
    m = _CREATE_VERB_RE.match(text)
    if not m:
        return None
    rest = m.group("rest")
    end = _HEAD_END_RE.search(rest)
    head = rest[:end.start()] if end else rest
    if re.search(r"\btables\b", head) or "," in head or "&" in head or re.search(r"\band\b", head):
        return CREATE_TABLES
    if not re.search(r"\btable\b", head) and get_template_library().domain_name(head):
        return CREATE_TABLES
    if re.search(r"\btable\b", head) or re.search(r"\b" + NAME, head):
        return CREATE_TABLE
    return None


# =====================================================
# Rules
# =====================================================

def _is_ddl(q) -> bool:
    return DDLParser.looks_like_ddl(q.raw)


def _auto_categorize(q) -> bool:
    text = q.text
    explicit_target = re.search(
        r"\b(?:into|to|under|in)\s+(?:the\s+)?(?!groups\b|categories\b)[a-z0-9_&\s-]*?\s*(?:category|group)\b", text)
    if explicit_target:
        return False
    return bool(
        re.search(r"\bauto(?:matic(?:ally)?)?[-\s]?(?:categori[sz]|group|organi[sz]|classif|cluster)", text)
        or re.search(r"^(?:categori[sz]e|organi[sz]e|group|classify|cluster|sort)\b.*\b(?:tables|everything|all|them|schema)\b", text)
        or re.search(r"^(?:categori[sz]e|organi[sz]e|classify)(?:\s+(?:my|the|all|everything|them|tables|schema|automatically))*$", text)
        or re.search(r"\b(?:create|make|generate|suggest|detect)\s+(?:the\s+)?categories\s+(?:automatically|for\s+(?:me|all|everything|the\s+tables|my\s+tables))", text)
        or re.search(r"\bgroup\s+(?:the\s+|my\s+)?tables\b", text)
    )


def _context_repeat(q) -> bool:
    ctx = q.context
    if ctx is None or ctx.last_action not in REPEATABLE_INTENTS:
        return False
    return has_anaphora(q.text) or bool(re.search(r"^(?:same|again|also|now|and)\b|\bsame\s+for\b|\bas\s+well\b", q.text))


def build_intent_rules() -> List[IntentRule]:
    """The ordered rule list. Position in this list is priority."""
    return [
        # ---- Stage 0: pasted DDL
        IntentRule("ddl_paste", _is_ddl, IMPORT_SQL),

        # ---- Stage 1: short conversational
        IntentRule("greeting", _plain(
            r"^(?:hi|hello|hey|hiya|howdy|yo|greetings|good\s+(?:morning|afternoon|evening))"
            r"(?:\s+(?:there|again|assistant|bot|everyone))?$"), GREETING),
        IntentRule("thanks", _plain(
            r"^(?:(?:ok(?:ay)?|great|awesome|perfect|nice|cool)[,\s]+)?(?:thanks?(?:\s+you)?|thx|ty|cheers|"
            r"much\s+appreciated)(?:\s+(?:a\s+lot|so\s+much|very\s+much))?(?:[,\s]+\w+)?$"), THANKS),
        IntentRule("bye", _plain(
            r"^(?:bye|goodbye|good\s+bye|see\s+(?:you|ya)(?:\s+later)?|cya|later|exit|quit|"
            r"that'?s\s+all|i'?m\s+done|done\s+for\s+(?:now|today))(?:[,\s]+\w+)?$"), BYE),
        IntentRule("help", _search(
            r"^(?:help(?:\s+me)?|what\s+can\s+(?:you|i)\s+do|what\s+commands.*|(?:show\s+(?:me\s+)?(?:the\s+)?)?commands|"
            r"usage|how\s+(?:does\s+this\s+work|do\s+i\s+use\s+(?:this|you)))\??$"), HELP),
        IntentRule("clear", _search(
            r"^(?:clear|reset|wipe|erase|empty)(?:\s+(?:the|my|all|everything))*"
            r"(?:\s+(?:schema|database|diagram|canvas|board|tables|everything|all))?$",
            r"^(?:delete|remove|drop)\s+(?:all|every|everything)(?:\s+the)?(?:\s+tables?)?$",
            r"^start\s+(?:over|fresh|from\s+scratch)$",
            r"^(?:new|fresh|empty)\s+schema$"), CLEAR),
        IntentRule("stats", _search(
            r"^(?:show\s+)?(?:me\s+)?(?:the\s+)?(?:schema\s+)?(?:stats|statistics|summary|overview|metrics)$",
            r"\bhow\s+many\s+(?:tables|columns|relationships|foreign\s+keys|categories)\b"), STATS),

        # ---- Stage 2: relationships
        IntentRule("remove_fk", _search(
            r"\b(?:remove|delete|drop|break|clear)\b.*\b" + FK_WORD + r"\b(?!\s+" + COL_WORD + r")",
            r"^(?:unlink|disconnect)\b"), REMOVE_FK),
        IntentRule("add_fk_link_pair", _search(
            r"^(?:link|connect|relate|associate)\s+(?!them\b|those\b|these\b|all\b|everything\b|tables\b|the\s+tables\b|together\b|up\b)"
            r"(?:the\s+)?" + NAME + r"(?:\." + NAME + r")?(?:\s+tables?)?\s+(?:to|with|and)\s+(?:the\s+)?" + NAME), ADD_FK),
        IntentRule("add_fk_between", _search(
            r"\b(?:add|create|make|set\s+up)\s+(?:a\s+|an\s+)?(?:foreign\s+key|fk|relationship|relation|reference|link)\s+"
            r"(?:from\s+|between\s+|on\s+)?" + NAME + r"(?:\." + NAME + r")?\s+(?:to|and|references?|->|pointing\s+to)\s+(?:the\s+)?" + NAME), ADD_FK),
        IntentRule("add_fk_references", _search(
            r"\b" + NAME + r"\." + NAME + r"\b.*\b(?:references?|points?\s+to|foreign\s+key\s+to|fk\s+to|->)\s+(?:the\s+)?" + NAME), ADD_FK),
        IntentRule("add_fk_belongs_to", _search(
            r"\b" + NAME + r"\s+belongs?\s+to\s+(?:an?\s+|the\s+)?" + NAME + r"\b(?!\s+(?:category|group))"), ADD_FK),
        IntentRule("add_fk_has_many", _search(
            r"\b" + NAME + r"\s+(?:has|have)\s+(?:many|multiple|several|one|an?)\s+" + NAME + r"\b(?!\s+" + COL_WORD + r")"), ADD_FK),
        IntentRule("add_fks_auto", _search(
            r"^(?:link|connect|relate|wire|join)\s+(?:up\s+)?(?:them|those|these|all|everything|the\s+tables|all\s+(?:the\s+)?tables|tables|together)\b",
            r"\b(?:add|create|detect|infer|generate|set\s+up|find|build|wire\s+up|make)\s+(?:the\s+|all\s+(?:the\s+)?|missing\s+|any\s+|some\s+)*" + FK_WORD + r"\b",
            r"\bauto[-\s]?(?:link|wire|detect\s+" + FK_WORD + r")\b",
            r"\blink\s+(?:them\s+|everything\s+|it\s+)?(?:all\s+)?together\b"), ADD_FKS_AUTO),

        # ---- Stage 3: categories
        IntentRule("auto_categorize", _auto_categorize, AUTO_CATEGORIZE),
        IntentRule("unassign_category", _search(
            r"\b(?:remove|take|move|unassign|detach)\b.*\bfrom\s+(?:the\s+|its\s+|their\s+)?(?:[a-z0-9_&-]+\s+){0,3}" + CATEGORY_WORD + r"\b",
            r"\b(?:uncategori[sz]e|unassign|ungroup)\b"), ASSIGN_CATEGORY),
        IntentRule("assign_category", _not_creation(_without_column_word(_search(
            r"\b(?:move|assign|put|add|place|set|group|categori[sz]e|tag|file|mark)\b.*\b(?:to|in|into|under|as)\s+(?:the\s+)?(?:[a-z0-9_&-]+\s+){0,3}?"
            + CATEGORY_WORD + r"\b" + NOT_OBJECT,
            r"\b(?:set|change)\s+(?:the\s+)?(?:category|group)\s+(?:of|for)\b",
            r"\b(?:set|change|update)\s+(?:the\s+)?" + NAME + r"(?:\s+tables?)?(?:'s)?\s+(?:category|group)\s+(?:to|as)\b",
            r"^move\s+(?:the\s+)?" + NAME + r"(?:\s+tables?)?(?:\s*(?:,|and)\s*" + NAME + r")*\s+(?:to|into|under)\s+(?:the\s+)?" + NAME))),
            ASSIGN_CATEGORY),
        IntentRule("remove_category", _search(
            r"\b(?:remove|delete|drop|dissolve|get\s+rid\s+of)\s+(?:the\s+)?(?:[a-z0-9_&-]+\s+){0,3}?" + CATEGORY_WORD
            + r"\b" + NOT_OBJECT + r"(?!.*\bfrom\b)"), REMOVE_CATEGORY),
        IntentRule("create_table_in_category", _search(
            r"^(?:create|make|add|build|generate|new)\b.*\btables?\b.*\b(?:in|into|under|inside|within|to)\s+(?:the\s+)?(?:[a-z0-9_&-]+\s+){0,3}?"
            + CATEGORY_WORD + r"\b",
            r"^(?:create|make|build|generate|new)\b.*\b(?:in|into|under|inside|within)\s+(?:the\s+)?(?:[a-z0-9_&-]+\s+){0,3}?"
            + CATEGORY_WORD + r"\b"), CREATE_TABLE_IN_CATEGORY),
        IntentRule("create_category", _search(
            r"^(?:create|make|add|new|define|set\s+up|start)\s+(?:a\s+|an\s+|the\s+)?(?:new\s+)?"
            + CATEGORY_WORD + r"\b" + NOT_OBJECT,
            r"^(?:create|make|add|new|define|set\s+up|start)\s+(?:a\s+|an\s+|the\s+)?(?:new\s+)?(?:[a-z0-9_&-]+\s+){1,4}?"
            + CATEGORY_WORD + r"(?:\s+(?:with|for|containing|including)\b.*)?$"), CREATE_CATEGORY),

        # ---- Stage 4: edits
        IntentRule("rename_column", _search(
            r"\brename\s+(?:the\s+)?" + COL_WORD + r"\b",
            r"\brename\s+(?:the\s+)?" + NAME + r"\." + NAME + r"\b",
            r"\brename\s+(?:the\s+)?" + NAME + r"\s+(?:" + COL_WORD + r"\s+)?(?:in|on|of|from)\s+(?:the\s+)?" + NAME + r"\b",
            r"\brename\s+(?:the\s+)?" + NAME + r"\s+(?:" + COL_WORD + r"\s+)?to\s+" + NAME + r"\s+(?:in|on|of|for)\s+(?:the\s+)?" + NAME + r"\b",
            r"\bchange\s+(?:the\s+)?(?:column|field)\s+name\b"), RENAME_COLUMN),
        IntentRule("rename_table", _search(
            r"\b(?:rename|re-name)\b",
            r"\bchange\s+(?:the\s+)?(?:table\s+)?name\s+of\b"), RENAME_TABLE),
        IntentRule("set_pk", _not_creation(_search(r"\b(?:primary\s+key|pk)\b")), SET_PK),
        IntentRule("set_unique", _not_creation(_search(
            r"\bunique\b", r"\bno\s+duplicates?\b", r"\bdistinct\s+values\b")), SET_UNIQUE),
        IntentRule("set_nullable", _not_creation(_search(
            r"(?<!non-)(?<!non )\bnullable\b", r"\boptional\b", r"\ballow(?:s|ing)?\s+nulls?\b", r"\bnot\s+required\b",
            r"\bcan\s+be\s+(?:null|empty|blank)\b")), SET_NULLABLE),
        IntentRule("set_required", _not_creation(_search(
            r"\brequired\b", r"\bnot\s+null\b", r"\bmandatory\b", r"\bnon[-\s]?nullable\b",
            r"\b(?:cannot|can'?t)\s+be\s+(?:null|empty|blank)\b")), SET_REQUIRED),
        IntentRule("color", _not_creation(_search(
            r"\b(?:colou?r|paint|highlight)\b",
            r"#[0-9a-f]{3,6}\b",
            r"^(?:make|set|turn|change)\b.*\b(?:to\s+)?" + COLOR_WORD + r"$")), COLOR),
        IntentRule("change_type", _not_creation(_search(
            r"\b(?:change|set|make|convert|alter|modify|update)\b.*\btype\b(?!\s+" + COL_WORD + r")",
            r"\b(?:change|convert|alter|modify|make|set|update)\s+.*\b(?:to|as|into)\s+(?:an?\s+)?" + TYPE_WORD + r"\b" + TYPE_PARAMS + r"$",
            r"^(?:make|set)\s+(?:the\s+)?" + NAME + r"(?:\." + NAME + r")?\s+(?:an?\s+)?" + TYPE_WORD + TYPE_PARAMS + r"$")), CHANGE_TYPE),
        IntentRule("remove_column", _search(
            r"\b(?:remove|delete|drop|get\s+rid\s+of)\b.*\b" + COL_WORD + r"\b",
            r"\b(?:remove|delete|drop)\s+(?:the\s+)?" + NAME + r"\." + NAME + r"\b",
            r"\b(?:remove|delete|drop|get\s+rid\s+of)\s+(?:the\s+)?" + NAME + r"(?:\s*(?:,|and)\s*" + NAME + r")*\s+from\s+(?:the\s+)?" + NAME + r"\b"),
            REMOVE_COLUMN),
        IntentRule("remove_table", _search(r"^(?:remove|delete|drop|get\s+rid\s+of|destroy)\b"), REMOVE_TABLE),
        IntentRule("optimize", _search(
            r"^(?:optimi[sz]e|improve|review|audit|normali[sz]e|validate|analy[sz]e|lint|check)\b",
            r"\b(?:any|what)\s+(?:issues|problems)\b",
            r"\bbest\s+practices?\b",
            r"\bhow\s+(?:can|could|should)\s+i\s+improve\b"), OPTIMIZE),
        IntentRule("suggest", _search(
            r"^(?:suggest|recommend|propose)\b",
            r"\bwhat\s+(?:else\s+)?(?:tables?|columns?)\s+(?:should|could|do|might)\b",
            r"\bwhat\s+(?:am\s+i|is)\s+missing\b",
            r"\bwhat\s+should\s+i\s+add\b",
            r"^(?:any\s+)?(?:suggestions?|recommendations?|ideas?)\b"), SUGGEST),
        IntentRule("describe", _search(
            r"^(?:describe|show|display|list|view|print|explain|inspect|what'?s|what\s+is|what\s+are|"
            r"tell\s+me\s+about|details?\s+(?:of|for|about)|info\s+(?:on|about)|give\s+me\s+(?:the\s+)?details)\b"), DESCRIBE),

        # ---- Stage 5: additions
        IntentRule("add_columns", lambda q: add_column_kind(q.text) == ADD_COLUMNS, ADD_COLUMNS),
        IntentRule("add_column", lambda q: add_column_kind(q.text) == ADD_COLUMN, ADD_COLUMN),
        IntentRule("create_tables", lambda q: creation_kind(q.text) == CREATE_TABLES, CREATE_TABLES),
        IntentRule("create_table", lambda q: creation_kind(q.text) == CREATE_TABLE, CREATE_TABLE),

        # ---- Stage 6: context-referential fallback
        IntentRule("context_repeat", _context_repeat, None),
    ]


class IntentClassifier:
    """
    Rule-based intent classification for schema commands.

    Usage:
        classifier = IntentClassifier()
        classifier.classify("add email column to customers")   # -> "add_column"
        classifier.explain("link them together")               # -> "add_fks_auto"
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = FirstMatch(rules if rules is not None else build_intent_rules())

    @staticmethod
    def _query(text: str, context: Optional[ConversationContext]) -> Query:
        raw = text or ""
        plain = re.sub(r"\s+", " ", raw.strip().lower()).rstrip(".!?; ")
        return Query(text=normalize_command(raw), plain=plain, raw=raw, context=context)

    def classify_with_rule(self, text: str, context: Optional[ConversationContext] = None) -> Tuple[str, str]:
        """Return (intent, rule name); ("unknown", "unknown") when nothing matches."""
        query = self._query(text, context)
        if not query.text and not query.plain:
            return UNKNOWN, UNKNOWN
        rule = self.rules.match(query)
        if rule is None:
            return UNKNOWN, UNKNOWN
        intent = rule.result if rule.result is not None else context.last_action
        logger.debug("[NLP] '%s' -> %s (rule: %s)", query.text, intent, rule.name)
        return intent, rule.name

    def classify(self, text: str, context: Optional[ConversationContext] = None) -> str:
        return self.classify_with_rule(text, context)[0]

    def explain(self, text: str, context: Optional[ConversationContext] = None) -> str:
        """Name of the rule that decides the intent."""
        return self.classify_with_rule(text, context)[1]

    def rule_names(self) -> List[str]:
        return self.rules.names()


_classifier = None


def get_intent_classifier() -> IntentClassifier:
    global _classifier
    if _classifier is None:
        _classifier = IntentClassifier()
    return _classifier
