# File: seedgen/analysis.py
"""
SeedGen - Schema Source Analysis
=================================
Recovers a ``ModelStructure`` from the raw source text of an entity's schema
definition.  The text may use any of several conventions, sometimes mixed in
the same codebase:

    1. A TypeScript ``interface IName extends Document { ... }`` block.
    2. The object literal passed to ``new Schema({...}, {...})``.
    3. Shorthand ``name: String`` pairs anywhere in the file.
    4. A Zod ``z.object({...})`` validation schema.
    5. A declarative JSON/YAML document with a ``fields`` section.

Parsing is a best-effort lexical scan, not a grammar: fields that cannot be
classified are dropped, and text that matches nothing yields an empty (but
valid) structure.  Nothing in this module raises on bad input.

Strategies are tried in registration order by ``StrategyRegistry``; inside
``MongooseSchemaStrategy`` the conventions above are tried in order and the
first stage that yields fields wins.  Enum values are collected in a final
pass over the whole text regardless of which stage succeeded.
"""

from __future__ import annotations

import abc
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

import yaml

from seedgen.models import FieldDefinition, FieldKind, ModelStructure

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.analysis")

# ---------------------------------------------------------------------------
# Pre-compiled patterns
# ---------------------------------------------------------------------------

_SCHEMA_CALL_RE: re.Pattern[str] = re.compile(
    r"new\s+(?:mongoose\.)?Schema\s*(?:<[^()]*?>)?\s*\("
)
_ZOD_OBJECT_RE: re.Pattern[str] = re.compile(r"\bz\.object\s*\(")
_INTERFACE_RE: re.Pattern[str] = re.compile(
    r"export\s+interface\s+I([A-Za-z0-9_]+)\s+extends\s+Document\s*\{"
)
_DECLARATION_RE: re.Pattern[str] = re.compile(r"^(\w+)(\?)?\s*:\s*(.+)$", re.DOTALL)
_KEY_VALUE_RE: re.Pattern[str] = re.compile(
    r"^\s*['\"]?([A-Za-z_$][\w$]*)['\"]?\s*:\s*(.*)$", re.DOTALL
)
_SHORTHAND_RE: re.Pattern[str] = re.compile(
    r"(\w+)\s*:\s*((?:String|Number|Boolean|Date|Mixed)\b|\[[^\]]*\])"
)
_QUOTED_RE: re.Pattern[str] = re.compile(r"['\"`]([^'\"`]+)['\"`]")
_REF_ATTR_RE: re.Pattern[str] = re.compile(r"\bref\s*:\s*['\"]([^'\"]+)['\"]")
_ZOD_CALL_RE: re.Pattern[str] = re.compile(r"^z\.(\w+)\s*\(")

_UNION_ENUM_RE: re.Pattern[str] = re.compile(
    r"(\w+)\??\s*:\s*((?:['\"][^'\"\n]+['\"]\s*\|\s*)+['\"][^'\"\n]+['\"])"
)
_SCHEMA_ENUM_RE: re.Pattern[str] = re.compile(
    r"(\w+)\s*:\s*\{[^{}]*?\benum\s*:\s*\[(.*?)\]", re.DOTALL
)
_ZOD_ENUM_RE: re.Pattern[str] = re.compile(
    r"(\w+)\s*:\s*z\.enum\s*\(\s*\[(.*?)\]", re.DOTALL
)

# Mongoose type tokens (last dotted component) → canonical kind
_MONGOOSE_TYPES: Dict[str, FieldKind] = {
    "String": FieldKind.STRING,
    "Number": FieldKind.NUMBER,
    "Decimal128": FieldKind.NUMBER,
    "BigInt": FieldKind.NUMBER,
    "Boolean": FieldKind.BOOLEAN,
    "Date": FieldKind.DATE,
    "ObjectId": FieldKind.OBJECTID,
    "Mixed": FieldKind.OBJECT,
    "Map": FieldKind.OBJECT,
    "Object": FieldKind.OBJECT,
    "Buffer": FieldKind.STRING,
    "UUID": FieldKind.STRING,
    "Array": FieldKind.ARRAY,
}

_ZOD_TYPES: Dict[str, FieldKind] = {
    "string": FieldKind.STRING,
    "number": FieldKind.NUMBER,
    "bigint": FieldKind.NUMBER,
    "boolean": FieldKind.BOOLEAN,
    "date": FieldKind.DATE,
    "array": FieldKind.ARRAY,
    "object": FieldKind.OBJECT,
    "record": FieldKind.OBJECT,
    "map": FieldKind.OBJECT,
    "enum": FieldKind.STRING,
    "nativeEnum": FieldKind.STRING,
    "literal": FieldKind.STRING,
}

_DECLARED_TYPES: Dict[str, FieldKind] = {
    "string": FieldKind.STRING,
    "str": FieldKind.STRING,
    "text": FieldKind.STRING,
    "number": FieldKind.NUMBER,
    "int": FieldKind.NUMBER,
    "integer": FieldKind.NUMBER,
    "float": FieldKind.NUMBER,
    "decimal": FieldKind.NUMBER,
    "boolean": FieldKind.BOOLEAN,
    "bool": FieldKind.BOOLEAN,
    "date": FieldKind.DATE,
    "datetime": FieldKind.DATE,
    "objectid": FieldKind.OBJECTID,
    "reference": FieldKind.OBJECTID,
    "ref": FieldKind.OBJECTID,
    "array": FieldKind.ARRAY,
    "list": FieldKind.ARRAY,
    "object": FieldKind.OBJECT,
    "dict": FieldKind.OBJECT,
    "mixed": FieldKind.OBJECT,
    "map": FieldKind.OBJECT,
}

_SOFT_DELETE_FIELDS: frozenset = frozenset({"isDeleted", "deletedAt"})

# Schema option keys that look like ``name: Type`` pairs
_OPTION_KEYS: frozenset = frozenset(
    {"__v", "type", "default", "ref", "required", "unique", "enum", "select", "index"}
)
_BRACKETS: Dict[str, str] = {"{": "}", "[": "]", "(": ")"}


# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments, leaving string literals intact."""
    out: List[str] = []
    i: int = 0
    n: int = len(text)
    quote: Optional[str] = None

    while i < n:
        ch: str = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in "'\"`":
            quote = ch
            out.append(ch)
            i += 1
            continue
        if text.startswith("//", i):
            newline: int = text.find("\n", i)
            i = n if newline < 0 else newline
            continue
        if text.startswith("/*", i):
            end: int = text.find("*/", i + 2)
            i = n if end < 0 else end + 2
            continue
        out.append(ch)
        i += 1

    return "".join(out)


def balanced_block(text: str, start: int) -> Optional[str]:
    """
    Return the bracketed block opening at ``text[start]`` including its
    delimiters, or ``None`` when the opener is never closed.
    """
    if start >= len(text) or text[start] not in _BRACKETS:
        return None

    stack: List[str] = []
    quote: Optional[str] = None
    i: int = start

    while i < len(text):
        ch: str = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch in _BRACKETS:
            stack.append(_BRACKETS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start:i + 1]
        i += 1

    return None


def split_top_level(body: str, separators: str = ",") -> List[str]:
    """Split *body* on separators that sit outside brackets and strings."""
    parts: List[str] = []
    current: List[str] = []
    depth: int = 0
    quote: Optional[str] = None
    i: int = 0

    while i < len(body):
        ch: str = body[i]
        if quote:
            current.append(ch)
            if ch == "\\" and i + 1 < len(body):
                current.append(body[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
            current.append(ch)
        elif ch in "{[(":
            depth += 1
            current.append(ch)
        elif ch in "}])" and depth > 0:
            depth -= 1
            current.append(ch)
        elif ch in separators and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _block_after(text: str, match: "re.Match[str]") -> Optional[str]:
    """The ``{...}`` literal directly following a call-opening match."""
    pos: int = match.end()
    while pos < len(text) and text[pos].isspace():
        pos += 1
    if pos >= len(text) or text[pos] != "{":
        return None
    return balanced_block(text, pos)


def _inner(block: str) -> str:
    return block[1:-1]


def _key_values(body: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for segment in split_top_level(body):
        kv = _KEY_VALUE_RE.match(segment)
        if kv:
            pairs.append((kv.group(1), kv.group(2).strip()))
    return pairs


def _quoted_values(text: str) -> List[str]:
    return _QUOTED_RE.findall(text)


def _is_true(value: Optional[str]) -> bool:
    if not value:
        return False
    v: str = value.strip()
    if v.startswith("["):
        v = v[1:].lstrip()
    return v.startswith("true")


# ---------------------------------------------------------------------------
# Type-text classification
# ---------------------------------------------------------------------------


def classify_type_text(type_text: str) -> Tuple[FieldKind, Optional[FieldKind], bool]:
    """
    Reduce a declared TypeScript type to ``(kind, item_kind, is_reference)``
    by substring matching.
    """
    t: str = type_text.strip().rstrip(";").strip()

    if t.endswith("[]") or t.startswith("Array<"):
        element: str = t[:-2] if t.endswith("[]") else t[len("Array<"):-1]
        item_kind, _, item_is_ref = classify_type_text(element)
        return FieldKind.ARRAY, item_kind, item_is_ref
    if t[:1] in "'\"":
        return FieldKind.STRING, None, False
    if "ObjectId" in t:
        return FieldKind.OBJECTID, None, True
    if "string" in t:
        return FieldKind.STRING, None, False
    if "number" in t:
        return FieldKind.NUMBER, None, False
    if "boolean" in t:
        return FieldKind.BOOLEAN, None, False
    if "Date" in t:
        return FieldKind.DATE, None, False
    if t.startswith("{") or "object" in t or "Record" in t:
        return FieldKind.OBJECT, None, False
    return FieldKind.STRING, None, False


def _resolve_type_token(token: str) -> Optional[FieldKind]:
    last: str = token.strip().rstrip(",").split(".")[-1].strip()
    return _MONGOOSE_TYPES.get(last)


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------


class AnalysisStrategy(abc.ABC):
    """Capability interface for one schema-source convention."""

    name: str = "base"

    @abc.abstractmethod
    def can_analyze(self, model_name: str, source_text: str) -> bool:
        """Cheap check for markers of the convention."""

    @abc.abstractmethod
    def analyze(self, model_name: str, source_text: str) -> ModelStructure:
        """Extract a structure; may return an empty one."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------------
# Mongoose / Zod source strategy
# ---------------------------------------------------------------------------


class MongooseSchemaStrategy(AnalysisStrategy):
    """
    Default strategy for TypeScript model files built around a
    ``new Schema(...)`` call, with a Zod ``z.object(...)`` last resort.
    """

    name = "mongoose"

    def __init__(self) -> None:
        self._stages: List[Tuple[str, Callable[[str, str], List[FieldDefinition]]]] = [
            ("interface", self._extract_from_interface),
            ("schema-block", self._extract_from_schema_block),
            ("shorthand", self._extract_shorthand),
            ("zod", self._extract_from_zod),
        ]

    def can_analyze(self, model_name: str, source_text: str) -> bool:
        return bool(
            _SCHEMA_CALL_RE.search(source_text) or _ZOD_OBJECT_RE.search(source_text)
        )

    def analyze(self, model_name: str, source_text: str) -> ModelStructure:
        text: str = strip_comments(source_text)
        fields: List[FieldDefinition] = []

        for stage_name, stage in self._stages:
            try:
                fields = stage(model_name, text)
            except (ValueError, IndexError, TypeError) as exc:
                logger.warning(
                    "Stage '%s' failed for model '%s': %s", stage_name, model_name, exc
                )
                fields = []
            if fields:
                logger.debug(
                    "Model '%s': %d field(s) extracted by stage '%s'.",
                    model_name,
                    len(fields),
                    stage_name,
                )
                break

        if not fields:
            logger.warning("No fields could be extracted for model '%s'.", model_name)

        return ModelStructure.from_fields(model_name, fields, extract_enums(text))

    # -- a. interface -------------------------------------------------------

    def _extract_from_interface(self, model_name: str, text: str) -> List[FieldDefinition]:
        match = _INTERFACE_RE.search(text)
        if not match:
            return []
        block: Optional[str] = balanced_block(text, match.end() - 1)
        if block is None:
            return []

        fields: List[FieldDefinition] = []
        for decl in split_top_level(_inner(block), separators=";\n"):
            parsed = _DECLARATION_RE.match(decl.strip().rstrip(","))
            if not parsed:
                continue
            name, optional, type_text = parsed.group(1), parsed.group(2), parsed.group(3)
            if name == "__v":
                continue
            try:
                kind, item_kind, is_ref = classify_type_text(type_text)
                ref: Optional[str] = _find_schema_ref(text, name) if is_ref else None
                fields.append(FieldDefinition(
                    name=name,
                    type=kind,
                    required=not optional,
                    is_array=kind == FieldKind.ARRAY,
                    is_reference=is_ref,
                    ref=ref,
                    items=item_kind,
                ))
            except ValueError as exc:
                logger.debug("Dropping interface field '%s': %s", name, exc)
        return fields

    # -- b. schema object literal -------------------------------------------

    def _extract_from_schema_block(self, model_name: str, text: str) -> List[FieldDefinition]:
        match = _SCHEMA_CALL_RE.search(text)
        if not match:
            return []
        block: Optional[str] = _block_after(text, match)
        if block is None:
            return []

        fields: List[FieldDefinition] = []
        for name, value in _key_values(_inner(block)):
            if name == "__v":
                continue
            try:
                fdef: Optional[FieldDefinition] = parse_schema_field(name, value)
            except (ValueError, IndexError) as exc:
                logger.debug("Dropping schema field '%s': %s", name, exc)
                continue
            if fdef is not None:
                fields.append(fdef)
        return fields

    # -- c. shorthand pairs -------------------------------------------------

    def _extract_shorthand(self, model_name: str, text: str) -> List[FieldDefinition]:
        fields: List[FieldDefinition] = []
        captured: Set[str] = set()

        for match in _SHORTHAND_RE.finditer(text):
            name, type_def = match.group(1), match.group(2)
            if name in captured or name in _OPTION_KEYS:
                continue
            try:
                if type_def.startswith("["):
                    inner: str = type_def[1:-1]
                    item_kind: Optional[FieldKind] = (
                        _resolve_type_token(inner.split(",")[0]) if inner.strip() else None
                    )
                    is_ref: bool = "ObjectId" in inner
                    ref_match = _REF_ATTR_RE.search(inner)
                    fdef = FieldDefinition(
                        name=name,
                        type=FieldKind.ARRAY,
                        is_array=True,
                        items=FieldKind.OBJECTID if is_ref else item_kind,
                        is_reference=is_ref,
                        ref=ref_match.group(1) if ref_match else None,
                    )
                else:
                    fdef = FieldDefinition(
                        name=name,
                        type=_MONGOOSE_TYPES[type_def],
                    )
            except (KeyError, ValueError) as exc:
                logger.debug("Dropping shorthand field '%s': %s", name, exc)
                continue
            captured.add(name)
            fields.append(fdef)
        return fields

    # -- d. Zod -------------------------------------------------------------

    def _extract_from_zod(self, model_name: str, text: str) -> List[FieldDefinition]:
        for match in _ZOD_OBJECT_RE.finditer(text):
            block: Optional[str] = _block_after(text, match)
            if block is None:
                continue
            fields: List[FieldDefinition] = []
            for name, chain in _key_values(_inner(block)):
                try:
                    fdef: Optional[FieldDefinition] = parse_zod_field(name, chain)
                except ValueError as exc:
                    logger.debug("Dropping zod field '%s': %s", name, exc)
                    continue
                if fdef is not None:
                    fields.append(fdef)
            if fields:
                return fields
        return []


def _find_schema_ref(text: str, field_name: str) -> Optional[str]:
    """Look up ``field: { ... ref: 'X' ... }`` (or its array form) in the text."""
    pattern: re.Pattern[str] = re.compile(
        rf"\b{re.escape(field_name)}\s*:\s*\[?\s*\{{[^}}]*?\bref\s*:\s*['\"]([^'\"]+)['\"]",
        re.DOTALL,
    )
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_schema_field(name: str, value: str) -> Optional[FieldDefinition]:
    """
    Interpret one ``name: value`` entry of a Mongoose schema object.

    Each attribute (type, required, unique, ref, enum) is detected on its own;
    a missing attribute only leaves that attribute at its default.
    """
    v: str = value.strip()
    if not v:
        return None

    # Array form: [String], [{ type: ObjectId, ref: 'Tag' }], []
    if v.startswith("["):
        inner: str = v[1:-1].strip() if v.endswith("]") else v[1:].strip()
        element: Optional[FieldDefinition] = parse_schema_field(name, inner) if inner else None
        return FieldDefinition(
            name=name,
            type=FieldKind.ARRAY,
            is_array=True,
            items=element.type if element else None,
            is_reference=element.is_reference if element else False,
            ref=element.ref if element else None,
            required=element.required if element else False,
            enum_values=element.enum_values if element else [],
            is_enum=element.is_enum if element else False,
        )

    # Object form: either a field options object or a nested sub-document
    if v.startswith("{"):
        attrs: Dict[str, str] = dict(_key_values(v[1:-1] if v.endswith("}") else v[1:]))
        if name in _SOFT_DELETE_FIELDS and attrs.get("select", "").startswith("false"):
            return None
        if "type" not in attrs:
            return FieldDefinition(name=name, type=FieldKind.OBJECT)

        type_value: str = attrs["type"].strip()
        if type_value.startswith("["):
            base: FieldDefinition = parse_schema_field(name, type_value)  # type: ignore[assignment]
        else:
            kind: FieldKind = _resolve_type_token(type_value) or FieldKind.OBJECT
            base = FieldDefinition(
                name=name,
                type=kind,
                is_reference=kind == FieldKind.OBJECTID,
            )

        ref_value: Optional[str] = None
        if "ref" in attrs:
            quoted: List[str] = _quoted_values(attrs["ref"])
            ref_value = quoted[0] if quoted else None
        enum_values: List[str] = _quoted_values(attrs["enum"]) if "enum" in attrs else []

        return base.model_copy(update={
            "required": _is_true(attrs.get("required")),
            "unique": _is_true(attrs.get("unique")),
            "ref": ref_value or base.ref,
            "is_reference": base.is_reference or ref_value is not None,
            "is_enum": "enum" in attrs or base.is_enum,
            "enum_values": enum_values or base.enum_values,
        })

    # Bare type token: String, Schema.Types.ObjectId, SubSchema
    kind = _resolve_type_token(v) or FieldKind.OBJECT
    return FieldDefinition(name=name, type=kind, is_reference=kind == FieldKind.OBJECTID)


def parse_zod_field(name: str, chain: str) -> Optional[FieldDefinition]:
    """Interpret one ``name: z.<type>(...)...`` entry of a Zod object."""
    call = _ZOD_CALL_RE.match(chain.strip())
    if not call:
        return None
    zod_type: str = call.group(1)
    kind: FieldKind = _ZOD_TYPES.get(zod_type, FieldKind.STRING)
    optional: bool = ".optional()" in chain or ".nullish()" in chain

    items: Optional[FieldKind] = None
    if kind == FieldKind.ARRAY:
        start: int = chain.index("(", chain.index("array"))
        args: Optional[str] = balanced_block(chain, start)
        inner_call = _ZOD_CALL_RE.match(args[1:-1].strip()) if args else None
        items = _ZOD_TYPES.get(inner_call.group(1)) if inner_call else None

    enum_values: List[str] = []
    if zod_type in ("enum", "nativeEnum"):
        bracket: int = chain.find("[")
        block: Optional[str] = balanced_block(chain, bracket) if bracket >= 0 else None
        enum_values = _quoted_values(block) if block else []

    return FieldDefinition(
        name=name,
        type=kind,
        required=not optional,
        is_array=kind == FieldKind.ARRAY,
        items=items,
        is_enum=zod_type in ("enum", "nativeEnum"),
        enum_values=enum_values,
    )


def extract_enums(text: str) -> Dict[str, List[str]]:
    """
    Collect enum value sets from union-of-literal annotations, in-schema
    ``enum: [...]`` attributes and ``z.enum([...])`` calls.
    """
    enums: Dict[str, List[str]] = {}
    for pattern in (_UNION_ENUM_RE, _SCHEMA_ENUM_RE, _ZOD_ENUM_RE):
        for match in pattern.finditer(text):
            values: List[str] = _quoted_values(match.group(2))
            if values:
                enums.setdefault(match.group(1), values)
    return enums


# ---------------------------------------------------------------------------
# Declarative JSON / YAML strategy
# ---------------------------------------------------------------------------


class DeclarativeFileStrategy(AnalysisStrategy):
    """
    Entity described as data::

        name: Post
        fields:
          title: {type: string, required: true}
          author_id: {type: objectid, ref: User}
          tags: {type: array, items: string}
    """

    name = "declarative"

    @staticmethod
    def _load(source_text: str) -> Optional[Dict[str, Any]]:
        try:
            data: Any = yaml.safe_load(source_text)
        except yaml.YAMLError:
            return None
        if isinstance(data, dict) and isinstance(data.get("fields"), (list, dict)):
            return data
        return None

    def can_analyze(self, model_name: str, source_text: str) -> bool:
        return self._load(source_text) is not None

    def analyze(self, model_name: str, source_text: str) -> ModelStructure:
        data: Optional[Dict[str, Any]] = self._load(source_text)
        if data is None:
            return ModelStructure.empty(model_name)

        raw_fields: Any = data["fields"]
        entries: List[Tuple[str, Any]]
        if isinstance(raw_fields, dict):
            entries = list(raw_fields.items())
        else:
            entries = [
                (str(item.get("name", "")), item)
                for item in raw_fields
                if isinstance(item, dict)
            ]

        fields: List[FieldDefinition] = []
        for name, declared in entries:
            try:
                fdef: Optional[FieldDefinition] = _declared_field(name, declared)
            except ValueError as exc:
                logger.debug("Dropping declared field '%s': %s", name, exc)
                continue
            if fdef is not None:
                fields.append(fdef)

        enums: Dict[str, List[str]] = {
            str(k): [str(v) for v in values]
            for k, values in (data.get("enums") or {}).items()
            if isinstance(values, list)
        }
        return ModelStructure.from_fields(str(data.get("name") or model_name), fields, enums)


def _declared_field(name: str, declared: Any) -> Optional[FieldDefinition]:
    if not name:
        return None
    if isinstance(declared, str):
        declared = {"type": declared}
    if not isinstance(declared, dict):
        return None

    kind: FieldKind = _DECLARED_TYPES.get(str(declared.get("type", "string")).lower(), FieldKind.STRING)
    ref: Optional[str] = declared.get("ref")
    items_raw: Optional[str] = declared.get("items")
    items: Optional[FieldKind] = (
        _DECLARED_TYPES.get(str(items_raw).lower()) if items_raw is not None else None
    )
    if kind == FieldKind.ARRAY and ref and items is None:
        items = FieldKind.OBJECTID
    raw_enum: Any = declared.get("enum")
    enum_values: List[str] = [str(v) for v in raw_enum] if isinstance(raw_enum, list) else []

    return FieldDefinition(
        name=name,
        type=kind,
        required=bool(declared.get("required", False)),
        unique=bool(declared.get("unique", False)),
        is_array=kind == FieldKind.ARRAY,
        is_reference=bool(ref) or kind == FieldKind.OBJECTID,
        ref=ref,
        items=items,
        is_enum=raw_enum is not None,
        enum_values=enum_values,
    )


# ---------------------------------------------------------------------------
# StrategyRegistry
# ---------------------------------------------------------------------------


def default_strategies() -> List[AnalysisStrategy]:
    return [MongooseSchemaStrategy(), DeclarativeFileStrategy()]


class StrategyRegistry:
    """
    Ordered set of analysis strategies; registration order is priority order.

    ``analyze_model`` never raises: a strategy that errors is logged and
    skipped, and when nothing produces fields an empty structure is returned.
    """

    def __init__(self, strategies: Optional[Sequence[AnalysisStrategy]] = None) -> None:
        self._strategies: List[AnalysisStrategy] = (
            list(strategies) if strategies is not None else default_strategies()
        )

    @property
    def strategies(self) -> List[AnalysisStrategy]:
        return list(self._strategies)

    def register_strategy(self, strategy: AnalysisStrategy) -> None:
        self._strategies.append(strategy)
        logger.debug("Registered analysis strategy %r.", strategy)

    def analyze_model(self, model_name: str, source_text: str) -> ModelStructure:
        name: str = model_name.strip() or "UnnamedModel"

        for strategy in self._strategies:
            try:
                if not strategy.can_analyze(name, source_text):
                    continue
                structure: ModelStructure = strategy.analyze(name, source_text)
            except Exception as exc:
                logger.error(
                    "Strategy %r failed on model '%s': %s: %s",
                    strategy,
                    name,
                    type(exc).__name__,
                    exc,
                )
                continue
            if structure.fields:
                logger.info(
                    "Analysed model '%s' with %r: %d field(s), %d reference(s).",
                    name,
                    strategy,
                    len(structure.fields),
                    len(structure.references),
                )
                return structure

        logger.warning(
            "No analysis strategy produced fields for model '%s'; "
            "returning an empty structure.",
            name,
        )
        return ModelStructure.empty(name)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "AnalysisStrategy",
    "MongooseSchemaStrategy",
    "DeclarativeFileStrategy",
    "StrategyRegistry",
    "default_strategies",
    "strip_comments",
    "balanced_block",
    "split_top_level",
    "classify_type_text",
    "parse_schema_field",
    "parse_zod_field",
    "extract_enums",
]

logger.debug("seedgen.analysis loaded.")
