# File: seedgen/generation.py
"""
SeedGen - Field Value Generation
=================================
Pluggable, priority-ordered value strategies.  Each strategy handles one
value kind (string, number, boolean, date, objectid, array, object, enum)
and picks plausible fake values from the field *name* rather than its type
alone: a ``price`` gets a currency-shaped float, a ``birthDate`` a date 18–90
years back, an ``email`` an address.

The name heuristics are ordered ``(predicate, generator)`` tables evaluated
top to bottom, so a new category is one more table row.

Determinism contract for ``realistic=False``: every value is a pure function
of ``(field, record index)`` except freshly minted identifiers and wall-clock
timestamps.  Optional fields are never omitted, arrays always hold two
elements, and custom candidate lists are cycled by index.

All randomness goes through the context's Faker instance (``fake.random``),
so seeding Faker reproduces a realistic run as well.
"""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from faker import Faker

from seedgen.models import FieldDefinition, FieldKind, GenerationContext

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.generation")


# ---------------------------------------------------------------------------
# Omission sentinel
# ---------------------------------------------------------------------------


class _Omitted:
    """Marks an optional field left out of a record."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<OMITTED>"

    def __bool__(self) -> bool:
        return False


OMITTED: _Omitted = _Omitted()

OMIT_PROBABILITY: float = 0.2
MAX_REALISTIC_ARRAY_LENGTH: int = 5
FIXED_ARRAY_LENGTH: int = 2

Predicate = Callable[[str], bool]
Generator = Callable[[Faker, GenerationContext], Any]
NameTable = List[Tuple[Predicate, Generator]]


def placeholder(field_name: str, index: int) -> str:
    return f"{field_name}_{index + 1}"


def to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, matching what BSON dates can hold."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    return to_millis(datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Name predicates
# ---------------------------------------------------------------------------


def contains(*words: str) -> Predicate:
    """Case-insensitive substring match on the field name."""
    lowered: Tuple[str, ...] = tuple(w.lower() for w in words)
    return lambda name: any(w in name.lower() for w in lowered)


def equals(*words: str) -> Predicate:
    lowered: frozenset = frozenset(w.lower() for w in words)
    return lambda name: name.lower() in lowered


def either(*predicates: Predicate) -> Predicate:
    return lambda name: any(p(name) for p in predicates)


def match_table(table: NameTable, field_name: str) -> Optional[Generator]:
    for predicate, generator in table:
        if predicate(field_name):
            return generator
    return None


def _between(fake: Faker, start: str, end: str) -> datetime:
    return to_millis(fake.date_time_between(start_date=start, end_date=end, tzinfo=timezone.utc))


def _end_date(fake: Faker, ctx: GenerationContext) -> datetime:
    start: datetime = _between(fake, "now", "+30d")
    return start + timedelta(days=fake.random_int(min=30, max=60))


# ---------------------------------------------------------------------------
# Name tables
# ---------------------------------------------------------------------------

STRING_TABLE: NameTable = [
    (contains("firstname", "first_name"), lambda f, c: f.first_name()),
    (contains("lastname", "last_name", "surname"), lambda f, c: f.last_name()),
    (contains("username", "user_name"), lambda f, c: f.user_name()),
    (contains("name"), lambda f, c: f.name()),
    (contains("email"), lambda f, c: f.email()),
    (contains("password", "pwd"), lambda f, c: f.password(length=12)),
    (contains("phone", "tel"), lambda f, c: f.phone_number()),
    (either(equals("ip"), contains("ipaddress", "ip_address")), lambda f, c: f.ipv4()),
    (contains("address"), lambda f, c: f.address().replace("\n", ", ")),
    (contains("city"), lambda f, c: f.city()),
    (contains("country"), lambda f, c: f.country()),
    (contains("zip", "postal"), lambda f, c: f.postcode()),
    (contains("company"), lambda f, c: f.company()),
    (contains("job", "position"), lambda f, c: f.job()),
    (contains("title"), lambda f, c: f.sentence(nb_words=4).rstrip(".")),
    (contains("description", "desc", "bio"), lambda f, c: f.paragraph(nb_sentences=2)),
    (contains("content", "text"), lambda f, c: "\n\n".join(f.paragraphs(nb=3))),
    (contains("url", "website", "site", "web"), lambda f, c: f.url()),
    (contains("image", "photo", "avatar"), lambda f, c: f.image_url()),
    (contains("color"), lambda f, c: f.color_name()),
    (contains("user"), lambda f, c: f.user_name()),
    (contains("uuid", "id", "key", "code"), lambda f, c: f.uuid4()),
    (contains("comment"), lambda f, c: f.sentence()),
    (contains("status"), lambda f, c: f.random_element(["active", "inactive", "pending"])),
    (contains("category"), lambda f, c: f.word().capitalize()),
    (contains("tag"), lambda f, c: f.word()),
    (contains("product"), lambda f, c: f"{f.color_name()} {f.word().capitalize()}"),
    (contains("slug"), lambda f, c: f.slug()),
    (contains("locale", "lang"), lambda f, c: f.random_element(["es", "en", "fr", "de", "it"])),
]

NUMBER_TABLE: NameTable = [
    (contains("percentage", "percent"), lambda f, c: f.random_int(min=0, max=100)),
    (contains("discount"), lambda f, c: f.random_int(min=5, max=50)),
    (contains("age"), lambda f, c: f.random_int(min=18, max=90)),
    (contains("year"), lambda f, c: f.random_int(min=2000, max=2030)),
    (contains("price", "cost"), lambda f, c: round(f.random.uniform(1, 1000), 2)),
    (contains("quantity", "qty", "count"), lambda f, c: f.random_int(min=1, max=100)),
    (contains("rating"), lambda f, c: round(f.random.uniform(0, 5), 1)),
    (contains("version"), lambda f, c: round(f.random.uniform(1, 10), 1)),
    (contains("order", "position"), lambda f, c: c.index),
    (contains("duration"), lambda f, c: f.random_int(min=30, max=180)),
    (contains("score", "points"), lambda f, c: f.random_int(min=0, max=1000)),
    (contains("height"), lambda f, c: f.random_int(min=150, max=200)),
    (contains("width"), lambda f, c: f.random_int(min=100, max=500)),
    (contains("weight"), lambda f, c: round(f.random.uniform(50, 100), 1)),
    (contains("stock", "inventory"), lambda f, c: f.random_int(min=0, max=1000)),
]

DATE_TABLE: NameTable = [
    (contains("birth"), lambda f, c: _between(f, "-90y", "-18y")),
    (contains("future", "next"), lambda f, c: _between(f, "now", "+90d")),
    (contains("past", "prev"), lambda f, c: _between(f, "-90d", "now")),
    (contains("expir"), lambda f, c: _between(f, "+1y", "+3y")),
    (contains("created"), lambda f, c: _between(f, "-1y", "now")),
    (contains("updated"), lambda f, c: _between(f, "-30d", "now")),
    (contains("published"), lambda f, c: _between(f, "-180d", "now")),
    (contains("start"), lambda f, c: _between(f, "now", "+30d")),
    (contains("end"), _end_date),
]

ARRAY_ITEM_TABLE: NameTable = [
    (contains("tag"), lambda f, c: f.word()),
    (contains("category"), lambda f, c: f.word().capitalize()),
    (contains("image", "photo"), lambda f, c: f.image_url()),
    (contains("url", "link"), lambda f, c: f.url()),
    (contains("name"), lambda f, c: f.name()),
    (contains("color"), lambda f, c: f.hex_color()),
]

OBJECT_TABLE: NameTable = [
    (contains("metadata", "meta"), lambda f, c: {
        "title": f.sentence(nb_words=5),
        "description": f.paragraph(nb_sentences=2),
        "keywords": f.words(nb=5),
    }),
    (contains("address"), lambda f, c: {
        "street": f.street_address(),
        "city": f.city(),
        "state": f.state(),
        "country": f.country(),
        "zipCode": f.postcode(),
    }),
    (contains("config", "settings"), lambda f, c: {
        "enabled": f.pybool(),
        "theme": f.random_element(["dark", "light", "auto"]),
        "notifications": f.pybool(),
    }),
    (contains("location", "coords", "geo"), lambda f, c: {
        "lat": float(f.latitude()),
        "lng": float(f.longitude()),
    }),
    (contains("social"), lambda f, c: {
        "twitter": f.user_name(),
        "facebook": f.user_name(),
        "instagram": f.user_name(),
        "linkedin": f.user_name(),
    }),
]


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------


class ValueStrategy(abc.ABC):
    """One value kind. Higher ``priority`` wins among applicable strategies."""

    kind: Optional[FieldKind] = None
    priority: int = 10

    def can_generate(self, field: FieldDefinition, ctx: GenerationContext) -> bool:
        return field.type == self.kind

    @abc.abstractmethod
    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} priority={self.priority}>"


class EnumValueStrategy(ValueStrategy):
    priority = 100

    def can_generate(self, field: FieldDefinition, ctx: GenerationContext) -> bool:
        return (
            ctx.realistic
            and field.is_enum
            and bool(field.enum_values)
            and field.type != FieldKind.ARRAY
        )

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        return ctx.fake.random.choice(field.enum_values)


class StringValueStrategy(ValueStrategy):
    kind = FieldKind.STRING

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if not ctx.realistic:
            return placeholder(field.name, ctx.index)
        if field.is_enum and field.enum_values:
            return ctx.fake.random.choice(field.enum_values)
        generator: Optional[Generator] = match_table(STRING_TABLE, field.name)
        if generator is not None:
            return generator(ctx.fake, ctx)
        return " ".join(ctx.fake.words(nb=2))


class NumberValueStrategy(ValueStrategy):
    kind = FieldKind.NUMBER

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if not ctx.realistic:
            return ctx.index + 1
        generator: Optional[Generator] = match_table(NUMBER_TABLE, field.name)
        if generator is not None:
            return generator(ctx.fake, ctx)
        return ctx.fake.random_int(min=1, max=1000)


class BooleanValueStrategy(ValueStrategy):
    kind = FieldKind.BOOLEAN

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if not ctx.realistic:
            return ctx.index % 2 == 0
        return ctx.fake.pybool()


class DateValueStrategy(ValueStrategy):
    kind = FieldKind.DATE

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if not ctx.realistic:
            return utc_now()
        generator: Optional[Generator] = match_table(DATE_TABLE, field.name)
        if generator is not None:
            return generator(ctx.fake, ctx)
        return _between(ctx.fake, "-2y", "now")


class ObjectIdValueStrategy(ValueStrategy):
    """Placeholder identifier; reference fields are re-pointed afterwards."""

    kind = FieldKind.OBJECTID
    priority = 50

    def can_generate(self, field: FieldDefinition, ctx: GenerationContext) -> bool:
        return field.type == FieldKind.OBJECTID or (
            field.is_reference and not field.is_array
        )

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        return ObjectId()


class ArrayValueStrategy(ValueStrategy):
    """
    Elements are produced by re-entering the registry with a synthetic
    element field of the declared item kind.
    """

    kind = FieldKind.ARRAY

    def __init__(self, registry: "GenerationStrategyRegistry") -> None:
        self._registry: GenerationStrategyRegistry = registry

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        length: int = (
            ctx.fake.random_int(min=0, max=MAX_REALISTIC_ARRAY_LENGTH)
            if ctx.realistic
            else FIXED_ARRAY_LENGTH
        )
        item_kind: Optional[FieldKind] = field.items
        if item_kind is None and field.is_reference:
            item_kind = FieldKind.OBJECTID

        if item_kind is None or item_kind == FieldKind.ARRAY:
            return [self._untyped_item(field, ctx, j) for j in range(length)]

        element: FieldDefinition = FieldDefinition(
            name=field.name,
            type=item_kind,
            required=True,
            is_enum=field.is_enum,
            enum_values=list(field.enum_values),
        )
        return [
            self._registry.generate_from_strategies(element, ctx)
            for _ in range(length)
        ]

    @staticmethod
    def _untyped_item(field: FieldDefinition, ctx: GenerationContext, position: int) -> Any:
        if ctx.realistic:
            generator: Optional[Generator] = match_table(ARRAY_ITEM_TABLE, field.name)
            if generator is not None:
                return generator(ctx.fake, ctx)
        return f"{field.name}_item_{position + 1}"


class ObjectValueStrategy(ValueStrategy):
    kind = FieldKind.OBJECT

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if not ctx.realistic:
            return {
                f"prop{i + 1}": f"value_{ctx.index + 1}_{i + 1}"
                for i in range(FIXED_ARRAY_LENGTH)
            }
        generator: Optional[Generator] = match_table(OBJECT_TABLE, field.name)
        if generator is not None:
            return generator(ctx.fake, ctx)
        prop_count: int = ctx.fake.random_int(min=2, max=5)
        return {f"prop{i + 1}": f"value_{ctx.index}_{i + 1}" for i in range(prop_count)}


# ---------------------------------------------------------------------------
# GenerationStrategyRegistry
# ---------------------------------------------------------------------------


class GenerationStrategyRegistry:
    """
    Picks the applicable value strategy with the highest priority (ties go
    to the earliest registered) for each field.

    ``generate_value`` resolution order:
        1. caller-supplied custom value for the field name;
        2. random omission of optional fields (realistic mode only);
        3. the selected strategy;
        4. a ``"<field>_<index+1>"`` placeholder when nothing applies.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ValueStrategy]] = None,
        *,
        omit_probability: float = OMIT_PROBABILITY,
    ) -> None:
        self._strategies: List[ValueStrategy] = []
        self._omit_probability: float = omit_probability
        for strategy in strategies if strategies is not None else self._defaults():
            self.register_strategy(strategy)

    def _defaults(self) -> List[ValueStrategy]:
        return [
            EnumValueStrategy(),
            StringValueStrategy(),
            NumberValueStrategy(),
            BooleanValueStrategy(),
            DateValueStrategy(),
            ObjectIdValueStrategy(),
            ArrayValueStrategy(self),
            ObjectValueStrategy(),
        ]

    @property
    def strategies(self) -> List[ValueStrategy]:
        return list(self._strategies)

    def register_strategy(self, strategy: ValueStrategy) -> None:
        self._strategies.append(strategy)
        logger.debug("Registered value strategy %r.", strategy)

    def select(self, field: FieldDefinition, ctx: GenerationContext) -> Optional[ValueStrategy]:
        best: Optional[ValueStrategy] = None
        for strategy in self._strategies:
            if not strategy.can_generate(field, ctx):
                continue
            if best is None or strategy.priority > best.priority:
                best = strategy
        return best

    def generate_value(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        if field.name in ctx.custom_values:
            custom: Any = _custom_value(ctx.custom_values[field.name], ctx)
            if custom is not OMITTED:
                return custom

        if (
            not field.required
            and ctx.realistic
            and ctx.fake.random.random() < self._omit_probability
        ):
            return OMITTED

        return self.generate_from_strategies(field, ctx)

    def generate_from_strategies(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        strategy: Optional[ValueStrategy] = self.select(field, ctx)
        if strategy is None:
            logger.debug(
                "No value strategy for %s.%s (%s) — using placeholder.",
                ctx.model_name,
                field.name,
                field.type,
            )
            return placeholder(field.name, ctx.index)
        return strategy.generate(field, ctx)


def _custom_value(candidate: Any, ctx: GenerationContext) -> Any:
    """List ⇒ one of its values; scalar ⇒ itself; empty list ⇒ no override."""
    if isinstance(candidate, (list, tuple)):
        if not candidate:
            return OMITTED
        if ctx.realistic:
            return ctx.fake.random.choice(list(candidate))
        return candidate[ctx.index % len(candidate)]
    return candidate


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OMITTED",
    "OMIT_PROBABILITY",
    "placeholder",
    "to_millis",
    "utc_now",
    "contains",
    "equals",
    "either",
    "match_table",
    "STRING_TABLE",
    "NUMBER_TABLE",
    "DATE_TABLE",
    "ARRAY_ITEM_TABLE",
    "OBJECT_TABLE",
    "ValueStrategy",
    "EnumValueStrategy",
    "StringValueStrategy",
    "NumberValueStrategy",
    "BooleanValueStrategy",
    "DateValueStrategy",
    "ObjectIdValueStrategy",
    "ArrayValueStrategy",
    "ObjectValueStrategy",
    "GenerationStrategyRegistry",
]

logger.debug("seedgen.generation loaded.")
