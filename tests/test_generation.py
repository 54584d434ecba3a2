"""
tests/test_generation.py
Tests for seedgen.generation: value strategies, name heuristics, the
deterministic placeholder mode and custom value overrides.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import pytest
from bson import ObjectId
from faker import Faker

from seedgen.generation import (
    OMITTED,
    GenerationStrategyRegistry,
    ObjectIdValueStrategy,
    ValueStrategy,
    contains,
    either,
    equals,
    match_table,
    placeholder,
    to_millis,
)
from seedgen.models import FieldDefinition, FieldKind, GenerationContext, ModelStructure


def _ctx(
    fake: Faker,
    index: int = 0,
    realistic: bool = True,
    custom_values: Optional[Dict[str, Any]] = None,
) -> GenerationContext:
    return GenerationContext(
        index=index,
        realistic=realistic,
        model_name="Sample",
        model_structure=ModelStructure.empty("Sample"),
        fake=fake,
        custom_values=custom_values or {},
    )


def _field(name: str, kind: FieldKind = FieldKind.STRING, **kwargs: Any) -> FieldDefinition:
    return FieldDefinition(name=name, type=kind, **kwargs)


@pytest.fixture()
def registry() -> GenerationStrategyRegistry:
    return GenerationStrategyRegistry()


# ===========================================================================
# Name predicates
# ===========================================================================


class TestPredicates:
    def test_contains_is_case_insensitive(self) -> None:
        assert contains("email")("contactEmail")
        assert not contains("email")("mail")

    def test_equals_requires_whole_name(self) -> None:
        assert equals("ip")("IP")
        assert not equals("ip")("description")

    def test_either(self) -> None:
        pred = either(equals("ip"), contains("ipaddress"))
        assert pred("ip") and pred("clientIpAddress")
        assert not pred("shipping")

    def test_match_table_first_hit_wins(self) -> None:
        table = [(contains("name"), lambda f, c: "first"), (contains("user"), lambda f, c: "second")]
        generator = match_table(table, "username")
        assert generator is not None and generator(None, None) == "first"
        assert match_table(table, "zzz") is None

    def test_placeholder(self) -> None:
        assert placeholder("title", 0) == "title_1"


# ===========================================================================
# Deterministic mode
# ===========================================================================


class TestDeterministicMode:
    @pytest.mark.parametrize("index", [0, 1, 4])
    def test_scalars_follow_index(
        self, registry: GenerationStrategyRegistry, fake: Faker, index: int
    ) -> None:
        ctx = _ctx(fake, index=index, realistic=False)
        assert registry.generate_value(_field("title"), ctx) == f"title_{index + 1}"
        assert registry.generate_value(_field("views", FieldKind.NUMBER), ctx) == index + 1
        assert registry.generate_value(_field("active", FieldKind.BOOLEAN), ctx) is (index % 2 == 0)

    def test_date_is_aware_now(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        value = registry.generate_value(_field("publishedAt", FieldKind.DATE), _ctx(fake, realistic=False))
        assert isinstance(value, datetime)
        assert value.tzinfo is not None
        assert value.microsecond % 1000 == 0

    def test_object_shape(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        value = registry.generate_value(_field("metadata", FieldKind.OBJECT), _ctx(fake, 2, False))
        assert value == {"prop1": "value_3_1", "prop2": "value_3_2"}

    def test_array_has_two_elements(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        typed = _field("scores", FieldKind.ARRAY, items=FieldKind.NUMBER)
        assert registry.generate_value(typed, _ctx(fake, 0, False)) == [1, 1]

        untyped = _field("labels", FieldKind.ARRAY)
        assert registry.generate_value(untyped, _ctx(fake, 0, False)) == [
            "labels_item_1",
            "labels_item_2",
        ]

    def test_optional_fields_never_omitted(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        optional = _field("nickname", required=False)
        for i in range(50):
            assert registry.generate_value(optional, _ctx(fake, i, False)) is not OMITTED

    def test_enum_ignored(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        fdef = _field("status", is_enum=True, enum_values=["a", "b"])
        assert registry.generate_value(fdef, _ctx(fake, 0, False)) == "status_1"

    def test_object_ids_stay_random(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        fdef = _field("owner", FieldKind.OBJECTID, is_reference=True, ref="User")
        first = registry.generate_value(fdef, _ctx(fake, 0, False))
        second = registry.generate_value(fdef, _ctx(fake, 0, False))
        assert isinstance(first, ObjectId)
        assert first != second


# ===========================================================================
# Realistic mode
# ===========================================================================


class TestRealisticMode:
    def test_email_heuristic(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        value = registry.generate_value(_field("email", required=True), _ctx(fake))
        assert isinstance(value, str) and "@" in value

    def test_price_in_range(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        for i in range(20):
            value = registry.generate_value(_field("price", FieldKind.NUMBER, required=True), _ctx(fake, i))
            assert 1 <= value <= 1000

    def test_age_in_range(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        value = registry.generate_value(_field("age", FieldKind.NUMBER, required=True), _ctx(fake))
        assert 18 <= value <= 90

    def test_enum_value_from_declared_set(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        fdef = _field("role", required=True, is_enum=True, enum_values=["admin", "viewer"])
        for i in range(20):
            assert registry.generate_value(fdef, _ctx(fake, i)) in {"admin", "viewer"}

    def test_required_never_omitted(self, fake: Faker) -> None:
        registry = GenerationStrategyRegistry(omit_probability=1.0)
        fdef = _field("title", required=True)
        for i in range(50):
            assert registry.generate_value(fdef, _ctx(fake, i)) is not OMITTED

    def test_optional_can_be_omitted(self, fake: Faker) -> None:
        registry = GenerationStrategyRegistry(omit_probability=1.0)
        assert registry.generate_value(_field("subtitle"), _ctx(fake)) is OMITTED

    def test_array_length_bounded(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        fdef = _field("tags", FieldKind.ARRAY, items=FieldKind.STRING, required=True)
        for i in range(30):
            value = registry.generate_value(fdef, _ctx(fake, i))
            assert isinstance(value, list)
            assert 0 <= len(value) <= 5

    def test_reference_array_yields_object_ids(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        fdef = _field(
            "members", FieldKind.ARRAY, required=True, is_reference=True, ref="User"
        )
        for i in range(10):
            assert all(isinstance(v, ObjectId) for v in registry.generate_value(fdef, _ctx(fake, i)))

    def test_known_object_shape(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        value = registry.generate_value(_field("address", FieldKind.OBJECT, required=True), _ctx(fake))
        assert set(value) == {"street", "city", "state", "country", "zipCode"}

    @pytest.mark.parametrize("name", ["birthDate", "endDate", "lastLogin"])
    def test_dates_have_millisecond_precision(
        self, registry: GenerationStrategyRegistry, fake: Faker, name: str
    ) -> None:
        for i in range(10):
            value = registry.generate_value(_field(name, FieldKind.DATE, required=True), _ctx(fake, i))
            assert value.microsecond % 1000 == 0

    def test_to_millis(self) -> None:
        value = datetime(2025, 5, 6, 7, 8, 9, 987654)
        assert to_millis(value) == datetime(2025, 5, 6, 7, 8, 9, 987000)

    def test_seeded_faker_is_reproducible(self, registry: GenerationStrategyRegistry) -> None:
        def run() -> list:
            f = Faker("en_US")
            f.seed_instance(99)
            return [
                registry.generate_value(_field("firstName", required=True), _ctx(f, i))
                for i in range(5)
            ]

        assert run() == run()


# ===========================================================================
# Custom values and strategy selection
# ===========================================================================


class TestCustomValues:
    def test_scalar_override(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        ctx = _ctx(fake, custom_values={"status": "archived"})
        assert registry.generate_value(_field("status"), ctx) == "archived"

    def test_list_cycles_by_index(self, registry: GenerationStrategyRegistry, fake: Faker) -> None:
        values = [
            registry.generate_value(
                _field("status"), _ctx(fake, i, False, {"status": ["a", "b", "c"]})
            )
            for i in range(5)
        ]
        assert values == ["a", "b", "c", "a", "b"]

    def test_list_choice_when_realistic(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        ctx = _ctx(fake, custom_values={"status": ["x", "y"]})
        assert registry.generate_value(_field("status"), ctx) in {"x", "y"}

    def test_empty_list_is_no_override(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        ctx = _ctx(fake, 0, False, {"status": []})
        assert registry.generate_value(_field("status"), ctx) == "status_1"

    def test_override_beats_omission(self, fake: Faker) -> None:
        registry = GenerationStrategyRegistry(omit_probability=1.0)
        ctx = _ctx(fake, custom_values={"nickname": "neo"})
        assert registry.generate_value(_field("nickname"), ctx) == "neo"


class _ConstantStrategy(ValueStrategy):
    kind = FieldKind.STRING
    priority = 200

    def generate(self, field: FieldDefinition, ctx: GenerationContext) -> Any:
        return "constant"


class TestStrategySelection:
    def test_higher_priority_wins(self, fake: Faker) -> None:
        registry = GenerationStrategyRegistry()
        registry.register_strategy(_ConstantStrategy())
        assert registry.generate_value(_field("email", required=True), _ctx(fake)) == "constant"

    def test_placeholder_when_nothing_applies(self, fake: Faker) -> None:
        registry = GenerationStrategyRegistry(strategies=[])
        value = registry.generate_value(_field("anything", required=True), _ctx(fake, 3))
        assert value == "anything_4"

    def test_reference_uses_object_id_strategy(
        self, registry: GenerationStrategyRegistry, fake: Faker
    ) -> None:
        fdef = _field("owner", FieldKind.OBJECTID, required=True, is_reference=True, ref="User")
        assert isinstance(registry.select(fdef, _ctx(fake)), ObjectIdValueStrategy)
