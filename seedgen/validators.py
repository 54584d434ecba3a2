# File: seedgen/validators.py
"""
SeedGen - Structure & Configuration Validators
================================================
Pure-function checks run on analysed ``ModelStructure`` objects and the
``SeederConfig`` before any data is generated.

Pydantic already guarantees each structure is internally consistent (unique
field names, references and enums naming real fields).  The checks here are
cross-model: references to entities that were never discovered, reference
cycles, anchor models missing from the run, and configuration entries that
point nowhere.

Only two situations are errors (the run cannot do anything useful): no
models at all, or a requested model that does not exist.  Everything else
is a warning, because generation degrades gracefully around it.

Usage::

    from seedgen.validators import validate_full
    result = validate_full(structures, config)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from seedgen.models import ModelStructure, RESERVED_FIELDS, SeederConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.validators")

Structures = Mapping[str, ModelStructure]


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Structure validators
# ---------------------------------------------------------------------------


def validate_models_present(structures: Structures) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not structures:
        result.add_error(
            "NO_MODELS",
            "No models were found to seed.",
        )
    return result


def validate_empty_models(structures: Structures) -> ValidationResult:
    """Structures with no fields only produce placeholder records."""
    result: ValidationResult = ValidationResult()
    for name, structure in structures.items():
        if structure.is_empty:
            result.add_warning(
                "EMPTY_MODEL",
                f"Model '{name}' has no recognisable fields; records will "
                f"only carry an id, timestamps and a warning marker.",
                {"model": name},
            )
    return result


def validate_reference_targets(structures: Structures) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    known: Set[str] = {name.lower() for name in structures}
    for name, structure in structures.items():
        for ref in structure.references:
            if ref.model.lower() not in known:
                result.add_warning(
                    "UNKNOWN_REFERENCE_TARGET",
                    f"'{name}.{ref.field}' references '{ref.model}', which is "
                    f"not part of this run; fresh ids will be used.",
                    {"model": name, "field": ref.field, "target": ref.model},
                )
    return result


def validate_enum_fields(structures: Structures) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for name, structure in structures.items():
        for fdef in structure.fields:
            if fdef.is_enum and not fdef.enum_values:
                result.add_warning(
                    "ENUM_WITHOUT_VALUES",
                    f"'{name}.{fdef.name}' is marked as an enum but has no "
                    f"values; it is generated as a plain {fdef.type}.",
                    {"model": name, "field": fdef.name},
                )
    return result


def validate_anchor_models(
    structures: Structures,
    anchor_models: List[str],
) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    known: Set[str] = {name.lower() for name in structures}
    referenced: Set[str] = {
        ref.model.lower() for s in structures.values() for ref in s.references
    }
    for anchor in anchor_models:
        if anchor.lower() in known:
            continue
        if anchor.lower() in referenced:
            result.add_warning(
                "ANCHOR_MODEL_MISSING",
                f"Anchor model '{anchor}' is referenced but not generated; "
                f"references to it rely on ids already stored in the database.",
                {"model": anchor},
            )
        else:
            result.add_info(
                "ANCHOR_MODEL_UNUSED",
                f"Anchor model '{anchor}' is neither generated nor referenced.",
                {"model": anchor},
            )
    return result


def validate_circular_references(structures: Structures) -> ValidationResult:
    """
    Detect reference cycles using iterative DFS.  Self references are
    ignored; cycles only affect generation order.
    """
    result: ValidationResult = ValidationResult()

    adjacency: Dict[str, Set[str]] = defaultdict(set)
    for name, structure in structures.items():
        for target in structure.reference_targets:
            if target != name and target in structures:
                adjacency[name].add(target)

    visited: Set[str] = set()
    in_stack: Set[str] = set()
    cycles_found: List[List[str]] = []

    for start in structures:
        if start in visited:
            continue

        stack: List[Tuple[str, bool]] = [(start, False)]
        path: List[str] = []

        while stack:
            node, is_returning = stack.pop()

            if is_returning:
                in_stack.discard(node)
                if path and path[-1] == node:
                    path.pop()
                continue

            if node in in_stack:
                cycle_start_idx: int = path.index(node) if node in path else len(path)
                cycles_found.append(path[cycle_start_idx:] + [node])
                continue

            if node in visited:
                continue

            visited.add(node)
            in_stack.add(node)
            path.append(node)

            stack.append((node, True))
            for neighbour in sorted(adjacency.get(node, set())):
                stack.append((neighbour, False))

    for cycle in cycles_found:
        result.add_warning(
            "CIRCULAR_REFERENCE",
            f"Circular reference between models: {' → '.join(cycle)}. "
            f"Records are generated in declaration order for these models.",
            {"cycle": cycle},
        )

    if not cycles_found:
        logger.debug("No circular references detected.")

    return result


def validate_structures(
    structures: Structures,
    anchor_models: Optional[List[str]] = None,
) -> ValidationResult:
    """Run every structure-level validator."""
    result: ValidationResult = ValidationResult()
    result.merge(validate_models_present(structures))
    result.merge(validate_empty_models(structures))
    result.merge(validate_reference_targets(structures))
    result.merge(validate_enum_fields(structures))
    result.merge(validate_circular_references(structures))
    if anchor_models:
        result.merge(validate_anchor_models(structures, anchor_models))
    return result


# ---------------------------------------------------------------------------
# Config validators
# ---------------------------------------------------------------------------


def validate_seeder_config(
    config: SeederConfig,
    structures: Structures,
) -> ValidationResult:
    """Requested models must exist; other dangling config entries are warnings."""
    result: ValidationResult = ValidationResult()
    known: Set[str] = set(structures)

    for name in config.models:
        if name not in known:
            result.add_error(
                "UNKNOWN_MODEL",
                f"Requested model '{name}' was not found.",
                {"model": name, "available": sorted(known)},
            )

    for name in config.per_model_counts:
        if name not in known:
            result.add_warning(
                "COUNT_FOR_UNKNOWN_MODEL",
                f"A record count is set for unknown model '{name}'.",
                {"model": name},
            )

    for name, overrides in config.custom_values.items():
        structure: Optional[ModelStructure] = structures.get(name)
        if structure is None:
            result.add_warning(
                "CUSTOM_VALUES_UNKNOWN_MODEL",
                f"Custom values are set for unknown model '{name}'.",
                {"model": name},
            )
            continue
        for field_name in overrides:
            if field_name in RESERVED_FIELDS:
                result.add_warning(
                    "CUSTOM_VALUES_RESERVED_FIELD",
                    f"Custom value for reserved field '{name}.{field_name}' is ignored.",
                    {"model": name, "field": field_name},
                )
            elif structure.get_field(field_name) is None:
                result.add_warning(
                    "CUSTOM_VALUES_UNKNOWN_FIELD",
                    f"Custom value for '{name}.{field_name}', which is not a field.",
                    {"model": name, "field": field_name},
                )

    if config.count == 0 and not any(config.per_model_counts.values()):
        result.add_warning(
            "ZERO_RECORDS",
            "Record count is 0; only empty collections will be written.",
        )

    return result


def validate_full(
    structures: Structures,
    config: SeederConfig,
) -> ValidationResult:
    """
    **Master validation entry point**, called by the pipeline and the CLI
    before generation starts.
    """
    logger.info("Starting validation — %d model(s).", len(structures))

    result: ValidationResult = ValidationResult()
    result.merge(validate_structures(structures, list(config.anchor_models)))
    result.merge(validate_seeder_config(config, structures))

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_models_present",
    "validate_empty_models",
    "validate_reference_targets",
    "validate_enum_fields",
    "validate_anchor_models",
    "validate_circular_references",
    "validate_structures",
    "validate_seeder_config",
    "validate_full",
]

logger.debug("seedgen.validators loaded — %d public symbols.", len(__all__))
