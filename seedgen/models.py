# File: seedgen/models.py
"""
SeedGen - Core Data Models
===========================
Pydantic V2 models describing the structure of a persisted entity as it is
recovered from schema source text, plus the run configuration for a seeding
job.  These models are the single source of truth for the whole pipeline:
Schema Source → Analysis → Generation → Reference Resolution → Storage.

A ``ModelStructure`` is rebuilt from source text on every analysis call and
is frozen once constructed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Sequence, Set

from faker import Faker
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.models")

DEFAULT_MONGO_URI: str = "mongodb://localhost:27017/cms-2025"
DEFAULT_JSON_PATH: str = "./seed-data.json"
DEFAULT_SCRIPT_PATH: str = "./seed-data.js"

# Fields stamped by the generator itself or managed by the persistence layer.
RESERVED_FIELDS: frozenset = frozenset(
    {"_id", "__v", "createdAt", "updatedAt", "isDeleted", "deletedAt"}
)


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------


class SeedGenError(Exception):
    """Base class for every error surfaced to callers of seedgen."""


class ConfigurationError(SeedGenError, ValueError):
    """
    No useful work can proceed: no entities found, a resources directory is
    missing, or no schema types are registered for direct database writes.
    """


class StorageError(SeedGenError, RuntimeError):
    """Persisting a generated dataset failed."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """Canonical value kinds a schema field is reduced to."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECTID = "objectid"
    ARRAY = "array"
    OBJECT = "object"


class OutputFormat(str, Enum):
    """Targets understood by ``StorageManager.save_data``."""

    JSON = "json"
    MONGODB = "mongodb"
    DB = "db"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Structure primitives
# ---------------------------------------------------------------------------


class FieldDefinition(BaseModel):
    """
    One attribute of a model.

    ``ref`` is best effort: a reference whose target cannot be resolved later
    degrades to a freshly minted identifier rather than failing.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Attribute name.")
    type: FieldKind = Field(default=FieldKind.STRING, description="Value kind.")
    required: bool = Field(default=False)
    is_array: bool = Field(default=False)
    is_reference: bool = Field(default=False)
    ref: Optional[str] = Field(
        default=None, description="Target entity name for reference fields."
    )
    is_enum: bool = Field(default=False)
    enum_values: List[str] = Field(default_factory=list)
    items: Optional[FieldKind] = Field(
        default=None, description="Element kind when the field is an array."
    )
    unique: bool = Field(default=False)

    @model_validator(mode="after")
    def _array_flag_matches_kind(self) -> "FieldDefinition":
        if self.type == FieldKind.ARRAY and not self.is_array:
            object.__setattr__(self, "is_array", True)
        return self

    def __repr__(self) -> str:
        flags: str = "".join(
            marker
            for marker, on in (
                ("!", self.required),
                ("[]", self.is_array),
                ("→" + (self.ref or "?"), self.is_reference),
            )
            if on
        )
        return f"<FieldDefinition {self.name}:{self.type}{flags}>"


class ReferenceDefinition(BaseModel):
    """Denormalised view of a reference field, consumed by the resolver."""

    model_config = _FROZEN_CONFIG

    field: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    is_array: bool = Field(default=False)


class ModelStructure(BaseModel):
    """
    Canonical description of one entity's schema.

    Invariants (checked on construction):
        - field names are unique;
        - every ``ReferenceDefinition.field`` names an entry in ``fields``;
        - every key of ``enums`` names an entry in ``fields``.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Entity identifier.")
    fields: List[FieldDefinition] = Field(default_factory=list)
    references: List[ReferenceDefinition] = Field(default_factory=list)
    enums: Dict[str, List[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_field_names(self) -> "ModelStructure":
        names: List[str] = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate fields in '{self.name}': {dupes}")
        return self

    @model_validator(mode="after")
    def _validate_cross_references(self) -> "ModelStructure":
        names: Set[str] = {f.name for f in self.fields}
        for ref in self.references:
            if ref.field not in names:
                raise ValueError(
                    f"Reference field '{ref.field}' is not a field of '{self.name}'."
                )
        for enum_field in self.enums:
            if enum_field not in names:
                raise ValueError(
                    f"Enum '{enum_field}' is not a field of '{self.name}'."
                )
        return self

    # -- Construction helpers -----------------------------------------------

    @classmethod
    def empty(cls, name: str) -> "ModelStructure":
        return cls(name=name)

    @classmethod
    def from_fields(
        cls,
        name: str,
        fields: Sequence[FieldDefinition],
        enums: Optional[Dict[str, List[str]]] = None,
    ) -> "ModelStructure":
        """
        Build a structure, back-filling enum flags onto fields by name and
        deriving the reference view from the fields that carry a target.

        Enum entries naming unknown fields and repeated field names (first
        occurrence wins) are dropped rather than rejected.
        """
        enums = enums or {}
        seen: Set[str] = set()
        merged: List[FieldDefinition] = []

        for fdef in fields:
            if fdef.name in seen:
                continue
            seen.add(fdef.name)
            values: Optional[List[str]] = enums.get(fdef.name)
            if values:
                fdef = fdef.model_copy(
                    update={"is_enum": True, "enum_values": list(values)}
                )
            merged.append(fdef)

        references: List[ReferenceDefinition] = [
            ReferenceDefinition(field=f.name, model=f.ref, is_array=f.is_array)
            for f in merged
            if f.is_reference and f.ref
        ]
        kept_enums: Dict[str, List[str]] = {
            f.name: list(f.enum_values) for f in merged if f.is_enum and f.enum_values
        }
        return cls(name=name, fields=merged, references=references, enums=kept_enums)

    # -- Queries ------------------------------------------------------------

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for fdef in self.fields:
            if fdef.name == name:
                return fdef
        return None

    @computed_field  # type: ignore[misc]
    @property
    def is_empty(self) -> bool:
        return not self.fields

    @computed_field  # type: ignore[misc]
    @property
    def reference_targets(self) -> List[str]:
        """Distinct referenced entity names in declaration order."""
        targets: List[str] = []
        for ref in self.references:
            if ref.model not in targets:
                targets.append(ref.model)
        return targets

    def __repr__(self) -> str:
        return (
            f"<ModelStructure {self.name}: {len(self.fields)} fields, "
            f"{len(self.references)} refs, {len(self.enums)} enums>"
        )


def topological_order(structures: Sequence[ModelStructure]) -> List[str]:
    """
    Return model names in dependency order (referenced models first).

    Uses Kahn's algorithm over reference edges. Self references and targets
    outside *structures* are ignored; models caught in a cycle keep their
    declaration order at the end of the result.
    """
    names: List[str] = [s.name for s in structures]
    known: Set[str] = set(names)
    in_degree: Dict[str, int] = {n: 0 for n in names}
    adjacency: Dict[str, List[str]] = {n: [] for n in names}

    for structure in structures:
        for target in structure.reference_targets:
            if target == structure.name or target not in known:
                continue
            adjacency[target].append(structure.name)
            in_degree[structure.name] += 1

    queue: List[str] = [n for n in names if in_degree[n] == 0]
    result: List[str] = []

    while queue:
        node: str = queue.pop(0)
        result.append(node)
        for neighbour in adjacency[node]:
            in_degree[neighbour] -= 1
            if in_degree[neighbour] == 0:
                queue.append(neighbour)

    if len(result) != len(names):
        logger.warning(
            "Circular reference dependency detected — falling back to "
            "declaration order for %d model(s).",
            len(names) - len(result),
        )
        placed: Set[str] = set(result)
        result.extend(n for n in names if n not in placed)

    return result


# ---------------------------------------------------------------------------
# Per-field generation context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationContext:
    """Ephemeral value rebuilt for every field of every record."""

    index: int
    realistic: bool
    model_name: str
    model_structure: ModelStructure
    fake: Faker
    custom_values: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Seeder configuration
# ---------------------------------------------------------------------------


class SeederConfig(BaseModel):
    """
    Settings for one seeding run.

    Loaded from a JSON/YAML file or built from CLI flags; unset values keep
    the defaults below.
    """

    model_config = _SHARED_CONFIG

    resources_dir: str = Field(
        default="./src/api/domain/entities",
        description="Directory holding one sub-directory per entity.",
    )
    models: List[str] = Field(
        default_factory=list,
        description="Entities to seed; empty means every discovered entity.",
    )
    count: int = Field(default=10, ge=0, le=100_000)
    per_model_counts: Dict[str, int] = Field(default_factory=dict)
    realistic: bool = Field(default=True)
    output_format: OutputFormat = Field(default=OutputFormat.JSON)
    output_path: str = Field(
        default=DEFAULT_JSON_PATH,
        description="Output file; defaults to a .js name for the mongodb format.",
    )
    mongo_uri: str = Field(
        default_factory=lambda: os.environ.get("MONGO_URI", DEFAULT_MONGO_URI)
    )
    anchor_models: List[str] = Field(default_factory=lambda: ["User"])
    expected_models: List[str] = Field(
        default_factory=lambda: ["User", "Content", "Media", "Settings"]
    )
    custom_values: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-entity field overrides: scalar or list of candidates.",
    )
    seed: Optional[int] = Field(default=None, description="RNG seed.")
    locale: str = Field(default="en_US", description="Faker locale.")

    @model_validator(mode="before")
    @classmethod
    def _default_output_path(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("output_path") is not None:
            return data
        fmt: Any = data.get("output_format")
        if str(getattr(fmt, "value", fmt)).lower() == OutputFormat.MONGODB.value:
            return {**data, "output_path": DEFAULT_SCRIPT_PATH}
        return data

    @field_validator("per_model_counts")
    @classmethod
    def _non_negative_counts(cls, v: Dict[str, int]) -> Dict[str, int]:
        negative: List[str] = [name for name, n in v.items() if n < 0]
        if negative:
            raise ValueError(f"Negative record counts for: {sorted(negative)}")
        return v

    @field_validator("mongo_uri")
    @classmethod
    def _mongo_scheme(cls, v: str) -> str:
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"Not a MongoDB connection string: {v!r}")
        return v

    def count_for(self, model_name: str) -> int:
        return self.per_model_counts.get(model_name, self.count)

    def custom_values_for(self, model_name: str) -> Dict[str, Any]:
        return dict(self.custom_values.get(model_name, {}))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_MONGO_URI",
    "DEFAULT_JSON_PATH",
    "DEFAULT_SCRIPT_PATH",
    "RESERVED_FIELDS",
    "SeedGenError",
    "ConfigurationError",
    "StorageError",
    "FieldKind",
    "OutputFormat",
    "FieldDefinition",
    "ReferenceDefinition",
    "ModelStructure",
    "GenerationContext",
    "SeederConfig",
    "topological_order",
]

logger.debug("seedgen.models loaded.")
