# File: seedgen/generator.py
"""
SeedGen - Record Generation & Seeding Pipeline
================================================

``DataGenerator`` turns a ``ModelStructure`` into fake records.
``SeedPipeline`` connects every phase of a seeding run:

    Scan → Analyse → Validate → Order → Generate → Resolve References → Save

Workflow::

    1. Discover entity schema sources (scanner.py) and analyse them
       (analysis.py), or accept pre-built structures.
    2. Validate the structures against the run configuration (validators.py).
    3. Order models so referenced entities are generated first (models.py).
    4. Generate ``count`` records per model (generation.py).
    5. Once every pool exists, re-point reference fields (resolver.py).
    6. Persist the dataset (exporters.py).
    7. Return a ``SeedReport`` with metrics and status.

Error handling strategy:
    - Validation errors abort the run before anything is generated.
    - Generation errors are isolated per model: one failing model is
      recorded and skipped, the others are still seeded.
    - Storage errors are recorded in the report.
"""

from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from bson import ObjectId
from faker import Faker

from seedgen.database import DatabaseConnector
from seedgen.exporters import SaveResult, StorageManager
from seedgen.generation import OMITTED, GenerationStrategyRegistry, utc_now
from seedgen.models import (
    GenerationContext,
    ModelStructure,
    OutputFormat,
    RESERVED_FIELDS,
    SeederConfig,
    SeedGenError,
    topological_order,
)
from seedgen.resolver import ReferenceResolver
from seedgen.scanner import ModelScanner
from seedgen.utils import Timer
from seedgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.generator")

Record = Dict[str, Any]

EMPTY_STRUCTURE_WARNING: str = "Incomplete model structure; partial data generated"


def _minimal_record() -> Record:
    now = utc_now()
    return {
        "_id": ObjectId(),
        "createdAt": now,
        "updatedAt": now,
        "__warning": EMPTY_STRUCTURE_WARNING,
    }


# ---------------------------------------------------------------------------
# DataGenerator
# ---------------------------------------------------------------------------


class DataGenerator:
    """
    Generates records for one structure at a time.

    Args:
        registry: Value strategies (defaults to the built-in set).
        fake:     Faker instance shared by every strategy.
        seed:     Seeds *fake* for reproducible realistic runs.
        locale:   Faker locale when *fake* is not given.
    """

    def __init__(
        self,
        registry: Optional[GenerationStrategyRegistry] = None,
        *,
        fake: Optional[Faker] = None,
        seed: Optional[int] = None,
        locale: str = "en_US",
    ) -> None:
        self._registry: GenerationStrategyRegistry = registry or GenerationStrategyRegistry()
        self._fake: Faker = fake or Faker(locale)
        if seed is not None:
            self._fake.seed_instance(seed)

    @property
    def registry(self) -> GenerationStrategyRegistry:
        return self._registry

    @property
    def fake(self) -> Faker:
        return self._fake

    def generate_record(
        self,
        structure: ModelStructure,
        index: int,
        realistic: bool = True,
        custom_values: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        if not isinstance(structure, ModelStructure):
            logger.warning(
                "Expected a ModelStructure, got %s — generating a minimal record.",
                type(structure).__name__,
            )
            return _minimal_record()

        if structure.is_empty:
            logger.warning(
                "Model '%s' has no fields — generating a minimal record.",
                structure.name,
            )
            return _minimal_record()

        overrides: Dict[str, Any] = dict(custom_values or {})
        record: Record = {"_id": ObjectId()}

        for fdef in structure.fields:
            if fdef.name in RESERVED_FIELDS:
                continue
            ctx: GenerationContext = GenerationContext(
                index=index,
                realistic=realistic,
                model_name=structure.name,
                model_structure=structure,
                fake=self._fake,
                custom_values=overrides,
            )
            value: Any = self._registry.generate_value(fdef, ctx)
            if value is OMITTED:
                continue
            record[fdef.name] = value

        now = utc_now()
        record["createdAt"] = now
        record["updatedAt"] = now
        return record

    def generate_records(
        self,
        structure: ModelStructure,
        count: int,
        realistic: bool = True,
        custom_values: Optional[Mapping[str, Any]] = None,
    ) -> List[Record]:
        name: str = getattr(structure, "name", type(structure).__name__)
        with Timer(f"generate {name}"):
            records: List[Record] = [
                self.generate_record(structure, i, realistic, custom_values)
                for i in range(count)
            ]
        logger.info("Generated %d record(s) for '%s'.", len(records), name)
        return records


# ---------------------------------------------------------------------------
# Seed report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class SeedStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class SeedReport:
    """Outcome of ``SeedPipeline.run()``."""

    success: bool = False
    output_format: str = ""
    output_target: str = ""

    # Metrics
    total_records: int = 0
    records_per_model: Dict[str, int] = field(default_factory=dict)
    model_order: List[str] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[SeedStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    storage_errors: List[str] = field(default_factory=list)
    skipped_models: List[str] = field(default_factory=list)

    data: Dict[str, List[Record]] = field(default_factory=dict)
    save_result: Optional[SaveResult] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  SeedGen — Seeding Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Format:           {self.output_format}")
        lines.append(f"  Target:           {self.output_target}")
        lines.append(f"  Models seeded:    {len(self.records_per_model)}")
        lines.append(f"  Records:          {self.total_records:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.records_per_model:
            lines.append(f"{'─'*60}")
            lines.append("  Records per model:")
            for name, count in self.records_per_model.items():
                lines.append(f"    • {name:<28s} {count:>7,}")

        for title, items, icon in (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Storage Errors", self.storage_errors, "✗"),
            ("Skipped Models", self.skipped_models, "⊘"),
        ):
            if items:
                lines.append(f"{'─'*60}")
                lines.append(f"  {title} ({len(items)}):")
                for item in items:
                    lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Config loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_config_file(
    path: Path,
    overrides: Optional[Mapping[str, Any]] = None,
) -> SeederConfig:
    """
    Load a seeder configuration file (JSON or YAML).

    Settings may sit at the top level or under a ``seeder`` key.  Non-None
    entries of *overrides* (typically CLI flags) win over the file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or fails validation.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        raw: Dict[str, Any] = _load_yaml_file(path)
    elif suffix == ".json":
        raw = _load_json_file(path)
    else:
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            raw = _load_json_file(path)
        except ValueError:
            raw = _load_yaml_file(path)

    section: Any = raw.get("seeder", raw)
    if not isinstance(section, dict):
        raise ValueError(f"'seeder' section in {path} must be a mapping.")

    merged: Dict[str, Any] = dict(section)
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return SeederConfig.model_validate(merged)
    except ValueError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# SeedPipeline: master orchestrator
# ---------------------------------------------------------------------------


class SeedPipeline:
    """
    End-to-end seeding run.

    Usage::

        pipeline = SeedPipeline(SeederConfig(resources_dir="src/api/domain/entities"))
        report = pipeline.run()
        print(report.summary())

    Structures may be supplied directly to ``run()`` to skip discovery.
    Only ``db`` runs open a database connection; file formats work offline
    and resolve anchor references against generated ids.
    """

    def __init__(
        self,
        config: SeederConfig,
        *,
        scanner: Optional[ModelScanner] = None,
        generator: Optional[DataGenerator] = None,
        connector: Optional[DatabaseConnector] = None,
        storage: Optional[StorageManager] = None,
    ) -> None:
        self._config: SeederConfig = config
        self._scanner: Optional[ModelScanner] = scanner
        self._generator: DataGenerator = generator or DataGenerator(
            seed=config.seed, locale=config.locale
        )
        self._connector: Optional[DatabaseConnector] = connector
        self._storage: Optional[StorageManager] = storage

        logger.debug(
            "SeedPipeline initialised: format=%s, count=%d, realistic=%s.",
            config.output_format,
            config.count,
            config.realistic,
        )

    @property
    def config(self) -> SeederConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def run(self, structures: Optional[Mapping[str, ModelStructure]] = None) -> SeedReport:
        report: SeedReport = SeedReport(
            output_format=str(self._config.output_format),
            output_target=self._config.output_path,
        )
        pipeline_start: float = time.perf_counter()

        if structures is None:
            discovered: Optional[Dict[str, ModelStructure]] = self._step_scan(report)
            if discovered is None:
                return self._finalise_report(report, time.perf_counter() - pipeline_start)
        else:
            discovered = dict(structures)

        if not self._step_validate(discovered, report):
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        selected: Dict[str, ModelStructure] = self._select(discovered)
        order: List[str] = self._step_order(selected, report)

        opened_here: bool = False
        connector: Optional[DatabaseConnector] = None
        if self._config.output_format == OutputFormat.DB:
            connector = self._connector or DatabaseConnector.shared(self._config.mongo_uri)
            opened_here = not connector.is_connected

        try:
            if connector is not None and opened_here:
                if not self._step_connect(connector, report):
                    return self._finalise_report(report, time.perf_counter() - pipeline_start)

            data: Dict[str, List[Record]] = self._step_generate(selected, order, report)
            self._step_resolve(selected, data, connector, report)
            report.data = data
            self._step_save(selected, data, connector, report)
        finally:
            if connector is not None and opened_here:
                connector.disconnect()

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Scan
    # -----------------------------------------------------------------

    def _step_scan(self, report: SeedReport) -> Optional[Dict[str, ModelStructure]]:
        with Timer("scan") as t:
            try:
                scanner: ModelScanner = self._scanner or ModelScanner(self._config.resources_dir)
                structures: Dict[str, ModelStructure] = scanner.get_all_models()
            except SeedGenError as exc:
                report.generation_errors.append(str(exc))
                report.step_metrics.append(SeedStepMetric(
                    step_name="Scan Models",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=str(exc),
                ))
                logger.error("Model discovery failed: %s", exc)
                return None

        report.step_metrics.append(SeedStepMetric(
            step_name="Scan Models",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(structures)} model(s) found",
        ))
        return structures

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        structures: Dict[str, ModelStructure],
        report: SeedReport,
    ) -> bool:
        with Timer("validation") as t:
            result: ValidationResult = validate_full(structures, self._config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(SeedStepMetric(
            step_name="Validate Models",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for warning in result.warnings:
            logger.warning("  ⚠ %s", warning)
        for error in result.errors:
            logger.error("  ✗ %s", error)
        return result.is_valid

    def _select(self, structures: Dict[str, ModelStructure]) -> Dict[str, ModelStructure]:
        if not self._config.models:
            return structures
        wanted = set(self._config.models)
        return {name: s for name, s in structures.items() if name in wanted}

    # -----------------------------------------------------------------
    # Pipeline step: Dependency order
    # -----------------------------------------------------------------

    def _step_order(
        self,
        structures: Dict[str, ModelStructure],
        report: SeedReport,
    ) -> List[str]:
        with Timer("order") as t:
            order: List[str] = topological_order(list(structures.values()))
        logger.info("Generation order: %s", " → ".join(order) or "(none)")
        report.model_order = order
        report.step_metrics.append(SeedStepMetric(
            step_name="Order Models",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(order)} model(s) ordered",
        ))
        return order

    # -----------------------------------------------------------------
    # Pipeline step: Connect (db format only)
    # -----------------------------------------------------------------

    def _step_connect(self, connector: DatabaseConnector, report: SeedReport) -> bool:
        with Timer("connect") as t:
            try:
                connector.connect()
            except SeedGenError as exc:
                report.storage_errors.append(str(exc))
                logger.error("%s", exc)
                ok: bool = False
            else:
                ok = True
        report.step_metrics.append(SeedStepMetric(
            step_name="Connect to MongoDB",
            success=ok,
            elapsed_seconds=t.elapsed,
            detail=connector.masked_uri,
        ))
        return ok

    # -----------------------------------------------------------------
    # Pipeline step: Generation
    # -----------------------------------------------------------------

    def _step_generate(
        self,
        structures: Dict[str, ModelStructure],
        order: List[str],
        report: SeedReport,
    ) -> Dict[str, List[Record]]:
        data: Dict[str, List[Record]] = {}

        with Timer("generation") as t:
            for name in order:
                structure: ModelStructure = structures[name]
                try:
                    data[name] = self._generator.generate_records(
                        structure,
                        self._config.count_for(name),
                        self._config.realistic,
                        self._config.custom_values_for(name),
                    )
                except Exception as exc:
                    error_msg: str = (
                        f"Generation failed for '{name}': {type(exc).__name__}: {exc}"
                    )
                    report.generation_errors.append(error_msg)
                    report.skipped_models.append(name)
                    logger.error(error_msg, exc_info=True)

        report.records_per_model = {name: len(records) for name, records in data.items()}
        report.total_records = sum(report.records_per_model.values())
        report.step_metrics.append(SeedStepMetric(
            step_name="Generate Records",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_records:,} record(s), {len(data)} model(s)",
        ))
        return data

    # -----------------------------------------------------------------
    # Pipeline step: Reference resolution
    # -----------------------------------------------------------------

    def _step_resolve(
        self,
        structures: Dict[str, ModelStructure],
        data: Dict[str, List[Record]],
        connector: Optional[DatabaseConnector],
        report: SeedReport,
    ) -> None:
        rng: random.Random = random.Random(self._config.seed)
        resolver: ReferenceResolver = ReferenceResolver(
            connector=connector,
            anchor_models=self._config.anchor_models,
            rng=rng,
        )
        resolver.set_models(structures)
        resolver.set_generated_data(data)

        with Timer("resolve") as t:
            resolver.resolve_all(data)

        reference_count: int = sum(
            len(structures[name].references) * len(records)
            for name, records in data.items()
        )
        report.step_metrics.append(SeedStepMetric(
            step_name="Resolve References",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{reference_count:,} reference(s)",
        ))

    # -----------------------------------------------------------------
    # Pipeline step: Save
    # -----------------------------------------------------------------

    def _step_save(
        self,
        structures: Dict[str, ModelStructure],
        data: Dict[str, List[Record]],
        connector: Optional[DatabaseConnector],
        report: SeedReport,
    ) -> None:
        storage: StorageManager = self._storage or StorageManager(
            connector=connector,
            structures=structures,
            expected_models=self._config.expected_models,
            mongo_uri=self._config.mongo_uri,
        )

        result: Optional[SaveResult] = None
        with Timer("save") as t:
            try:
                result = storage.save_data(
                    data, self._config.output_path, self._config.output_format
                )
            except SeedGenError as exc:
                report.storage_errors.append(str(exc))
                logger.error("Saving failed: %s", exc)

        if result is not None:
            report.save_result = result
            report.output_target = result.target
            detail: str = f"{result.total_records:,} record(s) → {result.target}"
        else:
            detail = report.storage_errors[-1]

        report.step_metrics.append(SeedStepMetric(
            step_name="Save Data",
            success=result is not None,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: SeedReport, total_elapsed: float) -> SeedReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors
            or report.generation_errors
            or report.storage_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EMPTY_STRUCTURE_WARNING",
    "DataGenerator",
    "SeedStepMetric",
    "SeedReport",
    "SeedPipeline",
    "load_config_file",
]

logger.debug("seedgen.generator loaded.")
