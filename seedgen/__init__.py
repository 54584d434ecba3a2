# File: seedgen/__init__.py
"""
SeedGen — Synthetic Seed Data for MongoDB Entities
====================================================

Recovers entity structures from Mongoose / Zod schema source text (or
declarative YAML/JSON files), generates realistic or deterministic fake
records for them, wires cross-entity references to identifiers that
actually exist, and saves the result as JSON, as a ``mongosh`` script, or
straight into MongoDB.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  SeedPipeline  │────▶│  DataGenerator   │
    │   (cli.py)   │     │ (generator.py) │     │ (generation.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
          ┌─────────────┬────────┼─────────┬──────────────┐
          ▼             ▼        ▼         ▼              ▼
     ┌─────────┐  ┌──────────┐ ┌──────┐ ┌──────────┐ ┌───────────┐
     │ scanner │  │ analysis │ │models│ │ resolver │ │ exporters │
     └─────────┘  └──────────┘ └──────┘ └──────────┘ └─────┬─────┘
                                                           ▼
                                                      ┌──────────┐
                                                      │ database │
                                                      └──────────┘

Usage::

    # As a library
    from seedgen import SeedPipeline, SeederConfig
    report = SeedPipeline(SeederConfig(resources_dir="src/api/domain/entities")).run()
    print(report.summary())

    # From the command line
    seedgen generate -r src/api/domain/entities -n 20 -o seed.json

Public API:
    - SeedPipeline       — End-to-end seeding run
    - DataGenerator      — Records for one structure
    - StrategyRegistry   — Schema source analysis
    - ReferenceResolver  — Cross-entity reference wiring
    - StorageManager     — JSON / mongosh script / direct database output
    - ModelScanner       — Entity discovery on disk
    - validate_full      — Structure and config validation entry point
"""

from __future__ import annotations

__version__: str = "0.1.0"
__author__: str = "Diegoproggramer"
__license__: str = "MIT"

from seedgen.models import (
    ConfigurationError,
    FieldDefinition,
    FieldKind,
    GenerationContext,
    ModelStructure,
    OutputFormat,
    ReferenceDefinition,
    SeederConfig,
    SeedGenError,
    StorageError,
    topological_order,
)
from seedgen.analysis import (
    AnalysisStrategy,
    DeclarativeFileStrategy,
    MongooseSchemaStrategy,
    StrategyRegistry,
)
from seedgen.generation import (
    OMITTED,
    GenerationStrategyRegistry,
    ValueStrategy,
)
from seedgen.validators import validate_full, ValidationResult
from seedgen.utils import Timer, collection_name, pluralize
from seedgen.database import DatabaseConnector, ModelRegistry
from seedgen.resolver import ReferenceResolver
from seedgen.scanner import ModelScanner
from seedgen.exporters import SaveResult, StorageManager
from seedgen.generator import (
    DataGenerator,
    SeedPipeline,
    SeedReport,
    load_config_file,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Orchestration
    "SeedPipeline",
    "SeedReport",
    "DataGenerator",
    "load_config_file",
    # Models
    "FieldKind",
    "FieldDefinition",
    "ReferenceDefinition",
    "ModelStructure",
    "GenerationContext",
    "OutputFormat",
    "SeederConfig",
    "topological_order",
    # Errors
    "SeedGenError",
    "ConfigurationError",
    "StorageError",
    # Analysis
    "AnalysisStrategy",
    "MongooseSchemaStrategy",
    "DeclarativeFileStrategy",
    "StrategyRegistry",
    # Generation
    "OMITTED",
    "ValueStrategy",
    "GenerationStrategyRegistry",
    # Validation
    "validate_full",
    "ValidationResult",
    # Persistence
    "DatabaseConnector",
    "ModelRegistry",
    "ReferenceResolver",
    "ModelScanner",
    "StorageManager",
    "SaveResult",
    # Utilities
    "Timer",
    "pluralize",
    "collection_name",
]
