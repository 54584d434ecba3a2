# File: seedgen/exporters.py
"""
SeedGen - Dataset Storage
==========================

``StorageManager.save_data`` persists a generated dataset
(entity name → list of records) in one of three formats:

    json     one relaxed Extended JSON document (``{"$oid": ...}``,
             ``{"$date": ...}``), written atomically (temp file + rename).
             ``load_data`` reads it back to the same ObjectIds and datetimes.
    mongodb  a ``mongosh`` script: per entity a ``drop()`` followed by
             ``insertMany`` batches of ``BATCH_SIZE`` documents using
             ``ObjectId(...)`` / ``ISODate(...)`` literals, then the fixed
             unique index declarations.
    db       direct insertion through pymongo.  Each record is validated
             against the entity's registered document type; entities with
             no registered type get a permissive type inferred from their
             first record.  Batches are inserted unordered, so a rejected
             document never blocks the rest of its batch.

Records are never mutated.  Unknown formats and failed writes surface as
``StorageError``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from bson import ObjectId, json_util
from bson.json_util import JSONMode, JSONOptions
from pymongo import errors as mongo_errors

from seedgen.database import DatabaseConnector, ModelRegistry, RegisteredModel
from seedgen.models import (
    ConfigurationError,
    ModelStructure,
    OutputFormat,
    SeedGenError,
    StorageError,
)
from seedgen.utils import Timer, collection_name, count_lines, read_file, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.exporters")

BATCH_SIZE: int = 100

# Unique indexes declared at the end of every mongo script.
SCRIPT_INDEXES: Tuple[Tuple[str, str], ...] = (
    ("users", "email"),
    ("contents", "slug"),
)

DEFAULT_EXPECTED_MODELS: Tuple[str, ...] = ("User", "Content", "Media", "Settings")

JSON_OPTIONS: JSONOptions = JSONOptions(
    json_mode=JSONMode.RELAXED,
    tz_aware=True,
    tzinfo=timezone.utc,
)

Record = Dict[str, Any]
Dataset = Mapping[str, Sequence[Record]]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class SaveResult:
    """Outcome of one ``save_data`` call."""

    format: str
    target: str
    total_records: int = 0
    inserted: int = 0
    skipped: int = 0
    bytes_written: int = 0
    elapsed_seconds: float = 0.0
    per_model: Dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Value encoding
# ---------------------------------------------------------------------------


def iso_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_js_literal(value: Any) -> str:
    """Render a value as a mongo shell literal."""
    if isinstance(value, ObjectId):
        return f'ObjectId("{value}")'
    if isinstance(value, datetime):
        return f'ISODate("{iso_timestamp(value)}")'
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        members: str = ", ".join(
            f"{json.dumps(str(k))}: {to_js_literal(v)}" for k, v in value.items()
        )
        return "{ " + members + " }"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(to_js_literal(v) for v in value) + "]"
    return json.dumps(value, ensure_ascii=False)


def batched(records: Sequence[Record], size: int = BATCH_SIZE) -> Iterator[Sequence[Record]]:
    for start in range(0, len(records), size):
        yield records[start:start + size]


def render_json(data: Dataset) -> str:
    """Relaxed Extended JSON: ``{"$oid": ...}`` ids and ``{"$date": ...}`` dates."""
    return json_util.dumps(data, json_options=JSON_OPTIONS, indent=2, ensure_ascii=False) + "\n"


def parse_json(content: str) -> Dict[str, List[Record]]:
    """
    Decode a document written by ``render_json``.

    ObjectIds and dates come back as ``ObjectId`` and UTC-aware ``datetime``.

    Raises:
        StorageError: The content is not a JSON object of record lists.
    """
    try:
        data: Any = json_util.loads(content, json_options=JSON_OPTIONS)
    except ValueError as exc:
        raise StorageError(f"Error loading data: {exc}") from exc
    if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
        raise StorageError("Error loading data: expected an object of record lists.")
    return data


def render_mongo_script(data: Dataset, generated_at: Optional[datetime] = None) -> str:
    """Full ``mongosh`` script for *data*."""
    stamp: str = iso_timestamp(generated_at or datetime.now(timezone.utc))
    lines: List[str] = [
        "// MongoDB seed script generated by seedgen",
        f"// Generated at: {stamp}",
        "// Run with: mongosh <connection-uri> <this-file>",
        "",
    ]

    for entity, records in data.items():
        collection: str = collection_name(entity)
        lines.append(f"// {entity} ({len(records)} record(s))")
        lines.append(f"db.{collection}.drop();")
        if not records:
            lines.append(f"// No data for {entity}")
            lines.append("")
            continue
        for batch in batched(records):
            lines.append(f"db.{collection}.insertMany([")
            lines.extend(f"  {to_js_literal(record)}," for record in batch)
            lines.append("]);")
        lines.append("")

    lines.append("// Indexes")
    for collection, key in SCRIPT_INDEXES:
        lines.append(f"db.{collection}.createIndex({{ {key}: 1 }}, {{ unique: true }});")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# StorageManager
# ---------------------------------------------------------------------------


class StorageManager:
    """
    Writes generated datasets to a file or straight into MongoDB.

    Usage::

        storage = StorageManager(structures=structures)
        result = storage.save_data(data, "seed.json", "json")

    Args:
        connector:       Connection used by ``db`` mode.  Defaults to the
                         process-wide ``DatabaseConnector.shared(mongo_uri)``.
        registry:        Document types for ``db`` mode.
        structures:      Analysed structures loaded into *registry* before a
                         ``db`` write.
        expected_models: Entities whose absence from the registry is warned about.
    """

    def __init__(
        self,
        *,
        connector: Optional[DatabaseConnector] = None,
        registry: Optional[ModelRegistry] = None,
        structures: Optional[Mapping[str, ModelStructure]] = None,
        expected_models: Sequence[str] = DEFAULT_EXPECTED_MODELS,
        mongo_uri: Optional[str] = None,
    ) -> None:
        self._connector: Optional[DatabaseConnector] = connector
        self._registry: ModelRegistry = registry if registry is not None else ModelRegistry()
        self._structures: Dict[str, ModelStructure] = dict(structures or {})
        self._expected_models: List[str] = list(expected_models)
        self._mongo_uri: Optional[str] = mongo_uri

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    @property
    def connector(self) -> DatabaseConnector:
        if self._connector is None:
            self._connector = DatabaseConnector.shared(self._mongo_uri)
        return self._connector

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def save_data(
        self,
        data: Dataset,
        output_path: str | Path = "seed-data.json",
        fmt: str | OutputFormat = OutputFormat.JSON,
    ) -> SaveResult:
        """
        Persist *data* in format *fmt*.

        Raises:
            StorageError:       Unsupported format or a failed write.
            ConfigurationError: ``db`` mode with no document types registered.
        """
        try:
            output_format: OutputFormat = OutputFormat(str(getattr(fmt, "value", fmt)).lower())
        except ValueError:
            raise StorageError(f"Unsupported format: {fmt!r}") from None

        with Timer(f"save {output_format.value}") as timer:
            try:
                if output_format == OutputFormat.JSON:
                    result = self._save_json(data, Path(output_path))
                elif output_format == OutputFormat.MONGODB:
                    result = self._save_script(data, Path(output_path))
                else:
                    result = self._save_to_database(data)
            except SeedGenError:
                raise
            except (OSError, TypeError, ValueError, mongo_errors.PyMongoError) as exc:
                raise StorageError(f"Error saving data: {exc}") from exc

        result.elapsed_seconds = timer.elapsed
        result.per_model = {name: len(records) for name, records in data.items()}
        result.total_records = sum(result.per_model.values())
        logger.info(
            "Saved %d record(s) across %d model(s) as %s → %s (%.3fs).",
            result.total_records,
            len(result.per_model),
            result.format,
            result.target,
            result.elapsed_seconds,
        )
        return result

    def load_data(self, input_path: str | Path) -> Dict[str, List[Record]]:
        """
        Read a dataset previously written with ``fmt="json"``.

        Raises:
            StorageError: The file is missing, unreadable or not a dataset.
        """
        path: Path = Path(input_path)
        try:
            content: str = read_file(path)
        except OSError as exc:
            raise StorageError(f"Error loading data: {exc}") from exc
        data: Dict[str, List[Record]] = parse_json(content)
        logger.info(
            "Loaded %d record(s) across %d model(s) from %s.",
            sum(len(records) for records in data.values()),
            len(data),
            path,
        )
        return data

    # -----------------------------------------------------------------
    # Internal: file formats
    # -----------------------------------------------------------------

    def _save_json(self, data: Dataset, path: Path) -> SaveResult:
        content: str = render_json(data)
        size: int = write_file(path, content)
        return SaveResult(format=OutputFormat.JSON.value, target=str(path), bytes_written=size)

    def _save_script(self, data: Dataset, path: Path) -> SaveResult:
        if path.suffix != ".js":
            path = path.with_name(path.name + ".js")
        content: str = render_mongo_script(data)
        size: int = write_file(path, content)
        logger.debug("Mongo script has %d line(s).", count_lines(content))
        return SaveResult(format=OutputFormat.MONGODB.value, target=str(path), bytes_written=size)

    # -----------------------------------------------------------------
    # Internal: direct database writes
    # -----------------------------------------------------------------

    def _save_to_database(self, data: Dataset) -> SaveResult:
        connector: DatabaseConnector = self.connector
        opened_here: bool = not connector.is_connected
        if opened_here:
            connector.connect()

        result: SaveResult = SaveResult(format=OutputFormat.DB.value, target=connector.masked_uri)
        try:
            self._registry.load_models(self._structures.values())
            missing: List[str] = [m for m in self._expected_models if m not in self._registry]
            if missing:
                logger.warning("Expected model(s) not registered: %s", ", ".join(missing))
            if not len(self._registry):
                raise ConfigurationError(
                    "No document types are registered; cannot write to the database."
                )

            for entity, records in data.items():
                if not records:
                    logger.info("No data for %s — skipping.", entity)
                    continue
                model: RegisteredModel = (
                    self._registry.get(entity)
                    or self._registry.register_dynamic(entity, dict(records[0]))
                )
                inserted, skipped = self._insert_entity(connector, model, records)
                result.inserted += inserted
                result.skipped += skipped
        finally:
            if opened_here:
                connector.disconnect()
        return result

    def _insert_entity(
        self,
        connector: DatabaseConnector,
        model: RegisteredModel,
        records: Sequence[Record],
    ) -> Tuple[int, int]:
        valid: List[Record] = [dict(r) for r in records if model.is_valid(r)]
        skipped: int = len(records) - len(valid)
        if skipped:
            logger.warning(
                "%d %s record(s) failed validation and were skipped.", skipped, model.name
            )

        collection = connector.database[model.collection]
        inserted: int = 0
        for batch in batched(valid):
            try:
                outcome = collection.insert_many(list(batch), ordered=False)
                inserted += len(outcome.inserted_ids)
            except mongo_errors.BulkWriteError as exc:
                batch_inserted: int = int(exc.details.get("nInserted", 0))
                inserted += batch_inserted
                logger.warning(
                    "Batch for '%s' partially rejected: %d of %d inserted (%d write error(s)).",
                    model.collection,
                    batch_inserted,
                    len(batch),
                    len(exc.details.get("writeErrors", [])),
                )

        logger.info("Inserted %d/%d %s record(s) into '%s'.", inserted, len(records), model.name, model.collection)
        return inserted, skipped


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BATCH_SIZE",
    "SCRIPT_INDEXES",
    "SaveResult",
    "iso_timestamp",
    "JSON_OPTIONS",
    "to_js_literal",
    "render_json",
    "parse_json",
    "render_mongo_script",
    "StorageManager",
]

logger.debug("seedgen.exporters loaded.")
