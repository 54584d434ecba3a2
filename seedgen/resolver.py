# File: seedgen/resolver.py
"""
SeedGen - Cross-Model Reference Resolution
===========================================
Re-points the reference fields of generated records at identifiers that
actually exist, in this order of preference:

    1. real ``_id`` values already stored for an *anchor* model (``User`` by
       default), fetched once per resolver and capped at ``MAX_REAL_IDS``;
    2. identifiers of records generated in the same run;
    3. a freshly minted ``ObjectId`` (a dangling reference, logged once per
       model/field pair).

Array references pick between zero and ``MAX_ARRAY_REFERENCES`` distinct
identifiers from the same pool.  Resolution never raises: a failure on one
reference is logged and the field keeps whatever value it had.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from bson import ObjectId
from pymongo import errors as mongo_errors

from seedgen.database import DatabaseConnector
from seedgen.models import ModelStructure, ReferenceDefinition
from seedgen.utils import collection_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.resolver")

MAX_REAL_IDS: int = 10
MAX_ARRAY_REFERENCES: int = 3

Record = Dict[str, Any]


class ReferenceResolver:
    """
    Resolves ``ReferenceDefinition`` entries of a structure against real and
    generated identifier pools.

    Args:
        connector:     Optional database connection used for anchor models.
                       Never opened here; an idle connector means "no real ids".
        anchor_models: Entities whose stored ids are preferred over generated ones.
        rng:           Random source (defaults to a private ``random.Random``).
    """

    def __init__(
        self,
        *,
        connector: Optional[DatabaseConnector] = None,
        anchor_models: Iterable[str] = ("User",),
        rng: Optional[random.Random] = None,
    ) -> None:
        self._connector: Optional[DatabaseConnector] = connector
        self._anchor_models: Set[str] = {name.lower() for name in anchor_models}
        self._rng: random.Random = rng or random.Random()
        self._structures: Dict[str, ModelStructure] = {}
        self._generated: Dict[str, List[Record]] = {}
        self._real_ids: Dict[str, List[Any]] = {}
        self._dangling_warned: Set[Tuple[str, str]] = set()

    # -- Pools --------------------------------------------------------------

    def set_models(self, structures: Mapping[str, ModelStructure]) -> None:
        self._structures = {name.lower(): s for name, s in structures.items()}

    def set_generated_data(self, data: Mapping[str, List[Record]]) -> None:
        self._generated = {name.lower(): list(records) for name, records in data.items()}

    def add_generated_data(self, model_name: str, records: List[Record]) -> None:
        self._generated.setdefault(model_name.lower(), []).extend(records)

    def is_anchor(self, model_name: str) -> bool:
        return model_name.lower() in self._anchor_models

    def get_real_model_ids(self, model_name: str) -> List[Any]:
        """
        Up to ``MAX_REAL_IDS`` stored ids for *model_name*.

        Fetched once per resolver; a failed query caches an empty list.
        Nothing is cached while the connector is idle, so a later connection
        is still honoured.
        """
        key: str = model_name.lower()
        if key in self._real_ids:
            return self._real_ids[key]
        if self._connector is None or not self._connector.is_connected:
            return []

        collection: str = collection_name(model_name)
        try:
            cursor = (
                self._connector.database[collection]
                .find({}, {"_id": 1})
                .limit(MAX_REAL_IDS)
            )
            ids: List[Any] = [doc["_id"] for doc in cursor]
        except mongo_errors.PyMongoError as exc:
            logger.warning(
                "Could not read existing ids from '%s': %s", collection, exc
            )
            ids = []

        logger.info("Fetched %d real id(s) for '%s'.", len(ids), model_name)
        self._real_ids[key] = ids
        return ids

    def _generated_ids(self, model_name: str) -> List[Any]:
        return [
            record["_id"]
            for record in self._generated.get(model_name.lower(), [])
            if "_id" in record
        ]

    def _pool_for(self, model_name: str) -> List[Any]:
        if self.is_anchor(model_name):
            real: List[Any] = self.get_real_model_ids(model_name)
            if real:
                return real
        return self._generated_ids(model_name)

    # -- Resolution ---------------------------------------------------------

    def resolve_references(self, record: Record, structure: ModelStructure) -> Record:
        """Rewrite every reference field of *record* in place and return it."""
        for reference in structure.references:
            try:
                if reference.is_array:
                    record[reference.field] = self._resolve_array(reference)
                else:
                    record[reference.field] = self._resolve_single(structure.name, reference)
            except Exception as exc:
                logger.error(
                    "Could not resolve %s.%s → %s: %s: %s",
                    structure.name,
                    reference.field,
                    reference.model,
                    type(exc).__name__,
                    exc,
                )
        return record

    def resolve_all(self, data: Mapping[str, List[Record]]) -> None:
        """Resolve every record of every model with a known structure."""
        for model_name, records in data.items():
            structure: Optional[ModelStructure] = self._structures.get(model_name.lower())
            if structure is None or not structure.references:
                continue
            for record in records:
                self.resolve_references(record, structure)

    def _resolve_single(self, owner: str, reference: ReferenceDefinition) -> Any:
        pool: List[Any] = self._pool_for(reference.model)
        if pool:
            return self._rng.choice(pool)

        key: Tuple[str, str] = (owner, reference.field)
        if key not in self._dangling_warned:
            self._dangling_warned.add(key)
            logger.warning(
                "No '%s' records available for %s.%s — using fresh ObjectIds.",
                reference.model,
                owner,
                reference.field,
            )
        return ObjectId()

    def _resolve_array(self, reference: ReferenceDefinition) -> List[Any]:
        pool: List[Any] = self._pool_for(reference.model)
        if not pool:
            return [ObjectId()] if self._rng.random() < 0.5 else []

        wanted: int = self._rng.randint(0, min(MAX_ARRAY_REFERENCES, len(pool)))
        chosen: List[Any] = []
        rejections: int = 0
        # duplicates are rejected by value; retries are capped at the pool size
        while len(chosen) < wanted and rejections < len(pool):
            candidate: Any = self._rng.choice(pool)
            if candidate in chosen:
                rejections += 1
                continue
            chosen.append(candidate)
        return chosen


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAX_REAL_IDS",
    "MAX_ARRAY_REFERENCES",
    "ReferenceResolver",
]

logger.debug("seedgen.resolver loaded.")
