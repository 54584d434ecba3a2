# File: seedgen/database.py
"""
SeedGen - MongoDB Connection & Document Type Registry
======================================================

``DatabaseConnector`` wraps a pymongo ``MongoClient``:

    - the URI defaults to ``$MONGO_URI`` (or ``mongodb://localhost:27017/cms-2025``);
    - credentials are masked whenever the URI is logged;
    - ``connect()`` is idempotent and ``disconnect()`` only closes a client
      the connector itself opened;
    - ``DatabaseConnector.shared()`` hands out one process-wide instance so a
      host process and the seeder can share a connection; asking for a
      different URI replaces it.

``ModelRegistry`` holds the document types a direct database write may use.
Types are pydantic models built from analysed ``ModelStructure`` objects,
matched case-insensitively by entity name.  For entities with no registered
type a permissive model is inferred from a sample record: every field
optional, extra fields allowed, and no unique constraints so repeated seeding
never collides.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, create_model
from pymongo import MongoClient
from pymongo import errors as mongo_errors
from pymongo.database import Database

from seedgen.models import (
    DEFAULT_MONGO_URI,
    ConfigurationError,
    FieldKind,
    ModelStructure,
    RESERVED_FIELDS,
    StorageError,
)
from seedgen.utils import collection_name, mask_mongo_uri

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.database")

SERVER_SELECTION_TIMEOUT_MS: int = 5000
SOCKET_TIMEOUT_MS: int = 45000
FALLBACK_DATABASE: str = "seedgen"


# ---------------------------------------------------------------------------
# DatabaseConnector
# ---------------------------------------------------------------------------


class DatabaseConnector:
    """Lazily opened pymongo connection."""

    _shared: ClassVar[Optional["DatabaseConnector"]] = None

    def __init__(
        self,
        uri: Optional[str] = None,
        *,
        client_factory: Callable[..., MongoClient] = MongoClient,
        server_selection_timeout_ms: int = SERVER_SELECTION_TIMEOUT_MS,
        socket_timeout_ms: int = SOCKET_TIMEOUT_MS,
    ) -> None:
        self.uri: str = uri or os.environ.get("MONGO_URI", DEFAULT_MONGO_URI)
        self._client_factory: Callable[..., MongoClient] = client_factory
        self._server_selection_timeout_ms: int = server_selection_timeout_ms
        self._socket_timeout_ms: int = socket_timeout_ms
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

    @classmethod
    def shared(cls, uri: Optional[str] = None) -> "DatabaseConnector":
        """
        Process-wide connector, created on first use.

        A *uri* that differs from the current connector's replaces it; the
        previous client is closed first.
        """
        current: Optional["DatabaseConnector"] = cls._shared
        if current is not None and uri and uri != current.uri:
            logger.warning(
                "Shared MongoDB connector switching from %s to %s; closing the previous client.",
                current.masked_uri,
                mask_mongo_uri(uri),
            )
            current.disconnect()
            cls._shared = None
        if cls._shared is None:
            cls._shared = cls(uri)
        return cls._shared

    @property
    def masked_uri(self) -> str:
        return mask_mongo_uri(self.uri)

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    @property
    def database(self) -> Database:
        if self._database is None:
            raise ConfigurationError(
                f"Not connected to MongoDB ({self.masked_uri}); call connect() first."
            )
        return self._database

    def connect(self) -> Database:
        """
        Open the client and verify it with a ``ping``.

        Raises:
            StorageError: If the server cannot be reached.
        """
        if self._database is not None:
            return self._database

        logger.info("Connecting to MongoDB at %s", self.masked_uri)
        client: MongoClient = self._client_factory(
            self.uri,
            serverSelectionTimeoutMS=self._server_selection_timeout_ms,
            socketTimeoutMS=self._socket_timeout_ms,
        )
        try:
            client.admin.command("ping")
        except mongo_errors.PyMongoError as exc:
            client.close()
            raise StorageError(
                f"Could not connect to MongoDB at {self.masked_uri}: {exc}"
            ) from exc

        self._client = client
        self._database = client.get_default_database(default=FALLBACK_DATABASE)
        logger.info("Connected to MongoDB database '%s'.", self._database.name)
        return self._database

    def disconnect(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database = None
        logger.info("Disconnected from MongoDB.")

    def __repr__(self) -> str:
        state: str = "connected" if self.is_connected else "idle"
        return f"<DatabaseConnector {self.masked_uri} {state}>"


# ---------------------------------------------------------------------------
# Document types
# ---------------------------------------------------------------------------

_KIND_TO_PYTHON: Dict[str, Any] = {
    FieldKind.STRING.value: str,
    FieldKind.NUMBER.value: float,
    FieldKind.BOOLEAN.value: bool,
    FieldKind.DATE.value: datetime,
    FieldKind.OBJECTID.value: Any,
    FieldKind.ARRAY.value: list,
    FieldKind.OBJECT.value: dict,
}

_PERMISSIVE_CONFIG: ConfigDict = ConfigDict(
    extra="allow",
    arbitrary_types_allowed=True,
)


@dataclass(frozen=True, slots=True)
class RegisteredModel:
    """A document type usable for direct database writes."""

    name: str
    collection: str
    schema: Type[BaseModel]
    dynamic: bool = False

    def is_valid(self, record: Dict[str, Any]) -> bool:
        try:
            self.schema.model_validate(record)
        except ValueError:
            return False
        return True


def _usable_field_name(name: str) -> bool:
    # pydantic rejects leading underscores and names shadowing BaseModel attributes
    return (
        name.isidentifier()
        and not name.startswith("_")
        and not hasattr(BaseModel, name)
    )


def _python_type_for_value(value: Any) -> Any:
    # bool before int: bool is an int subclass
    for runtime_type in (bool, int, float, str, datetime, list, dict):
        if isinstance(value, runtime_type):
            return runtime_type
    return Any


def build_document_schema(structure: ModelStructure) -> Type[BaseModel]:
    """Pydantic model mirroring an analysed structure (extra fields allowed)."""
    definitions: Dict[str, Tuple[Any, Any]] = {}
    for fdef in structure.fields:
        if fdef.name in RESERVED_FIELDS or not _usable_field_name(fdef.name):
            continue
        python_type: Any = _KIND_TO_PYTHON.get(str(fdef.type), Any)
        if fdef.type == FieldKind.NUMBER:
            python_type = float
        if fdef.required:
            definitions[fdef.name] = (python_type, ...)
        else:
            definitions[fdef.name] = (Optional[python_type], None)
    return create_model(  # type: ignore[call-overload]
        f"{structure.name}Document",
        __config__=_PERMISSIVE_CONFIG,
        **definitions,
    )


def infer_document_schema(name: str, sample: Dict[str, Any]) -> Type[BaseModel]:
    """
    Permissive model inferred from one record's runtime value types: every
    field optional, extra fields allowed, no unique constraints.
    """
    definitions: Dict[str, Tuple[Any, Any]] = {}
    for key, value in sample.items():
        if key in RESERVED_FIELDS or not _usable_field_name(key):
            continue
        python_type: Any = _python_type_for_value(value)
        if python_type in (int, float):
            python_type = float
        definitions[key] = (Optional[python_type], None)
    return create_model(  # type: ignore[call-overload]
        f"{name}DynamicDocument",
        __config__=_PERMISSIVE_CONFIG,
        **definitions,
    )


# ---------------------------------------------------------------------------
# ModelRegistry
# ---------------------------------------------------------------------------


class ModelRegistry:
    """Registered document types keyed case-insensitively by entity name."""

    def __init__(self) -> None:
        self._models: Dict[str, RegisteredModel] = {}

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._models

    @property
    def names(self) -> List[str]:
        return [m.name for m in self._models.values()]

    @property
    def dynamic_models(self) -> List[RegisteredModel]:
        return [m for m in self._models.values() if m.dynamic]

    def register(self, model: RegisteredModel) -> None:
        self._models[model.name.lower()] = model
        logger.debug(
            "Registered %s document type '%s' → collection '%s'.",
            "dynamic" if model.dynamic else "declared",
            model.name,
            model.collection,
        )

    def get(self, name: str) -> Optional[RegisteredModel]:
        return self._models.get(name.lower())

    def load_models(self, structures: Iterable[ModelStructure]) -> int:
        """Register a type per non-empty structure; returns how many were added."""
        added: int = 0
        for structure in structures:
            if structure.is_empty or structure.name in self:
                continue
            self.register(RegisteredModel(
                name=structure.name,
                collection=collection_name(structure.name),
                schema=build_document_schema(structure),
            ))
            added += 1
        logger.info("Loaded %d document type(s); %d registered in total.", added, len(self))
        return added

    def register_dynamic(self, name: str, sample: Dict[str, Any]) -> RegisteredModel:
        model: RegisteredModel = RegisteredModel(
            name=name,
            collection=collection_name(name),
            schema=infer_document_schema(name, sample),
            dynamic=True,
        )
        self.register(model)
        logger.warning(
            "No registered type for '%s' — inferred a permissive schema "
            "from its first record (%d field(s)).",
            name,
            len(model.schema.model_fields),
        )
        return model


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SERVER_SELECTION_TIMEOUT_MS",
    "SOCKET_TIMEOUT_MS",
    "DatabaseConnector",
    "RegisteredModel",
    "ModelRegistry",
    "build_document_schema",
    "infer_document_schema",
]

logger.debug("seedgen.database loaded.")
