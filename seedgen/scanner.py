# File: seedgen/scanner.py
"""
SeedGen - Entity Discovery
===========================
Finds entity schema sources on disk.  Each entity lives in its own
directory named after it, e.g.::

    src/api/domain/entities/
        Product/ProductModel.ts
        Post/Post.schema.ts
        Tag/Tag.yaml

When the resources directory has an ``api`` path segment, the sibling tree
with ``api`` replaced by ``core`` is searched as well.  Sources are read
with the analysis ``StrategyRegistry``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from seedgen.analysis import StrategyRegistry
from seedgen.models import ConfigurationError, ModelStructure
from seedgen.utils import read_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.scanner")

# File names tried in order; "{name}" is the entity directory name.
SOURCE_FILE_PATTERNS: Sequence[str] = (
    "{name}Model.ts",
    "{name}Schema.ts",
    "{name}.model.ts",
    "{name}.schema.ts",
    "{name}.ts",
    "{name}.yaml",
    "{name}.yml",
    "{name}.json",
)


def search_roots(resources_dir: Path) -> List[Path]:
    """The resources directory plus its ``api`` → ``core`` sibling, if any."""
    roots: List[Path] = [resources_dir]
    parts: List[str] = list(resources_dir.parts)
    if "api" in parts:
        parts[parts.index("api")] = "core"
        sibling: Path = Path(*parts)
        if sibling != resources_dir:
            roots.append(sibling)
    return roots


class ModelScanner:
    """
    Lists and analyses the entities found under a resources directory.

    Raises:
        ConfigurationError: If *resources_dir* does not exist.
    """

    def __init__(
        self,
        resources_dir: str | Path,
        registry: Optional[StrategyRegistry] = None,
    ) -> None:
        self.resources_dir: Path = Path(resources_dir)
        if not self.resources_dir.is_dir():
            raise ConfigurationError(
                f"Resources directory not found: {self.resources_dir}"
            )
        self._registry: StrategyRegistry = registry or StrategyRegistry()
        self._roots: List[Path] = search_roots(self.resources_dir)

    @property
    def roots(self) -> List[Path]:
        return list(self._roots)

    def find_source(self, model_name: str) -> Optional[Path]:
        """First existing schema source for *model_name* across all roots."""
        for root in self._roots:
            entity_dir: Path = root / model_name
            if not entity_dir.is_dir():
                continue
            for pattern in SOURCE_FILE_PATTERNS:
                candidate: Path = entity_dir / pattern.format(name=model_name)
                if candidate.is_file():
                    return candidate
        return None

    def list_available_models(self) -> List[str]:
        names: List[str] = []
        for root in self._roots:
            if not root.is_dir():
                continue
            for entity_dir in root.iterdir():
                if not entity_dir.is_dir() or entity_dir.name in names:
                    continue
                if self.find_source(entity_dir.name) is not None:
                    names.append(entity_dir.name)
        names.sort()
        logger.debug("Found %d entity source(s): %s", len(names), names)
        return names

    def get_model_info(self, model_name: str) -> Optional[ModelStructure]:
        source: Optional[Path] = self.find_source(model_name)
        if source is None:
            logger.warning("No schema source found for model '%s'.", model_name)
            return None
        logger.debug("Reading schema source for '%s' from %s", model_name, source)
        return self._registry.analyze_model(model_name, read_file(source))

    def get_all_models(self) -> Dict[str, ModelStructure]:
        models: Dict[str, ModelStructure] = {}
        for name in self.list_available_models():
            structure: Optional[ModelStructure] = self.get_model_info(name)
            if structure is not None:
                models[name] = structure
        return models


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SOURCE_FILE_PATTERNS",
    "search_roots",
    "ModelScanner",
]

logger.debug("seedgen.scanner loaded.")
