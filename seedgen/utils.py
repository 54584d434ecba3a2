# File: seedgen/utils.py
"""
SeedGen - Utility Functions & Helpers
======================================
Naming, file I/O and timing helpers shared across the seeding pipeline.

- Collection naming (``pluralize`` / ``collection_name``) is cached with
  ``@lru_cache`` since it runs once per record batch and per reference.
- File writes go through a temp file in the target directory followed by an
  atomic ``os.replace`` so an interrupted run never leaves a half-written
  seed file behind.
"""

from __future__ import annotations

import functools
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_URI_CREDENTIALS_RE: re.Pattern[str] = re.compile(r"mongodb(\+srv)?://[^@/]+@")

# Nouns whose plural is irregular, invariant or already plural in entity names
_IRREGULAR_PLURALS: Dict[str, str] = {
    "media": "media",
    "data": "data",
    "series": "series",
    "species": "species",
    "sheep": "sheep",
    "fish": "fish",
    "deer": "deer",
    "equipment": "equipment",
    "information": "information",
    "money": "money",
    "news": "news",
    "settings": "settings",
    "tags": "tags",
    "menus": "menus",
    "stats": "stats",
    "status": "status",
    "metrics": "metrics",
    "contents": "contents",
    "details": "details",
    "analytics": "analytics",
}


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def pluralize(word: str) -> str:
    """
    Naive English pluralisation for collection names.

    Examples:
        >>> pluralize("category")
        'categories'
        >>> pluralize("box")
        'boxes'
        >>> pluralize("media")
        'media'
        >>> pluralize("users")
        'users'
    """
    if not word:
        return ""

    lower: str = word.lower()
    if lower in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[lower]

    # Already plural-looking
    if lower.endswith("s") and len(lower) > 3 and not lower.endswith("ss"):
        return lower
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return lower[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return lower + "es"
    return lower + "s"


@functools.lru_cache(maxsize=None)
def collection_name(model_name: str) -> str:
    """MongoDB collection used for an entity: lower-case plural."""
    return pluralize(model_name.lower())


def mask_mongo_uri(uri: str) -> str:
    """Hide credentials before a connection string reaches the logs."""
    return _URI_CREDENTIALS_RE.sub(
        lambda m: f"mongodb{m.group(1) or ''}://*****:*****@", uri
    )


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first and then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("generate Post") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "pluralize",
    "collection_name",
    "mask_mongo_uri",
    "ensure_directory",
    "write_file",
    "read_file",
    "count_lines",
    "Timer",
]

logger.debug("seedgen.utils loaded — %d public symbols.", len(__all__))
