"""
zodgen - Utility Functions & Helpers
====================================
Naming helpers, path helpers, checksums and the ``Timer`` context manager
used throughout the generation pipeline.

Performance strategy:
- String-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  because the same type and model names are converted thousands of times.
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import FrozenSet, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_TS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Files that survive a clean of the output directory
_PRESERVED_NAMES: FrozenSet[str] = frozenset({".git", ".gitignore", ".gitkeep"})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """
    Upper-case the first character only, leaving the rest untouched.

    Examples:
        >>> capitalize_first("findMany")
        'FindMany'
        >>> capitalize_first("user")
        'User'
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def is_ts_identifier(name: str) -> bool:
    """True if *name* can be used as a bare object key in TypeScript."""
    return bool(_TS_IDENTIFIER_RE.match(name))


def quote_ts_string(value: str) -> str:
    """Double-quoted TypeScript string literal (JSON escaping rules)."""
    return json.dumps(value, ensure_ascii=False)


def object_key(name: str) -> str:
    """Render an object key, quoting it only when necessary."""
    return name if is_ts_identifier(name) else quote_ts_string(name)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def to_posix_path(path: str) -> str:
    """Normalise OS separators to forward slashes (module specifiers)."""
    return path.replace(os.sep, "/")


def relative_module_path(from_dir: str, to_path: str) -> str:
    """
    POSIX relative path from *from_dir* to *to_path*, usable as an import.

    A leading ``./`` is added when the result would otherwise look like a
    bare package name.
    """
    rel: str = to_posix_path(os.path.relpath(to_path, from_dir))
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def clean_directory(path: Path) -> List[str]:
    """
    Remove all contents of *path* without removing the directory itself.

    ``.git``, ``.gitignore`` and ``.gitkeep`` are preserved.  Returns one
    message per entry that could not be removed.
    """
    failures: List[str] = []
    if not path.exists():
        return failures

    for item in path.iterdir():
        if item.name in _PRESERVED_NAMES:
            continue
        try:
            if item.is_dir():
                shutil.rmtree(item)
            else:
                item.unlink()
        except OSError as exc:
            failures.append(f"Could not remove {item}: {exc}")

    logger.debug("Cleaned directory: %s (%d failure(s))", path, len(failures))
    return failures


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string. O(n)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("assemble units") as t:
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
    "capitalize_first",
    "is_ts_identifier",
    "quote_ts_string",
    "object_key",
    "to_posix_path",
    "relative_module_path",
    "ensure_directory",
    "clean_directory",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("zodgen.utils loaded — %d public symbols.", len(__all__))
