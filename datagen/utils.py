# File: datagen/utils.py
"""
NexaFlow DataGen - Utility Functions & Helpers
===============================================
Small helpers shared by the pipeline, the exporters and the CLI:

- ``Timer``: context-manager stopwatch for pipeline steps.
- ``compact_json``: the single JSON rendering used for nested records in
  text encodings.
- ``write_file``: atomic (temp file + rename) UTF-8 writer for CLI output.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import tempfile
import time
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.utils")


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, (_dt.datetime, _dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def compact_json(value: Any) -> str:
    """
    Render *value* as compact JSON (no insignificant whitespace).

    Examples:
        >>> compact_json({"city": "Paris", "zip": "75001"})
        '{"city":"Paris","zip":"75001"}'
    """
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


def pretty_json(value: Any, indent_size: int = 2) -> str:
    return json.dumps(value, indent=indent_size, ensure_ascii=False, default=_json_default)


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
    first then renames it over the target, so readers never observe a
    half-written export.

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
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("generate records") as t:
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
    "compact_json",
    "pretty_json",
    "ensure_directory",
    "write_file",
    "Timer",
]

logger.debug("datagen.utils loaded - %d public symbols.", len(__all__))
