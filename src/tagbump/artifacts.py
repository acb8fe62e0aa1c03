"""Artifact writers with atomic I/O."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write bytes atomically."""
    ensure_parent(path)
    tmp_path = path.with_suffix(path.suffix + ".part")
    with open(tmp_path, "wb") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def ensure_parent(path: Path) -> None:
    """Ensure parent directory exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def write_json(report: dict[str, Any], path: Path) -> None:
    """Write the release report as indented JSON."""
    serialized = json.dumps(report, ensure_ascii=False, indent=2, sort_keys=True)
    atomic_write_bytes(Path(path), (serialized + "\n").encode("utf-8"))
