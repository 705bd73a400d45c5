"""Crash-safe file writes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml


def atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` so readers never see a partial file.

    The data goes to a temporary file in the same directory, is flushed to
    disk, and is then renamed over the destination.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def atomic_write_yaml(path: Path, data: Any, header: str | None = None) -> None:
    """Serialize ``data`` as YAML and write it atomically."""
    content = yaml.safe_dump(
        data,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
    if header:
        content = header + content
    atomic_write_text(path, content)
