"""Workspace file I/O: settings.yaml and the store.json record.

Reads treat a missing file as empty. Writes replace the target in one
rename so a crash mid-tick never leaves a half-written store behind.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """UTF-8 contents of *path*, or "" when it does not exist.

    Raises UnicodeDecodeError for undecodable bytes.
    """
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def read_json(path: Path) -> dict[str, Any]:
    """Load the store record. Missing, blank or non-object content reads as {}.

    Raises ValueError (JSONDecodeError, UnicodeDecodeError) on malformed
    content; the store decides how to recover.
    """
    text = read_text(path)
    if not text.strip():
        return {}
    result = json.loads(text)
    return result if isinstance(result, dict) else {}


def read_yaml(path: Path) -> dict[str, Any]:
    """Load settings.yaml as a mapping; anything else reads as {}."""
    text = read_text(path)
    if not text.strip():
        return {}
    loaded = yaml.safe_load(text)
    return loaded if isinstance(loaded, dict) else {}


def _replace_file(path: Path, content: str, suffix: str) -> None:
    """Write *content* beside *path* under an exclusive lock, then rename over it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Persist the whole store record."""
    _replace_file(path, json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n", ".json")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    """Persist settings in the same key order users see in settings.yaml."""
    _replace_file(path, yaml.safe_dump(data, default_flow_style=False, sort_keys=False), ".yaml")
