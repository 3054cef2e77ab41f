"""String-keyed persistence for the routine planner.

The engine only ever needs ``get``/``set`` of string values, so any object
with those two methods can back it. Two implementations ship here: an
in-memory dict (tests, throwaway sessions) and a JSON file in the
workspace.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from routine.fileio import read_json, write_json_atomic

logger = logging.getLogger(__name__)

PLAN_KEY = "routine.plan.v1"
DONE_KEY = "routine.done.v1"
STUDY_RUNNING_KEY = "routine.study.timer.running"
STUDY_LEFT_KEY = "routine.study.timer.left"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """Store backed by one JSON object of string values, rewritten atomically."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data = self._read()

    def _read(self) -> dict[str, str]:
        try:
            raw = read_json(self.path)
        except (OSError, ValueError) as e:
            logger.warning("Store file %s unreadable, starting empty: %s", self.path, e)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        write_json_atomic(self.path, self._data)


def get_json(store: KeyValueStore, key: str) -> object | None:
    """Decode a stored JSON value; None when absent or malformed."""
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Malformed value under %s, ignoring", key)
        return None


def set_json(store: KeyValueStore, key: str, value: object) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))
