"""Workspace root, settings, path helpers for the routine planner."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from routine.fileio import read_yaml, write_yaml_atomic

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def workspace_root() -> Path:
    """Get the workspace root directory (holds settings.yaml and store.json)."""
    return Path(
        os.environ.get("ROUTINE_ROOT", str(Path.home() / "routine"))
    ).expanduser().resolve()


def today_str(now: datetime) -> str:
    """ISO date (YYYY-MM-DD) of a local wall-clock datetime."""
    return now.date().isoformat()


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    tick_seconds: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        settings = cls()
        try:
            tick = float(d.get("tick_seconds", settings.tick_seconds))
            if tick > 0:
                settings.tick_seconds = tick
        except (TypeError, ValueError):
            pass
        level = str(d.get("log_level", settings.log_level)).upper()
        if level in VALID_LOG_LEVELS:
            settings.log_level = level
        return settings

    def to_dict(self) -> dict[str, Any]:
        return {"tick_seconds": self.tick_seconds, "log_level": self.log_level}


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, defaulting every missing or invalid value."""
    try:
        return Settings.from_dict(read_yaml(settings_path(root)))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Unreadable settings file, using defaults: %s", e)
        return Settings()


def init_workspace(root: Path | None = None) -> Path:
    """Create the workspace directory and a default settings.yaml if missing."""
    if root is None:
        root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    path = settings_path(root)
    if not path.exists():
        write_yaml_atomic(path, Settings().to_dict())
    return root


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def store_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "store.json"
