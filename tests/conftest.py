"""Shared test fixtures for routine planner tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import yaml

from routine.engine import RoutineEngine
from routine.storage import MemoryStore


class FakeClock:
    """Settable wall clock; call it like datetime.now."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 2, 11, 19, 30, 0))


@pytest.fixture
def engine(store: MemoryStore, clock: FakeClock) -> RoutineEngine:
    return RoutineEngine(store, clock=clock)


@pytest.fixture
def plan_data() -> dict:
    return {
        "wake": "06:00",
        "gym": {"start": "06:30", "end": "07:30", "title": "Gym", "icon": "Dumbbell"},
        "classes": {"start": "09:00", "end": "15:00", "title": "Lectures", "icon": "GraduationCap"},
        "study": {"start": "18:00", "end": "19:00", "title": "Study hour", "icon": "BookOpenCheck"},
        "sleep": "23:00",
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and a populated store."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    (root / "settings.yaml").write_text(
        yaml.dump({"tick_seconds": 0.5, "log_level": "debug"}, default_flow_style=False),
        encoding="utf-8",
    )

    store = {
        "routine.plan.v1": json.dumps({
            "wake": "05:15",
            "gym": {"start": "05:30", "end": "07:00", "title": "Morning Gym", "icon": "Dumbbell"},
            "classes": {"start": "10:00", "end": "17:00", "title": "College Classes", "icon": "GraduationCap"},
            "study": {"start": "19:30", "end": "21:30", "title": "Evening Study (2h)", "icon": "BookOpenCheck"},
            "sleep": "22:00",
        }),
        "routine.done.v1": json.dumps({"day": "2026-02-10", "done": {"wake": True, "gym": True}}),
        "routine.study.timer.running": "false",
        "routine.study.timer.left": "5400",
    }
    (root / "store.json").write_text(json.dumps(store, indent=2), encoding="utf-8")

    os.environ["ROUTINE_ROOT"] = str(root)
    yield root
    if "ROUTINE_ROOT" in os.environ:
        del os.environ["ROUTINE_ROOT"]
