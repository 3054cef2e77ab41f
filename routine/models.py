"""Typed dataclasses for the routine planner data model.

Persisted models use from_dict/to_dict for JSON serialization. Time-of-day
values are stored as "HH:MM" strings and held as datetime.time in Python.
Exported views (to_dict on ephemeral models) use camelCase keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Any


BLOCK_KEYS = ("wake", "gym", "classes", "study", "sleep")
PLAN_BLOCKS = ("gym", "classes", "study")

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


# ── Primitives ────────────────────────────────────────────────


def parse_hhmm(s: str) -> time:
    """Parse a 24-hour 'HH:MM' string. Raises ValueError when malformed."""
    m = _HHMM_RE.match(str(s).strip())
    if not m:
        raise ValueError(f"Invalid time of day: {s!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time of day out of range: {s!r}")
    return time(hour, minute)


def format_hhmm(t: time) -> str:
    return t.strftime("%H:%M")


def format_hms(seconds: int) -> str:
    """Format a second count as 'HH:MM:SS'."""
    seconds = max(0, int(seconds))
    hh, rest = divmod(seconds, 3600)
    mm, ss = divmod(rest, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


class Icon(str, Enum):
    DUMBBELL = "Dumbbell"
    GRADUATION_CAP = "GraduationCap"
    BOOK_OPEN_CHECK = "BookOpenCheck"
    SUN = "Sun"
    MOON = "Moon"

    @classmethod
    def parse(cls, value: Any, default: Icon) -> Icon:
        try:
            return cls(value)
        except ValueError:
            return default


# ── Plan ──────────────────────────────────────────────────────


@dataclass
class Block:
    """A configured activity with a same-day start and end."""

    start: time
    end: time
    title: str
    icon: Icon

    @classmethod
    def from_dict(cls, d: dict[str, Any], default_icon: Icon) -> Block:
        return cls(
            start=parse_hhmm(d["start"]),
            end=parse_hhmm(d["end"]),
            title=str(d.get("title", "")),
            icon=Icon.parse(d.get("icon"), default_icon),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": format_hhmm(self.start),
            "end": format_hhmm(self.end),
            "title": self.title,
            "icon": self.icon.value,
        }

    def duration_seconds(self) -> int:
        s = self.start.hour * 3600 + self.start.minute * 60
        e = self.end.hour * 3600 + self.end.minute * 60
        return max(0, e - s)


DEFAULT_ICONS = {
    "gym": Icon.DUMBBELL,
    "classes": Icon.GRADUATION_CAP,
    "study": Icon.BOOK_OPEN_CHECK,
}


@dataclass
class Plan:
    wake: time
    sleep: time
    gym: Block
    classes: Block
    study: Block

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Plan:
        """Build a plan from already-validated data (see plan.validate_plan)."""
        return cls(
            wake=parse_hhmm(d["wake"]),
            sleep=parse_hhmm(d["sleep"]),
            gym=Block.from_dict(d["gym"], DEFAULT_ICONS["gym"]),
            classes=Block.from_dict(d["classes"], DEFAULT_ICONS["classes"]),
            study=Block.from_dict(d["study"], DEFAULT_ICONS["study"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "wake": format_hhmm(self.wake),
            "gym": self.gym.to_dict(),
            "classes": self.classes.to_dict(),
            "study": self.study.to_dict(),
            "sleep": format_hhmm(self.sleep),
        }

    def block(self, key: str) -> Block:
        if key not in PLAN_BLOCKS:
            raise ValueError(f"Not a configurable block: {key}")
        return getattr(self, key)


# ── Completion flags ──────────────────────────────────────────


def _all_false() -> dict[str, bool]:
    return {k: False for k in BLOCK_KEYS}


@dataclass
class DoneState:
    day: str = ""
    flags: dict[str, bool] = field(default_factory=_all_false)

    @classmethod
    def from_dict(cls, d: dict[str, Any], today: str) -> DoneState:
        """Accepts {"day", "done"} records and legacy bare flag mappings."""
        if not d or not isinstance(d, dict):
            return cls(day=today)
        if "done" in d and isinstance(d["done"], dict):
            day = str(d.get("day") or today)
            raw = d["done"]
        else:
            day = today
            raw = d
        flags = _all_false()
        for k in BLOCK_KEYS:
            flags[k] = bool(raw.get(k, False))
        return cls(day=day, flags=flags)

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "done": dict(self.flags)}

    def count(self) -> int:
        return sum(1 for v in self.flags.values() if v)


# ── Timers ────────────────────────────────────────────────────


class TimerMode(str, Enum):
    MANUAL = "manual"
    CONTINUOUS = "continuous"


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TimerState:
    mode: TimerMode = TimerMode.MANUAL
    running: bool = False
    remaining_seconds: int = 0
    total_seconds: int = 0
    # Set by start, cleared by reset; tells paused-at-full from idle.
    started: bool = False

    @property
    def phase(self) -> TimerPhase:
        if self.running:
            return TimerPhase.RUNNING
        if self.remaining_seconds == 0:
            return TimerPhase.EXPIRED
        if self.started:
            return TimerPhase.PAUSED
        return TimerPhase.IDLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "phase": self.phase.value,
            "running": self.running,
            "remainingSeconds": self.remaining_seconds,
            "totalSeconds": self.total_seconds,
            "display": format_hms(self.remaining_seconds),
        }


# ── Ambient colors ────────────────────────────────────────────


@dataclass(frozen=True)
class ColorStop:
    minute: int
    top: str
    bottom: str


# ── Derived views ─────────────────────────────────────────────


@dataclass
class BlockView:
    key: str
    title: str
    icon: Icon
    start: time
    end: time
    is_active: bool = False
    progress: float = 0.0
    done: bool = False
    fixed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "icon": self.icon.value,
            "start": format_hhmm(self.start),
            "end": format_hhmm(self.end),
            "isActive": self.is_active,
            "progress": round(self.progress, 4),
            "done": self.done,
            "fixed": self.fixed,
        }


@dataclass
class Snapshot:
    now: datetime
    plan: Plan
    blocks: list[BlockView]
    ambient: tuple[str, str]
    study_timer: TimerState
    bedtime_timer: TimerState
    done: DoneState

    def to_dict(self) -> dict[str, Any]:
        top, bottom = self.ambient
        return {
            "now": self.now.isoformat(timespec="seconds"),
            "plan": self.plan.to_dict(),
            "blocks": [b.to_dict() for b in self.blocks],
            "ambient": {"top": top, "bottom": bottom},
            "studyTimer": self.study_timer.to_dict(),
            "bedtimeTimer": self.bedtime_timer.to_dict(),
            "done": self.done.to_dict(),
        }
