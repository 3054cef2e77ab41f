"""Plan persistence, validation and editing."""

from __future__ import annotations

import logging
from typing import Any

from routine.models import PLAN_BLOCKS, Plan, format_hhmm, parse_hhmm
from routine.storage import PLAN_KEY, KeyValueStore, get_json, set_json

logger = logging.getLogger(__name__)


DEFAULT_PLAN_DATA: dict[str, Any] = {
    "wake": "05:15",
    "gym": {"start": "05:30", "end": "07:00", "title": "Morning Gym", "icon": "Dumbbell"},
    "classes": {"start": "10:00", "end": "17:00", "title": "College Classes", "icon": "GraduationCap"},
    "study": {"start": "19:30", "end": "21:30", "title": "Evening Study (2h)", "icon": "BookOpenCheck"},
    "sleep": "22:00",
}

# Edit-form field name -> (block, "start"/"end"), or a top-level time key.
TIME_FIELDS: dict[str, tuple[str, str] | str] = {
    "wake": "wake",
    "sleep": "sleep",
    "gymStart": ("gym", "start"),
    "gymEnd": ("gym", "end"),
    "classStart": ("classes", "start"),
    "classEnd": ("classes", "end"),
    "studyStart": ("study", "start"),
    "studyEnd": ("study", "end"),
}


class PlanError(ValueError):
    """A plan edit was rejected. ``errors`` lists every problem found."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


def default_plan() -> Plan:
    return Plan.from_dict(DEFAULT_PLAN_DATA)


# ── Validation ────────────────────────────────────────────────


def _check_time(value: Any, name: str, errors: list[str]) -> bool:
    if not isinstance(value, str):
        errors.append(f"Missing or non-string time: {name}")
        return False
    try:
        parse_hhmm(value)
    except ValueError:
        errors.append(f"Invalid time for {name}: {value!r}")
        return False
    return True


def validate_plan(data: Any) -> list[str]:
    """Validate raw plan data and return list of errors (empty if valid)."""
    if not isinstance(data, dict):
        return ["Plan must be a mapping"]

    errors: list[str] = []
    _check_time(data.get("wake"), "wake", errors)
    _check_time(data.get("sleep"), "sleep", errors)

    for key in PLAN_BLOCKS:
        block = data.get(key)
        if not isinstance(block, dict):
            errors.append(f"Missing required block: {key}")
            continue
        ok_start = _check_time(block.get("start"), f"{key}.start", errors)
        ok_end = _check_time(block.get("end"), f"{key}.end", errors)
        if ok_start and ok_end and parse_hhmm(block["start"]) >= parse_hhmm(block["end"]):
            errors.append(f"{key} must start before it ends (same day)")
        if "title" in block and not isinstance(block["title"], str):
            errors.append(f"{key}.title must be a string")

    return errors


def parse_plan(data: Any) -> Plan:
    """Validate and build a Plan. Raises PlanError listing every problem."""
    errors = validate_plan(data)
    if errors:
        raise PlanError(errors)
    return Plan.from_dict(data)


def check_plan(plan: Plan) -> Plan:
    """Re-validate an already-built Plan (its times may be out of order)."""
    return parse_plan(plan.to_dict())


# ── Store ─────────────────────────────────────────────────────


def load_plan(store: KeyValueStore) -> Plan:
    """Load the stored plan, falling back to the default on any problem."""
    data = get_json(store, PLAN_KEY)
    if data is None:
        return default_plan()
    errors = validate_plan(data)
    if errors:
        logger.warning("Stored plan invalid (%s), using default plan", "; ".join(errors))
        return default_plan()
    return Plan.from_dict(data)


def save_plan(store: KeyValueStore, plan: Plan) -> None:
    """Persist the whole plan record."""
    set_json(store, PLAN_KEY, plan.to_dict())


# ── Editing ───────────────────────────────────────────────────


def with_times(plan: Plan, times: dict[str, str]) -> Plan:
    """Apply edit-form time fields to a plan, keeping titles and icons.

    Fields not present in *times* keep their current value. Raises
    PlanError when the result is invalid.
    """
    data = plan.to_dict()
    unknown = sorted(set(times) - set(TIME_FIELDS))
    if unknown:
        raise PlanError([f"Unknown time field: {name}" for name in unknown])
    for name, value in times.items():
        target = TIME_FIELDS[name]
        if isinstance(target, tuple):
            block, edge = target
            data[block][edge] = value
        else:
            data[target] = value
    return parse_plan(data)


def plan_times(plan: Plan) -> dict[str, str]:
    """Current plan as edit-form time fields (inverse of with_times)."""
    out = {}
    for name, target in TIME_FIELDS.items():
        if isinstance(target, tuple):
            block, edge = target
            out[name] = format_hhmm(getattr(plan.block(block), edge))
        else:
            out[name] = format_hhmm(getattr(plan, target))
    return out
