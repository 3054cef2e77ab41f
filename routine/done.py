"""Per-day completion flags with automatic date rollover."""

from __future__ import annotations

import logging
from typing import Any

from routine.models import BLOCK_KEYS, DoneState
from routine.storage import DONE_KEY, KeyValueStore, get_json, set_json

logger = logging.getLogger(__name__)


def _stored(store: KeyValueStore) -> dict[str, Any]:
    data = get_json(store, DONE_KEY)
    if data is not None and not isinstance(data, dict):
        logger.warning("Stored completion flags malformed, resetting")
        return {}
    return data or {}


def load_done(store: KeyValueStore, today: str) -> DoneState:
    """Load stored flags; all-false when absent or corrupt."""
    return DoneState.from_dict(_stored(store), today)


def save_done(store: KeyValueStore, state: DoneState) -> None:
    set_json(store, DONE_KEY, state.to_dict())


def reset_all(today: str) -> DoneState:
    return DoneState(day=today)


def toggle(state: DoneState, key: str) -> DoneState:
    """Return a copy of *state* with one block's flag flipped."""
    if key not in BLOCK_KEYS:
        raise ValueError(f"Unknown block: {key}")
    flags = dict(state.flags)
    flags[key] = not flags[key]
    return DoneState(day=state.day, flags=flags)


def ensure_today(store: KeyValueStore, today: str) -> DoneState:
    """Load flags, resetting and persisting them if they belong to another day.

    Compares dates on every call, so a late or skipped tick around
    midnight still resets. Undated flags are stamped with today and
    saved, so they reset on the next day like any other record.
    """
    data = _stored(store)
    state = DoneState.from_dict(data, today)
    if state.day != today:
        logger.info("New day %s (flags were for %s), resetting completion", today, state.day)
        state = reset_all(today)
        save_done(store, state)
    elif data and not data.get("day"):
        logger.info("Undated completion flags stamped with %s", today)
        save_done(store, state)
    return state
