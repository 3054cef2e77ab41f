"""Countdown timers: pure state updates, no clock or I/O of their own.

The study timer runs in manual mode and moves between four phases:

    idle --start--> running --pause--> paused --start--> running
    running --tick reaching 0--> expired
    any --reset--> idle

Only a running timer consumes ticks. The bedtime countdown runs in
continuous mode: it is rebuilt from the clock every tick and ignores
start/pause/reset.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, time

from routine.models import Plan, TimerMode, TimerState
from routine.storage import STUDY_LEFT_KEY, STUDY_RUNNING_KEY, KeyValueStore, get_json, set_json

logger = logging.getLogger(__name__)


def manual_timer(total: int) -> TimerState:
    total = max(0, int(total))
    return TimerState(mode=TimerMode.MANUAL, running=False, remaining_seconds=total, total_seconds=total)


def advance(state: TimerState, elapsed: int = 1) -> TimerState:
    """Consume *elapsed* seconds. Reaching zero while running stops the timer."""
    if state.mode is TimerMode.CONTINUOUS or not state.running:
        return state
    remaining = max(0, state.remaining_seconds - max(0, elapsed))
    return replace(state, remaining_seconds=remaining, running=remaining > 0)


def start(state: TimerState) -> TimerState:
    if state.mode is TimerMode.CONTINUOUS or state.running or state.remaining_seconds == 0:
        return state
    return replace(state, running=True, started=True)


def pause(state: TimerState) -> TimerState:
    if state.mode is TimerMode.CONTINUOUS or not state.running:
        return state
    return replace(state, running=False)


def toggle(state: TimerState) -> TimerState:
    return pause(state) if state.running else start(state)


def reset(state: TimerState, total: int | None = None) -> TimerState:
    """Re-arm with the full duration (or a new *total*) and stop."""
    if state.mode is TimerMode.CONTINUOUS:
        return state
    total = state.total_seconds if total is None else max(0, int(total))
    return replace(state, running=False, started=False, remaining_seconds=total, total_seconds=total)


def resync_total(state: TimerState, new_total: int) -> TimerState:
    """Adopt a new configured duration, clamping remaining time; running is kept."""
    if state.mode is TimerMode.CONTINUOUS:
        return state
    new_total = max(0, int(new_total))
    return replace(
        state,
        total_seconds=new_total,
        remaining_seconds=min(state.remaining_seconds, new_total),
    )


# ── Bedtime ───────────────────────────────────────────────────


def bedtime_timer(now: datetime, sleep: time) -> TimerState:
    """Continuous countdown from *now* to today's bedtime."""
    target = now.replace(hour=sleep.hour, minute=sleep.minute, second=0, microsecond=0)
    remaining = max(0, math.floor((target - now).total_seconds()))
    total = sleep.hour * 3600 + sleep.minute * 60
    return TimerState(
        mode=TimerMode.CONTINUOUS,
        running=remaining > 0,
        remaining_seconds=min(remaining, total),
        total_seconds=total,
    )


# ── Study timer persistence ───────────────────────────────────


def study_total_seconds(plan: Plan) -> int:
    return plan.study.duration_seconds()


def load_study_timer(store: KeyValueStore, total: int) -> TimerState:
    """Restore the study timer; missing or malformed parts fall back to a fresh timer.

    A stopped timer with its full duration left restores as idle.
    """
    state = manual_timer(total)

    running = get_json(store, STUDY_RUNNING_KEY)
    left = get_json(store, STUDY_LEFT_KEY)

    if isinstance(left, (int, float)) and not isinstance(left, bool) and left >= 0:
        remaining = min(int(left), state.total_seconds)
        state = replace(state, remaining_seconds=remaining, started=remaining < state.total_seconds)
    elif left is not None:
        logger.warning("Stored study timer remaining %r invalid, using full duration", left)

    if running is True and state.remaining_seconds > 0:
        state = replace(state, running=True, started=True)
    return state


def save_study_timer(store: KeyValueStore, state: TimerState) -> None:
    set_json(store, STUDY_RUNNING_KEY, state.running)
    set_json(store, STUDY_LEFT_KEY, state.remaining_seconds)
