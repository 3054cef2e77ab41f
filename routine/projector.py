"""Derive per-block activity and progress from the plan and the clock."""

from __future__ import annotations

import math
from datetime import datetime, time

from routine.models import BlockView, DoneState, Icon, Plan

FIXED_BLOCKS = {"gym", "classes"}


def _at(now: datetime, t: time) -> datetime:
    """Today's instant for a time of day, in now's date and tzinfo."""
    return now.replace(hour=t.hour, minute=t.minute, second=0, microsecond=0)


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def block_status(start: time, end: time, now: datetime) -> tuple[bool, float]:
    """(is_active, progress) for a same-day span at *now*.

    A zero-length span is active only during its own second and never
    shows progress; an inverted span is never active.
    """
    start_dt, end_dt = _at(now, start), _at(now, end)
    span = (end_dt - start_dt).total_seconds()
    if span == 0:
        return (now - start_dt).total_seconds() < 1 and now >= start_dt, 0.0
    if span < 0:
        return False, 0.0
    is_active = start_dt <= now <= end_dt
    return is_active, clamp01((now - start_dt).total_seconds() / span)


def project(plan: Plan, now: datetime, done: DoneState | None = None) -> list[BlockView]:
    """Views for wake, gym, classes, study and sleep, in that order."""
    spans = [
        ("wake", "Wake Up", Icon.SUN, plan.wake, plan.gym.start),
        ("gym", plan.gym.title, plan.gym.icon, plan.gym.start, plan.gym.end),
        ("classes", plan.classes.title, plan.classes.icon, plan.classes.start, plan.classes.end),
        ("study", plan.study.title, plan.study.icon, plan.study.start, plan.study.end),
        ("sleep", "Sleep", Icon.MOON, plan.sleep, plan.sleep),
    ]
    views = []
    for key, title, icon, start, end in spans:
        is_active, progress = block_status(start, end, now)
        views.append(
            BlockView(
                key=key,
                title=title,
                icon=icon,
                start=start,
                end=end,
                is_active=is_active,
                progress=progress,
                done=bool(done.flags.get(key, False)) if done else False,
                fixed=key in FIXED_BLOCKS,
            )
        )
    return views


def progress_percent(view: BlockView) -> int:
    """Progress-bar width: at least a sliver while active, empty otherwise."""
    if not view.is_active:
        return 0
    return max(4, math.floor(view.progress * 100 + 0.5))
