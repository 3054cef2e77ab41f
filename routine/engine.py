"""RoutineEngine: wires the stores, projector, timers and ambient colors.

The engine owns the current plan, the study timer and one tick source.
Everything else in a snapshot is rederived from the clock on each
tick, so presentation code only needs get_snapshot() plus the
mutation methods.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from routine import done as done_store
from routine import timer
from routine.ambient import colors_at
from routine.models import DoneState, Plan, Snapshot, TimerPhase, TimerState
from routine.plan import check_plan, load_plan, parse_plan, save_plan, with_times
from routine.projector import project
from routine.storage import KeyValueStore
from routine.ticker import Ticker
from routine.workspace import today_str

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[Snapshot], None]


def derive_snapshot(plan: Plan, done: DoneState, study: TimerState, now: datetime) -> Snapshot:
    """Everything the presentation layer shows, computed from scratch."""
    return Snapshot(
        now=now,
        plan=plan,
        blocks=project(plan, now, done),
        ambient=colors_at(now),
        study_timer=study,
        bedtime_timer=timer.bedtime_timer(now, plan.sleep),
        done=done,
    )


class RoutineEngine:
    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = datetime.now,
        tick_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._clock = clock
        self._plan = load_plan(store)
        self._study = timer.load_study_timer(store, timer.study_total_seconds(self._plan))
        self._listeners: list[Listener] = []
        self._ticker = Ticker(self.tick, tick_seconds)
        self._snapshot = self._refresh()

    # ---- Read model ----

    @property
    def plan(self) -> Plan:
        return self._plan

    def get_snapshot(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---- Tick ----

    def tick(self) -> Snapshot:
        """One tick: drain the study timer, then rederive everything else."""
        before = self._study
        self._study = timer.advance(before, 1)
        if self._study != before:
            timer.save_study_timer(self._store, self._study)
            if self._study.phase is TimerPhase.EXPIRED:
                logger.info("Study timer finished")
        return self._publish()

    def start(self) -> None:
        """Start the tick source on the running event loop."""
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    @property
    def ticking(self) -> bool:
        return self._ticker.running

    # ---- Mutations ----

    def toggle_done(self, key: str) -> Snapshot:
        state = done_store.ensure_today(self._store, today_str(self._clock()))
        state = done_store.toggle(state, key)
        done_store.save_done(self._store, state)
        return self._publish()

    def reset_day(self) -> Snapshot:
        done_store.save_done(self._store, done_store.reset_all(today_str(self._clock())))
        logger.info("Completion flags reset")
        return self._publish()

    def replace_plan(self, new_plan: Plan | dict[str, Any]) -> Snapshot:
        """Swap in a whole new plan. Raises PlanError, changing nothing, if invalid."""
        if isinstance(new_plan, Plan):
            plan = check_plan(new_plan)
        else:
            plan = parse_plan(new_plan)
        save_plan(self._store, plan)
        self._plan = plan
        self._set_study(timer.resync_total(self._study, timer.study_total_seconds(plan)))
        logger.info("Plan replaced")
        return self._publish()

    def edit_times(self, times: dict[str, str]) -> Snapshot:
        """Apply edit-form time fields, keeping titles and icons."""
        return self.replace_plan(with_times(self._plan, times))

    def study_timer_start(self) -> Snapshot:
        return self._study_action(timer.start)

    def study_timer_pause(self) -> Snapshot:
        return self._study_action(timer.pause)

    def study_timer_toggle(self) -> Snapshot:
        return self._study_action(timer.toggle)

    def study_timer_reset(self) -> Snapshot:
        return self._study_action(timer.reset)

    # ---- Internal ----

    def _study_action(self, action: Callable[[TimerState], TimerState]) -> Snapshot:
        new = action(self._study)
        if new.phase is not self._study.phase:
            logger.info("Study timer %s -> %s", self._study.phase.value, new.phase.value)
        self._set_study(new)
        return self._publish()

    def _set_study(self, state: TimerState) -> None:
        self._study = state
        timer.save_study_timer(self._store, state)

    def _refresh(self) -> Snapshot:
        now = self._clock()
        done = done_store.ensure_today(self._store, today_str(now))
        return derive_snapshot(self._plan, done, self._study, now)

    def _publish(self) -> Snapshot:
        self._snapshot = self._refresh()
        for listener in list(self._listeners):
            listener(self._snapshot)
        return self._snapshot
