"""Unit tests for routine/timer.py — study and bedtime countdowns, no I/O."""

from datetime import datetime, time

import pytest

from routine import timer
from routine.models import TimerMode, TimerPhase, TimerState
from routine.plan import default_plan
from routine.storage import STUDY_LEFT_KEY, STUDY_RUNNING_KEY, MemoryStore


# ---- Helpers ----

def run(state: TimerState, ticks: int) -> TimerState:
    for _ in range(ticks):
        state = timer.advance(state, 1)
    return state


# ---- Manual mode ----

class TestManualMode:
    def test_fresh_timer_is_idle(self):
        state = timer.manual_timer(7200)
        assert state.phase is TimerPhase.IDLE
        assert state.remaining_seconds == 7200

    def test_idle_does_not_consume_ticks(self):
        assert run(timer.manual_timer(60), 10).remaining_seconds == 60

    def test_running_ticks_decrement_exactly(self):
        state = run(timer.start(timer.manual_timer(100)), 37)
        assert state.remaining_seconds == 63
        assert state.phase is TimerPhase.RUNNING

    def test_pause_freezes(self):
        state = timer.pause(run(timer.start(timer.manual_timer(100)), 10))
        assert state.phase is TimerPhase.PAUSED
        assert run(state, 500).remaining_seconds == 90

    def test_resume_from_pause(self):
        state = timer.pause(run(timer.start(timer.manual_timer(100)), 10))
        state = run(timer.start(state), 5)
        assert state.remaining_seconds == 85

    def test_reaching_zero_expires(self):
        state = run(timer.start(timer.manual_timer(5)), 5)
        assert state.remaining_seconds == 0
        assert state.running is False
        assert state.phase is TimerPhase.EXPIRED

    def test_floor_at_zero(self):
        state = run(timer.start(timer.manual_timer(3)), 10)
        assert state.remaining_seconds == 0

    def test_large_elapsed_floors(self):
        state = timer.advance(timer.start(timer.manual_timer(3)), 60)
        assert state.remaining_seconds == 0
        assert state.running is False

    def test_start_on_expired_is_noop(self):
        state = run(timer.start(timer.manual_timer(2)), 2)
        assert timer.start(state) == state

    def test_pause_before_first_tick_is_paused(self):
        state = timer.pause(timer.start(timer.manual_timer(60)))
        assert state.remaining_seconds == 60
        assert state.phase is TimerPhase.PAUSED
        assert timer.reset(state).phase is TimerPhase.IDLE

    def test_reset_rearms(self):
        state = run(timer.start(timer.manual_timer(2)), 2)
        state = timer.reset(state)
        assert state.remaining_seconds == 2
        assert state.running is False
        assert state.phase is TimerPhase.IDLE

    def test_reset_with_new_total(self):
        state = timer.reset(timer.start(timer.manual_timer(100)), 40)
        assert (state.remaining_seconds, state.total_seconds, state.running) == (40, 40, False)

    def test_toggle(self):
        state = timer.toggle(timer.manual_timer(10))
        assert state.running is True
        assert timer.toggle(state).running is False

    def test_resync_clamps_without_stopping(self):
        state = timer.start(timer.manual_timer(7200))
        state = timer.resync_total(state, 3600)
        assert state.remaining_seconds == 3600
        assert state.total_seconds == 3600
        assert state.running is True

    def test_resync_longer_keeps_remaining(self):
        state = run(timer.start(timer.manual_timer(100)), 30)
        state = timer.resync_total(state, 500)
        assert state.remaining_seconds == 70
        assert state.total_seconds == 500

    def test_study_block_scenario(self):
        plan = default_plan()
        total = timer.study_total_seconds(plan)
        assert total == 7200

        state = run(timer.start(timer.manual_timer(total)), 3600)
        assert state.remaining_seconds == 3600
        state = run(timer.pause(state), 100)
        assert state.remaining_seconds == 3600
        state = timer.reset(state)
        assert state.remaining_seconds == 7200


# ---- Continuous mode ----

class TestContinuousMode:
    def test_bedtime_remaining(self):
        state = timer.bedtime_timer(datetime(2026, 2, 11, 21, 0, 0), time(22, 0))
        assert state.mode is TimerMode.CONTINUOUS
        assert state.remaining_seconds == 3600
        assert state.total_seconds == 22 * 3600

    def test_bedtime_sub_second_floors(self):
        state = timer.bedtime_timer(datetime(2026, 2, 11, 21, 59, 58, 500000), time(22, 0))
        assert state.remaining_seconds == 1

    def test_bedtime_past_is_zero(self):
        state = timer.bedtime_timer(datetime(2026, 2, 11, 23, 30), time(22, 0))
        assert state.remaining_seconds == 0
        assert state.running is False

    def test_controls_are_noops(self):
        state = timer.bedtime_timer(datetime(2026, 2, 11, 21, 0), time(22, 0))
        assert timer.start(state) == state
        assert timer.pause(state) == state
        assert timer.reset(state) == state
        assert timer.resync_total(state, 10) == state
        assert timer.advance(state, 100) == state

    def test_matches_clock_regardless_of_history(self):
        sleep = time(22, 0)
        for hour, minute in [(0, 0), (8, 15), (19, 30), (21, 59), (22, 0), (23, 59)]:
            now = datetime(2026, 2, 11, hour, minute)
            expected = max(0, int((datetime(2026, 2, 11, 22, 0) - now).total_seconds()))
            assert timer.bedtime_timer(now, sleep).remaining_seconds == expected


# ---- Persistence ----

class TestPersistence:
    def test_load_defaults(self):
        state = timer.load_study_timer(MemoryStore(), 7200)
        assert state == timer.manual_timer(7200)

    def test_save_then_load(self):
        store = MemoryStore()
        state = run(timer.start(timer.manual_timer(7200)), 12)
        timer.save_study_timer(store, state)
        assert store.get(STUDY_RUNNING_KEY) == "true"
        assert store.get(STUDY_LEFT_KEY) == "7188"
        assert timer.load_study_timer(store, 7200) == state

    def test_stored_remaining_clamped_to_total(self):
        store = MemoryStore({STUDY_LEFT_KEY: "9000"})
        assert timer.load_study_timer(store, 3600).remaining_seconds == 3600

    @pytest.mark.parametrize("raw", ["null", "-5", '"abc"', "{broken", "true"])
    def test_malformed_remaining(self, raw):
        store = MemoryStore({STUDY_LEFT_KEY: raw})
        assert timer.load_study_timer(store, 3600).remaining_seconds == 3600

    def test_running_with_nothing_left_is_not_running(self):
        store = MemoryStore({STUDY_LEFT_KEY: "0", STUDY_RUNNING_KEY: "true"})
        state = timer.load_study_timer(store, 3600)
        assert state.running is False
        assert state.phase is TimerPhase.EXPIRED

    def test_partial_remaining_restores_paused(self):
        store = MemoryStore({STUDY_LEFT_KEY: "1800", STUDY_RUNNING_KEY: "false"})
        assert timer.load_study_timer(store, 3600).phase is TimerPhase.PAUSED
