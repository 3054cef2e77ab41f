"""Tests for routine/engine.py — composition, ticks, mutations, persistence."""

import json
from datetime import datetime, time

import pytest

from routine.done import save_done
from routine.engine import RoutineEngine, derive_snapshot
from routine.models import BLOCK_KEYS, DoneState, TimerPhase
from routine.plan import PlanError, default_plan, load_plan, parse_plan
from routine.storage import DONE_KEY, PLAN_KEY, STUDY_LEFT_KEY
from routine.timer import manual_timer


def test_initial_snapshot(engine, clock):
    snap = engine.get_snapshot()
    assert snap.now == clock.now
    assert snap.plan == default_plan()
    assert [b.key for b in snap.blocks] == list(BLOCK_KEYS)
    assert snap.study_timer.remaining_seconds == 7200
    assert snap.study_timer.phase is TimerPhase.IDLE
    assert snap.bedtime_timer.remaining_seconds == 2 * 3600 + 30 * 60
    assert snap.done.count() == 0


def test_get_snapshot_is_a_pure_read(engine, clock):
    first = engine.get_snapshot()
    clock.advance(60)
    assert engine.get_snapshot() is first


def test_study_session_scenario(engine, clock):
    engine.study_timer_start()
    for _ in range(3600):
        clock.advance(1)
        engine.tick()
    assert engine.get_snapshot().study_timer.remaining_seconds == 3600

    engine.study_timer_pause()
    for _ in range(100):
        clock.advance(1)
        engine.tick()
    assert engine.get_snapshot().study_timer.remaining_seconds == 3600

    engine.study_timer_reset()
    study = engine.get_snapshot().study_timer
    assert study.remaining_seconds == 7200
    assert study.running is False


def test_tick_recomputes_from_clock(engine, clock):
    clock.now = datetime(2026, 2, 11, 21, 0, 0)
    snap = engine.tick()
    assert snap.bedtime_timer.remaining_seconds == 3600
    study = {b.key: b for b in snap.blocks}["study"]
    assert study.is_active is True
    assert snap.now == clock.now


def test_timer_expires_and_persists(store, clock):
    engine = RoutineEngine(store, clock=clock)
    engine.replace_plan({**default_plan().to_dict(), "study": {
        "start": "19:30", "end": "19:31", "title": "Quick", "icon": "BookOpenCheck",
    }})
    engine.study_timer_start()
    for _ in range(61):
        engine.tick()
    study = engine.get_snapshot().study_timer
    assert study.phase is TimerPhase.EXPIRED
    assert store.get(STUDY_LEFT_KEY) == "0"


def test_study_timer_survives_restart(store, clock):
    engine = RoutineEngine(store, clock=clock)
    engine.study_timer_start()
    for _ in range(10):
        engine.tick()

    restored = RoutineEngine(store, clock=clock)
    study = restored.get_snapshot().study_timer
    assert study.remaining_seconds == 7190
    assert study.running is True


def test_toggle_done_persists(engine, store):
    snap = engine.toggle_done("study")
    assert snap.done.flags["study"] is True
    stored = json.loads(store.get(DONE_KEY))
    assert stored == {"day": "2026-02-11", "done": {k: k == "study" for k in BLOCK_KEYS}}


def test_toggle_done_unknown_key(engine):
    with pytest.raises(ValueError):
        engine.toggle_done("nap")


def test_reset_day(engine):
    engine.toggle_done("wake")
    engine.toggle_done("gym")
    assert engine.reset_day().done.count() == 0


def test_midnight_rollover_on_tick(engine, clock):
    engine.toggle_done("sleep")
    clock.now = datetime(2026, 2, 12, 0, 0, 1)
    snap = engine.tick()
    assert snap.done.count() == 0
    assert snap.done.day == "2026-02-12"


def test_rollover_after_missed_ticks(engine, clock):
    engine.toggle_done("classes")
    # Tick source stalled across midnight; first tick lands mid-morning.
    clock.now = datetime(2026, 2, 12, 9, 41, 17)
    assert engine.tick().done.count() == 0


def test_stale_flags_cleared_at_startup(store, clock):
    save_done(store, DoneState(day="2026-02-10", flags={k: True for k in BLOCK_KEYS}))
    clock.now = datetime(2026, 2, 11, 0, 0, 5)
    engine = RoutineEngine(store, clock=clock)
    assert engine.get_snapshot().done.flags == {k: False for k in BLOCK_KEYS}


def test_replace_plan_resyncs_study_timer(engine, plan_data, store):
    engine.study_timer_start()
    snap = engine.replace_plan(plan_data)
    assert snap.plan == parse_plan(plan_data)
    assert snap.study_timer.total_seconds == 3600
    assert snap.study_timer.remaining_seconds == 3600
    assert snap.study_timer.running is True
    assert load_plan(store) == parse_plan(plan_data)


def test_replace_plan_accepts_plan_object(engine, plan_data):
    plan = parse_plan(plan_data)
    assert engine.replace_plan(plan).plan == plan


def test_invalid_plan_rejected_without_side_effects(engine, plan_data, store):
    engine.study_timer_start()
    engine.tick()
    before_store = dict(store.data)
    before_snapshot = engine.get_snapshot()

    plan_data["study"]["end"] = "17:00"
    with pytest.raises(PlanError):
        engine.replace_plan(plan_data)

    assert store.data == before_store
    assert engine.plan == default_plan()
    assert engine.get_snapshot() is before_snapshot


def test_invalid_plan_object_rejected(engine, store):
    plan = default_plan()
    plan.gym.end = time(5, 0)
    with pytest.raises(PlanError):
        engine.replace_plan(plan)
    assert PLAN_KEY not in store.data


def test_edit_times(engine):
    snap = engine.edit_times({"sleep": "23:00", "studyEnd": "20:30"})
    assert snap.plan.sleep == time(23, 0)
    assert snap.plan.study.title == "Evening Study (2h)"
    assert snap.study_timer.total_seconds == 3600


def test_listeners_see_out_of_band_updates(engine):
    seen = []
    engine.subscribe(seen.append)
    engine.toggle_done("wake")
    engine.study_timer_toggle()
    engine.tick()
    assert len(seen) == 3
    assert seen[0].done.flags["wake"] is True
    assert seen[1].study_timer.running is True

    engine.unsubscribe(seen.append)
    engine.tick()
    assert len(seen) == 3


def test_derive_snapshot_is_pure():
    plan = default_plan()
    done = DoneState(day="2026-02-11")
    study = manual_timer(7200)
    now = datetime(2026, 2, 11, 5, 45)
    a = derive_snapshot(plan, done, study, now)
    b = derive_snapshot(plan, done, study, now)
    assert a == b
    assert a.ambient == ("#2b2d6e", "#ff7e5f")
    assert {v.key: v for v in a.blocks}["gym"].is_active is True


def test_snapshot_to_dict(engine):
    data = engine.get_snapshot().to_dict()
    assert data["studyTimer"]["display"] == "02:00:00"
    assert data["bedtimeTimer"]["mode"] == "continuous"
    assert data["blocks"][1]["title"] == "Morning Gym"
    assert data["done"]["day"] == "2026-02-11"
    assert set(data["ambient"]) == {"top", "bottom"}
