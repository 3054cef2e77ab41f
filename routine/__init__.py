"""Routine planner core — the time-derived state behind the daily display.

Public API re-exports for convenient imports:
    from routine import RoutineEngine, JsonFileStore, colors_at, ...
"""

# Workspace & settings
from routine.workspace import (
    workspace_root,
    today_str,
    Settings,
    load_settings,
    init_workspace,
    settings_path,
    store_path,
)

# Persistence
from routine.storage import (
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
)

# Ambient colors
from routine.ambient import (
    SKY_STOPS,
    colors_at,
    gradient_css,
    mix_hex,
)

# Plan
from routine.plan import (
    PlanError,
    default_plan,
    validate_plan,
    parse_plan,
    load_plan,
    save_plan,
    with_times,
    plan_times,
)

# Completion flags
from routine.done import (
    load_done,
    save_done,
    ensure_today,
    reset_all,
)

# Projection
from routine.projector import project, progress_percent

# Timers
from routine.timer import (
    advance,
    bedtime_timer,
    manual_timer,
    load_study_timer,
    save_study_timer,
    study_total_seconds,
)

# Engine
from routine.engine import RoutineEngine, derive_snapshot
from routine.ticker import Ticker

# Models
from routine.models import (
    BLOCK_KEYS,
    Block,
    BlockView,
    ColorStop,
    DoneState,
    Icon,
    Plan,
    Snapshot,
    TimerMode,
    TimerPhase,
    TimerState,
    format_hhmm,
    format_hms,
    parse_hhmm,
)
