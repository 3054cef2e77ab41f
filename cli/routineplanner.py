#!/usr/bin/env python3
"""Routine Planner TUI — the daily schedule display, powered by Textual."""

from __future__ import annotations

import logging
import sys

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ProgressBar,
    Static,
)

from routine import (
    JsonFileStore,
    PlanError,
    RoutineEngine,
    Snapshot,
    init_workspace,
    load_settings,
    plan_times,
    progress_percent,
    store_path,
    workspace_root,
)
from routine.models import BlockView, format_hhmm
from routine.plan import TIME_FIELDS

logger = logging.getLogger("routineplanner")

HABITS = [
    ("Drink water", "250ml now"),
    ("Pack bag for class", "10 mins"),
    ("Lay out gym clothes", "night before"),
]

FIELD_LABELS = {
    "wake": "Wake",
    "sleep": "Sleep",
    "gymStart": "Gym start",
    "gymEnd": "Gym end",
    "classStart": "Classes start",
    "classEnd": "Classes end",
    "studyStart": "Study start",
    "studyEnd": "Study end",
}


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
#main-layout {
    height: 1fr;
}

#blocks-pane {
    width: 2fr;
    min-width: 40;
    padding: 0 1;
}

#side-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    margin: 1 0 0 0;
    padding: 0 1;
}

.block-row {
    height: auto;
    padding: 0 1;
    margin: 0 0 1 0;
    background: $surface 60%;
}

.block-active {
    border-left: thick $accent;
}

.block-done {
    opacity: 60%;
}

.block-row Label {
    width: 1fr;
}

.block-row Button {
    min-width: 12;
}

.timer-panel {
    height: auto;
    padding: 0 1;
    margin: 1 0 0 0;
    background: $surface 60%;
}

.timer-value {
    text-style: bold;
}

.hint {
    color: $text-muted;
}

#plan-editor {
    display: none;
    height: auto;
    padding: 0 1;
}

#plan-editor Input {
    width: 1fr;
}
"""


class BlockRow(Vertical):
    """One schedule block: title, span, progress bar and done toggle."""

    def __init__(self, key: str) -> None:
        super().__init__(id=f"row-{key}", classes="block-row")
        self.block_key = key

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Label("", id=f"title-{self.block_key}")
            yield Button("Mark done", id=f"done-{self.block_key}")
        yield ProgressBar(total=100, show_eta=False, show_percentage=False, id=f"bar-{self.block_key}")
        yield Label("", id=f"note-{self.block_key}", classes="hint")

    def show(self, view: BlockView) -> None:
        span = format_hhmm(view.start) if view.start == view.end else f"{format_hhmm(view.start)} – {format_hhmm(view.end)}"
        self.query_one(f"#title-{self.block_key}", Label).update(f"{view.title}  [dim]{span}[/dim]")
        button = self.query_one(f"#done-{self.block_key}", Button)
        button.label = "Done" if view.done else "Mark done"
        button.variant = "success" if view.done else "default"
        self.query_one(f"#bar-{self.block_key}", ProgressBar).update(progress=progress_percent(view))

        if view.is_active and view.start != view.end:
            note = f"In progress – {round(view.progress * 100)}% through"
        elif view.fixed:
            note = "Times are fixed for this block."
        else:
            note = ""
        self.query_one(f"#note-{self.block_key}", Label).update(note)
        self.set_class(view.is_active, "block-active")
        self.set_class(view.done, "block-done")


class RoutinePlannerApp(App):
    """Routine Planner — blocks, timers and the sky behind them."""

    TITLE = "Routine Planner"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("space", "toggle_study", "Start/Pause"),
        Binding("x", "reset_study", "Reset timer"),
        Binding("e", "edit_plan", "Edit times"),
        Binding("ctrl+s", "save_plan", "Save"),
        Binding("escape", "cancel_edit", "Back"),
        Binding("r", "reset_day", "Reset day"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, engine: RoutineEngine, tick_seconds: float = 1.0) -> None:
        super().__init__()
        self.engine = engine
        self._tick_seconds = tick_seconds
        self._editing = False

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Only offer save/cancel while the editor is open."""
        if action in {"save_plan", "cancel_edit"}:
            return True if self._editing else None
        return True

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main-layout"):
            with VerticalScroll(id="blocks-pane"):
                with Vertical(id="plan-editor"):
                    yield Label("Edit times (HH:MM)", classes="section-title")
                    for name in TIME_FIELDS:
                        with Horizontal():
                            yield Label(FIELD_LABELS[name])
                            yield Input(id=f"field-{name}", placeholder="HH:MM")
                yield Label("Today", classes="section-title")
                for view in self.engine.get_snapshot().blocks:
                    yield BlockRow(view.key)
            with VerticalScroll(id="side-pane"):
                with Vertical(classes="timer-panel"):
                    yield Label("Study session timer")
                    yield Static("", id="study-value", classes="timer-value")
                    with Horizontal():
                        yield Button("Start", id="study-toggle", variant="primary")
                        yield Button("Reset", id="study-reset")
                    yield Static("", id="study-hint", classes="hint")
                with Vertical(classes="timer-panel"):
                    yield Label("", id="bedtime-label")
                    yield Static("", id="bedtime-value", classes="timer-value")
                    yield Static("Aim to wind down 30 minutes before bed.", classes="hint")
                yield Label("Quick habits", classes="section-title")
                for label, tip in HABITS:
                    yield Static(f"{label}  [dim]{tip}[/dim]")
        yield Footer()

    def on_mount(self) -> None:
        self.engine.subscribe(self._show)
        self._show(self.engine.get_snapshot())
        self.set_interval(self._tick_seconds, self.engine.tick)

    # ── Rendering ──────────────────────────────────────────────

    def _show(self, snap: Snapshot) -> None:
        top, bottom = snap.ambient
        self.screen.styles.background = top
        self.query_one("#side-pane").styles.background = bottom
        self.sub_title = f"Local time {snap.now.strftime('%H:%M')}  ·  {snap.done.count()}/{len(snap.blocks)} done"

        for view in snap.blocks:
            self.query_one(f"#row-{view.key}", BlockRow).show(view)

        study = snap.study_timer
        self.query_one("#study-value", Static).update(study.to_dict()["display"])
        self.query_one("#study-toggle", Button).label = "Pause" if study.running else "Start"
        plan = snap.plan
        self.query_one("#study-hint", Static).update(
            f"Default duration equals your study block "
            f"({format_hhmm(plan.study.start)}–{format_hhmm(plan.study.end)})."
        )

        self.query_one("#bedtime-label", Label).update(f"Countdown to bedtime ({format_hhmm(plan.sleep)})")
        self.query_one("#bedtime-value", Static).update(snap.bedtime_timer.to_dict()["display"])

    # ── Buttons ────────────────────────────────────────────────

    @on(Button.Pressed, ".block-row Button")
    def _on_done_pressed(self, event: Button.Pressed) -> None:
        key = (event.button.id or "").removeprefix("done-")
        self.engine.toggle_done(key)

    @on(Button.Pressed, "#study-toggle")
    def _on_study_toggle(self) -> None:
        self.engine.study_timer_toggle()

    @on(Button.Pressed, "#study-reset")
    def _on_study_reset(self) -> None:
        self.engine.study_timer_reset()

    # ── Actions ────────────────────────────────────────────────

    def action_toggle_study(self) -> None:
        if not self._editing:
            self.engine.study_timer_toggle()

    def action_reset_study(self) -> None:
        if not self._editing:
            self.engine.study_timer_reset()

    def action_reset_day(self) -> None:
        if not self._editing:
            self.engine.reset_day()
            self.notify("Completion flags cleared.", title="Reset day")

    def action_edit_plan(self) -> None:
        """Toggle the time editor, prefilled with the current plan."""
        if self._editing:
            self._close_editor()
            return
        for name, value in plan_times(self.engine.plan).items():
            self.query_one(f"#field-{name}", Input).value = value
        self._editing = True
        self.query_one("#plan-editor").display = True
        self.query_one("#field-wake", Input).focus()
        self.refresh_bindings()

    def action_save_plan(self) -> None:
        if not self._editing:
            return
        times = {name: self.query_one(f"#field-{name}", Input).value for name in TIME_FIELDS}
        try:
            self.engine.edit_times(times)
        except PlanError as e:
            self.notify("\n".join(e.errors), title="Plan not saved", severity="error")
            return
        self.notify("Plan saved.", title="Edit times")
        self._close_editor()

    def action_cancel_edit(self) -> None:
        if self._editing:
            self._close_editor()

    def _close_editor(self) -> None:
        self._editing = False
        self.query_one("#plan-editor").display = False
        self.set_focus(None)
        self.refresh_bindings()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    try:
        init_workspace(root)
    except OSError as e:
        print(f"Cannot create workspace {root}: {e}")
        print("Set ROUTINE_ROOT to a writable directory.")
        sys.exit(1)

    settings = load_settings(root)
    logging.basicConfig(
        filename=str(root / "routine.log"),
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine = RoutineEngine(JsonFileStore(store_path(root)), tick_seconds=settings.tick_seconds)
    logger.info("Starting TUI with workspace %s", root)

    app = RoutinePlannerApp(engine, tick_seconds=settings.tick_seconds)
    app.run()


if __name__ == "__main__":
    main()
