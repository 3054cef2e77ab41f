from __future__ import annotations

import logging
import os
import secrets
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from routine import (
    BLOCK_KEYS,
    JsonFileStore,
    PlanError,
    RoutineEngine,
    gradient_css,
    init_workspace,
    load_settings,
    progress_percent,
    store_path,
    workspace_root,
)
from routine.models import format_hhmm

logger = logging.getLogger("routineplanner.ui")


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


PAGE_SCRIPT = """
async function post(path) {
  await fetch(path, {method: 'POST'});
  await refresh();
}
async function refresh() {
  const r = await fetch('/api/snapshot');
  if (!r.ok) return;
  const s = await r.json();
  document.body.style.background =
    `linear-gradient(to bottom, ${s.ambient.top}, ${s.ambient.bottom})`;
  document.getElementById('now').textContent = s.now.slice(11, 16);
  document.getElementById('study').textContent = s.studyTimer.display;
  document.getElementById('study-toggle').textContent = s.studyTimer.running ? 'Pause' : 'Start';
  document.getElementById('bedtime').textContent = s.bedtimeTimer.display;
  for (const b of s.blocks) {
    const bar = document.getElementById('bar-' + b.key);
    bar.style.width = (b.isActive ? Math.max(4, Math.round(b.progress * 100)) : 0) + '%';
    document.getElementById('done-' + b.key).textContent = b.done ? 'Done' : 'Mark done';
    document.getElementById('row-' + b.key).className = b.isActive ? 'card active' : 'card';
  }
}
setInterval(refresh, 1000);
"""

PAGE_STYLE = """
body { font-family: system-ui, sans-serif; margin: 0; min-height: 100vh; transition: background 1.2s linear; }
main { max-width: 48rem; margin: 0 auto; padding: 1.5rem; }
.card { background: rgba(255,255,255,.7); border-radius: 1rem; padding: 1rem; margin: 0 0 1rem; }
.active { outline: 2px solid #6366f1; }
.track { height: .5rem; background: #f3f4f6; border-radius: 1rem; overflow: hidden; }
.fill { height: 100%; background: #6366f1; }
.row { display: flex; justify-content: space-between; align-items: center; }
.mono { font-family: ui-monospace, monospace; font-size: 1.5rem; }
.muted { color: #4b5563; font-size: .8rem; }
"""


def render_page(engine: RoutineEngine) -> str:
    snap = engine.get_snapshot()
    top, bottom = snap.ambient
    rows = []
    for b in snap.blocks:
        span = format_hhmm(b.start) if b.start == b.end else f"{format_hhmm(b.start)} – {format_hhmm(b.end)}"
        rows.append(
            f'<div id="row-{b.key}" class="card{" active" if b.is_active else ""}">'
            f'<div class="row"><div><strong>{_escape(b.title)}</strong>'
            f'<div class="muted">{span}</div></div>'
            f'<button id="done-{b.key}" onclick="post(\'/api/done/{b.key}\')">'
            f'{"Done" if b.done else "Mark done"}</button></div>'
            f'<div class="track"><div id="bar-{b.key}" class="fill" style="width:{progress_percent(b)}%"></div></div>'
            "</div>"
        )
    study = snap.study_timer.to_dict()
    bedtime = snap.bedtime_timer.to_dict()
    return f"""<!doctype html>
<html><head><meta charset="utf-8"><title>Routine Planner</title>
<style>{PAGE_STYLE}</style></head>
<body style="background: {gradient_css(top, bottom)}">
<main>
<div class="row"><div><h1>Routine Planner</h1>
<div class="muted">Local time now: <span id="now">{snap.now.strftime('%H:%M')}</span></div></div>
<button onclick="post('/api/reset_day')">Reset day</button></div>
{''.join(rows)}
<div class="card row"><div><strong>Study session timer</strong>
<div id="study" class="mono">{study["display"]}</div></div>
<div><button id="study-toggle" onclick="post('/api/study_timer/toggle')">{"Pause" if study["running"] else "Start"}</button>
<button onclick="post('/api/study_timer/reset')">Reset</button></div></div>
<div class="card"><strong>Countdown to bedtime ({format_hhmm(snap.plan.sleep)})</strong>
<div id="bedtime" class="mono">{bedtime["display"]}</div>
<div class="muted">Aim to wind down 30 minutes before bed.</div></div>
</main>
<script>{PAGE_SCRIPT}</script>
</body></html>"""


# ── App ───────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("ROUTINE_USERNAME", "")
    expected_password = os.environ.get("ROUTINE_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def get_engine(request: Request) -> RoutineEngine:
    return request.app.state.engine


def _default_engine() -> RoutineEngine:
    root = init_workspace(workspace_root())
    settings = load_settings(root)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Using workspace %s", root)
    return RoutineEngine(JsonFileStore(store_path(root)), tick_seconds=settings.tick_seconds)


def create_app(engine: RoutineEngine | None = None, tick: bool = True) -> FastAPI:
    """Build the web shell. Without an engine, one is made from the workspace.

    Handlers are async so they share the event loop with the ticker and
    never touch the engine from another thread.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.engine is None:
            app.state.engine = _default_engine()
        if tick:
            app.state.engine.start()
        yield
        app.state.engine.stop()

    app = FastAPI(title="Routine Planner", version="0.1.0", lifespan=lifespan)
    app.state.engine = engine

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"ok": "true"}

    @app.get("/", response_class=HTMLResponse)
    async def index(engine: RoutineEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> HTMLResponse:
        return HTMLResponse(render_page(engine))

    @app.get("/api/snapshot")
    async def api_snapshot(engine: RoutineEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return engine.get_snapshot().to_dict()

    @app.post("/api/done/{key}")
    async def api_toggle_done(key: str, engine: RoutineEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
        if key not in BLOCK_KEYS:
            raise HTTPException(status_code=404, detail=f"Unknown block: {key}")
        return engine.toggle_done(key).to_dict()

    @app.post("/api/reset_day")
    async def api_reset_day(engine: RoutineEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return engine.reset_day().to_dict()

    @app.post("/api/plan")
    async def api_replace_plan(
        payload: dict[str, Any] = Body(...),
        engine: RoutineEngine = Depends(get_engine),
        username: str = Depends(get_current_user),
    ) -> dict[str, Any]:
        """Replace the whole plan."""
        try:
            return engine.replace_plan(payload).to_dict()
        except PlanError as e:
            raise HTTPException(status_code=400, detail=e.errors)

    @app.post("/api/plan/times")
    async def api_edit_times(
        payload: dict[str, str] = Body(...),
        engine: RoutineEngine = Depends(get_engine),
        username: str = Depends(get_current_user),
    ) -> dict[str, Any]:
        """Edit start/end times only, keeping titles and icons."""
        try:
            return engine.edit_times(payload).to_dict()
        except PlanError as e:
            raise HTTPException(status_code=400, detail=e.errors)

    study_actions = {
        "start": RoutineEngine.study_timer_start,
        "pause": RoutineEngine.study_timer_pause,
        "toggle": RoutineEngine.study_timer_toggle,
        "reset": RoutineEngine.study_timer_reset,
    }

    @app.post("/api/study_timer/{action}")
    async def api_study_timer(action: str, engine: RoutineEngine = Depends(get_engine), username: str = Depends(get_current_user)) -> dict[str, Any]:
        if action not in study_actions:
            raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")
        return study_actions[action](engine).to_dict()

    return app


app = create_app()
