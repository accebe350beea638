from __future__ import annotations

import json
import logging
import os
import time
import threading
from pathlib import Path
from typing import Any, Dict, Optional

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("grouper.attempt_log")
    if logger.handlers:
        return logger

    log_path = Path(__file__).resolve().parent / "logs" / "grouper_attempts.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except Exception:
        # No log file (read-only checkout, etc.): progress keeps working.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _emit_log(event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    try:
        if extras:
            ATTEMPT_LOGGER.log(level, "%s | %s", event, " ".join(extras))
        else:
            ATTEMPT_LOGGER.log(level, "%s", event)
    except Exception:
        pass


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Write one ``event | key=value ...`` line to the attempt log."""
    _emit_log(event, **fields)


def log_failure(event: str, **fields: Any) -> None:
    _emit_log(event, level=logging.WARNING, **fields)


# Single source of truth for the result page's progress widget
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Grouping | Solved | Error
    "phase": "",               # components | capacities | packing
    "attempt": 0,              # attempts used so far
    "attempts_total": 0,       # attempt budget
    "solutions_found": 0,      # distinct groupings so far
    "percent": 0.0,            # 0..100 float
    "item_count": 0,
    "group_count": 0,
    "elapsed_start": None,     # t0 (float) when grouping started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",
    "done": False,
    "ok": None,
    "result_url": "",
    "run_id": 0,               # monotonically increasing identifier
}


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        try:
            _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
        except OSError:
            _LAST_STATE_MTIME = time.time()
    except Exception:
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        stat = STATE_FILE.stat()
    except OSError:
        return
    if not force and stat.st_mtime <= _LAST_STATE_MTIME:
        return
    try:
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except Exception:
        return
    if not isinstance(data, dict):
        return
    for key in PROGRESS.keys():
        if key in data:
            PROGRESS[key] = data[key]
    _LAST_STATE_MTIME = stat.st_mtime


# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def _as_int(v: Any) -> int:
    try:
        return max(0, int(v))
    except Exception:
        return 0


def reset() -> None:
    with PROGRESS_LOCK:
        new_run_id = _as_int(PROGRESS.get("run_id")) + 1
        PROGRESS.update({
            "status": "Idle",
            "phase": "",
            "attempt": 0,
            "attempts_total": 0,
            "solutions_found": 0,
            "percent": 0.0,
            "item_count": 0,
            "group_count": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "result_url": "",
            "run_id": new_run_id,
        })
        _emit_log("Progress reset", run_id=new_run_id)
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        PROGRESS["elapsed_start"] = _now()
        PROGRESS["elapsed"] = 0.0
        _persist_locked()


# ------------------------------
# Setters
# ------------------------------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)
        _persist_locked()


def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        phase = "" if v is None else str(v)
        if phase != PROGRESS.get("phase"):
            _emit_log("Phase started", phase=phase, run_id=PROGRESS.get("run_id"))
        PROGRESS["phase"] = phase
        _persist_locked()


def set_counts(items: Any, groups: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["item_count"] = _as_int(items)
        PROGRESS["group_count"] = _as_int(groups)
        _persist_locked()


def set_attempt(attempt: Any, total: Any, solutions: Any = None) -> None:
    with PROGRESS_LOCK:
        done = _as_int(attempt)
        budget = _as_int(total)
        PROGRESS["attempt"] = done
        PROGRESS["attempts_total"] = budget
        if solutions is not None:
            PROGRESS["solutions_found"] = _as_int(solutions)
        if budget:
            PROGRESS["percent"] = max(0.0, min(100.0, 100.0 * done / budget))
        _touch_elapsed_locked()
        _persist_locked()


def set_elapsed(seconds: Any) -> None:
    try:
        f = float(seconds)
    except Exception:
        f = 0.0
    with PROGRESS_LOCK:
        PROGRESS["elapsed"] = max(0.0, f)
        _persist_locked()


def set_result_url(url: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["result_url"] = "" if url is None else str(url)
        _persist_locked()


def set_done(ok: Optional[bool] = None, *, reason: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status ("Solved" / "Error"); when omitted the run
    counts as solved. ``reason`` is surfaced through the ``message`` field.
    """
    ok_flag = True if ok is None else bool(ok)
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        PROGRESS["status"] = "Solved" if ok_flag else "Error"
        PROGRESS["ok"] = ok_flag
        PROGRESS["percent"] = 100.0
        PROGRESS["done"] = True
        if reason is not None:
            PROGRESS["message"] = str(reason)
        _emit_log(
            "Run finished",
            status=PROGRESS["status"],
            ok=ok_flag,
            attempts=PROGRESS.get("attempt"),
            solutions=PROGRESS.get("solutions_found"),
            duration=f"{float(PROGRESS.get('elapsed') or 0.0):.2f}s",
            message=PROGRESS.get("message"),
        )
        _persist_locked()


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        if not PROGRESS.get("done"):
            _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        out["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return out


def as_json() -> Dict[str, Any]:
    # Alias used by /progress
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
