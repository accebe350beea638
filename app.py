# app.py - grouping form, result page, JSON API, exports, progress
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from config import CFG
from items import parse_request
from io_files import export_record, write_export_json, write_groupings_text
from render import render_groupings
from solver.errors import GroupingError, PackingInfeasible
from solver.orchestrator import run_grouping

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_done, set_result_url, set_elapsed,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_EXPORT_FULL_PATH, EXPORT_DIR, EXPORT_FILENAME = _resolve_output_paths(
    CFG.EXPORT_OUT, "groupings.json"
)
_TEXT_FULL_PATH, TEXT_DIR, TEXT_FILENAME = _resolve_output_paths(
    CFG.TEXT_OUT, "groupings.txt"
)

_EMPTY_RESULT: Dict[str, Any] = {
    "ok": False,
    "message": "",
    "error_code": "",
    "items": [],
    "pairs": [],
    "num_groups": 0,
    "allow_near": False,
    "capacities": [],
    "component_count": 0,
    "attempts": 0,
    "solved_via": "",
    "groupings": [],
    "groupings_html": "",
    "elapsed_str": "0s",
    "export_filename": EXPORT_FILENAME,
    "text_filename": TEXT_FILENAME,
}

LAST_RESULT: Dict[str, Any] = dict(_EMPTY_RESULT)

app = Flask(__name__, static_folder=None, template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _form_value(key: str, values: List[str]) -> Any:
    # "items[]" style fields stay lists; plain fields carry one value
    if key.endswith("[]") or len(values) != 1:
        return values
    return values[0]


def _merge_like_mapping() -> Dict[str, Any]:
    """JSON body first, then form fields, then query args; JSON lists are kept as sent."""
    merged: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        merged.update(payload)

    for source in (request.form, request.args):
        for k, v in source.to_dict(flat=False).items():
            merged.setdefault(k, _form_value(k, v))

    return merged


def _status_for(exc: GroupingError) -> int:
    return 422 if isinstance(exc, PackingInfeasible) else 400


def _finalize_progress(ok_flag: bool, message: str) -> None:
    set_status("Solved" if ok_flag else "error")
    set_done(ok_flag, reason=message)


def _run(like: Dict[str, Any]) -> Dict[str, Any]:
    """Parse, group and export; returns the template context for the result page."""
    progress_reset()
    progress_start()
    set_status("Grouping")
    t0 = time.time()

    req, err = parse_request(like)
    if err or req is None:
        seen_keys = ", ".join(list(like.keys())[:8]) or "none"
        reason = f"Bad input: {err or 'nothing parsed from request'} (saw keys: {seen_keys})"
        _finalize_progress(False, reason)
        return dict(_EMPTY_RESULT, message=reason, error_code="bad_input",
                    elapsed_str=_fmt_elapsed(time.time() - t0))

    ctx = dict(
        _EMPTY_RESULT,
        items=req.items,
        pairs=req.pairs,
        num_groups=req.num_groups,
        allow_near=req.allow_near,
    )
    try:
        outcome = run_grouping(req, report_progress=True)
    except GroupingError as exc:
        # run_grouping already marked progress as done
        ctx.update(message=exc.message, error_code=exc.code,
                   elapsed_str=_fmt_elapsed(time.time() - t0))
        return ctx
    except Exception as exc:
        reason = f"grouping exception: {type(exc).__name__}: {exc}"
        _finalize_progress(False, reason)
        ctx.update(message=reason, error_code="internal",
                   elapsed_str=_fmt_elapsed(time.time() - t0))
        return ctx

    record = export_record(outcome)
    export_name = EXPORT_FILENAME
    text_name = TEXT_FILENAME
    try:
        export_name = os.path.basename(write_export_json(record, BASE_DIR)) or EXPORT_FILENAME
        text_name = os.path.basename(write_groupings_text(record, BASE_DIR)) or TEXT_FILENAME
    except OSError:
        pass
    set_elapsed(time.time() - t0)

    ctx.update(
        ok=True,
        message=f"{len(outcome.groupings)} grouping(s) found in {outcome.attempts} attempt(s)",
        capacities=outcome.capacities,
        component_count=len(outcome.components),
        attempts=outcome.attempts,
        solved_via=outcome.solved_via,
        groupings=outcome.groupings,
        groupings_html=render_groupings(outcome.groupings, req.pairs),
        elapsed_str=_fmt_elapsed(time.time() - t0),
        export_filename=export_name,
        text_filename=text_name,
        record=record,
    )
    return ctx


@app.route("/")
def index():
    return render_template("index.html", desired_default=CFG.DESIRED_SOLUTIONS)


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


@app.route("/generate", methods=["POST"])
def generate_view():
    ctx = _run(_merge_like_mapping())
    ctx.pop("record", None)
    LAST_RESULT.clear()
    LAST_RESULT.update(ctx)
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/api/generate", methods=["POST"])
def generate_api():
    like = _merge_like_mapping()
    req, err = parse_request(like)
    if err or req is None:
        return jsonify({"ok": False, "error": err or "nothing parsed from request", "code": "bad_input"}), 400
    try:
        outcome = run_grouping(req)
    except GroupingError as exc:
        body = {"ok": False, "error": exc.message, "code": exc.code}
        if isinstance(exc, PackingInfeasible):
            body["reason"] = exc.reason_code
            body["attempts"] = exc.attempts
        return jsonify(body), _status_for(exc)
    record = export_record(outcome)
    record["ok"] = True
    record["attempts"] = outcome.attempts
    record["capacities"] = outcome.capacities
    return jsonify(record)


@app.route("/download/json")
def download_json():
    return send_from_directory(EXPORT_DIR, EXPORT_FILENAME, as_attachment=True)


@app.route("/download/text")
def download_text():
    return send_from_directory(TEXT_DIR, TEXT_FILENAME, as_attachment=True)


@app.route("/progress")
def progress_view():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
