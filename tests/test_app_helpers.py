import importlib

import pytest

pytest.importorskip("flask")


@pytest.fixture
def app_module(monkeypatch, tmp_path):
    app = importlib.import_module("app")
    monkeypatch.setattr(app, "BASE_DIR", str(tmp_path))
    app.app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app_module):
    return app_module.app.test_client()


def test_finalize_progress_respects_ok_flag(monkeypatch, app_module):
    calls = {"status": [], "done": []}

    def fake_set_status(value):
        calls["status"].append(value)

    def fake_set_done(ok=None, *, reason=None):
        calls["done"].append((ok, reason))

    monkeypatch.setattr(app_module, "set_status", fake_set_status)
    monkeypatch.setattr(app_module, "set_done", fake_set_done)

    app_module._finalize_progress(True, "all good")
    app_module._finalize_progress(False, "bad input")

    assert calls["status"] == ["Solved", "error"]
    assert calls["done"] == [(True, "all good"), (False, "bad input")]


def test_fmt_elapsed(app_module):
    assert app_module._fmt_elapsed(0.2) == "0s"
    assert app_module._fmt_elapsed(42) == "42s"
    assert app_module._fmt_elapsed(125) == "2m 5s"
    assert app_module._fmt_elapsed(3725) == "1h 2m 5s"


def test_api_generate_returns_record(client):
    resp = client.post(
        "/api/generate",
        json={"items": ["A", "B", "C", "D"], "pairs": [["A", "B"]], "numGroups": 2},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["numGroups"] == 2
    assert body["allowNear"] is False
    assert body["pairs"] == [["A", "B"]]
    assert body["capacities"] == [2, 2]
    assert body["generatedAt"].endswith("Z")
    (grouping,) = body["groupings"]
    assert ["A", "B"] in [sorted(g) for g in grouping]


@pytest.mark.parametrize(
    "payload,status,code",
    [
        ({"items": ["A", "B", "C"], "numGroups": 2}, 400, "not_divisible"),
        ({"items": ["A", "B"], "pairs": [["A", "X"]], "numGroups": 1}, 400, "unknown_item"),
        ({"items": [], "numGroups": 1}, 400, "bad_input"),
    ],
)
def test_api_generate_rejects_bad_requests(client, payload, status, code):
    resp = client.post("/api/generate", json=payload)
    assert resp.status_code == status
    body = resp.get_json()
    assert body["ok"] is False
    assert body["code"] == code
    assert body["error"]


def test_api_generate_infeasible_is_unprocessable(client):
    resp = client.post(
        "/api/generate",
        json={"items": ["A", "B", "C", "D"], "pairs": [["A", "B"], ["C", "D"]], "numGroups": 4},
    )
    assert resp.status_code == 422
    body = resp.get_json()
    assert body["code"] == "packing_infeasible"
    assert body["reason"] == "component_too_large"
    assert body["attempts"] == 0


def test_generate_form_renders_result_and_writes_exports(client, app_module, tmp_path):
    resp = client.post(
        "/generate",
        data={"itemsTxt": "A\nB\nC\nD\nE", "pairs": "A,B", "numGroups": "2", "allowNear": "on"},
    )
    assert resp.status_code == 200
    page = resp.get_data(as_text=True)
    assert "Group 1" in page
    assert "Group 2" in page
    assert (tmp_path / "groupings.json").exists()
    assert (tmp_path / "groupings.txt").exists()
    assert app_module.LAST_RESULT["ok"] is True
    assert app_module.LAST_RESULT["capacities"] == [3, 2]

    latest = client.get("/result/latest")
    assert "Group 1" in latest.get_data(as_text=True)


def test_generate_form_reports_bad_input(client, app_module):
    resp = client.post("/generate", data={"itemsTxt": "", "numGroups": "2"})
    assert resp.status_code == 200
    assert "Bad input: Add items first." in resp.get_data(as_text=True)
    assert app_module.LAST_RESULT["error_code"] == "bad_input"

    snap = client.get("/progress").get_json()
    assert snap["done"] is True
    assert snap["ok"] is False


def test_progress_endpoint_is_not_cached(client):
    resp = client.get("/progress")
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    assert "run_id" in resp.get_json()


def test_api_generate_keeps_single_json_item_whole(client):
    resp = client.post("/api/generate", json={"items": ["Smith, John"], "numGroups": 1})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["items"] == ["Smith, John"]
    assert body["groupings"] == [[["Smith, John"]]]


def test_generate_form_keeps_names_with_separators(client, app_module):
    resp = client.post(
        "/generate",
        data={"itemsTxt": "C\nC++\nGo\nRust", "pairs": "C++, Go", "numGroups": "2"},
    )
    assert resp.status_code == 200
    assert app_module.LAST_RESULT["pairs"] == [("C++", "Go")]
    (grouping,) = app_module.LAST_RESULT["groupings"]
    assert ["C++", "Go"] in [sorted(g) for g in grouping]


def test_form_value_unwraps_only_single_plain_fields(app_module):
    assert app_module._form_value("itemsTxt", ["A, B"]) == "A, B"
    assert app_module._form_value("items[]", ["A, B"]) == ["A, B"]
    assert app_module._form_value("pairs", ["A,B", "C,D"]) == ["A,B", "C,D"]
