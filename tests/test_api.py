"""Tests for the FastAPI REST endpoints."""
from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

import api
from app import configure_logging, create_app
from store import SessionStore


@pytest.fixture
def client():
    store = SessionStore()
    app = create_app(store=store)
    return TestClient(app)


def _new_session(client) -> str:
    return client.post("/sessions").json()["id"]


def _press(client, session_id: str, *labels: str) -> dict:
    resp = None
    for label in labels:
        resp = client.post(f"/sessions/{session_id}/keys", json={"label": label})
        assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# GET /keypad
# ---------------------------------------------------------------------------

class TestKeypadEndpoint:

    def test_layout(self, client):
        resp = client.get("/keypad")
        assert resp.status_code == 200
        data = resp.json()
        assert data["columns"] == 4
        assert [k["label"] for k in data["rows"][0]] == ["AC", "+/-", "%", "/"]
        assert data["rows"][-1][0] == {"label": "0", "span": 2}


# ---------------------------------------------------------------------------
# POST /sessions
# ---------------------------------------------------------------------------

class TestCreateEndpoint:

    def test_create_returns_201(self, client):
        resp = client.post("/sessions")
        assert resp.status_code == 201

    def test_create_initial_state(self, client):
        data = client.post("/sessions").json()
        assert data["display"] == "0"
        assert data["first_operand"] is None
        assert data["operator"] is None
        assert data["waiting_for_second_operand"] is False
        assert data["keys_pressed"] == 0
        assert "created_at" in data
        assert "updated_at" in data

    def test_create_over_limit_409(self):
        client = TestClient(create_app(store=SessionStore(max_sessions=1)))
        assert client.post("/sessions").status_code == 201
        resp = client.post("/sessions")
        assert resp.status_code == 409
        assert "limit" in resp.json()["detail"]

    def test_max_sessions_option(self):
        client = TestClient(create_app(max_sessions=1))
        client.post("/sessions")
        assert client.post("/sessions").status_code == 409

    def test_max_sessions_from_environment(self, monkeypatch):
        monkeypatch.setenv("KEYPAD_MAX_SESSIONS", "1")
        client = TestClient(create_app())
        client.post("/sessions")
        assert client.post("/sessions").status_code == 409


# ---------------------------------------------------------------------------
# GET /sessions, GET /sessions/{id}
# ---------------------------------------------------------------------------

class TestReadEndpoints:

    def test_list(self, client):
        for _ in range(3):
            _new_session(client)
        data = client.get("/sessions").json()
        assert data["total"] == 3
        assert len(data["items"]) == 3

    def test_list_pagination(self, client):
        for _ in range(3):
            _new_session(client)
        data = client.get("/sessions", params={"offset": 1, "limit": 1}).json()
        assert data["total"] == 3
        assert len(data["items"]) == 1

    def test_list_bad_limit_422(self, client):
        assert client.get("/sessions", params={"limit": 0}).status_code == 422

    def test_get(self, client):
        sid = _new_session(client)
        resp = client.get(f"/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json()["id"] == sid

    def test_get_missing_404(self, client):
        resp = client.get("/sessions/nope")
        assert resp.status_code == 404
        assert "nope" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# POST /sessions/{id}/keys, /sequence
# ---------------------------------------------------------------------------

class TestKeyEndpoints:

    def test_simple_addition(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "5", "+", "3", "=")
        assert data["display"] == "8"
        assert data["keys_pressed"] == 4

    def test_pending_state_reported(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "1", "2", "*")
        assert data["first_operand"] == 12
        assert data["operator"] == "*"
        assert data["waiting_for_second_operand"] is True

    def test_unknown_label_ignored(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "4", "sqrt")
        assert data["display"] == "4"

    def test_long_unknown_label_ignored(self, client):
        sid = _new_session(client)
        _press(client, sid, "4")
        resp = client.post(f"/sessions/{sid}/keys", json={"label": "x" * 17})
        assert resp.status_code == 200
        assert resp.json()["display"] == "4"
        assert resp.json()["keys_pressed"] == 2

    def test_empty_label_422(self, client):
        sid = _new_session(client)
        resp = client.post(f"/sessions/{sid}/keys", json={"label": ""})
        assert resp.status_code == 422

    def test_missing_body_422(self, client):
        sid = _new_session(client)
        assert client.post(f"/sessions/{sid}/keys").status_code == 422

    def test_press_missing_session_404(self, client):
        resp = client.post("/sessions/nope/keys", json={"label": "1"})
        assert resp.status_code == 404

    def test_sequence(self, client):
        sid = _new_session(client)
        resp = client.post(
            f"/sessions/{sid}/sequence",
            json={"labels": ["2", "+", "3", "*", "4", "="]},
        )
        assert resp.status_code == 200
        assert resp.json()["display"] == "20"
        assert resp.json()["keys_pressed"] == 6

    def test_long_sequence(self, client):
        sid = _new_session(client)
        resp = client.post(
            f"/sessions/{sid}/sequence", json={"labels": ["1"] * 300},
        )
        assert resp.status_code == 200
        assert resp.json()["display"] == "1" * 300
        assert resp.json()["keys_pressed"] == 300

    def test_sequence_long_unknown_label_ignored(self, client):
        sid = _new_session(client)
        resp = client.post(
            f"/sessions/{sid}/sequence",
            json={"labels": ["7", "unrecognised-key-label", "="]},
        )
        assert resp.status_code == 200
        assert resp.json()["display"] == "7"

    def test_sequence_empty_label_422(self, client):
        sid = _new_session(client)
        resp = client.post(f"/sessions/{sid}/sequence", json={"labels": ["1", ""]})
        assert resp.status_code == 422

    def test_sequence_empty_422(self, client):
        sid = _new_session(client)
        resp = client.post(f"/sessions/{sid}/sequence", json={"labels": []})
        assert resp.status_code == 422

    def test_sequence_missing_session_404(self, client):
        resp = client.post("/sessions/nope/sequence", json={"labels": ["1"]})
        assert resp.status_code == 404

    def test_divide_by_zero(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "5", "/", "0", "=")
        assert data["display"] == "Infinity"

    def test_infinite_operand_is_valid_json(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "5", "/", "0", "=", "-")
        assert data["first_operand"] == "Infinity"
        assert data["operator"] == "-"

    def test_clear(self, client):
        sid = _new_session(client)
        data = _press(client, sid, "5", "+", "3", "AC")
        assert data["display"] == "0"
        assert data["operator"] is None


# ---------------------------------------------------------------------------
# DELETE /sessions/{id}
# ---------------------------------------------------------------------------

class TestDeleteEndpoint:

    def test_delete(self, client):
        sid = _new_session(client)
        _press(client, sid, "7")
        resp = client.delete(f"/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json()["display"] == "7"
        assert client.get(f"/sessions/{sid}").status_code == 404

    def test_delete_missing_404(self, client):
        assert client.delete("/sessions/nope").status_code == 404


# ---------------------------------------------------------------------------
# Logging and store configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def service_loggers():
    loggers = [logging.getLogger(name) for name in ("app", "store")]
    levels = [lg.level for lg in loggers]
    yield loggers
    for lg, level in zip(loggers, levels):
        lg.setLevel(level)


class TestLoggingConfiguration:

    def test_log_level_option(self, service_loggers):
        create_app(store=SessionStore(), log_level="DEBUG")
        assert logging.getLogger("store").level == logging.DEBUG
        assert logging.getLogger("app").level == logging.DEBUG

    def test_log_level_from_environment(self, service_loggers, monkeypatch):
        monkeypatch.setenv("KEYPAD_LOG_LEVEL", "DEBUG")
        create_app(store=SessionStore())
        assert logging.getLogger("store").level == logging.DEBUG

    def test_option_overrides_environment(self, service_loggers, monkeypatch):
        monkeypatch.setenv("KEYPAD_LOG_LEVEL", "DEBUG")
        create_app(store=SessionStore(), log_level="WARNING")
        assert logging.getLogger("store").level == logging.WARNING

    def test_debug_level_reaches_store_logger(self, service_loggers, caplog):
        client = TestClient(create_app(store=SessionStore(), log_level="debug"))
        sid = _new_session(client)
        with caplog.at_level(logging.DEBUG, logger="store"):
            _press(client, sid, "9")
        assert any(r.name == "store" and r.levelno == logging.DEBUG
                   for r in caplog.records)

    def test_lowercase_name(self, service_loggers):
        configure_logging("warning")
        assert logging.getLogger("store").level == logging.WARNING

    def test_numeric_string(self, service_loggers):
        configure_logging("10")
        assert logging.getLogger("store").level == 10

    def test_int_level(self, service_loggers):
        configure_logging(logging.ERROR)
        assert logging.getLogger("store").level == logging.ERROR

    def test_unknown_level_raises(self, service_loggers):
        with pytest.raises(ValueError, match="'verbose'"):
            configure_logging("verbose")

    def test_unknown_level_from_environment_raises(self, service_loggers, monkeypatch):
        monkeypatch.setenv("KEYPAD_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError, match="LOUD"):
            create_app(store=SessionStore())


class TestStoreInjection:

    def test_get_store_before_set_raises(self, monkeypatch):
        monkeypatch.setattr(api, "_store", None)
        with pytest.raises(RuntimeError, match="Store not initialized"):
            api.get_store()

    def test_create_app_injects_store(self):
        store = SessionStore()
        create_app(store=store)
        assert api.get_store() is store
