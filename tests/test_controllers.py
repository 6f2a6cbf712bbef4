from __future__ import annotations

import pytest

from worktime_control.container import build_container
from worktime_control.main import create_app


@pytest.fixture
def container():
    c = build_container(
        work_config_backend="memory",
        leave_request_backend="memory",
        enforce_work_start_time=False,
        reconnect_base_delay=0,
        reconnect_max_delay=0,
    )
    c.config_store.create_default("acme")
    yield c
    c.sessions.close_all()


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


def _client(app, *, user_id, role, name, company_id="acme", permissions=None):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["company_id"] = company_id
        sess["role"] = role
        sess["name"] = name
        if permissions is not None:
            sess["permissions"] = permissions
    return client


@pytest.fixture
def manager_client(app):
    return _client(app, user_id="m1", role="manager", name="Mai")


@pytest.fixture
def employee_client(app):
    return _client(app, user_id="e1", role="employee", name="Binh")


def test_requires_signed_in_user(app):
    resp = app.test_client().get("/api/work-time/config")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_unknown_role_is_forbidden(app):
    client = _client(app, user_id="x", role="intern", name="Who")
    assert client.get("/api/work-time/config").status_code == 403


def test_company_without_settings_is_unavailable(app):
    client = _client(app, user_id="x", role="employee", name="New", company_id="globex")
    assert client.get("/api/work-session").status_code == 503


def test_manager_break_reaches_employee_session(manager_client, employee_client):
    assert employee_client.post("/api/work-session/start").status_code == 200

    resp = manager_client.post("/api/work-time/break/start", json={"reason": "Lunch"})
    assert resp.status_code == 200
    assert resp.get_json()["config"]["current_mode"] == "break"

    state = employee_client.get("/api/work-session").get_json()
    assert state["global_mode"] == "break"
    assert state["local_mode"] == "break"
    assert state["active_break_reason"] == "Lunch"
    assert state["break_alert_active"] is True

    state = employee_client.post("/api/work-session/alerts/break/dismiss").get_json()
    assert state["break_alert_active"] is False


def test_mode_endpoint_validation(manager_client, employee_client):
    assert manager_client.post("/api/work-time/break/start", json={}).status_code == 400
    assert manager_client.post("/api/work-time/mode", json={"mode": "lunch"}).status_code == 400
    assert employee_client.post("/api/work-time/end").status_code == 403

    assert manager_client.post("/api/work-time/end").status_code == 200
    assert manager_client.post("/api/work-time/start").status_code == 400

    resp = manager_client.post("/api/work-time/new-day")
    assert resp.get_json()["config"]["current_mode"] == "idle"


def test_update_schedule(manager_client, employee_client):
    assert manager_client.patch("/api/work-time/config", json={"work_end_time": "7pm"}).status_code == 400
    assert employee_client.patch("/api/work-time/config", json={"work_end_time": "17:00"}).status_code == 403

    resp = manager_client.patch("/api/work-time/config", json={"work_end_time": "17:30"})
    assert resp.status_code == 200
    assert resp.get_json()["config"]["work_end_time"] == "17:30"

    refreshed = employee_client.post("/api/work-time/config/refresh").get_json()
    assert refreshed["config"]["work_end_time"] == "17:30"


def test_leave_request_flow(manager_client, employee_client):
    assert employee_client.post("/api/leave-requests", json={"reason": "Doctor"}).status_code == 400

    employee_client.post("/api/work-session/start")
    resp = employee_client.post("/api/leave-requests", json={"reason": "Doctor"})
    assert resp.status_code == 201
    request_id = resp.get_json()["leave_request"]["request_id"]

    assert employee_client.get("/api/leave-requests").status_code == 403
    assert manager_client.get("/api/leave-requests?status=bogus").status_code == 400

    pending = manager_client.get("/api/leave-requests?status=pending").get_json()["leave_requests"]
    assert [r["request_id"] for r in pending] == [request_id]

    resp = manager_client.post(f"/api/leave-requests/{request_id}/approve")
    assert resp.get_json()["leave_request"]["status"] == "approved"
    assert manager_client.post(f"/api/leave-requests/{request_id}/reject").status_code == 400

    mine = employee_client.get("/api/leave-requests/mine").get_json()["leave_requests"]
    assert mine[0]["status"] == "approved"
    assert employee_client.get("/api/work-session").get_json()["local_mode"] == "working"


def test_employee_roster(manager_client, employee_client):
    employee_client.post("/api/work-session/start")

    resp = manager_client.get("/api/work-time/employees")
    names = [e["name"] for e in resp.get_json()["employees"]]
    assert names == ["Binh"]
    assert employee_client.get("/api/work-time/employees").status_code == 403


def test_close_session(employee_client):
    employee_client.get("/api/work-session")

    assert employee_client.delete("/api/work-session").get_json()["closed"] is True
    assert employee_client.delete("/api/work-session").get_json()["closed"] is False


@pytest.mark.parametrize(
    "method, path, body",
    [
        ("post", "/api/work-time/break/start", {"reason": 123}),
        ("post", "/api/work-time/mode", {"mode": "break", "reason": ["Lunch"]}),
        ("patch", "/api/work-time/config", {"work_start_time": 830}),
        ("patch", "/api/work-time/config", ["08:30"]),
        ("patch", "/api/work-time/config", {"self": "x"}),
        ("patch", "/api/work-time/config", {"auto_break_enabled": "false"}),
    ],
)
def test_malformed_json_is_a_bad_request(manager_client, method, path, body):
    resp = getattr(manager_client, method)(path, json=body)
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False

    config = manager_client.get("/api/work-time/config").get_json()["config"]
    assert config["current_mode"] == "idle"
    assert config["work_start_time"] == "09:00"


def test_stream_sends_config_then_drop(container, manager_client):
    resp = manager_client.get("/api/work-time/stream")
    assert resp.status_code == 200
    assert resp.mimetype == "text/event-stream"
    assert container.mode_channel.subscriber_count("acme") == 1

    chunks = iter(resp.response)
    first = next(chunks)
    assert b"event: config" in first
    assert b'"company_id": "acme"' in first

    container.mode_channel.disconnect("acme")
    assert b"event: dropped" in next(chunks)

    resp.close()
    assert container.mode_channel.subscriber_count("acme") == 0


def test_stream_closed_before_reading_releases_subscription(container, manager_client):
    resp = manager_client.get("/api/work-time/stream")
    assert container.mode_channel.subscriber_count("acme") == 1

    resp.close()
    assert container.mode_channel.subscriber_count("acme") == 0
