"""HTTP and WebSocket surface, exercised through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from app.services import alert_bridge
from main import app


@pytest.fixture
def client(fresh_db):
    with TestClient(app) as c:
        yield c


# ---- Health ----

def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["device_source"] == "manual"
    assert body["websocket_clients"] == 0


def test_health_counts_websocket_clients(client):
    with client.websocket_connect("/ws/monitor") as ws:
        ws.receive_json()  # registered before the first push
        assert client.get("/health").json()["websocket_clients"] == 1


# ---- Status & device ----

class TestStatus:
    def test_starts_disconnected(self, client):
        status = client.get("/api/monitor/status").json()
        assert status["connected"] is False
        assert status["fatigue_percent"] == 0
        assert status["tooltip"] == "No headphones connected"
        assert status["show_reset"] is False

    def test_plug_in_and_out(self, client):
        status = client.post("/api/monitor/device", json={"active": True}).json()
        assert status["connected"] is True
        assert status["accumulating"] is True
        assert status["show_reset"] is True
        assert status["tooltip"].startswith("Headphones connected - Usage: ")

        status = client.post("/api/monitor/device", json={"active": False}).json()
        assert status["connected"] is False
        assert status["show_reset"] is False

    def test_reset(self, client):
        client.post("/api/monitor/device", json={"active": True})
        status = client.post("/api/monitor/reset").json()
        assert status["usage_duration"] == 0
        assert status["fatigue_level"] == 0
        assert status["connected"] is True


# ---- Settings ----

class TestSettings:
    def test_defaults(self, client):
        body = client.get("/api/monitor/settings").json()
        assert body["warning_threshold"] == 3600
        assert body["recovery_time"] == 600
        assert body["warning_threshold_label"] == "1h 00m"
        assert body["recovery_time_label"] == "10m 00s"

    def test_update_applies_to_engine(self, client):
        resp = client.put(
            "/api/monitor/settings",
            json={"warning_threshold": 1800, "recovery_time": 300},
        )
        assert resp.status_code == 200
        assert resp.json()["warning_threshold_label"] == "30m 00s"
        assert resp.json()["recovery_time_label"] == "5m 00s"

        status = client.get("/api/monitor/status").json()
        assert status["warning_threshold"] == 1800
        assert status["recovery_time"] == 300

    @pytest.mark.parametrize("payload", [
        {"warning_threshold": 0, "recovery_time": 300},
        {"warning_threshold": 1800, "recovery_time": 10},
        {"warning_threshold": 10_000, "recovery_time": 300},
        {"warning_threshold": 1800},
        {"warning_threshold": 1000, "recovery_time": 300},
        {"warning_threshold": 1800, "recovery_time": 90},
    ])
    def test_rejects_out_of_range_or_off_step(self, client, payload):
        assert client.put("/api/monitor/settings", json=payload).status_code == 422
        assert client.get("/api/monitor/settings").json()["warning_threshold"] == 3600

    def test_restore_defaults(self, client):
        client.put("/api/monitor/settings", json={"warning_threshold": 1800, "recovery_time": 300})
        body = client.post("/api/monitor/settings/defaults").json()
        assert body["warning_threshold"] == 3600
        assert body["recovery_time"] == 600

    def test_settings_survive_restart(self, fresh_db):
        with TestClient(app) as first:
            first.put("/api/monitor/settings", json={"warning_threshold": 900, "recovery_time": 120})
        with TestClient(app) as second:
            body = second.get("/api/monitor/settings").json()
        assert body["warning_threshold"] == 900
        assert body["recovery_time"] == 120


# ---- Alert history ----

def _store_alerts():
    alerts = [
        {"alert_type": "usage_limit_reached", "severity": "warning",
         "message": "Headphone usage limit of 1h 00m reached", "fatigue_level": 1.0, "usage_duration": 3600.0},
        {"alert_type": "max_fatigue_reached", "severity": "critical",
         "message": "Ear fatigue reached 100%", "fatigue_level": 1.0, "usage_duration": 3600.0},
    ]
    assert alert_bridge.persist_alerts(alerts) == 2
    return alerts


class TestAlerts:
    def test_list_newest_first(self, client):
        stored = _store_alerts()
        body = client.get("/api/monitor/alerts").json()
        assert [a["id"] for a in body] == [stored[1]["id"], stored[0]["id"]]
        assert body[0]["severity"] == "critical"
        assert body[0]["is_read"] is False

    def test_pagination(self, client):
        _store_alerts()
        assert len(client.get("/api/monitor/alerts", params={"limit": 1}).json()) == 1
        assert len(client.get("/api/monitor/alerts", params={"skip": 2}).json()) == 0

    def test_mark_read(self, client):
        stored = _store_alerts()
        body = client.post(f"/api/monitor/alerts/{stored[0]['id']}/read").json()
        assert body["is_read"] is True

    def test_mark_read_unknown(self, client):
        assert client.post("/api/monitor/alerts/9999/read").status_code == 404


# ---- WebSocket ----

def test_monitor_websocket(client):
    with client.websocket_connect("/ws/monitor") as ws:
        first = ws.receive_json()
        assert first["type"] == "status"
        assert first["data"]["connected"] is False

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
