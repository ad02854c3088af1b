"""Integration tests for the dashboard web server."""

import pytest

from powerdash.config_models import DashboardConfig
from powerdash.monitoring.dashboard_server import DashboardServer


@pytest.fixture
def server(batch_adapter):
    server = DashboardServer(batch_adapter, DashboardConfig(max_data_points=50))
    yield server
    server.stop()


@pytest.fixture
def client(server):
    return server.app.test_client()


class TestRestApi:
    def test_dashboard_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert b"Smart Electric Dashboard" in response.data

    def test_snapshot(self, client):
        data = client.get("/api/snapshot").get_json()

        assert data["snapshot"]["cosPhi"] == 0.97
        assert set(data["snapshot"]) == {"energyConsumption", "cosPhi", "amperage", "power", "frequency"}
        assert "timestamp" in data

    def test_history_for_one_metric(self, client):
        data = client.get("/api/history?metric=amperage").get_json()

        assert data["count"] == 2
        assert data["history"][0] == {"timestamp": "10:00:00", "metricType": "amperage", "value": 11.5}

    def test_history_count(self, client):
        data = client.get("/api/history?count=3").get_json()

        assert data["count"] == 3

    def test_unknown_metric_is_rejected(self, client):
        response = client.get("/api/history?metric=voltage")

        assert response.status_code == 400
        assert "voltage" in response.get_json()["error"]

    def test_history_summary(self, client):
        data = client.get("/api/history/amperage/summary").get_json()

        assert data["count"] == 2
        assert data["max"] == 18.0

        assert client.get("/api/history/voltage/summary").status_code == 400

    def test_status(self, client):
        status = client.get("/api/status").get_json()["status"]

        assert set(status) == {"cosPhi", "amperage", "frequency"}
        assert status["amperage"]["label"] == "Warning"
        assert status["cosPhi"]["color"] == "green"

    def test_thresholds(self, client):
        data = client.get("/api/thresholds").get_json()

        assert data["amperage"] == {"normal": 10.0, "warning": 15.0}
        assert "cosPhi" in data

    def test_state(self, client):
        data = client.get("/api/state").get_json()

        assert data["mode"] == "batch"
        assert data["is_loading"] is False
        assert data["error"] is None

    def test_view(self, client):
        data = client.get("/api/view").get_json()

        assert len(data["cards"]) == 5
        assert [chart["title"] for chart in data["charts"]] == [
            "Energy Consumption Trend",
            "Current Load Monitoring",
        ]
        assert data["charts"][1]["legend_items"][0]["label"] == "Safe (≤10A)"
        assert data["health"][-1]["status"] == "Online"


class TestSocketIO:
    def test_status_on_connect(self, server):
        socket_client = server.socketio.test_client(server.app)

        received = socket_client.get_received()

        assert received[0]["name"] == "status"
        assert received[0]["args"][0]["connected"] is True
        socket_client.disconnect()

    def test_request_update(self, server):
        socket_client = server.socketio.test_client(server.app)
        socket_client.get_received()

        socket_client.emit("request_update")
        received = socket_client.get_received()

        assert [event["name"] for event in received] == ["dashboard_update"]
        payload = received[0]["args"][0]
        assert payload["state"]["mode"] == "batch"
        assert len(payload["cards"]) == 5
        socket_client.disconnect()

    def test_push_update_broadcasts(self, server):
        first = server.socketio.test_client(server.app)
        second = server.socketio.test_client(server.app)
        first.get_received()
        second.get_received()

        server.push_update()

        assert [event["name"] for event in first.get_received()] == ["dashboard_update"]
        assert [event["name"] for event in second.get_received()] == ["dashboard_update"]
        first.disconnect()
        second.disconnect()
