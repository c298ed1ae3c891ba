"""Tests for stats router."""

import time

from billing.exceptions import BillingAPIError


def test_get_stats_before_first_cycle(client):
    """Test 404 until a bundle has been rendered."""
    response = client.get("/v1/stats")
    assert response.status_code == 404
    assert response.json()["detail"] == "No stats have been collected yet"


def test_refresh_then_get_stats(client):
    """Test a manual refresh runs a cycle when the loop is not running."""
    response = client.post("/v1/stats/refresh")
    assert response.status_code == 202
    assert response.json() == {
        "accepted": True,
        "coalesced": False,
        "message": "Refresh completed",
    }

    response = client.get("/v1/stats")
    assert response.status_code == 200

    data = response.json()
    assert data["state"] == "ok"
    assert data["premium_percent"] == 30
    assert data["premium_remaining_percent"] == "70"
    assert data["usage_based_percent_display"] == "10"
    assert data["active_period"]["month"] == 6
    assert data["active_period"]["year"] == 2025
    assert data["is_fallback_period"] is False
    assert data["active_usage"]["actual_total_cost_cents"] == 500
    assert len(data["active_usage"]["items"]) == 2


def test_refresh_scheduled_on_running_loop(client, task_manager):
    """Test a refresh is handed to the polling loop when it is running."""
    client.portal.call(task_manager.start_periodic)
    for _ in range(100):
        status = client.get("/v1/stats/status").json()
        if status["stats"]["executions"] >= 1 and not status["cycle_in_flight"]:
            break
        time.sleep(0.01)

    response = client.post("/v1/stats/refresh")
    assert response.status_code == 202
    assert response.json() == {
        "accepted": True,
        "coalesced": False,
        "message": "Refresh scheduled",
    }

    for _ in range(100):
        if client.get("/v1/stats/status").json()["stats"]["executions"] >= 2:
            break
        time.sleep(0.01)
    assert client.get("/v1/stats/status").json()["stats"]["executions"] == 2


def test_refresh_failure_rendered(client, fake_source):
    """Test failed cycles are visible through the API."""
    fake_source.errors = [BillingAPIError("dashboard down", status_code=502)]

    client.post("/v1/stats/refresh")
    data = client.get("/v1/stats").json()
    assert data["state"] == "error"
    assert data["message"] == "dashboard down"
    assert data["consecutive_error_count"] == 1

    client.post("/v1/stats/refresh")
    data = client.get("/v1/stats").json()
    assert data["state"] == "suspended"
    assert data["retry_in_seconds"] > 0

    status = client.get("/v1/stats/status").json()
    assert status["phase"] == "cooldown"
    assert status["consecutive_error_count"] == 2


def test_refresh_during_cooldown_recovers(client, fake_source):
    """Test a manual refresh runs in cooldown and success ends it."""
    fake_source.errors = [BillingAPIError("dashboard down", status_code=502)]
    client.post("/v1/stats/refresh")
    client.post("/v1/stats/refresh")
    assert client.get("/v1/stats/status").json()["phase"] == "cooldown"

    fake_source.errors = []
    response = client.post("/v1/stats/refresh")
    assert response.status_code == 202

    assert client.get("/v1/stats").json()["state"] == "ok"
    assert client.get("/v1/stats/status").json()["phase"] == "active"


def test_get_status(client):
    """Test polling status shape."""
    response = client.get("/v1/stats/status")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "idle"
    assert data["phase"] == "active"
    assert data["periodic_running"] is False
    assert data["cycle_in_flight"] is False
    assert data["is_focused"] is True
    assert data["consecutive_error_count"] == 0
    assert data["stats"]["executions"] == 0
    assert data["config"]["error_threshold"] == 2


def test_focus_changes(client):
    """Test focus reports update the controller."""
    response = client.post("/v1/stats/focus", json={"focused": False})
    assert response.status_code == 200
    assert response.json() == {"focused": False, "phase": "active"}
    assert client.get("/v1/stats/status").json()["is_focused"] is False

    response = client.post("/v1/stats/focus", json={"focused": True})
    assert response.json()["focused"] is True
    assert client.get("/v1/stats/status").json()["is_focused"] is True


def test_focus_requires_flag(client):
    """Test focus requests are validated."""
    response = client.post("/v1/stats/focus", json={})
    assert response.status_code == 422
