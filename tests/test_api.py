"""Tests for the Sicredi sync API endpoints."""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from boleto_sync.api import create_app
from boleto_sync.auth import limiter
from boleto_sync.config import SyncSettings
from boleto_sync.gateway import SimulatorBoletoGateway
from boleto_sync.sync import SyncError, SyncResult


@pytest.fixture
def app():
    limiter.reset()
    return create_app(
        settings=SyncSettings(database_url="sqlite+aiosqlite:///:memory:"),
        gateway=SimulatorBoletoGateway(),
    )


@pytest.fixture
def client(app):
    """Create test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Return authenticated headers."""
    return {"Authorization": "Bearer test_api_key_12345"}


class TestAuthentication:
    def test_missing_credentials(self, client):
        response = client.post("/sicredi-sync/perform")
        assert response.status_code in (401, 403)

    def test_invalid_api_key(self, client):
        response = client.get(
            "/sicredi-sync/status",
            headers={"Authorization": "Bearer wrong_key"},
        )
        assert response.status_code == 401

    def test_missing_server_key(self, client, auth_headers, monkeypatch):
        monkeypatch.delenv("API_KEY")
        response = client.get("/sicredi-sync/status", headers=auth_headers)
        assert response.status_code == 500

    def test_health_is_public(self, client):
        response = client.get("/sicredi-sync/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["gateway"]["provider"] == "simulator"


class TestAutoSyncEndpoints:
    """Tests for start, stop and status."""

    def test_start_with_default_interval(self, client, auth_headers):
        response = client.post("/sicredi-sync/start", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["intervalMinutes"] == 30

    def test_start_twice_keeps_first_session(self, client, auth_headers):
        client.post("/sicredi-sync/start", json={"intervalMinutes": 15}, headers=auth_headers)
        response = client.post("/sicredi-sync/start", json={"intervalMinutes": 60}, headers=auth_headers)

        assert response.json()["intervalMinutes"] == 15

    @pytest.mark.parametrize("interval", [4, 1441, 0])
    def test_start_rejects_out_of_range_interval(self, client, auth_headers, interval):
        response = client.post(
            "/sicredi-sync/start",
            json={"intervalMinutes": interval},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_status_reflects_start_and_stop(self, client, auth_headers):
        status = client.get("/sicredi-sync/status", headers=auth_headers).json()
        assert status["success"] is True
        assert status["data"]["isRunning"] is False
        assert status["data"]["session"] is None
        assert status["data"]["stats"]["totalSicrediPayments"] == 0

        client.post("/sicredi-sync/start", json={"intervalMinutes": 10}, headers=auth_headers)
        status = client.get("/sicredi-sync/status", headers=auth_headers).json()
        assert status["data"]["isRunning"] is True
        assert status["data"]["session"]["intervalMinutes"] == 10

        response = client.post("/sicredi-sync/stop", headers=auth_headers)
        assert response.json()["message"] == "Automatic sync stopped"
        status = client.get("/sicredi-sync/status", headers=auth_headers).json()
        assert status["data"]["isRunning"] is False

    def test_stop_when_not_running(self, client, auth_headers):
        response = client.post("/sicredi-sync/stop", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Automatic sync was not running"

    def test_shutdown_waits_for_running_passes(self, app, auth_headers):
        """Leaving the lifespan drains passes before the database closes."""
        with TestClient(app) as test_client:
            test_client.post("/sicredi-sync/start", headers=auth_headers)
            scheduler = app.state.sync_scheduler
            scheduler.drain = AsyncMock(wraps=scheduler.drain)

        scheduler.drain.assert_awaited_once()
        assert not scheduler.is_running()
        assert app.state.db.engine is None

    def test_status_stats_failure(self, client, app, auth_headers):
        app.state.sync_service.get_sync_stats = AsyncMock(
            side_effect=SyncError("Failed to compute sync statistics", code="STATS_ERROR")
        )

        response = client.get("/sicredi-sync/status", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "STATS_ERROR"


class TestManualSyncEndpoints:
    """Tests for perform and client sync."""

    def test_perform_on_empty_store(self, client, auth_headers):
        response = client.post("/sicredi-sync/perform", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalProcessed"] == 0
        assert data["errors"] == []
        assert data["summary"] == {"paid": 0, "overdue": 0, "cancelled": 0, "pending": 0}

    def test_perform_returns_result(self, client, app, auth_headers):
        result = SyncResult(total_processed=3, updated_debts=1)
        app.state.sync_service.perform_sync = AsyncMock(return_value=result.finish())

        response = client.post("/sicredi-sync/perform", headers=auth_headers)

        assert response.json()["data"]["totalProcessed"] == 3
        assert response.json()["data"]["updatedDebts"] == 1

    def test_perform_fatal_error(self, client, app, auth_headers):
        app.state.sync_service.perform_sync = AsyncMock(
            side_effect=SyncError("Sicredi synchronization failed", code="SYNC_ERROR")
        )

        response = client.post("/sicredi-sync/perform", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["detail"] == {
            "success": False,
            "error": "Sicredi synchronization failed",
            "code": "SYNC_ERROR",
        }

    def test_client_sync(self, client, app, auth_headers):
        mock = AsyncMock(return_value=SyncResult(total_processed=1).finish())
        app.state.sync_service.sync_client_payments = mock

        response = client.post("/sicredi-sync/client/cust_42", headers=auth_headers)

        assert response.status_code == 200
        mock.assert_awaited_once_with("cust_42")

    def test_client_sync_fatal_error(self, client, app, auth_headers):
        app.state.sync_service.sync_client_payments = AsyncMock(
            side_effect=SyncError("Failed to synchronize client cust_42", code="CLIENT_SYNC_ERROR")
        )

        response = client.post("/sicredi-sync/client/cust_42", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "CLIENT_SYNC_ERROR"

    def test_manual_triggers_are_rate_limited(self, client, auth_headers):
        statuses = [
            client.post("/sicredi-sync/perform", headers=auth_headers).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429
