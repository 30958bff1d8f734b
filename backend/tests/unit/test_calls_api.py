"""
Tests for call and pending-call endpoints
"""
from unittest.mock import AsyncMock, MagicMock, patch

from crm.domain.models.call import PendingCallStatus
from crm.infrastructure.telephony.openphone_client import OpenPhoneError


class TestClickToCall:
    
    def test_returns_url_and_pending_call(self, client, api_seeded):
        response = client.post("/api/v1/calls/click-to-call", json={
            "contact_id": api_seeded.contact_id,
            "user_id": api_seeded.user_id,
        })
        
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["url"].startswith("openphone://call?number=%2B15551234567")
        assert data["pending_call_id"]
    
    def test_unknown_contact_rejected_with_message(self, client, api_seeded):
        response = client.post("/api/v1/calls/click-to-call", json={
            "contact_id": "missing",
            "user_id": api_seeded.user_id,
        })
        
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Contact not found or has no phone number",
        }
    
    def test_user_without_credentials(self, client, api_seeded):
        response = client.post("/api/v1/calls/click-to-call", json={
            "contact_id": api_seeded.contact_id,
            "user_id": "no-such-user",
        })
        
        assert response.status_code == 400
        assert "not configured" in response.json()["message"]


class TestPendingCalls:
    
    def _click(self, client, seeded):
        return client.post("/api/v1/calls/click-to-call", json={
            "contact_id": seeded.contact_id,
            "user_id": seeded.user_id,
        }).json()["pending_call_id"]
    
    def test_list_and_filter(self, client, api_seeded):
        pending_id = self._click(client, api_seeded)
        
        response = client.get("/api/v1/pending-calls/", params={"user_id": api_seeded.user_id})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [pending_id]
        assert response.json()[0]["status"] == PendingCallStatus.INITIATED.value
        
        response = client.get("/api/v1/pending-calls/", params={
            "user_id": api_seeded.user_id,
            "status": "completed",
        })
        assert response.json() == []
    
    def test_acknowledge(self, client, api_seeded):
        pending_id = self._click(client, api_seeded)
        
        response = client.post(
            f"/api/v1/pending-calls/{pending_id}/acknowledge",
            params={"user_id": api_seeded.user_id}
        )
        
        assert response.status_code == 200
        assert response.json()["notification_shown"] is True
    
    def test_acknowledge_other_users_call(self, client, api_seeded):
        pending_id = self._click(client, api_seeded)
        
        response = client.post(
            f"/api/v1/pending-calls/{pending_id}/acknowledge",
            params={"user_id": "intruder"}
        )
        
        assert response.status_code == 404


class TestCallNotes:
    
    def test_unknown_call(self, client):
        response = client.put("/api/v1/calls/missing/notes", json={"notes": "x"})
        
        assert response.status_code == 404


class TestSetupWebhook:
    
    @patch("crm.api.v1.endpoints.calls.OpenPhoneClient")
    def test_registers_webhook(self, mock_client_cls, client, api_seeded):
        mock_client = MagicMock()
        mock_client.create_webhook = AsyncMock(return_value={"id": "WH1"})
        mock_client_cls.return_value = mock_client
        
        response = client.post("/api/v1/calls/setup-webhook", params={"user_id": api_seeded.user_id})
        
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["webhook_url"] == "http://localhost:8000/api/v1/webhooks/openphone"
        mock_client_cls.assert_called_once_with("op-test-key")
        kwargs = mock_client.create_webhook.call_args.kwargs
        assert "call.completed" in kwargs["events"]
        assert "message.delivered" in kwargs["events"]
    
    @patch("crm.api.v1.endpoints.calls.OpenPhoneClient")
    def test_provider_error(self, mock_client_cls, client, api_seeded):
        mock_client = MagicMock()
        mock_client.create_webhook = AsyncMock(side_effect=OpenPhoneError("nope", status_code=403))
        mock_client_cls.return_value = mock_client
        
        response = client.post("/api/v1/calls/setup-webhook", params={"user_id": api_seeded.user_id})
        
        assert response.status_code == 502


class TestHealth:
    
    def test_health_reports_database(self, client):
        response = client.get("/health")
        
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    def test_health_pings_database_off_the_event_loop(self, client):
        with patch("crm.main.asyncio.to_thread", new=AsyncMock(return_value=False)) as to_thread:
            response = client.get("/health")

        assert response.json() == {"status": "degraded", "database": "unavailable"}
        to_thread.assert_awaited_once_with(client.app.state.database.ping)

    def test_root(self, client):
        response = client.get("/")
        
        assert response.json()["status"] == "running"
