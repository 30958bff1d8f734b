"""
Tests for the OpenPhone webhook endpoint
"""
import json
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from crm.core.signature import compute_signature
from crm.domain.models.call import PendingCallStatus
from crm.domain.services.pending_call_ledger import PendingCallLedger
from crm.infrastructure.storage.models import Call, Contact, PendingCall, User


CONTACT_PHONE = "+15551234567"
CALL_START = datetime(2025, 7, 1, 15, 0, 0)
WEBHOOK_URL = "/api/v1/webhooks/openphone"
SECRET = "whsec-test"


def _payload(event_type="call.completed", started_at=CALL_START, duration=45, call_id="AC500"):
    return {
        "type": event_type,
        "id": "EV500",
        "apiVersion": "v3",
        "createdAt": "2025-07-01T15:01:00Z",
        "data": {
            "id": call_id,
            "direction": "outbound",
            "from": "+15550000000",
            "to": CONTACT_PHONE,
            "duration": duration,
            "startedAt": started_at.isoformat() + "Z",
        },
    }


def _create_pending(database, seeded):
    with database.session() as session:
        return PendingCallLedger(session).create_pending(
            seeded.contact_id, seeded.user_id, CONTACT_PHONE, CALL_START
        ).id


def _call_count(database):
    with database.session() as session:
        return session.query(Call).count()


@pytest.fixture
def signed_client(app_env, monkeypatch):
    monkeypatch.setenv("OPENPHONE_WEBHOOK_SECRET", SECRET)
    from crm.main import app
    
    with TestClient(app) as test_client:
        yield test_client


class TestWebhookReconciliation:
    
    def test_completed_call_within_window(self, client, api_seeded):
        database = client.app.state.database
        pending_id = _create_pending(database, api_seeded)
        
        response = client.post(WEBHOOK_URL, json=_payload())
        
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Webhook processed",
            "type": "call.completed",
        }
        with database.session() as session:
            assert session.get(PendingCall, pending_id).status == PendingCallStatus.COMPLETED.value
            call = session.query(Call).one()
            assert call.duration == 1
            assert call.outcome == "Connected"
            contact = session.get(Contact, api_seeded.contact_id)
            assert contact.last_call_outcome == "Connected"
            assert contact.last_call_date == CALL_START
    
    def test_completed_call_outside_window(self, client, api_seeded, caplog):
        database = client.app.state.database
        pending_id = _create_pending(database, api_seeded)
        
        response = client.post(WEBHOOK_URL, json=_payload(started_at=CALL_START + timedelta(seconds=90)))
        
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "No matching pending call found" in caplog.text
        with database.session() as session:
            assert session.get(PendingCall, pending_id).status == PendingCallStatus.INITIATED.value
        assert _call_count(database) == 0
    
    def test_processing_failure_still_acknowledged(self, client, api_seeded):
        with patch.object(
            client.app.state.webhook_dispatcher, "dispatch", side_effect=RuntimeError("db down")
        ):
            response = client.post(WEBHOOK_URL, json=_payload())
        
        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "Webhook processing failed",
            "type": "call.completed",
        }


class TestWebhookRouting:
    
    def test_unknown_type_acknowledged_without_mutation(self, client, api_seeded):
        database = client.app.state.database
        pending_id = _create_pending(database, api_seeded)
        
        response = client.post(WEBHOOK_URL, json=_payload(event_type="contact.deleted"))
        
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert _call_count(database) == 0
        with database.session() as session:
            assert session.get(PendingCall, pending_id).status == PendingCallStatus.INITIATED.value
    
    def test_wrong_method(self, client):
        response = client.get(WEBHOOK_URL)
        
        assert response.status_code == 405
        assert response.json()["success"] is False
    
    def test_missing_type(self, client):
        response = client.post(WEBHOOK_URL, json={"data": {}})
        
        assert response.status_code == 400
    
    def test_body_not_json(self, client):
        response = client.post(
            WEBHOOK_URL, content=b"not json", headers={"Content-Type": "application/json"}
        )
        
        assert response.status_code == 400


class TestWebhookSignature:
    
    def test_unsigned_accepted_without_secret(self, client, api_seeded):
        response = client.post(
            WEBHOOK_URL,
            json=_payload(),
            headers={"X-Provider-Signature": "anything"}
        )
        
        assert response.status_code == 200
    
    def test_valid_signature_accepted(self, signed_client):
        body = json.dumps(_payload(event_type="call.ringing")).encode()
        
        response = signed_client.post(
            WEBHOOK_URL,
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Provider-Signature": compute_signature(body, SECRET),
            }
        )
        
        assert response.status_code == 200
        assert response.json()["type"] == "call.ringing"
    
    def test_invalid_signature_rejected_without_mutation(self, signed_client):
        database = signed_client.app.state.database
        with database.session() as session:
            user = User(email="a@example.com", openphone_api_key="k")
            session.add(user)
            session.flush()
            contact = Contact(name="C", phone=CONTACT_PHONE, assigned_to=user.id)
            session.add(contact)
            session.flush()
            pending_id = PendingCallLedger(session).create_pending(
                contact.id, user.id, CONTACT_PHONE, CALL_START
            ).id
        
        body = json.dumps(_payload()).encode()
        response = signed_client.post(
            WEBHOOK_URL,
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Provider-Signature": compute_signature(body, "wrong-secret"),
            }
        )
        
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid signature"}
        assert _call_count(database) == 0
        with database.session() as session:
            assert session.get(PendingCall, pending_id).status == PendingCallStatus.INITIATED.value
    
    def test_missing_signature_rejected_when_secret_set(self, signed_client):
        response = signed_client.post(WEBHOOK_URL, json=_payload(event_type="call.ringing"))
        
        assert response.status_code == 401
