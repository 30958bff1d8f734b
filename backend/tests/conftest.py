"""
Shared fixtures: a file-backed SQLite database per test, seeded with one
user who has OpenPhone credentials and one contact assigned to them.
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from crm.infrastructure.storage.database import Database
from crm.infrastructure.storage.models import Contact, User


CONTACT_PHONE = "+15551234567"


def _seed(database: Database) -> SimpleNamespace:
    with database.session() as session:
        user = User(
            email="agent@example.com",
            first_name="Ava",
            last_name="Reyes",
            openphone_api_key="op-test-key",
            openphone_phone_number_id="PN123",
        )
        session.add(user)
        session.flush()
        
        contact = Contact(name="Dana Cole", phone=CONTACT_PHONE, assigned_to=user.id)
        session.add(contact)
        session.flush()
        
        return SimpleNamespace(user_id=user.id, contact_id=contact.id)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'crm.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def seeded(database):
    return _seed(database)


@pytest.fixture
def app_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("OPENPHONE_WEBHOOK_SECRET", raising=False)


@pytest.fixture
def client(app_env):
    from crm.main import app
    
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_seeded(client):
    return _seed(client.app.state.database)
