"""Pytest fixtures for testing"""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from bank_tracker.api.main import create_app
from bank_tracker.domain.ledger import LedgerStore
from bank_tracker.infrastructure.auth import CredentialStore
from bank_tracker.infrastructure.database.session import create_session_factory
from bank_tracker.infrastructure.gateways.local import LocalGateway, LocalStorage
from bank_tracker.infrastructure.gateways.remote import RemoteGateway

USER_EMAIL = "ana@example.com"
USER_PASSWORD = "correct horse battery staple"


def ticking_clock(start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)) -> Callable[[], datetime]:
    """Clock that advances one second per call, so creation order is stable"""
    current = [start]

    def tick() -> datetime:
        current[0] += timedelta(seconds=1)
        return current[0]

    return tick


@pytest.fixture
def credentials(tmp_path) -> CredentialStore:
    store = CredentialStore(tmp_path / "credentials.json")
    store.add_user(USER_EMAIL, USER_PASSWORD, user_id="user-ana")
    store.add_user("bruno@example.com", "another password", user_id="user-bruno")
    return store


@pytest.fixture
def local_gateway(tmp_path, credentials: CredentialStore) -> LocalGateway:
    """Local storage gateway with two known users"""
    return LocalGateway(LocalStorage(tmp_path / "storage.json"), credentials)


@pytest.fixture
def store(local_gateway: LocalGateway) -> LedgerStore:
    """Ledger signed in as the default user"""
    ledger = LedgerStore(local_gateway, clock=ticking_clock())
    ledger.sign_in(USER_EMAIL, USER_PASSWORD)
    return ledger


@pytest.fixture
def session_factory(tmp_path) -> sessionmaker:
    """SQLite database with the full schema"""
    return create_session_factory(f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def remote_gateway(session_factory: sessionmaker) -> RemoteGateway:
    gateway = RemoteGateway(session_factory)
    gateway.register_user(USER_EMAIL, USER_PASSWORD)
    return gateway


@pytest.fixture
def client(session_factory: sessionmaker) -> TestClient:
    """FastAPI test client backed by the test database"""
    RemoteGateway(session_factory).register_user(USER_EMAIL, USER_PASSWORD)
    app = create_app(gateway_factory=lambda: RemoteGateway(session_factory))
    return TestClient(app)


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    response = client.post("/v1/session", json={"email": USER_EMAIL, "password": USER_PASSWORD})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
