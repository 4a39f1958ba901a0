"""
Pytest configuration and fixtures for FinLedger tests

Provides:
1. Temporary SQLite database per test
2. Core services bound to a test session
3. Token service with a controllable clock
4. FastAPI test client built from test settings
5. Registered users and auth headers
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict

from fastapi.testclient import TestClient
from passlib.context import CryptContext

from finledger.core import security
from finledger.core.config import Settings
from finledger.db.session import create_db_engine, create_session_factory, init_db
from finledger.main import create_application
from finledger.services import (
    AuthGate,
    CredentialStore,
    LedgerEngine,
    ProfileService,
    TokenService,
)

TEST_SECRET_KEY = "test_secret_key_for_testing_only"


# === PYTEST CONFIGURATION ===

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slow)"
    )


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Cheap bcrypt rounds for tests"""
    monkeypatch.setattr(
        security,
        "pwd_context",
        CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=4),
    )


# === CLOCK ===

class FrozenClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


# === DATABASE ===

@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'finledger_test.db'}"


@pytest.fixture
def engine(database_url):
    eng = create_db_engine(database_url)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# === SERVICES ===

@pytest.fixture
def credential_store(db_session):
    return CredentialStore(db_session)


@pytest.fixture
def ledger(db_session):
    return LedgerEngine(db_session)


@pytest.fixture
def profile_service(db_session):
    return ProfileService(db_session)


@pytest.fixture
def token_service(clock):
    return TokenService(
        secret_key=TEST_SECRET_KEY,
        algorithm="HS256",
        lifetime=timedelta(hours=1),
        clock=clock,
    )


@pytest.fixture
def auth_gate(token_service):
    return AuthGate(token_service)


@pytest.fixture
def alice_id(credential_store):
    """User alice/pw1 registered through the credential store"""
    return credential_store.register("alice", "pw1")


@pytest.fixture
def bob_id(credential_store):
    return credential_store.register("bob", "pw2")


# === FASTAPI TEST CLIENT ===

@pytest.fixture
def test_settings(database_url):
    return Settings(
        project_name="Test FinLedger",
        debug=True,
        env="local",
        database_url=database_url,
        jwt_secret_key=TEST_SECRET_KEY,
        access_token_expire_minutes=60,
        advice_api_key="test-advice-key",
        log_level="DEBUG",
    )


@pytest.fixture
def test_app(test_settings):
    return create_application(test_settings)


@pytest.fixture
def test_client(test_app):
    """FastAPI test client"""
    with TestClient(test_app) as client:
        yield client


def register_and_login(client: TestClient, username: str, password: str) -> Dict[str, str]:
    response = client.post("/api/auth/register", json={"username": username, "password": password})
    assert response.status_code == 201, response.text
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def auth_headers(test_client):
    """Authorization headers of a freshly registered user"""
    return register_and_login(test_client, "alice", "pw1")


@pytest.fixture
def other_auth_headers(test_client):
    return register_and_login(test_client, "bob", "pw2")
