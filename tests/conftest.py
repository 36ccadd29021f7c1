"""
Shared pytest fixtures: a throwaway SQLite database per test, an app wired
to it and a fake Google client.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")

from typing import Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from gastos_hormigas.core.auth_provider import LocalAuthProvider, LoginThrottle, OAuthIdentity
from gastos_hormigas.core.errors import AuthProviderError
from gastos_hormigas.database import enable_sqlite_foreign_keys, get_session, init_db
from gastos_hormigas.dependencies import get_auth_provider, get_oauth_client
from gastos_hormigas.main import app
from gastos_hormigas.services.auth_service import AuthService


STRONG_PASSWORD = "Hormiga#2024xyz"


class FakeGoogleOAuthClient:
    """Maps authorization codes to identities without any network call."""

    provider = "google"

    def __init__(self):
        self.identities: Dict[str, OAuthIdentity] = {}

    def add(self, code: str, subject: str, email: Optional[str] = None, display_name: Optional[str] = None):
        self.identities[code] = OAuthIdentity("google", subject, email, display_name)

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/auth?state={state}"

    def fetch_identity(self, code: str) -> OAuthIdentity:
        if code not in self.identities:
            raise AuthProviderError("invalid_grant", "Authorization code rejected")
        return self.identities[code]


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def provider() -> LocalAuthProvider:
    return LocalAuthProvider(throttle=LoginThrottle(max_attempts=3, window_seconds=60))


@pytest.fixture
def service(provider) -> AuthService:
    return AuthService(provider)


@pytest.fixture
def google() -> FakeGoogleOAuthClient:
    return FakeGoogleOAuthClient()


@pytest.fixture
def client(engine, provider, google) -> Generator[TestClient, None, None]:
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_auth_provider] = lambda: provider
    app.dependency_overrides[get_oauth_client] = lambda: google
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def guest(client) -> Dict[str, str]:
    """A fresh guest session; returns the /auth/guest response body."""
    response = client.post("/auth/guest")
    assert response.status_code == 201
    client.cookies.clear()
    return response.json()


@pytest.fixture
def member(client) -> Dict[str, str]:
    """A registered email user; returns the /auth/signup response body."""
    response = client.post(
        "/auth/signup",
        json={"email": "ana@example.com", "password": STRONG_PASSWORD},
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()
