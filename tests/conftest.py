from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blooddb.config import settings
from blooddb.database import Base, get_db
from blooddb.main import app
from blooddb.services.sessions import MemorySessionStore, SessionManager

DEFAULT_PASSWORD = "Secret1"


@pytest.fixture()
def session_factory() -> Generator:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory) -> Generator:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def session_manager() -> SessionManager:
    return SessionManager(MemorySessionStore())


@pytest.fixture()
def client(db_session, session_manager) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    original_manager = app.state.session_manager
    app.state.session_manager = session_manager

    # Tests use an in-memory DB via dependency override; skip app startup side effects.
    original_startup = list(app.router.on_startup)
    app.router.on_startup.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.router.on_startup[:] = original_startup
    app.state.session_manager = original_manager
    app.dependency_overrides.clear()


def user_payload(username: str = "alice", email: str = "a@x.com", **overrides) -> dict:
    payload = {
        "username": username,
        "email": email,
        "password": DEFAULT_PASSWORD,
        "full_name": "Alice A",
        "phone": "1234567890",
    }
    payload.update(overrides)
    return payload


def use_session(client: TestClient, token: str | None) -> None:
    client.cookies.clear()
    if token:
        client.cookies.set(settings.session_cookie_name, token)


@pytest.fixture()
def login_as(client):
    """Register (if needed) and log in a user; returns the session token."""

    def _login(username: str, email: str, password: str = DEFAULT_PASSWORD) -> str:
        client.post("/api/auth/register", json=user_payload(username, email, password=password))
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.cookies.get(settings.session_cookie_name)
        assert token
        use_session(client, token)
        return token

    return _login
