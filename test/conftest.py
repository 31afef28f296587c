from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.api.main import create_app
from backend.config import Settings

TEST_SECRET = "test-secret"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """Hermetic settings: a throwaway SQLite file and cheap bcrypt rounds."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture()
def app(settings) -> Generator[FastAPI, None, None]:
    application = create_app(settings)
    yield application
    application.state.engine.dispose()


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def register(client: TestClient, name: str = "Ana", email: str = "ana@example.com", password: str = "pw-123") -> dict:
    res = client.post("/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
