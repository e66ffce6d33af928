"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The environment is configured before any application module is imported so
that settings pick up the test database and a fast bcrypt work factor.
"""

import asyncio
import os
import tempfile
from collections.abc import Generator
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="postboard-tests-"))

os.environ["APP_ENV"] = "test"
os.environ["TEST_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["METRICS_REPORT_INTERVAL_SECONDS"] = "0"
os.environ.setdefault("LOG_DIR", str(_TEST_DIR / "logs"))

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """
    Create a new application instance for the test session.
    """
    # Import the factory function here to ensure it's fresh for the test session.
    from main import create_app

    return create_app()


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """Every test starts from empty tables."""
    from app.db import reset_db

    asyncio.run(reset_db())


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Fixture to get a test client for making API requests.
    The TestClient handles the application's lifespan events (startup/shutdown).
    """
    app.state.metrics.reset()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client: TestClient):
    """Register a user through the API; returns the response data (token, user)."""

    def _register(username: str = "alice", **overrides) -> dict:
        payload = {
            "username": username,
            "email": f"{username}@example.com",
            "password": "secret123",
            "firstName": username.capitalize(),
            "lastName": "Tester",
        }
        payload.update(overrides)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['token']}"}
        return data

    return _register


@pytest.fixture
def alice(register_user) -> dict:
    return register_user("alice")


@pytest.fixture
def bob(register_user) -> dict:
    return register_user("bob")
