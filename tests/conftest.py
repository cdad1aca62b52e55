"""
Shared fixtures.

Points the app at a throwaway SQLite file before any app module is imported.
"""

import os
import tempfile
import uuid

_TMP_DIR = tempfile.mkdtemp(prefix="cloudkit-auth-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def email() -> str:
    return f"user-{uuid.uuid4().hex[:10]}@example.com"


def register(client: TestClient, email: str, password: str = "rightpass", username: str = "Known"):
    """POST a form-encoded registration."""
    return client.post(
        "/api/v1/auth",
        data={"username": username, "email": email, "password": password},
    )
