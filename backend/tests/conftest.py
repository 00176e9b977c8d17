import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "ChangeMe123!")

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture(scope="session")
def admin_credentials():
    return os.environ["ADMIN_EMAIL"], os.environ["ADMIN_PASSWORD"]


@pytest.fixture(scope="session")
def api_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="session")
def auth_headers(api_client, admin_credentials):
    email, password = admin_credentials
    response = api_client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json().get("access_token")
    assert token, "Missing access_token in login response"
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session")
def role_headers(api_client, auth_headers):
    """Create a staff user with the given role and return its auth headers."""
    cache: dict[str, dict[str, str]] = {}

    def _headers(role: str) -> dict[str, str]:
        if role in cache:
            return cache[role]
        email = f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        password = "ChangeMe12345!"
        created = api_client.post(
            "/users",
            json={"email": email, "full_name": role.title(), "role": role, "temp_password": password},
            headers=auth_headers,
        )
        assert created.status_code == 201, created.text
        login = api_client.post("/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        cache[role] = {"Authorization": f"Bearer {login.json()['access_token']}"}
        return cache[role]

    return _headers


@pytest.fixture()
def patient_id(api_client, auth_headers):
    response = api_client.post(
        "/patients",
        json={"first_name": "Lucía", "last_name": f"Prueba {uuid.uuid4().hex[:6]}"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]
