import pytest
from fastapi.testclient import TestClient

from app.core.settings import Settings, config_issues, validate_settings
from app.main import app
from app.services.rate_limit import SlidingWindowLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_after_budget_and_recovers():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_events=2, window_seconds=60, clock=clock)
    assert limiter.allow("k")
    assert limiter.allow("k")
    assert not limiter.allow("k")
    assert limiter.retry_after("k") == 60
    clock.now += 61
    assert limiter.allow("k")
    assert limiter.retry_after("other") == 0


def test_limiter_reset_clears_key():
    limiter = SlidingWindowLimiter(max_events=1, window_seconds=60, clock=FakeClock())
    assert limiter.allow("k")
    limiter.reset("k")
    assert limiter.allow("k")


def test_health_and_config(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}
    config = api_client.get("/config").json()
    assert config["feature_flags"] == {"odontogram_pdf": True}


def test_invalid_credentials(api_client, admin_credentials):
    email, _ = admin_credentials
    response = api_client.post("/auth/login", json={"email": email, "password": "wrong-password"})
    assert response.status_code == 401


def test_change_password_clears_flag(api_client, auth_headers):
    email = "cambio-clave@example.com"
    created = api_client.post(
        "/users",
        json={"email": email, "full_name": "Cambio", "role": "receptionist", "temp_password": "ChangeMe12345!"},
        headers=auth_headers,
    )
    assert created.status_code == 201, created.text
    login = api_client.post("/auth/login", json={"email": email, "password": "ChangeMe12345!"})
    assert login.json()["must_change_password"] is True
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    changed = api_client.post("/auth/change-password", json={"new_password": "OtraClave12345"}, headers=headers)
    assert changed.status_code == 200, changed.text

    relogin = api_client.post("/auth/login", json={"email": email, "password": "OtraClave12345"})
    assert relogin.status_code == 200, relogin.text
    assert relogin.json()["must_change_password"] is False


def test_default_credentials_fail_in_production():
    unsafe = Settings(app_env="production", secret_key="change-me", admin_email="admin@example.com", admin_password="ChangeMe123!")
    assert len(config_issues(unsafe)) == 3
    with pytest.raises(RuntimeError):
        validate_settings(unsafe)

    validate_settings(unsafe.model_copy(update={"app_env": "development"}))


def test_jwt_secret_is_accepted_as_fallback():
    configured = Settings(secret_key=None, jwt_secret="x" * 40)
    assert configured.secret_key == "x" * 40


def test_server_error_keeps_request_id(monkeypatch):
    monkeypatch.setattr("app.routers.config.settings", None)
    client = TestClient(app, raise_server_exceptions=False)

    echoed = client.get("/config", headers={"X-Request-Id": "req-config-500"})
    assert echoed.status_code == 500
    assert echoed.headers["x-request-id"] == "req-config-500"
    assert echoed.json()["request_id"] == "req-config-500"

    generated = client.get("/config")
    assert generated.status_code == 500
    assert generated.headers["x-request-id"] == generated.json()["request_id"]
