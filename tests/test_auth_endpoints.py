"""
HTTP tests for the auth and health routers.

The Appwrite client and settings are replaced through dependency overrides;
the lifespan is not started, so no network connection is opened.
"""

import pytest
from fastapi.testclient import TestClient

from authcode.api.v1.endpoints.auth import get_login_code_service
from authcode.core.appwrite import aget_appwrite
from authcode.core.config import get_settings
from authcode.core.limiter import limiter
from authcode.main import app
from authcode.services.LoginCodeService import LoginCodeService

from conftest import FIXED_CODE, make_settings

pytestmark = pytest.mark.unit


@pytest.fixture
def build_client(store, clock):
    def build(**overrides):
        app_settings = make_settings(**overrides)
        app.dependency_overrides[aget_appwrite] = lambda: store
        app.dependency_overrides[get_settings] = lambda: app_settings
        app.dependency_overrides[get_login_code_service] = lambda: LoginCodeService(
            store, app_settings, clock=clock, code_generator=lambda: FIXED_CODE
        )
        return TestClient(app, raise_server_exceptions=False)

    yield build
    app.dependency_overrides.clear()


@pytest.fixture
def client(build_client):
    return build_client()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_debug_env_reports_presence_only_for_secrets(build_client):
    client = build_client(APPWRITE_API_KEY="", APPWRITE_DB_ID="main")

    body = client.get("/debug/env").json()

    assert body == {
        "endpoint": True,
        "project": True,
        "apiKey": False,
        "db": "main",
        "collCodes": "login_codes",
        "collProfiles": "user_profiles",
    }


def test_send_code_dev_mode_returns_code(client, store):
    response = client.post("/auth/send-code?role=transportador&ref=abc", json={"email": "a@b.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["code_dev"] == FIXED_CODE
    assert isinstance(body["expires_at"], int)
    [stored] = store.documents("db", "login_codes")
    assert stored["role"] == "transportador"
    assert stored["ref"] == "abc"


def test_send_code_production_hides_code(build_client):
    client = build_client(DEV_MODE=False)

    response = client.post("/auth/send-code", json={"email": "a@b.com"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Code sent"}


def test_send_code_missing_email(client):
    response = client.post("/auth/send-code", json={"email": "   "})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Email is required"}


def test_send_code_without_body(client):
    response = client.post("/auth/send-code")

    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_send_code_store_failure_echoes_message(client, store):
    store.fail.add("create_document")

    response = client.post("/auth/send-code", json={"email": "a@b.com"})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "create_document unavailable"}


def test_send_then_verify_flow(client):
    sent = client.post("/auth/send-code?role=transportador", json={"email": "a@b.com"}).json()

    response = client.post(
        "/auth/verify-code",
        json={"email": "a@b.com", "code": sent["code_dev"], "role": "transportador"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["role_set"] == "transportador"
    assert body["user_id"]
    assert body["token"].startswith(f"ok-{body['user_id']}-")


def test_verify_accepts_numeric_code(client):
    client.post("/auth/send-code", json={"email": "a@b.com"})

    response = client.post("/auth/verify-code", json={"email": "a@b.com", "code": int(FIXED_CODE)})

    assert response.status_code == 200
    assert response.json()["role_set"] == "cliente"


@pytest.mark.parametrize("path", ["/auth/send-code", "/auth/verify-code"])
def test_malformed_json_body_is_400(client, store, path):
    response = client.post(
        path, content="{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid request body"}
    assert store.calls == []


def test_verify_missing_fields(client):
    response = client.post("/auth/verify-code", json={"email": "a@b.com"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Email and code are required"}


def test_verify_no_code(client):
    response = client.post("/auth/verify-code", json={"email": "a@b.com", "code": "123456"})

    assert response.status_code == 400
    assert response.json()["error"] == "No code found"


def test_verify_wrong_code(client):
    client.post("/auth/send-code", json={"email": "a@b.com"})

    response = client.post("/auth/verify-code", json={"email": "a@b.com", "code": "000000"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid code"}


def test_verify_expired_code(client, clock):
    client.post("/auth/send-code", json={"email": "a@b.com"})
    clock.advance(minutes=15)

    response = client.post("/auth/verify-code", json={"email": "a@b.com", "code": FIXED_CODE})

    assert response.status_code == 400
    assert response.json()["error"] == "Code expired"


def test_verify_store_failure_is_500(client, store):
    store.fail.add("list_documents")

    response = client.post("/auth/verify-code", json={"email": "a@b.com", "code": FIXED_CODE})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "list_documents unavailable"}


def test_send_code_is_rate_limited(client):
    limiter.enabled = True
    limiter.reset()
    try:
        statuses = [
            client.post("/auth/send-code", json={"email": "a@b.com"}).status_code
            for _ in range(6)
        ]
    finally:
        limiter.enabled = False
        limiter.reset()

    assert statuses[:5] == [200] * 5
    assert statuses[5] == 429
