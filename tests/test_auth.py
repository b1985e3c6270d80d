# tests/test_auth.py

import httpx
import pytest

from conftest import run
from models.auth import LocalMockAuthProvider, RemoteServiceAuthProvider
from schemas.auth import LoginCredentials, SignUpData
from utils.exceptions import AuthError


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"


def test_openapi_documents_error_envelopes(client):
    schemas = client.get("/openapi.json").json()["components"]["schemas"]
    assert "SearchErrorResponse" in schemas
    assert "ErrorResponse" in schemas


def test_login_me_logout_flow(client):
    r = client.post("/auth/login", json={"email": "hr@example.com", "password": "pw"})
    assert r.status_code == 200
    token = r.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "hr@example.com"

    assert client.post("/auth/logout", headers=headers).json() == {"ok": True}
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_signup_opens_session(client):
    r = client.post("/auth/signup", json={"name": "Hema Rao", "email": "hema@example.com", "password": "pw"})
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Hema Rao"


def test_me_with_invalid_token(client):
    r = client.get("/auth/me", headers={"Authorization": "Bearer invalid-token"})
    assert r.status_code == 401


def test_login_missing_body(client):
    r = client.post("/auth/login", json={})
    assert r.status_code == 422


def test_local_provider_rejects_blank_password():
    with pytest.raises(AuthError):
        run(LocalMockAuthProvider().login(LoginCredentials(email="a@b.co", password="")))


def _remote(handler) -> RemoteServiceAuthProvider:
    return RemoteServiceAuthProvider("https://id.example.com", transport=httpx.MockTransport(handler))


def test_remote_provider_login_and_validation():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login":
            return httpx.Response(200, json={"token": "t-1", "user": {"id": "7", "name": "Remote", "email": "r@x.io"}})
        if request.url.path == "/me" and request.headers.get("authorization") == "Bearer t-1":
            return httpx.Response(200, json={"id": "7", "name": "Remote", "email": "r@x.io"})
        return httpx.Response(401)

    provider = _remote(handler)
    session = run(provider.login(LoginCredentials(email="r@x.io", password="pw")))
    assert session.token == "t-1"
    assert run(provider.get_user("t-1")).id == "7"
    assert run(provider.get_user("other")) is None


def test_remote_provider_rejects_bad_credentials():
    provider = _remote(lambda request: httpx.Response(401, json={"error": "nope"}))
    with pytest.raises(AuthError):
        run(provider.signup(SignUpData(name="X", email="x@y.io", password="pw")))


def test_remote_provider_requires_url():
    with pytest.raises(AuthError):
        RemoteServiceAuthProvider("")


def test_lifespan_creates_tables_when_enabled(monkeypatch):
    from fastapi.testclient import TestClient

    import config
    import main

    calls = []

    async def _init():
        calls.append(True)

    monkeypatch.setattr(config, "AUTO_CREATE_TABLES", True)
    monkeypatch.setattr(main, "init_models", _init)
    with TestClient(main.app) as c:
        assert c.get("/healthz").status_code == 200
    assert calls == [True]
