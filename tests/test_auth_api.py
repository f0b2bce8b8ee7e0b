from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from conftest import register_and_login
from slotplanner.core.security import create_access_token, decode_access_token, session_expiry

AUTH = "/api/v1/auth"


def _register(client: TestClient, **overrides):
    body = {
        "email": "carol@example.com",
        "password": "pw-123456",
        "confirm_password": "pw-123456",
        "name": "Carol",
        "user_type": "organizer",
    }
    body.update(overrides)
    return client.post(f"{AUTH}/register", json=body)


def test_register_returns_public_user(client: TestClient) -> None:
    resp = _register(client, email="Carol@Example.com")

    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "carol@example.com"
    assert data["user_type"] == "organizer"
    assert "hashed_password" not in data


def test_register_rejects_password_mismatch(client: TestClient) -> None:
    resp = _register(client, confirm_password="something-else")
    assert resp.status_code == 400


def test_register_rejects_unknown_user_type(client: TestClient) -> None:
    assert _register(client, user_type="admin").status_code == 422


def test_register_rejects_duplicate_email(client: TestClient) -> None:
    assert _register(client).status_code == 201
    assert _register(client).status_code == 409


def test_login_with_wrong_password_is_unauthorized(client: TestClient) -> None:
    _register(client)

    wrong = client.post(f"{AUTH}/login", json={"email": "carol@example.com", "password": "nope"})
    unknown = client.post(f"{AUTH}/login", json={"email": "dave@example.com", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["detail"] == unknown.json()["detail"]


def test_me_and_logout(client: TestClient) -> None:
    headers = register_and_login(client, "erin@example.com", user_type="participant")

    me = client.get(f"{AUTH}/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user_type"] == "participant"

    assert client.post(f"{AUTH}/logout", headers=headers).status_code == 200
    assert client.get(f"{AUTH}/me", headers=headers).status_code == 401


def test_token_for_unknown_session_is_rejected(client: TestClient) -> None:
    register_and_login(client, "frank@example.com")
    forged = create_access_token(1, "no-such-session", session_expiry())

    resp = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 401


def test_garbage_token_is_rejected(client: TestClient) -> None:
    resp = client.get(f"{AUTH}/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_access_token_round_trip() -> None:
    token = create_access_token(42, "sid-1", session_expiry())
    assert decode_access_token(token) == ("42", "sid-1")
    assert decode_access_token(token + "x") == (None, None)


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_login_is_logged(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="slotplanner.api.routes.auth"):
        register_and_login(client, "gina@example.com")

    assert any("logged in" in r.getMessage() for r in caplog.records)
