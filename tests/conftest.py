from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Settings are read at import time, so the environment must be in place first.
_DB_DIR = Path(tempfile.mkdtemp(prefix="slotplanner-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-not-for-production"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["SLOT_TIMEZONE"] = "Europe/Paris"
os.environ["WORKDAY_START"] = "08:30"
os.environ["WORKDAY_END"] = "18:30"
os.environ["MAX_SLOT_DURATION_MINUTES"] = "120"
os.environ["SUBMISSION_GRACE_MINUTES"] = "5"
os.environ["ALLOWED_WEEKDAYS"] = "1,2,3,4,5"

from fastapi.testclient import TestClient  # noqa: E402

from slotplanner.api.deps import get_clock  # noqa: E402
from slotplanner.core.db import drop_db, init_db  # noqa: E402
from slotplanner.main import app  # noqa: E402

# Friday 2024-05-31 08:00 in Paris (CEST, UTC+2).
FIXED_NOW = datetime(2024, 5, 31, 6, 0, tzinfo=UTC)


async def _reset_db() -> None:
    await drop_db()
    await init_db()


@pytest.fixture
def db() -> None:
    asyncio.run(_reset_db())


@pytest.fixture
def client(db) -> Iterator[TestClient]:
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


def register_and_login(
    client: TestClient,
    email: str,
    *,
    user_type: str = "organizer",
    password: str = "s3cret-pass",
) -> dict[str, str]:
    resp = client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "password": password,
            "confirm_password": password,
            "name": email.split("@")[0],
            "user_type": user_type,
        },
    )
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def organizer_headers(client: TestClient) -> dict[str, str]:
    return register_and_login(client, "alice@example.com", user_type="organizer")


@pytest.fixture
def participant_headers(client: TestClient) -> dict[str, str]:
    return register_and_login(client, "paul@example.com", user_type="participant")
