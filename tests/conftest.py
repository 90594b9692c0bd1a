from __future__ import annotations

import base64
import dataclasses
import sys
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from app.core.config import SETTINGS, Settings, get_settings
from app.main import app
from app.models.user_profile import UserProfile
from app.repos.auth_session_repo import InMemoryAuthSessionRepo
from app.repos.user_profile_repo import InMemoryUserProfileRepo

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

CLIENT_ID = "test-client-id.apps.example.com"
CLIENT_SECRET = "mock_client_secret"
REDIRECT_URI = "http://localhost:3000/callback"
SUBJECT = "110169484474386276334"
EMAIL = "kenji@example.com"
# 43 URL-safe characters
VALID_STATE = "0123456789abcdef0123456789abcdef0123456789a"


def default_profiles() -> dict[str, UserProfile]:
    return {
        SUBJECT: UserProfile(sub=SUBJECT, email=EMAIL, email_verified=True),
        "no-email": UserProfile(sub="no-email"),
        "unverified": UserProfile(sub="unverified", email="u@example.com"),
    }


@pytest.fixture(autouse=True)
def reset_provider_state() -> Iterator[None]:
    """Fresh record store and profile fixtures per test; undo overrides."""
    app.state.auth_session_repo = InMemoryAuthSessionRepo()
    app.state.user_profile_repo = InMemoryUserProfileRepo(default_profiles())
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def session_repo() -> InMemoryAuthSessionRepo:
    return app.state.auth_session_repo


def override_settings(**changes: object) -> Settings:
    """Swap the settings seen by request handlers for this test."""
    settings = dataclasses.replace(SETTINGS, **changes)
    app.dependency_overrides[get_settings] = lambda: settings
    return settings


def basic_auth(client_id: str = CLIENT_ID, secret: str = CLIENT_SECRET) -> str:
    raw = f"{client_id}:{secret}".encode()
    return "Basic " + base64.b64encode(raw).decode()


def authorize(
    client: TestClient,
    *,
    scope: str | None = "openid email",
    subject: str = SUBJECT,
    **extra: str,
) -> dict[str, list[str]]:
    """POST /authorize and return the redirect's query parameters."""
    data = {
        "response_type": "code",
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "id_token_sub": subject,
        **extra,
    }
    if scope is not None:
        data["scope"] = scope
    resp = client.post("/authorize", data=data)
    assert resp.status_code == 303, resp.text
    return parse_qs(urlparse(resp.headers["location"]).query)


def issue_code(client: TestClient, **kwargs: str | None) -> str:
    return authorize(client, **kwargs)["code"][0]  # type: ignore[arg-type]


def redeem(
    client: TestClient,
    code: str | None,
    *,
    redirect_uri: str = REDIRECT_URI,
    code_verifier: str | None = None,
    authorization: str | None = None,
    grant_type: str | None = "authorization_code",
):
    data = {"redirect_uri": redirect_uri}
    if grant_type is not None:
        data["grant_type"] = grant_type
    if code is not None:
        data["code"] = code
    if code_verifier is not None:
        data["code_verifier"] = code_verifier
    headers = {"Authorization": authorization or basic_auth()}
    return client.post("/token", data=data, headers=headers)
