"""Demo: walk the authorize → token PKCE flow using FastAPI TestClient.

Run with:
    python scripts/demo_flow.py
"""

from __future__ import annotations

import base64
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from app.core.config import SETTINGS
from app.main import app
from app.models.user_profile import UserProfile
from app.services import pkce_service, token_codec

CLIENT_ID = "demo-client"
REDIRECT_URI = "http://localhost/callback"
SUBJECT = "demo-user"
STATE = "d" * 43


def main() -> None:
    client = TestClient(app, follow_redirects=False)

    # ── Seed data ───────────────────────────────────────────────────
    app.state.user_profile_repo.add(
        UserProfile(sub=SUBJECT, email="demo@example.com", email_verified=True)
    )

    verifier = pkce_service.generate_code_verifier()
    params = {
        "response_type": "code",
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "scope": "openid email",
        "state": STATE,
        "code_challenge": pkce_service.compute_code_challenge(verifier),
        "code_challenge_method": "S256",
    }

    # ── Step 1: GET /authorize ──────────────────────────────────────
    r = client.get("/authorize", params=params)
    print(f"1. GET  /authorize         → {r.status_code}  (login form HTML)")

    # ── Step 2: POST /authorize ─────────────────────────────────────
    r = client.post("/authorize", data={**params, "id_token_sub": SUBJECT})
    query = parse_qs(urlparse(r.headers["location"]).query)
    code = query["code"][0]
    print(f"2. POST /authorize         → {r.status_code}  code={code[:12]}…")

    # ── Step 3: POST /token ─────────────────────────────────────────
    basic = base64.b64encode(f"{CLIENT_ID}:{SETTINGS.client_secret}".encode())
    token_form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": REDIRECT_URI,
        "code_verifier": verifier,
    }
    headers = {"Authorization": f"Basic {basic.decode()}"}
    r = client.post("/token", data=token_form, headers=headers)
    body = r.json()
    _, claims = token_codec.decode_compact(body["id_token"])
    print(
        f"3. POST /token             → {r.status_code}  "
        f"expires_in={body['expires_in']}s  sub={claims['sub']} "
        f"email={claims['email']}"
    )

    # ── Step 4: replay the code ─────────────────────────────────────
    r = client.post("/token", data=token_form, headers=headers)
    print(f"4. POST /token (replay)    → {r.status_code}  {r.text}")

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
