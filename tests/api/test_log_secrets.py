"""Verifiers, client secrets and issued tokens must never reach the logs."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from app.services import pkce_service
from tests.conftest import basic_auth, issue_code, redeem

WRONG_SECRET = "prod-secret-DO-NOT-LEAK-42"


def test_successful_exchange_does_not_log_secrets(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    verifier = pkce_service.generate_code_verifier()
    code = issue_code(
        client,
        code_challenge=pkce_service.compute_code_challenge(verifier),
        code_challenge_method="S256",
    )
    auth_header = basic_auth()

    with caplog.at_level(logging.DEBUG):
        resp = redeem(client, code, code_verifier=verifier, authorization=auth_header)
    assert resp.status_code == 200
    body = resp.json()

    all_log_text = " ".join(caplog.messages)
    assert verifier not in all_log_text, "code_verifier found in log output!"
    assert auth_header.split()[1] not in all_log_text
    assert body["access_token"] not in all_log_text
    assert body["id_token"] not in all_log_text


def test_rejected_secret_is_not_logged(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    code = issue_code(client)
    with caplog.at_level(logging.DEBUG):
        resp = redeem(client, code, authorization=basic_auth(secret=WRONG_SECRET))
    assert resp.status_code == 400
    assert WRONG_SECRET not in " ".join(caplog.messages)


def test_pkce_mismatch_does_not_log_verifier(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    code = issue_code(client, code_challenge="expected", code_challenge_method="plain")
    with caplog.at_level(logging.DEBUG):
        resp = redeem(client, code, code_verifier="attacker-guess-verifier")
    assert resp.status_code == 400
    assert "attacker-guess-verifier" not in " ".join(caplog.messages)


def test_configuration_errors_logged_at_error_level(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    code = issue_code(client, scope="openid email", subject="unverified")
    with caplog.at_level(logging.DEBUG, logger="app.core.errors"):
        redeem(client, code)
    errors = [r for r in caplog.records if r.name == "app.core.errors"]
    assert len(errors) == 1
    assert errors[0].levelno == logging.ERROR
    assert errors[0].error_kind == "configuration_error"  # type: ignore[attr-defined]


def test_client_errors_logged_at_warning_level(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="app.core.errors"):
        redeem(client, "missing-code")
    errors = [r for r in caplog.records if r.name == "app.core.errors"]
    assert len(errors) == 1
    assert errors[0].levelno == logging.WARNING
    assert errors[0].error_kind == "not_found"  # type: ignore[attr-defined]
