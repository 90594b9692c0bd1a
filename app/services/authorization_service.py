"""Authorization endpoint logic: request validation and code minting.

GET and POST /authorize share ``validate_authorization_request`` so the
login form is only ever rendered for a request that could succeed.
"""

from __future__ import annotations

import logging
import dataclasses
import string
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from app.core.errors import MalformedRequest
from app.core.metrics import AUTH_CODES_ISSUED
from app.models.authorization_session import (
    CHALLENGE_METHODS,
    AuthorizationSession,
    ChallengeMethod,
)
from app.repos.auth_session_repo import AuthSessionRepo

logger = logging.getLogger(__name__)

STATE_LENGTH = 43
URL_SAFE_CHARS = frozenset(string.ascii_letters + string.digits + "-_.~")

# Echoed back on the redirect when the client supplied them.
PASSTHROUGH_PARAMS = ("state", "scope", "prompt")


@dataclass(frozen=True, slots=True)
class AuthorizationRequest:
    response_type: str | None = None
    client_id: str | None = None
    redirect_uri: str | None = None
    scope: str | None = None
    state: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    prompt: str | None = None
    subject: str | None = None


@dataclass(frozen=True, slots=True)
class ValidatedAuthorization:
    client_id: str
    redirect_uri: str
    scope: str | None
    state: str | None
    code_challenge: str | None
    code_challenge_method: ChallengeMethod | None
    prompt: str | None


def _check_state(state: str) -> None:
    if len(state) != STATE_LENGTH:
        raise MalformedRequest(
            f"Invalid state length: {len(state)}.", f"Expected {STATE_LENGTH}."
        )
    for ch in state:
        if ch not in URL_SAFE_CHARS:
            raise MalformedRequest(
                f'Invalid state character: "{ch}".', "Expected URL-safe character."
            )


def _blank_to_none(req: AuthorizationRequest) -> AuthorizationRequest:
    # Form bodies already arrive with empty values as None; query strings
    # do not.  Both sides must see the same request.
    return dataclasses.replace(
        req,
        **{
            f.name: None
            for f in dataclasses.fields(req)
            if getattr(req, f.name) == ""
        },
    )


def validate_authorization_request(req: AuthorizationRequest) -> ValidatedAuthorization:
    """Run the authorize checks in order; the first failure raises MalformedRequest.

    Empty parameters count as absent.
    """
    req = _blank_to_none(req)
    if req.response_type != "code":
        shown = "null" if req.response_type is None else req.response_type
        raise MalformedRequest(f'Invalid response_type: "{shown}".', 'Expected "code".')
    if req.client_id is None:
        raise MalformedRequest("Parameter client_id is required.")
    if req.redirect_uri is None:
        raise MalformedRequest("Parameter redirect_uri is required.")
    if req.state is not None:
        _check_state(req.state)

    method = req.code_challenge_method
    if method is not None and method not in CHALLENGE_METHODS:
        raise MalformedRequest(
            f'Invalid code_challenge_method: "{method}".',
            'Expected "S256" or "plain".',
        )

    return ValidatedAuthorization(
        client_id=req.client_id,
        redirect_uri=req.redirect_uri,
        scope=req.scope,
        state=req.state,
        code_challenge=req.code_challenge,
        code_challenge_method=method,  # type: ignore[arg-type]
        prompt=req.prompt,
    )


def build_redirect_url(redirect_uri: str, params: dict[str, str]) -> str:
    """Append ``params`` to ``redirect_uri``, replacing same-named keys."""
    parts = urlsplit(redirect_uri)
    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k not in params
    ]
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


async def issue_authorization_code(
    repo: AuthSessionRepo, auth: ValidatedAuthorization, subject: str
) -> str:
    """Persist a new session and return the client redirect URL carrying its code."""
    record = AuthorizationSession.new(
        client_id=auth.client_id,
        redirect_uri=auth.redirect_uri,
        scope=auth.scope,
        subject=subject,
        code_challenge=auth.code_challenge,
        code_challenge_method=auth.code_challenge_method,
    )
    try:
        await repo.insert(record)
    except Exception:
        logger.exception("Failed to store login session  client_id=%s", auth.client_id)
        raise MalformedRequest("Failed to store login session.") from None
    AUTH_CODES_ISSUED.inc()

    params = {"code": record.code}
    for key in PASSTHROUGH_PARAMS:
        value = getattr(auth, key)
        if value is not None:
            params[key] = value
    return build_redirect_url(auth.redirect_uri, params)
