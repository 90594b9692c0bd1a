"""Token endpoint state machine: authorization code → tokens.

The checks run in a fixed order and the first failure ends the request:

  1. grant_type           MalformedRequest
  2. code lookup + take   SessionNotFound (the code is gone from here on)
  3. PKCE                 MalformedRequest / ProtocolViolation
  4. redirect_uri         ProtocolViolation
  5. client credentials   MalformedRequest / ProtocolViolation
  6. scope                ProtocolViolation
  7. issue                ConfigurationError on broken profile fixtures

The session is removed in step 2, before anything else is checked, so a
code can be presented successfully at most once even if a later step
rejects the first attempt.
"""

from __future__ import annotations

import base64
import hmac
import logging
import time
import uuid
from dataclasses import dataclass
from typing import assert_never

from app.core.config import Settings
from app.core.errors import (
    ConfigurationError,
    MalformedRequest,
    ProtocolViolation,
    SessionNotFound,
)
from app.core.metrics import TOKEN_EXCHANGES
from app.models.authorization_session import AuthorizationSession
from app.repos.auth_session_repo import AuthSessionRepo
from app.repos.user_profile_repo import UserProfileRepo
from app.services import pkce_service, token_codec
from app.services.claims_service import (
    IssuedClaims,
    MissingProfileField,
    NoIdTokenRequested,
    UnknownSubject,
    build_id_token_claims,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL_SEC = 3599


@dataclass(frozen=True, slots=True)
class TokenRequest:
    grant_type: str | None = None
    code: str | None = None
    code_verifier: str | None = None
    redirect_uri: str | None = None
    authorization: str | None = None


@dataclass(frozen=True, slots=True)
class IssuedTokens:
    access_token: str
    scope: str
    id_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int = ACCESS_TOKEN_TTL_SEC


def _verify_pkce(
    session: AuthorizationSession,
    challenge: str,
    req: TokenRequest,
    settings: Settings,
) -> None:
    if req.code_verifier is None:
        raise MalformedRequest("Parameter code_verifier is required.")

    method = session.effective_challenge_method()
    if method == "plain" and not settings.pkce_allow_plain:
        raise ProtocolViolation(
            'Unsupported code_challenge_method: "plain".', 'Expected "S256".'
        )

    try:
        ok = pkce_service.verify(method, challenge, req.code_verifier)
    except pkce_service.UnsupportedChallengeMethodError as e:
        raise ConfigurationError(str(e)) from None
    if not ok:
        logger.warning(
            "OAUTH FLOW [token] FAIL: PKCE verification failed  method=%s", method
        )
        raise ProtocolViolation("Code verifier does not match code challenge.")


def parse_basic_credentials(header: str | None) -> tuple[str, str]:
    """Split ``Authorization: Basic base64(id:secret)`` into its two halves."""
    if header is None:
        raise MalformedRequest("Authorization header is required.")

    prefix, _, credentials = header.partition(" ")
    if prefix != "Basic":
        raise MalformedRequest(
            f'Invalid Authorization header prefix: "{prefix}".', 'Expected "Basic".'
        )
    credentials = credentials.strip()
    if not credentials:
        raise MalformedRequest("Credentials not found in Authorization header.")

    try:
        decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
    except ValueError:
        raise MalformedRequest(
            "Invalid credentials encoding in Authorization header."
        ) from None

    client_id, _, client_secret = decoded.partition(":")
    return client_id, client_secret


def _authenticate_client(
    session: AuthorizationSession, req: TokenRequest, settings: Settings
) -> None:
    client_id, client_secret = parse_basic_credentials(req.authorization)
    if client_id != session.client_id:
        raise ProtocolViolation("Invalid client_id")
    if not hmac.compare_digest(
        client_secret.encode("utf-8"), settings.client_secret.encode("utf-8")
    ):
        raise ProtocolViolation(
            f'Invalid client_secret. Expected "{settings.client_secret}".',
            "Never use production client_secret in tests.",
        )


def _build_id_token(
    session: AuthorizationSession,
    scopes: frozenset[str],
    access_token: str,
    profiles: UserProfileRepo,
    settings: Settings,
    now: int,
) -> str | None:
    result = build_id_token_claims(
        session=session,
        scopes=scopes,
        profiles=profiles,
        access_token=access_token,
        issuer=settings.issuer,
        now=now,
    )
    if isinstance(result, NoIdTokenRequested):
        return None
    if isinstance(result, IssuedClaims):
        return token_codec.encode_compact(result.claims)
    if isinstance(result, (UnknownSubject, MissingProfileField)):
        raise ConfigurationError(result.message)
    assert_never(result)


async def exchange_code(
    req: TokenRequest,
    *,
    sessions: AuthSessionRepo,
    profiles: UserProfileRepo,
    settings: Settings,
    now: int | None = None,
) -> IssuedTokens:
    # Never log code_verifier, the Authorization header or issued tokens.

    if req.grant_type is None:
        raise MalformedRequest("Parameter grant_type is required.")
    if req.grant_type != "authorization_code":
        raise MalformedRequest(
            f'Invalid grant_type: "{req.grant_type}".',
            'Expected "authorization_code".',
        )
    logger.info("OAUTH FLOW [token] step 1: grant_type valid")

    if req.code is None:
        raise MalformedRequest("Parameter code is required.")
    session = await sessions.take(req.code)
    if session is None:
        raise SessionNotFound(f'Auth session not found for code: "{req.code}".')
    logger.info(
        "OAUTH FLOW [token] step 2: session consumed  client_id=%s",
        session.client_id,
        extra={"client_id": session.client_id},
    )

    if session.code_challenge is not None:
        _verify_pkce(session, session.code_challenge, req, settings)
        logger.info(
            "OAUTH FLOW [token] step 3: PKCE verified  method=%s",
            session.effective_challenge_method(),
        )
    else:
        logger.info("OAUTH FLOW [token] step 3: no PKCE challenge on session")

    if req.redirect_uri != session.redirect_uri:
        raise ProtocolViolation("Invalid redirect_uri.")
    logger.info("OAUTH FLOW [token] step 4: redirect_uri matches")

    _authenticate_client(session, req, settings)
    logger.info("OAUTH FLOW [token] step 5: client authenticated")

    if session.scope is None:
        raise ProtocolViolation("scope is required.")
    scopes = session.scopes()
    logger.info("OAUTH FLOW [token] step 6: scope=%s", session.scope)

    issued_at = int(time.time()) if now is None else now
    access_token = str(uuid.uuid4())
    id_token = _build_id_token(
        session, scopes, access_token, profiles, settings, issued_at
    )
    TOKEN_EXCHANGES.labels(
        outcome="id_token" if id_token is not None else "access_token"
    ).inc()
    logger.info(
        "OAUTH FLOW [token] step 7: tokens issued  id_token=%s",
        "yes" if id_token is not None else "no",
    )

    return IssuedTokens(
        access_token=access_token, id_token=id_token, scope=session.scope
    )
