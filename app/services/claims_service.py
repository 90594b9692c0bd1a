"""ID-token claims assembly.

``build_id_token_claims`` never raises for profile problems; it returns
one of four results and POST /token decides what each one means:

  NoIdTokenRequested   ``openid`` not granted, respond without id_token
  IssuedClaims         claims ready for the token codec
  UnknownSubject       no fixture profile for the logged-in subject
  MissingProfileField  ``email`` granted but the fixture profile cannot
                       back it; fail closed instead of emitting a partial
                       claim set

Profiles are only looked up once ``openid`` is known to be granted.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from typing import Any

from app.models.authorization_session import AuthorizationSession
from app.models.user_profile import UserProfile
from app.repos.user_profile_repo import UserProfileRepo

ID_TOKEN_TTL_SEC = 3600


@dataclass(frozen=True, slots=True)
class NoIdTokenRequested:
    pass


@dataclass(frozen=True, slots=True)
class IssuedClaims:
    claims: dict[str, Any]


@dataclass(frozen=True, slots=True)
class UnknownSubject:
    subject: str | None

    @property
    def message(self) -> str:
        return f"User not found in data: {self.subject}"


@dataclass(frozen=True, slots=True)
class MissingProfileField:
    field: str
    scope: str

    @property
    def message(self) -> str:
        return f"User {self.field} is required for {self.scope} scope."


ClaimsResult = (
    NoIdTokenRequested | IssuedClaims | UnknownSubject | MissingProfileField
)


def compute_at_hash(access_token: str) -> str:
    # OIDC Core §3.1.3.6: left half of SHA-256, base64url without padding
    digest = hashlib.sha256(access_token.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest[:16]).rstrip(b"=").decode("ascii")


def _email_claims(profile: UserProfile) -> dict[str, Any] | MissingProfileField:
    if profile.email is None:
        return MissingProfileField(field="email", scope="email")
    if profile.email_verified is None:
        return MissingProfileField(field="email_verified", scope="email")
    return {"email": profile.email, "email_verified": profile.email_verified}


def build_id_token_claims(
    *,
    session: AuthorizationSession,
    scopes: frozenset[str],
    profiles: UserProfileRepo,
    access_token: str,
    issuer: str,
    now: int,
) -> ClaimsResult:
    if "openid" not in scopes:
        return NoIdTokenRequested()

    profile = profiles.lookup(session.subject) if session.subject else None
    if profile is None:
        return UnknownSubject(session.subject)

    claims: dict[str, Any] = {}
    if "email" in scopes:
        email = _email_claims(profile)
        if isinstance(email, MissingProfileField):
            return email
        claims.update(email)

    claims.update(
        iss=issuer,
        aud=session.client_id,
        iat=now,
        exp=now + ID_TOKEN_TTL_SEC,
        at_hash=compute_at_hash(access_token),
        sub=profile.sub,
    )
    return IssuedClaims(claims)
