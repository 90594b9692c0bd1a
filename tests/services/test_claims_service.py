from __future__ import annotations

from app.models.authorization_session import AuthorizationSession
from app.models.user_profile import UserProfile
from app.repos.user_profile_repo import InMemoryUserProfileRepo
from app.services.claims_service import (
    IssuedClaims,
    MissingProfileField,
    NoIdTokenRequested,
    UnknownSubject,
    build_id_token_claims,
    compute_at_hash,
)

NOW = 1_700_000_000
SESSION = AuthorizationSession.new(
    client_id="client-1",
    redirect_uri="http://localhost/cb",
    scope="openid email",
    subject="sub-1",
)
PROFILE = UserProfile(sub="sub-1", email="a@example.com", email_verified=False)


class CountingProfileRepo(InMemoryUserProfileRepo):
    def __init__(self, *profiles: UserProfile) -> None:
        super().__init__({p.sub: p for p in profiles})
        self.lookups = 0

    def lookup(self, subject: str) -> UserProfile | None:
        self.lookups += 1
        return super().lookup(subject)


def _build(
    scopes: set[str],
    profiles: InMemoryUserProfileRepo | None = None,
    session: AuthorizationSession = SESSION,
):
    return build_id_token_claims(
        session=session,
        scopes=frozenset(scopes),
        profiles=profiles if profiles is not None else CountingProfileRepo(PROFILE),
        access_token="access-token-1",
        issuer="https://accounts.google.com",
        now=NOW,
    )


def test_no_id_token_without_openid() -> None:
    assert _build({"email", "profile"}) == NoIdTokenRequested()


def test_profile_not_looked_up_without_openid() -> None:
    profiles = CountingProfileRepo(PROFILE)
    _build({"email"}, profiles)
    assert profiles.lookups == 0


def test_base_claims() -> None:
    result = _build({"openid"})
    assert isinstance(result, IssuedClaims)
    assert result.claims == {
        "iss": "https://accounts.google.com",
        "aud": "client-1",
        "iat": NOW,
        "exp": NOW + 3600,
        "at_hash": compute_at_hash("access-token-1"),
        "sub": "sub-1",
    }


def test_email_claims_when_email_granted() -> None:
    result = _build({"openid", "email"})
    assert isinstance(result, IssuedClaims)
    assert result.claims["email"] == "a@example.com"
    # False is a real value, not a missing one
    assert result.claims["email_verified"] is False


def test_unknown_subject() -> None:
    result = _build({"openid"}, CountingProfileRepo())
    assert result == UnknownSubject("sub-1")
    assert result.message == "User not found in data: sub-1"


def test_session_without_subject_is_unknown() -> None:
    session = AuthorizationSession.new(
        client_id="client-1", redirect_uri="http://localhost/cb", scope="openid"
    )
    profiles = CountingProfileRepo(PROFILE)
    assert _build({"openid"}, profiles, session) == UnknownSubject(None)
    assert profiles.lookups == 0


def test_missing_email_fails_closed() -> None:
    result = _build({"openid", "email"}, CountingProfileRepo(UserProfile(sub="sub-1")))
    assert result == MissingProfileField(field="email", scope="email")
    assert result.message == "User email is required for email scope."


def test_missing_email_verified_fails_closed() -> None:
    profile = UserProfile(sub="sub-1", email="a@example.com")
    result = _build({"openid", "email"}, CountingProfileRepo(profile))
    assert isinstance(result, MissingProfileField)
    assert result.field == "email_verified"


def test_at_hash_is_left_half_of_sha256() -> None:
    # 16 bytes → 22 base64url characters without padding
    assert len(compute_at_hash("anything")) == 22
