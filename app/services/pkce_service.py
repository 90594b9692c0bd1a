from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import assert_never

from app.models.authorization_session import CHALLENGE_METHODS, ChallengeMethod

# PKCE (RFC 7636) helpers used by POST /token, plus the client-side
# generate/compute pair that tests and scripts/demo_flow.py use to act as
# a relying party.


class UnsupportedChallengeMethodError(ValueError):
    """A stored challenge method outside {S256, plain}.

    Only reachable through a corrupted record or a mis-seeded fixture, never
    through a client request, so callers treat it as a configuration defect
    rather than a failed verification.
    """


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    # 32 random bytes → 43 chars after unpadded base64url, the RFC minimum
    return _b64url(secrets.token_bytes(32))


def compute_code_challenge(code_verifier: str) -> str:
    """S256 challenge: base64url-no-padding(SHA-256(verifier))."""
    return _b64url(hashlib.sha256(code_verifier.encode("utf-8")).digest())


def verify(method: ChallengeMethod, challenge: str, verifier: str) -> bool:
    """Check a presented verifier against the stored challenge.

    Comparisons are constant-time.  Raises UnsupportedChallengeMethodError
    for a method outside the closed set.
    """
    if method not in CHALLENGE_METHODS:
        raise UnsupportedChallengeMethodError(
            f"Unsupported code_challenge_method: {method!r}"
        )

    if method == "plain":
        expected = verifier
    elif method == "S256":
        expected = compute_code_challenge(verifier)
    else:
        assert_never(method)

    return hmac.compare_digest(expected.encode("utf-8"), challenge.encode("utf-8"))
