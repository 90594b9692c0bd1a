"""Compact three-segment token encoding for mock ID tokens.

Layout matches a JWS compact serialization::

    base64url(header) . base64url(claims) . base64url(SHA-256(first two))

THERE IS NO KEY.  The header says RS256 so relying-party code paths that
switch on ``alg`` behave as they would against the real provider, but the
third segment is an unkeyed SHA-256 digest that anyone can recompute.  It
proves nothing about who minted the token and must never be accepted as a
signature outside tests.  Swapping it for real signing would change what
relying parties under test receive, so it stays a placeholder.

Segment encoding reuses PyJWT's base64url helpers, so PyJWT can parse
these tokens with ``options={"verify_signature": False}``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

from jwt.utils import base64url_decode, base64url_encode

HEADER: dict[str, str] = {"alg": "RS256", "typ": "JWT"}


def _encode_segment(obj: dict[str, Any]) -> str:
    raw = json.dumps(obj, separators=(",", ":")).encode("utf-8")
    return base64url_encode(raw).decode("ascii")


def _digest_segment(signing_input: str) -> str:
    digest = hashlib.sha256(signing_input.encode("ascii")).digest()
    return base64url_encode(digest).decode("ascii")


def encode_compact(claims: dict[str, Any], header: dict[str, str] | None = None) -> str:
    signing_input = f"{_encode_segment(header or HEADER)}.{_encode_segment(claims)}"
    return f"{signing_input}.{_digest_segment(signing_input)}"


def decode_compact(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(header, claims)`` without checking the digest.

    Raises ValueError if the token is not three base64url JSON segments.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError(f"expected 3 segments, got {len(parts)}")
    try:
        header = json.loads(base64url_decode(parts[0]))
        claims = json.loads(base64url_decode(parts[1]))
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"malformed token segment: {e}") from None
    if not isinstance(header, dict) or not isinstance(claims, dict):
        raise ValueError("token segments must be JSON objects")
    return header, claims


def digest_matches(token: str) -> bool:
    """Recompute the placeholder digest.  Integrity check only, not authenticity."""
    signing_input, _, digest = token.rpartition(".")
    if not signing_input:
        return False
    return hmac.compare_digest(_digest_segment(signing_input), digest)
