from __future__ import annotations

import base64
import hashlib
import json

import pytest

from app.services import token_codec


def _b64url_json(segment: str) -> dict:
    return json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))


def test_encode_produces_three_unpadded_segments() -> None:
    token = token_codec.encode_compact({"sub": "123", "iat": 1})
    parts = token.split(".")
    assert len(parts) == 3
    assert all("=" not in p for p in parts)
    assert _b64url_json(parts[0]) == {"alg": "RS256", "typ": "JWT"}
    assert _b64url_json(parts[1]) == {"sub": "123", "iat": 1}


def test_third_segment_is_sha256_of_first_two() -> None:
    token = token_codec.encode_compact({"sub": "123"})
    header, claims, digest = token.split(".")
    expected = hashlib.sha256(f"{header}.{claims}".encode()).digest()
    assert base64.urlsafe_b64encode(expected).rstrip(b"=").decode() == digest


def test_encoding_is_deterministic() -> None:
    claims = {"sub": "1", "aud": "c", "iat": 10, "exp": 3610}
    assert token_codec.encode_compact(claims) == token_codec.encode_compact(claims)


def test_decode_round_trips_header_and_claims() -> None:
    claims = {"sub": "1", "email_verified": False, "email": "ü@example.com"}
    header, decoded = token_codec.decode_compact(token_codec.encode_compact(claims))
    assert header == token_codec.HEADER
    assert decoded == claims


def test_digest_detects_tampered_claims() -> None:
    token = token_codec.encode_compact({"sub": "1"})
    header, _, digest = token.split(".")
    forged = token_codec.encode_compact({"sub": "2"}).split(".")[1]
    assert token_codec.digest_matches(token)
    assert not token_codec.digest_matches(f"{header}.{forged}.{digest}")


@pytest.mark.parametrize("bad", ["", "a.b", "a.b.c.d", "!!.??.x"])
def test_decode_rejects_malformed_tokens(bad: str) -> None:
    with pytest.raises(ValueError):
        token_codec.decode_compact(bad)


def test_digest_matches_rejects_garbage() -> None:
    assert not token_codec.digest_matches("no-dots-here")
