from __future__ import annotations

import json

import pytest

from app.models.user_profile import UserProfile
from app.repos.user_profile_repo import InMemoryUserProfileRepo


def test_lookup_and_add() -> None:
    repo = InMemoryUserProfileRepo()
    assert repo.lookup("a") is None
    repo.add(UserProfile(sub="a", email="a@example.com", email_verified=True))
    assert repo.lookup("a") == UserProfile(
        sub="a", email="a@example.com", email_verified=True
    )
    repo.clear()
    assert repo.lookup("a") is None


def test_load_json(tmp_path) -> None:
    path = tmp_path / "profiles.json"
    path.write_text(
        json.dumps(
            {
                "alice": {
                    "sub": "1001",
                    "email": "a@example.com",
                    "email_verified": True,
                },
                "bob": {"sub": "1002"},
            }
        )
    )
    repo = InMemoryUserProfileRepo.load_json(path)
    assert repo.lookup("alice") == UserProfile(
        sub="1001", email="a@example.com", email_verified=True
    )
    assert repo.lookup("bob") == UserProfile(sub="1002")
    assert repo.lookup("1001") is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"x": {"email": "no-sub@example.com"}},
        {"x": {"sub": "1", "email": 5}},
        {"x": {"sub": "1", "email_verified": "yes"}},
    ],
)
def test_load_json_rejects_invalid_profiles(tmp_path, payload) -> None:
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ValueError):
        InMemoryUserProfileRepo.load_json(path)
