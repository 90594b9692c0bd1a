from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from app.models.user_profile import UserProfile

logger = logging.getLogger(__name__)


class UserProfileRepo(Protocol):
    def lookup(self, subject: str) -> UserProfile | None: ...


class InMemoryUserProfileRepo:
    """Read-only reference data supplied by the test fixture."""

    def __init__(self, profiles: dict[str, UserProfile] | None = None) -> None:
        self._by_subject: dict[str, UserProfile] = dict(profiles or {})

    def lookup(self, subject: str) -> UserProfile | None:
        return self._by_subject.get(subject)

    def add(self, profile: UserProfile, *, subject: str | None = None) -> None:
        # The fixture key usually equals profile.sub but does not have to.
        self._by_subject[subject or profile.sub] = profile

    def clear(self) -> None:
        self._by_subject.clear()

    @classmethod
    def load_json(cls, path: str | Path) -> InMemoryUserProfileRepo:
        """Load ``{"<subject>": {"sub": ..., "email": ..., "email_verified": ...}}``."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object keyed by subject")
        profiles = {
            subject: UserProfile.from_dict(entry) for subject, entry in raw.items()
        }
        logger.info("Loaded %d user profile(s) from %s", len(profiles), path)
        return cls(profiles)
