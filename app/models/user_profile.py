from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class UserProfile:
    sub: str
    email: str | None = None
    email_verified: bool | None = None

    @staticmethod
    def from_dict(data: dict[str, Any]) -> UserProfile:
        sub = data.get("sub")
        if not isinstance(sub, str) or not sub:
            raise ValueError(f"profile is missing a string 'sub': {data!r}")
        email = data.get("email")
        email_verified = data.get("email_verified")
        if email is not None and not isinstance(email, str):
            raise ValueError(f"profile {sub!r}: 'email' must be a string")
        if email_verified is not None and not isinstance(email_verified, bool):
            raise ValueError(f"profile {sub!r}: 'email_verified' must be a boolean")
        return UserProfile(sub=sub, email=email, email_verified=email_verified)
