from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Literal, get_args

ChallengeMethod = Literal["S256", "plain"]

CHALLENGE_METHODS: tuple[str, ...] = get_args(ChallengeMethod)


@dataclass(frozen=True, slots=True)
class AuthorizationSession:
    """One row per issued authorization code.

    ``code_challenge_method`` only means something when ``code_challenge``
    is set; see :meth:`effective_challenge_method`.
    """

    code: str
    client_id: str
    redirect_uri: str
    scope: str | None
    subject: str | None
    code_challenge: str | None
    code_challenge_method: ChallengeMethod | None

    @staticmethod
    def new(
        *,
        client_id: str,
        redirect_uri: str,
        scope: str | None = None,
        subject: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: ChallengeMethod | None = None,
    ) -> AuthorizationSession:
        return AuthorizationSession(
            code=secrets.token_urlsafe(32),
            client_id=client_id,
            redirect_uri=redirect_uri,
            scope=scope,
            subject=subject,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )

    def effective_challenge_method(self) -> ChallengeMethod:
        # RFC 7636 §4.3: a missing method means "plain"
        return self.code_challenge_method or "plain"

    def scopes(self) -> frozenset[str]:
        if self.scope is None:
            return frozenset()
        return frozenset(s for s in self.scope.split(" ") if s)
