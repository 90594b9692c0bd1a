from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.models.authorization_session import AuthorizationSession


@runtime_checkable
class AuthSessionRepo(Protocol):
    async def insert(self, record: AuthorizationSession) -> None: ...
    async def get(self, code: str) -> AuthorizationSession | None: ...
    async def delete(self, code: str) -> None: ...

    async def take(self, code: str) -> AuthorizationSession | None:
        """Atomically read and delete. Exactly one concurrent caller gets
        the record; every other caller gets None."""
        ...


class InMemoryAuthSessionRepo:
    """Per-process store for tests and local runs.

    No ``await`` happens between lookup and removal, so ``take`` cannot be
    interleaved by another coroutine on the same event loop.
    """

    def __init__(self) -> None:
        self._by_code: dict[str, AuthorizationSession] = {}

    async def insert(self, record: AuthorizationSession) -> None:
        if record.code in self._by_code:
            raise ValueError("authorization code already exists")
        self._by_code[record.code] = record

    async def get(self, code: str) -> AuthorizationSession | None:
        return self._by_code.get(code)

    async def delete(self, code: str) -> None:
        self._by_code.pop(code, None)

    async def take(self, code: str) -> AuthorizationSession | None:
        return self._by_code.pop(code, None)

    def __len__(self) -> int:
        return len(self._by_code)
