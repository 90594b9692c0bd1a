"""Redis implementation of AuthSessionRepo.

Each session is one JSON string under ``auth_session:<code>``.  ``take``
uses GETDEL, so two token requests racing on the same code cannot both
read it.
"""

from __future__ import annotations

import dataclasses
import json

from app.models.authorization_session import AuthorizationSession


class RedisAuthSessionRepo:
    _PREFIX = "auth_session:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _key(self, code: str) -> str:
        return f"{self._PREFIX}{code}"

    async def insert(self, record: AuthorizationSession) -> None:
        # NX: never overwrite a live code
        created = await self._redis.set(
            self._key(record.code), json.dumps(dataclasses.asdict(record)), nx=True
        )
        if not created:
            raise ValueError("authorization code already exists")

    async def get(self, code: str) -> AuthorizationSession | None:
        return _decode(await self._redis.get(self._key(code)))

    async def delete(self, code: str) -> None:
        await self._redis.delete(self._key(code))

    async def take(self, code: str) -> AuthorizationSession | None:
        return _decode(await self._redis.getdel(self._key(code)))


def _decode(raw: str | bytes | None) -> AuthorizationSession | None:
    if raw is None:
        return None
    return AuthorizationSession(**json.loads(raw))
