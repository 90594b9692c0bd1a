"""FastAPI dependencies that hand stores to the OAuth routes.

Stores hang off ``app.state`` (set up in app/main.py) rather than module
globals, so tests can swap in a fresh store per test.  With DATABASE_URL
set, each request gets a PostgreSQL-backed store bound to its own
session instead.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request

from app.db.engine import async_session_factory
from app.repos.auth_session_repo import AuthSessionRepo
from app.repos.pg_auth_session_repo import PgAuthSessionRepo
from app.repos.user_profile_repo import UserProfileRepo


async def get_auth_session_repo(
    request: Request,
) -> AsyncGenerator[AuthSessionRepo, None]:
    if async_session_factory is None:
        yield request.app.state.auth_session_repo
        return

    # PgAuthSessionRepo commits each write itself
    async with async_session_factory() as session:
        yield PgAuthSessionRepo(session)


def get_user_profile_repo(request: Request) -> UserProfileRepo:
    return request.app.state.user_profile_repo
