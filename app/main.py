from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.authorize import router as authorize_router
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.api.token import router as token_router
from app.core.config import SETTINGS
from app.core.errors import OAuthError, oauth_error_handler
from app.core.logging import setup_logging
from app.db.engine import lifespan_db
from app.db.redis import lifespan_redis, redis_pool
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import (
    RequestContextMiddleware,
    install_request_id_filter,
)
from app.repos.auth_session_repo import AuthSessionRepo, InMemoryAuthSessionRepo
from app.repos.redis_auth_session_repo import RedisAuthSessionRepo
from app.repos.user_profile_repo import InMemoryUserProfileRepo

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
install_request_id_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Teardown runs in reverse order of startup.
    async with lifespan_db():
        async with lifespan_redis():
            yield


def _build_auth_session_repo() -> AuthSessionRepo:
    # PostgreSQL, when configured, is bound per request in
    # app/api/dependencies.py and takes precedence over this one.
    if redis_pool is not None:
        return RedisAuthSessionRepo(redis_pool)
    return InMemoryAuthSessionRepo()


def _build_user_profile_repo() -> InMemoryUserProfileRepo:
    if SETTINGS.user_profiles_file:
        return InMemoryUserProfileRepo.load_json(SETTINGS.user_profiles_file)
    return InMemoryUserProfileRepo()


app = FastAPI(
    title="mock-oidc-provider",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.state.auth_session_repo = _build_auth_session_repo()
app.state.user_profile_repo = _build_user_profile_repo()

app.add_exception_handler(OAuthError, oauth_error_handler)

# Last-added runs first: RequestContext (outermost) → Metrics → route
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(authorize_router)
app.include_router(token_router)

logger.info(
    "mock-oidc-provider started  env=%s log_level=%s port=%d issuer=%s "
    "pkce_allow_plain=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.issuer,
    SETTINGS.pkce_allow_plain,
)
