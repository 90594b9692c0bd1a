"""Liveness and readiness endpoints.

/health reports which record store backs authorization sessions and
whether Redis/PostgreSQL answer.  It returns 200 even when degraded; the
``status`` field carries the verdict.  /ready answers 503 only when a
configured store is unreachable, since the provider cannot mint or
redeem codes without it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from app.db.engine import engine
from app.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _record_store_backend() -> str:
    if engine is not None:
        return "postgres"
    if redis_pool is not None:
        return "redis"
    return "memory"


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"
    return "ok"


async def _check_database() -> str:
    if engine is None:
        return "not_configured"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"
    return "ok"


async def _checks() -> dict[str, str]:
    return {"redis": await _check_redis(), "database": await _check_database()}


@router.get("/health")
async def health() -> dict:
    checks = await _checks()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {
        "status": overall,
        "record_store": _record_store_backend(),
        "checks": checks,
    }


@router.get("/ready")
async def ready() -> Response:
    checks = await _checks()
    if "degraded" in checks.values():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
