"""Liveness and readiness endpoints.

/health always answers 200 while the process is up; its ``status``
field says whether the database and Redis are reachable.  /ready answers
503 when the database is configured but unreachable, so the load
balancer stops routing here until it recovers.  Redis is not critical:
rate limits fall back to per-process buckets.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from sqlalchemy import text

from meetly.db import engine as db
from meetly.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database() -> str:
    if db.engine is None:
        return "not_configured"
    try:
        async with db.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"
    return "ok"


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _check_database() == "degraded":
        return Response(status_code=503)
    return Response(status_code=200)
