"""Liveness, readiness and the Prometheus scrape endpoint.

/health answers "is the process alive" and always returns 200, with a
per-dependency breakdown.  /ready answers "can it take traffic" and
returns 503 when a configured database is unreachable.  Redis is not
critical: without it completions still succeed and only backfill
enqueueing degrades.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.db import engine
from app.db import redis as redis_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _dependency_checks() -> dict[str, str]:
    checks: dict[str, str] = {}

    if engine.engine is None:
        checks["database"] = "not_configured"
    else:
        try:
            await engine.ping_database()
            checks["database"] = "ok"
        except Exception:
            logger.exception("Database health check failed")
            checks["database"] = "degraded"

    if redis_db.redis_pool is None:
        checks["redis"] = "not_configured"
    else:
        try:
            await redis_db.ping_redis()
            checks["redis"] = "ok"
        except Exception:
            logger.exception("Redis health check failed")
            checks["redis"] = "degraded"

    return checks


@router.get("/health")
async def health() -> dict:
    checks = await _dependency_checks()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    checks = await _dependency_checks()
    if checks["database"] == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
