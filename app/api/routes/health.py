from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from app.db.session import SessionLocal
from app.services.payment_gateway import get_payment_gateway
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

RECONCILIATION_KINDS = ("roster", "wallet_ledger")


def _check(status_value: str = "ok", **extra: Any) -> dict[str, Any]:
    return {"status": status_value, **extra}


def _failed(error: str) -> dict[str, Any]:
    return _check("failed", error=error)


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
            latest_runs: dict[str, str | None] = {}
            for kind in RECONCILIATION_KINDS:
                run = await ReconciliationRunsRepo.get_latest(session, kind=kind)
                latest_runs[kind] = run.status if run is not None else None
    except Exception as exc:
        logger.warning("health_check_failed", dependency="database", error_type=type(exc).__name__)
        return _failed("database_unavailable")
    return _check(reconciliation=latest_runs)


async def _check_redis() -> dict[str, Any]:
    redis_client = Redis.from_url(get_settings().redis_url)
    try:
        if await redis_client.ping() is not True:
            return _failed("redis_unexpected_ping_response")
        return _check()
    except Exception as exc:
        logger.warning("health_check_failed", dependency="redis", error_type=type(exc).__name__)
        return _failed("redis_unavailable")
    finally:
        await redis_client.aclose()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception as exc:
        logger.warning("health_check_failed", dependency="celery", error_type=type(exc).__name__)
        return _failed("celery_unavailable")
    if not replies:
        return _failed("celery_no_workers")
    return _check(workers=len(replies))


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _check_payment_gateway() -> dict[str, Any]:
    # an unconfigured gateway only disables the external settlement path
    return _check(configured=get_payment_gateway().is_configured)


def _respond(
    checks: dict[str, dict[str, Any]],
    *,
    healthy: tuple[str, str],
) -> JSONResponse:
    is_healthy = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": healthy[0] if is_healthy else healthy[1], "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    database, redis, celery, gateway = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
        _check_payment_gateway(),
    )
    return _respond(
        {"database": database, "redis": redis, "celery": celery, "payment_gateway": gateway},
        healthy=("ok", "degraded"),
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    database, redis = await asyncio.gather(_check_database(), _check_redis())
    return _respond({"database": database, "redis": redis}, healthy=("ready", "not_ready"))
