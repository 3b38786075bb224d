from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from app.core.logging import bind_job_context
from app.db.session import dispose_engine

T = TypeVar("T")
logger = structlog.get_logger(__name__)


async def _run_with_fresh_db_pool(awaitable: Awaitable[T]) -> T:
    # each celery invocation gets its own event loop, pooled asyncpg connections cannot cross it
    await dispose_engine()
    try:
        return await awaitable
    finally:
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str) -> T:
    bind_job_context(job_name=job_name)
    started = time.monotonic()
    try:
        return asyncio.run(_run_with_fresh_db_pool(awaitable))
    finally:
        logger.info(
            "worker_job_finished",
            job_name=job_name,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
