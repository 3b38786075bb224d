from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.reconciliation_runs import ReconciliationRun


class ReconciliationRunsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        kind: str,
        started_at: datetime,
        finished_at: datetime | None,
        status: str,
        diff_count: int,
        details: dict[str, object] | None = None,
    ) -> ReconciliationRun:
        run = ReconciliationRun(
            kind=kind,
            started_at=started_at,
            finished_at=finished_at,
            status=status,
            diff_count=diff_count,
            details=details or {},
        )
        session.add(run)
        await session.flush()
        return run

    @staticmethod
    async def get_latest(session: AsyncSession, *, kind: str) -> ReconciliationRun | None:
        stmt = (
            select(ReconciliationRun)
            .where(ReconciliationRun.kind == kind)
            .order_by(ReconciliationRun.started_at.desc(), ReconciliationRun.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
