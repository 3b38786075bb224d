from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment


class PaymentsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, payment_id: UUID) -> Payment | None:
        return await session.get(Payment, payment_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, payment_id: UUID) -> Payment | None:
        stmt = select(Payment).where(Payment.id == payment_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_gateway_order_id_for_update(
        session: AsyncSession,
        gateway_order_id: str,
    ) -> Payment | None:
        stmt = select(Payment).where(Payment.gateway_order_id == gateway_order_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, payment: Payment) -> Payment:
        session.add(payment)
        await session.flush()
        return payment

    @staticmethod
    async def list_stale_open_external_ids(
        session: AsyncSession,
        *,
        older_than_utc: datetime,
        limit: int = 100,
    ) -> list[UUID]:
        stmt = (
            select(Payment.id)
            .where(
                Payment.payment_gateway == "external",
                Payment.payment_status.in_(("pending", "processing")),
                Payment.initiated_at <= older_than_utc,
            )
            .order_by(Payment.initiated_at.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
