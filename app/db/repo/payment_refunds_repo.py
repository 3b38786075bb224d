from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payment_refunds import PaymentRefund


class PaymentRefundsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, refund: PaymentRefund) -> PaymentRefund:
        session.add(refund)
        await session.flush()
        return refund

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, refund_id: UUID) -> PaymentRefund | None:
        stmt = select(PaymentRefund).where(PaymentRefund.id == refund_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_request_key(
        session: AsyncSession,
        *,
        payment_id: UUID,
        request_key: str,
    ) -> PaymentRefund | None:
        stmt = select(PaymentRefund).where(
            PaymentRefund.payment_id == payment_id,
            PaymentRefund.request_key == request_key,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def sum_amount(
        session: AsyncSession,
        *,
        payment_id: UUID,
        statuses: Iterable[str],
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(PaymentRefund.amount), 0)).where(
            PaymentRefund.payment_id == payment_id,
            PaymentRefund.status.in_(tuple(statuses)),
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)

    @staticmethod
    async def sum_processed(session: AsyncSession, *, payment_id: UUID) -> Decimal:
        return await PaymentRefundsRepo.sum_amount(
            session,
            payment_id=payment_id,
            statuses=("processed",),
        )
