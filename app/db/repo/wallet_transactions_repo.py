from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.wallet_transactions import WalletTransaction


class WalletTransactionsRepo:
    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession,
        idempotency_key: str,
    ) -> WalletTransaction | None:
        stmt = select(WalletTransaction).where(WalletTransaction.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, transaction: WalletTransaction) -> WalletTransaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def sum_completed_credits(session: AsyncSession, *, user_id: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(WalletTransaction.amount), 0)).where(
            WalletTransaction.user_id == user_id,
            WalletTransaction.direction == "credit",
            WalletTransaction.status == "completed",
            WalletTransaction.is_hold_release.is_(False),
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)

    @staticmethod
    async def sum_completed_debits(session: AsyncSession, *, user_id: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(-WalletTransaction.amount), 0)).where(
            WalletTransaction.user_id == user_id,
            WalletTransaction.direction == "debit",
            WalletTransaction.status == "completed",
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)
