from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.wallet_withdrawals import WalletWithdrawal

OPEN_WITHDRAWAL_STATUSES = ("pending", "processing")


class WalletWithdrawalsRepo:
    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        withdrawal_id: UUID,
    ) -> WalletWithdrawal | None:
        stmt = select(WalletWithdrawal).where(WalletWithdrawal.id == withdrawal_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, withdrawal: WalletWithdrawal) -> WalletWithdrawal:
        session.add(withdrawal)
        await session.flush()
        return withdrawal

    @staticmethod
    async def sum_open_holds(session: AsyncSession, *, user_id: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(WalletWithdrawal.amount), 0)).where(
            WalletWithdrawal.user_id == user_id,
            WalletWithdrawal.status.in_(OPEN_WITHDRAWAL_STATUSES),
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one() or 0)

    @staticmethod
    async def count_open(session: AsyncSession, *, user_id: int) -> int:
        stmt = select(func.count(WalletWithdrawal.id)).where(
            WalletWithdrawal.user_id == user_id,
            WalletWithdrawal.status.in_(OPEN_WITHDRAWAL_STATUSES),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
