from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.wallets import Wallet


class WalletsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> Wallet | None:
        return await session.get(Wallet, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: int) -> Wallet | None:
        stmt = select(Wallet).where(Wallet.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_for_update(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> Wallet:
        await session.execute(
            pg_insert(Wallet)
            .values(user_id=user_id, created_at=now_utc)
            .on_conflict_do_nothing(index_elements=[Wallet.user_id])
        )
        wallet = await WalletsRepo.get_by_user_id_for_update(session, user_id)
        if wallet is None:
            raise RuntimeError(f"wallet row missing after upsert: user_id={user_id}")
        return wallet

    @staticmethod
    async def list_user_ids(
        session: AsyncSession,
        *,
        after_user_id: int | None,
        limit: int,
    ) -> list[int]:
        stmt = select(Wallet.user_id).order_by(Wallet.user_id.asc()).limit(max(1, int(limit)))
        if after_user_id is not None:
            stmt = stmt.where(Wallet.user_id > after_user_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())
