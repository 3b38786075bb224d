from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        display_name: str,
        game_id: str | None,
        in_game_name: str | None,
        role: str = "user",
        phone: str | None = None,
    ) -> User:
        user = User(
            display_name=display_name,
            game_id=game_id,
            in_game_name=in_game_name,
            role=role,
            phone=phone,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def increment_tournaments_played(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(tournaments_played=User.tournaments_played + 1, updated_at=now_utc)
        )
        await session.execute(stmt)

    @staticmethod
    async def apply_prize_stats(
        session: AsyncSession,
        *,
        user_id: int,
        prize_amount: Decimal,
        won_tournament: bool,
        now_utc: datetime,
    ) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                tournaments_won=User.tournaments_won + (1 if won_tournament else 0),
                total_prize_money=User.total_prize_money + prize_amount,
                updated_at=now_utc,
            )
        )
        await session.execute(stmt)
