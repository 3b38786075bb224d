from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.tournament_winners import TournamentWinner


class TournamentWinnersRepo:
    @staticmethod
    async def get_by_rank_for_update(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        rank: int,
    ) -> TournamentWinner | None:
        stmt = (
            select(TournamentWinner)
            .where(TournamentWinner.tournament_id == tournament_id, TournamentWinner.rank == rank)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, winner: TournamentWinner) -> TournamentWinner:
        session.add(winner)
        await session.flush()
        return winner
