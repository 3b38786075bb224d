from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.tournament_roster_game_ids import TournamentRosterGameId


class TournamentRosterGameIdsRepo:
    @staticmethod
    async def list_taken(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        game_ids: Iterable[str],
    ) -> list[str]:
        candidates = sorted(set(game_ids))
        if not candidates:
            return []
        stmt = (
            select(TournamentRosterGameId.game_id)
            .where(
                TournamentRosterGameId.tournament_id == tournament_id,
                TournamentRosterGameId.game_id.in_(candidates),
            )
            .order_by(TournamentRosterGameId.game_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def add_many(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        game_ids: Iterable[str],
        participant_user_id: int | None = None,
        team_id: UUID | None = None,
    ) -> None:
        for game_id in game_ids:
            session.add(
                TournamentRosterGameId(
                    tournament_id=tournament_id,
                    game_id=game_id,
                    participant_user_id=participant_user_id,
                    team_id=team_id,
                )
            )
        await session.flush()

    @staticmethod
    async def delete_for_participant(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
    ) -> None:
        await session.execute(
            delete(TournamentRosterGameId).where(
                TournamentRosterGameId.tournament_id == tournament_id,
                TournamentRosterGameId.participant_user_id == user_id,
            )
        )

    @staticmethod
    async def delete_for_team(session: AsyncSession, *, team_id: UUID) -> None:
        await session.execute(
            delete(TournamentRosterGameId).where(TournamentRosterGameId.team_id == team_id)
        )
