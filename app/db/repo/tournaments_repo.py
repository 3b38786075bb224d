from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.tournaments import Tournament


class TournamentsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, tournament: Tournament) -> Tournament:
        session.add(tournament)
        await session.flush()
        return tournament

    @staticmethod
    async def get_by_id(session: AsyncSession, tournament_id: UUID) -> Tournament | None:
        return await session.get(Tournament, tournament_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, tournament_id: UUID) -> Tournament | None:
        stmt = select(Tournament).where(Tournament.id == tournament_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def reserve_slot(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Tournament)
            .where(
                Tournament.id == tournament_id,
                Tournament.current_participants < Tournament.max_participants,
            )
            .values(
                current_participants=Tournament.current_participants + 1,
                registration_count=Tournament.registration_count + 1,
                version=Tournament.version + 1,
                updated_at=now_utc,
            )
            .returning(Tournament.current_participants)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def release_slot(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Tournament)
            .where(
                Tournament.id == tournament_id,
                Tournament.current_participants > 0,
            )
            .values(
                current_participants=Tournament.current_participants - 1,
                version=Tournament.version + 1,
                updated_at=now_utc,
            )
            .returning(Tournament.current_participants)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
