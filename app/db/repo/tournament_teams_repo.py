from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.models.tournament_teams import TournamentTeam, TournamentTeamMember


class TournamentTeamsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, team_id: UUID) -> TournamentTeam | None:
        return await session.get(TournamentTeam, team_id)

    @staticmethod
    async def get_by_captain(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        captain_user_id: int,
    ) -> TournamentTeam | None:
        stmt = select(TournamentTeam).where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.captain_user_id == captain_user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_payment_id(session: AsyncSession, payment_id: UUID) -> TournamentTeam | None:
        stmt = select(TournamentTeam).where(TournamentTeam.payment_id == payment_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        team: TournamentTeam,
        members: Sequence[TournamentTeamMember],
    ) -> TournamentTeam:
        session.add(team)
        await session.flush()
        for member in members:
            member.team_id = team.id
            session.add(member)
        await session.flush()
        return team

    @staticmethod
    async def list_members(session: AsyncSession, team_id: UUID) -> list[TournamentTeamMember]:
        stmt = (
            select(TournamentTeamMember)
            .where(TournamentTeamMember.team_id == team_id)
            .order_by(TournamentTeamMember.position.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_with_members(session: AsyncSession, *, team_id: UUID) -> int:
        await session.execute(
            delete(TournamentTeamMember).where(TournamentTeamMember.team_id == team_id)
        )
        result = await session.execute(
            delete(TournamentTeam).where(TournamentTeam.id == team_id).returning(TournamentTeam.id)
        )
        return len(list(result.scalars()))

    @staticmethod
    async def set_payment_status_by_payment(
        session: AsyncSession,
        *,
        payment_id: UUID,
        payment_status: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(TournamentTeam)
            .where(
                TournamentTeam.payment_id == payment_id,
                TournamentTeam.payment_status != payment_status,
            )
            .values(payment_status=payment_status, updated_at=now_utc)
            .returning(TournamentTeam.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

    @staticmethod
    async def list_payment_pairs(
        session: AsyncSession,
        *,
        after_payment_id: UUID | None,
        limit: int,
    ) -> list[tuple[UUID, str, str]]:
        stmt = (
            select(TournamentTeam.payment_id, TournamentTeam.payment_status, Payment.payment_status)
            .join(Payment, Payment.id == TournamentTeam.payment_id)
            .order_by(TournamentTeam.payment_id.asc())
            .limit(max(1, int(limit)))
        )
        if after_payment_id is not None:
            stmt = stmt.where(TournamentTeam.payment_id > after_payment_id)
        result = await session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
