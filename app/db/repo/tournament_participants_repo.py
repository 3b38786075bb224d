from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.models.tournament_participants import TournamentParticipant


class TournamentParticipantsRepo:
    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
    ) -> TournamentParticipant | None:
        return await session.get(TournamentParticipant, (tournament_id, user_id))

    @staticmethod
    async def get_by_payment_id(
        session: AsyncSession,
        payment_id: UUID,
    ) -> TournamentParticipant | None:
        stmt = select(TournamentParticipant).where(TournamentParticipant.payment_id == payment_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        participant: TournamentParticipant,
    ) -> TournamentParticipant:
        session.add(participant)
        await session.flush()
        return participant

    @staticmethod
    async def delete(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
    ) -> int:
        stmt = (
            delete(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_id == tournament_id,
                TournamentParticipant.user_id == user_id,
            )
            .returning(TournamentParticipant.user_id)
        )
        result = await session.execute(stmt)
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
            update(TournamentParticipant)
            .where(
                TournamentParticipant.payment_id == payment_id,
                TournamentParticipant.payment_status != payment_status,
            )
            .values(payment_status=payment_status, updated_at=now_utc)
            .returning(TournamentParticipant.user_id)
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
            select(
                TournamentParticipant.payment_id,
                TournamentParticipant.payment_status,
                Payment.payment_status,
            )
            .join(Payment, Payment.id == TournamentParticipant.payment_id)
            .order_by(TournamentParticipant.payment_id.asc())
            .limit(max(1, int(limit)))
        )
        if after_payment_id is not None:
            stmt = stmt.where(TournamentParticipant.payment_id > after_payment_id)
        result = await session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
