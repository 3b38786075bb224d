from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_roster_game_ids_repo import TournamentRosterGameIdsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.tournaments_repo import TournamentsRepo

logger = structlog.get_logger(__name__)


async def _remove_roster_entry(session: AsyncSession, *, payment_id: UUID) -> bool:
    participant = await TournamentParticipantsRepo.get_by_payment_id(session, payment_id)
    if participant is not None:
        await TournamentRosterGameIdsRepo.delete_for_participant(
            session,
            tournament_id=participant.tournament_id,
            user_id=participant.user_id,
        )
        deleted = await TournamentParticipantsRepo.delete(
            session,
            tournament_id=participant.tournament_id,
            user_id=participant.user_id,
        )
        return deleted > 0

    team = await TournamentTeamsRepo.get_by_payment_id(session, payment_id)
    if team is not None:
        await TournamentRosterGameIdsRepo.delete_for_team(session, team_id=team.id)
        deleted = await TournamentTeamsRepo.delete_with_members(session, team_id=team.id)
        return deleted > 0

    return False


async def release_slot(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    payment_id: UUID,
    now_utc: datetime,
) -> bool:
    """Undo one registration: drop the roster entry bound to the payment and free its slot.

    Returns False without touching the counter when no roster entry is bound to
    the payment, so a repeated release never frees a second slot.
    """
    removed = await _remove_roster_entry(session, payment_id=payment_id)
    if not removed:
        logger.info(
            "registration_slot_release_skipped",
            tournament_id=str(tournament_id),
            payment_id=str(payment_id),
        )
        return False

    current_participants = await TournamentsRepo.release_slot(
        session,
        tournament_id=tournament_id,
        now_utc=now_utc,
    )
    logger.info(
        "registration_slot_released",
        tournament_id=str(tournament_id),
        payment_id=str(payment_id),
        current_participants=current_participants,
    )
    return True
