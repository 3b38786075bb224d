from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import LedgerError, error_code
from app.db.models.tournament_winners import TournamentWinner
from app.db.repo.payments_repo import PaymentsRepo
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.tournament_winners_repo import TournamentWinnersRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.economy.money import ZERO
from app.economy.payments.constants import (
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from app.economy.payments.service import PaymentService
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService
from app.game.tournaments.constants import (
    SETTLED_WINNER_OUTCOMES,
    TournamentStatus,
    WinnerOutcome,
    WinnerPaymentStatus,
)
from app.game.tournaments.errors import (
    TournamentNotFoundError,
    WinnerRankConflictError,
    WinnerRecipientNotRegisteredError,
)
from app.game.tournaments.rules import validate_winner_entries
from app.game.tournaments.types import (
    SettlementResult,
    WinnerEntryInput,
    WinnerSettlementOutcome,
)

logger = structlog.get_logger(__name__)

_PAID_ROSTER_STATUS = "paid"


async def _resolve_receiver(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    entry: WinnerEntryInput,
) -> int:
    if entry.team_id is not None:
        team = await TournamentTeamsRepo.get_by_id(session, entry.team_id)
        if (
            team is None
            or team.tournament_id != tournament_id
            or team.payment_status != _PAID_ROSTER_STATUS
        ):
            raise WinnerRecipientNotRegisteredError
        return team.captain_user_id

    participant = await TournamentParticipantsRepo.get(
        session,
        tournament_id=tournament_id,
        user_id=int(entry.user_id),
    )
    if participant is None or participant.payment_status != _PAID_ROSTER_STATUS:
        raise WinnerRecipientNotRegisteredError
    return participant.user_id


def _same_recipient(winner: TournamentWinner, entry: WinnerEntryInput) -> bool:
    return winner.user_id == entry.user_id and winner.team_id == entry.team_id


async def settle_winner_entry(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    entry: WinnerEntryInput,
    admin_user_id: int,
    currency: str,
    now_utc: datetime,
) -> WinnerSettlementOutcome:
    tournament = await TournamentsRepo.get_by_id(session, tournament_id)
    if tournament is None:
        raise TournamentNotFoundError

    existing = await TournamentWinnersRepo.get_by_rank_for_update(
        session,
        tournament_id=tournament_id,
        rank=entry.rank,
    )
    if existing is not None:
        if not _same_recipient(existing, entry):
            raise WinnerRankConflictError
        if existing.payment_status == WinnerPaymentStatus.PAID:
            return WinnerSettlementOutcome(
                rank=entry.rank,
                status=str(WinnerOutcome.ALREADY_PAID),
                prize_amount=existing.prize_amount,
                receiver_user_id=existing.receiver_user_id,
                wallet_transaction_id=existing.wallet_transaction_id,
                paid_at=existing.paid_at,
            )

    receiver_user_id = await _resolve_receiver(session, tournament_id=tournament_id, entry=entry)
    payout = PaymentService._build_payment(
        payment_type=PaymentType.PRIZE_PAYOUT,
        user_id=receiver_user_id,
        base_amount=entry.prize_amount,
        discount_amount=ZERO,
        amount=entry.prize_amount,
        currency=currency,
        status=PaymentStatus.SUCCESS,
        gateway=PaymentGateway.WALLET,
        method=PaymentMethod.WALLET,
        tournament_id=tournament_id,
        team_id=entry.team_id,
        now_utc=now_utc,
        metadata={"rank": entry.rank},
    )
    payout.is_verified = True
    payout.verified_by = admin_user_id
    payout.verified_at = now_utc
    await PaymentsRepo.create(session, payment=payout)

    credit = await WalletService.credit(
        session,
        user_id=receiver_user_id,
        amount=entry.prize_amount,
        kind=TransactionKind.PRIZE_WON,
        description=f"Prize for rank {entry.rank} in {tournament.title}",
        idempotency_key=f"prize:{tournament_id}:{entry.rank}",
        now_utc=now_utc,
        payment_id=payout.id,
        tournament_id=tournament_id,
        metadata={"rank": entry.rank, "team_id": str(entry.team_id) if entry.team_id else None},
    )

    if existing is None:
        await TournamentWinnersRepo.create(
            session,
            winner=TournamentWinner(
                id=uuid4(),
                tournament_id=tournament_id,
                rank=entry.rank,
                user_id=entry.user_id,
                team_id=entry.team_id,
                receiver_user_id=receiver_user_id,
                prize_amount=entry.prize_amount,
                payment_status=str(WinnerPaymentStatus.PAID),
                payout_payment_id=payout.id,
                wallet_transaction_id=credit.transaction_id,
                paid_at=now_utc,
                approved_by=admin_user_id,
                created_at=now_utc,
            ),
        )
    else:
        existing.payment_status = str(WinnerPaymentStatus.PAID)
        existing.payout_payment_id = payout.id
        existing.wallet_transaction_id = credit.transaction_id
        existing.paid_at = now_utc

    await UsersRepo.apply_prize_stats(
        session,
        user_id=receiver_user_id,
        prize_amount=entry.prize_amount,
        won_tournament=entry.rank == 1,
        now_utc=now_utc,
    )
    logger.info(
        "winner_settled",
        tournament_id=str(tournament_id),
        rank=entry.rank,
        receiver_user_id=receiver_user_id,
        prize_amount=str(entry.prize_amount),
    )
    return WinnerSettlementOutcome(
        rank=entry.rank,
        status=str(WinnerOutcome.PAID),
        prize_amount=entry.prize_amount,
        receiver_user_id=receiver_user_id,
        wallet_transaction_id=credit.transaction_id,
        paid_at=now_utc,
    )


async def _mark_completed(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    now_utc: datetime,
) -> str:
    tournament = await TournamentsRepo.get_by_id_for_update(session, tournament_id)
    if tournament is None:
        raise TournamentNotFoundError
    if tournament.status != TournamentStatus.COMPLETED:
        tournament.status = str(TournamentStatus.COMPLETED)
        tournament.version += 1
        tournament.updated_at = now_utc
        logger.info("tournament_completed", tournament_id=str(tournament_id))
    return tournament.status


async def declare_winners(
    *,
    tournament_id: UUID,
    entries: Sequence[WinnerEntryInput],
    admin_user_id: int,
    currency: str,
    now_utc: datetime,
    session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
) -> SettlementResult:
    """Settle each winner entry in its own transaction.

    A failing entry is reported in the result and does not undo or block the
    others, so the call can simply be repeated: ranks already paid come back as
    ``already_paid`` and are never credited twice.
    """
    validated = validate_winner_entries(entries)
    async with session_factory.begin() as session:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError
        tournament_status = tournament.status

    outcomes: list[WinnerSettlementOutcome] = []
    for entry in validated:
        try:
            async with session_factory.begin() as session:
                outcome = await settle_winner_entry(
                    session,
                    tournament_id=tournament_id,
                    entry=entry,
                    admin_user_id=admin_user_id,
                    currency=currency,
                    now_utc=now_utc,
                )
        except LedgerError as exc:
            logger.warning(
                "winner_settlement_failed",
                tournament_id=str(tournament_id),
                rank=entry.rank,
                error_code=error_code(exc),
            )
            outcome = WinnerSettlementOutcome(
                rank=entry.rank,
                status=str(WinnerOutcome.FAILED),
                prize_amount=entry.prize_amount,
                error_code=error_code(exc),
                error_kind=exc.category,
                message=exc.message,
            )
        except SQLAlchemyError as exc:
            logger.exception(
                "winner_settlement_failed",
                tournament_id=str(tournament_id),
                rank=entry.rank,
                error_type=type(exc).__name__,
            )
            outcome = WinnerSettlementOutcome(
                rank=entry.rank,
                status=str(WinnerOutcome.FAILED),
                prize_amount=entry.prize_amount,
                error_code="E_STORAGE",
                error_kind="state_conflict",
                message="Settlement could not be stored, retry this rank",
            )
        outcomes.append(outcome)

    if all(outcome.status in SETTLED_WINNER_OUTCOMES for outcome in outcomes):
        async with session_factory.begin() as session:
            tournament_status = await _mark_completed(
                session,
                tournament_id=tournament_id,
                now_utc=now_utc,
            )

    logger.info(
        "winner_declaration_finished",
        tournament_id=str(tournament_id),
        entries_total=len(outcomes),
        entries_failed=sum(1 for outcome in outcomes if outcome.status == WinnerOutcome.FAILED),
    )
    return SettlementResult(
        tournament_id=tournament_id,
        tournament_status=tournament_status,
        entries=outcomes,
    )
