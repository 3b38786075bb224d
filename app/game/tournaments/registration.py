from __future__ import annotations

import secrets
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.models.tournament_participants import TournamentParticipant
from app.db.models.tournament_teams import TournamentTeam, TournamentTeamMember
from app.db.models.tournaments import Tournament
from app.db.repo.payments_repo import PaymentsRepo
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_roster_game_ids_repo import TournamentRosterGameIdsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.coupons.service import CouponService
from app.economy.coupons.types import CouponQuote
from app.economy.payments.constants import (
    OPEN_PAYMENT_STATUSES,
    PaymentStatus,
    PaymentType,
    SettlementPath,
)
from app.economy.payments.service import PaymentService
from app.economy.payments.state import roster_status_for
from app.game.tournaments.constants import (
    JOIN_CODE_BYTES,
    TeamRegistrationStatus,
    TournamentFormat,
)
from app.game.tournaments.errors import (
    AlreadyCaptainError,
    AlreadyRegisteredError,
    GameIdAlreadyRegisteredError,
    RegistrationNotCancellableError,
    RegistrationNotFoundError,
    TournamentFullError,
    TournamentNotFoundError,
)
from app.game.tournaments.rules import (
    ensure_capacity,
    ensure_format,
    ensure_profile_complete,
    ensure_registration_window,
    ensure_unique_game_ids,
    normalize_partner,
    normalize_squad_members,
    registration_fee,
)
from app.game.tournaments.types import (
    CancellationResult,
    RegistrationResult,
    SquadMemberInput,
)

logger = structlog.get_logger(__name__)


async def _load_tournament_for_update(session: AsyncSession, tournament_id: UUID) -> Tournament:
    tournament = await TournamentsRepo.get_by_id_for_update(session, tournament_id)
    if tournament is None:
        raise TournamentNotFoundError
    return tournament


async def _ensure_game_ids_free(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    game_ids: Sequence[str],
) -> None:
    taken = await TournamentRosterGameIdsRepo.list_taken(
        session,
        tournament_id=tournament_id,
        game_ids=game_ids,
    )
    if taken:
        raise GameIdAlreadyRegisteredError


async def _reserve_and_charge(
    session: AsyncSession,
    *,
    tournament: Tournament,
    payment_type: PaymentType,
    user_id: int,
    game_id: str,
    coupon_code: str | None,
    settlement: SettlementPath,
    currency: str,
    now_utc: datetime,
    team_id: UUID | None = None,
) -> tuple[CouponQuote, Payment, int]:
    quote = await CouponService.evaluate(
        session,
        code=coupon_code,
        user_id=user_id,
        game_id=game_id,
        tournament_id=tournament.id,
        base_amount=registration_fee(tournament),
        now_utc=now_utc,
    )
    current_participants = await TournamentsRepo.reserve_slot(
        session,
        tournament_id=tournament.id,
        now_utc=now_utc,
    )
    if current_participants is None:
        raise TournamentFullError

    payment = await PaymentService.create_registration_payment(
        session,
        payment_type=payment_type,
        user_id=user_id,
        tournament_id=tournament.id,
        team_id=team_id,
        quote=quote,
        settlement=settlement,
        currency=currency,
        now_utc=now_utc,
    )
    return quote, payment, current_participants


def _as_registration_result(
    *,
    tournament: Tournament,
    quote: CouponQuote,
    payment: Payment,
    roster_payment_status: str,
    current_participants: int,
    team_id: UUID | None = None,
) -> RegistrationResult:
    return RegistrationResult(
        tournament_id=tournament.id,
        payment_id=payment.id,
        invoice_id=payment.invoice_id,
        payable_amount=payment.amount,
        base_amount=quote.base_amount,
        discount_amount=quote.discount_amount,
        coupon_code=quote.coupon_code,
        payment_status=payment.payment_status,
        payment_gateway=payment.payment_gateway,
        roster_payment_status=roster_payment_status,
        current_participants=current_participants,
        team_id=team_id,
    )


async def register_player(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    user_id: int,
    now_utc: datetime,
    currency: str,
    coupon_code: str | None = None,
    settlement: SettlementPath = SettlementPath.MANUAL,
    partner_game_id: str | None = None,
    partner_in_game_name: str | None = None,
) -> RegistrationResult:
    tournament = await _load_tournament_for_update(session, tournament_id)
    tournament_format = ensure_format(tournament, squad=False)
    ensure_registration_window(tournament, now_utc=now_utc)
    ensure_capacity(tournament)
    if await TournamentParticipantsRepo.get(session, tournament_id=tournament.id, user_id=user_id):
        raise AlreadyRegisteredError

    game_id, in_game_name = ensure_profile_complete(await UsersRepo.get_by_id(session, user_id))
    roster_game_ids = [game_id]
    partner: tuple[str, str] | None = None
    if tournament_format is TournamentFormat.DUO:
        partner = normalize_partner(partner_game_id, partner_in_game_name)
        roster_game_ids.append(partner[0])
    ensure_unique_game_ids(roster_game_ids)
    await _ensure_game_ids_free(session, tournament_id=tournament.id, game_ids=roster_game_ids)

    quote, payment, current_participants = await _reserve_and_charge(
        session,
        tournament=tournament,
        payment_type=PaymentType.INDIVIDUAL,
        user_id=user_id,
        game_id=game_id,
        coupon_code=coupon_code,
        settlement=settlement,
        currency=currency,
        now_utc=now_utc,
    )
    roster_payment_status = roster_status_for(payment.payment_status)
    await TournamentParticipantsRepo.create(
        session,
        participant=TournamentParticipant(
            tournament_id=tournament.id,
            user_id=user_id,
            game_id=game_id,
            in_game_name=in_game_name,
            partner_game_id=partner[0] if partner else None,
            partner_in_game_name=partner[1] if partner else None,
            payment_id=payment.id,
            payment_status=roster_payment_status,
            registered_at=now_utc,
        ),
    )
    await TournamentRosterGameIdsRepo.add_many(
        session,
        tournament_id=tournament.id,
        game_ids=roster_game_ids,
        participant_user_id=user_id,
    )

    logger.info(
        "registration_created",
        tournament_id=str(tournament.id),
        user_id=user_id,
        payment_id=str(payment.id),
        payment_status=payment.payment_status,
        payable_amount=str(payment.amount),
        current_participants=current_participants,
    )
    return _as_registration_result(
        tournament=tournament,
        quote=quote,
        payment=payment,
        roster_payment_status=roster_payment_status,
        current_participants=current_participants,
    )


async def register_squad(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    user_id: int,
    members: Sequence[SquadMemberInput],
    now_utc: datetime,
    currency: str,
    team_name: str | None = None,
    team_tag: str | None = None,
    coupon_code: str | None = None,
    settlement: SettlementPath = SettlementPath.MANUAL,
) -> RegistrationResult:
    tournament = await _load_tournament_for_update(session, tournament_id)
    ensure_format(tournament, squad=True)
    ensure_registration_window(tournament, now_utc=now_utc)
    ensure_capacity(tournament)
    if await TournamentTeamsRepo.get_by_captain(
        session,
        tournament_id=tournament.id,
        captain_user_id=user_id,
    ):
        raise AlreadyCaptainError

    user = await UsersRepo.get_by_id(session, user_id)
    captain_game_id, captain_in_game_name = ensure_profile_complete(user)
    squad_members = normalize_squad_members(tournament, members)
    roster_game_ids = ensure_unique_game_ids(
        [captain_game_id, *(member.game_id for member in squad_members)]
    )
    await _ensure_game_ids_free(session, tournament_id=tournament.id, game_ids=roster_game_ids)

    team_id = uuid4()
    quote, payment, current_participants = await _reserve_and_charge(
        session,
        tournament=tournament,
        payment_type=PaymentType.TEAM,
        user_id=user_id,
        game_id=captain_game_id,
        coupon_code=coupon_code,
        settlement=settlement,
        currency=currency,
        now_utc=now_utc,
        team_id=team_id,
    )
    roster_payment_status = roster_status_for(payment.payment_status)
    await TournamentTeamsRepo.create(
        session,
        team=TournamentTeam(
            id=team_id,
            tournament_id=tournament.id,
            team_name=(team_name or "").strip() or f"{user.display_name}'s Squad",
            team_tag=(team_tag or "").strip().upper() or None,
            join_code=secrets.token_hex(JOIN_CODE_BYTES).upper(),
            captain_user_id=user_id,
            captain_game_id=captain_game_id,
            captain_in_game_name=captain_in_game_name,
            registration_status=str(TeamRegistrationStatus.REGISTERED),
            payment_id=payment.id,
            payment_status=roster_payment_status,
            created_at=now_utc,
        ),
        members=[
            TournamentTeamMember(
                position=position,
                game_id=member.game_id,
                in_game_name=member.in_game_name,
            )
            for position, member in enumerate(squad_members, start=1)
        ],
    )
    await TournamentRosterGameIdsRepo.add_many(
        session,
        tournament_id=tournament.id,
        game_ids=roster_game_ids,
        team_id=team_id,
    )

    logger.info(
        "squad_registration_created",
        tournament_id=str(tournament.id),
        captain_user_id=user_id,
        team_id=str(team_id),
        payment_id=str(payment.id),
        payment_status=payment.payment_status,
        payable_amount=str(payment.amount),
        current_participants=current_participants,
    )
    return _as_registration_result(
        tournament=tournament,
        quote=quote,
        payment=payment,
        roster_payment_status=roster_payment_status,
        current_participants=current_participants,
        team_id=team_id,
    )


async def cancel_registration(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    user_id: int,
    now_utc: datetime,
) -> CancellationResult:
    payment_id: UUID | None = None
    participant = await TournamentParticipantsRepo.get(
        session,
        tournament_id=tournament_id,
        user_id=user_id,
    )
    if participant is not None:
        payment_id = participant.payment_id
    else:
        team = await TournamentTeamsRepo.get_by_captain(
            session,
            tournament_id=tournament_id,
            captain_user_id=user_id,
        )
        if team is not None:
            payment_id = team.payment_id
    if payment_id is None:
        raise RegistrationNotFoundError

    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None or payment.payment_status not in OPEN_PAYMENT_STATUSES:
        raise RegistrationNotCancellableError

    slot_released = await PaymentService.close_open_payment(
        session,
        payment=payment,
        target=PaymentStatus.CANCELLED,
        now_utc=now_utc,
    )
    logger.info(
        "registration_cancelled",
        tournament_id=str(tournament_id),
        user_id=user_id,
        payment_id=str(payment.id),
        slot_released=slot_released,
    )
    return CancellationResult(
        tournament_id=tournament_id,
        payment_id=payment.id,
        payment_status=payment.payment_status,
        slot_released=slot_released,
    )


async def quote_registration_fee(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    user_id: int,
    coupon_code: str | None,
    now_utc: datetime,
) -> CouponQuote:
    tournament = await TournamentsRepo.get_by_id(session, tournament_id)
    if tournament is None:
        raise TournamentNotFoundError
    user = await UsersRepo.get_by_id(session, user_id)
    return await CouponService.evaluate(
        session,
        code=coupon_code,
        user_id=user_id,
        game_id=user.game_id if user is not None else None,
        tournament_id=tournament.id,
        base_amount=registration_fee(tournament),
        now_utc=now_utc,
    )
