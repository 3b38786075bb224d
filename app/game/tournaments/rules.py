from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation

from app.db.models.tournaments import Tournament
from app.db.models.users import User
from app.economy.money import ZERO, to_money
from app.game.tournaments.constants import GAME_ID_PATTERN, TournamentFormat
from app.game.tournaments.errors import (
    DuplicateGameIdError,
    InvalidGameIdError,
    PartnerInfoRequiredError,
    ProfileIncompleteError,
    RegistrationClosedError,
    RegistrationNotOpenError,
    SquadMemberInfoRequiredError,
    TeamSizeMismatchError,
    TournamentFormatMismatchError,
    TournamentFullError,
    WinnerEntryInvalidError,
)
from app.game.tournaments.types import SquadMemberInput, WinnerEntryInput


def ensure_format(tournament: Tournament, *, squad: bool) -> TournamentFormat:
    tournament_format = TournamentFormat(tournament.format)
    if squad != (tournament_format is TournamentFormat.SQUAD):
        raise TournamentFormatMismatchError(
            "This is not a squad tournament" if squad else "Use squad registration for this tournament"
        )
    return tournament_format


def ensure_registration_window(tournament: Tournament, *, now_utc: datetime) -> None:
    if now_utc < tournament.registration_start:
        raise RegistrationNotOpenError
    if now_utc > tournament.registration_end:
        raise RegistrationClosedError


def ensure_capacity(tournament: Tournament) -> None:
    if tournament.current_participants >= tournament.max_participants:
        raise TournamentFullError


def ensure_profile_complete(user: User | None) -> tuple[str, str]:
    if user is None:
        raise ProfileIncompleteError
    game_id = (user.game_id or "").strip()
    in_game_name = (user.in_game_name or "").strip()
    if not game_id or not in_game_name:
        raise ProfileIncompleteError
    return game_id, in_game_name


def normalize_game_id(value: str | None) -> str:
    game_id = (value or "").strip()
    if not GAME_ID_PATTERN.fullmatch(game_id):
        raise InvalidGameIdError
    return game_id


def normalize_partner(
    partner_game_id: str | None,
    partner_in_game_name: str | None,
) -> tuple[str, str]:
    game_id = (partner_game_id or "").strip()
    in_game_name = (partner_in_game_name or "").strip()
    if not game_id or not in_game_name:
        raise PartnerInfoRequiredError
    return normalize_game_id(game_id), in_game_name


def ensure_unique_game_ids(game_ids: Iterable[str]) -> list[str]:
    collected = list(game_ids)
    if len(set(collected)) != len(collected):
        raise DuplicateGameIdError
    return collected


def normalize_squad_members(
    tournament: Tournament,
    members: Sequence[SquadMemberInput],
) -> list[SquadMemberInput]:
    # the captain fills one seat
    if len(members) + 1 != tournament.team_size:
        raise TeamSizeMismatchError(f"Squad must have exactly {tournament.team_size} members")

    normalized: list[SquadMemberInput] = []
    for member in members:
        in_game_name = (member.in_game_name or "").strip()
        if not in_game_name:
            raise SquadMemberInfoRequiredError
        normalized.append(
            SquadMemberInput(game_id=normalize_game_id(member.game_id), in_game_name=in_game_name)
        )
    return normalized


def registration_fee(tournament: Tournament) -> Decimal:
    if tournament.is_free:
        return ZERO
    return to_money(tournament.service_fee or ZERO)


def validate_winner_entries(entries: Sequence[WinnerEntryInput]) -> list[WinnerEntryInput]:
    if not entries:
        raise WinnerEntryInvalidError("At least one winner entry is required")

    seen_ranks: set[int] = set()
    validated: list[WinnerEntryInput] = []
    for entry in entries:
        if entry.rank < 1 or entry.rank in seen_ranks:
            raise WinnerEntryInvalidError(f"Invalid or duplicate rank: {entry.rank}")
        if (entry.user_id is None) == (entry.team_id is None):
            raise WinnerEntryInvalidError(f"Rank {entry.rank} needs exactly one recipient")
        try:
            prize_amount = to_money(entry.prize_amount)
        except (InvalidOperation, ValueError) as exc:
            raise WinnerEntryInvalidError(f"Rank {entry.rank} has an invalid prize") from exc
        if prize_amount <= ZERO:
            raise WinnerEntryInvalidError(f"Rank {entry.rank} needs a positive prize")
        seen_ranks.add(entry.rank)
        validated.append(
            WinnerEntryInput(
                rank=entry.rank,
                prize_amount=prize_amount,
                user_id=entry.user_id,
                team_id=entry.team_id,
            )
        )
    return sorted(validated, key=lambda item: item.rank)
