from __future__ import annotations

import re
from enum import StrEnum


class TournamentFormat(StrEnum):
    SOLO = "solo"
    DUO = "duo"
    SQUAD = "squad"


class TournamentStatus(StrEnum):
    UPCOMING = "upcoming"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TeamRegistrationStatus(StrEnum):
    REGISTERED = "registered"
    CANCELLED = "cancelled"
    DISQUALIFIED = "disqualified"


class WinnerPaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class WinnerOutcome(StrEnum):
    PAID = "paid"
    ALREADY_PAID = "already_paid"
    FAILED = "failed"


INDIVIDUAL_FORMATS = frozenset({TournamentFormat.SOLO, TournamentFormat.DUO})
TEAM_SIZE_BY_FORMAT: dict[TournamentFormat, int] = {
    TournamentFormat.SOLO: 1,
    TournamentFormat.DUO: 2,
    TournamentFormat.SQUAD: 4,
}
SETTLED_WINNER_OUTCOMES = frozenset({WinnerOutcome.PAID, WinnerOutcome.ALREADY_PAID})

GAME_ID_PATTERN = re.compile(r"^\d{10,12}$")
IN_GAME_NAME_MAX_LENGTH = 64
TEAM_NAME_MAX_LENGTH = 64
TEAM_TAG_MAX_LENGTH = 8
JOIN_CODE_BYTES = 4
