from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SquadMemberInput:
    game_id: str
    in_game_name: str


@dataclass(slots=True)
class RegistrationResult:
    tournament_id: UUID
    payment_id: UUID
    invoice_id: str
    payable_amount: Decimal
    base_amount: Decimal
    discount_amount: Decimal
    coupon_code: str | None
    payment_status: str
    payment_gateway: str
    roster_payment_status: str
    current_participants: int
    team_id: UUID | None = None


@dataclass(slots=True)
class CancellationResult:
    tournament_id: UUID
    payment_id: UUID
    payment_status: str
    slot_released: bool


@dataclass(frozen=True, slots=True)
class WinnerEntryInput:
    rank: int
    prize_amount: Decimal
    user_id: int | None = None
    team_id: UUID | None = None


@dataclass(slots=True)
class WinnerSettlementOutcome:
    rank: int
    status: str
    prize_amount: Decimal
    receiver_user_id: int | None = None
    wallet_transaction_id: int | None = None
    paid_at: datetime | None = None
    error_code: str | None = None
    error_kind: str | None = None
    message: str | None = None


@dataclass(slots=True)
class SettlementResult:
    tournament_id: UUID
    tournament_status: str
    entries: list[WinnerSettlementOutcome] = field(default_factory=list)

    @property
    def failed_ranks(self) -> list[int]:
        return [entry.rank for entry in self.entries if entry.status == "failed"]
