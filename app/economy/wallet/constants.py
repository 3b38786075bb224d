from __future__ import annotations

from enum import StrEnum


class TransactionKind(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TOURNAMENT_FEE = "tournament_fee"
    PRIZE_WON = "prize_won"
    REFUND = "refund"


class TransactionStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class WithdrawalStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class WithdrawalMethod(StrEnum):
    BANK = "bank"
    UPI = "upi"


CREDIT_KIND_COUNTERS: dict[TransactionKind, str] = {
    TransactionKind.DEPOSIT: "total_deposited",
    TransactionKind.PRIZE_WON: "total_earned",
    TransactionKind.REFUND: "total_earned",
}
DEBIT_KIND_COUNTERS: dict[TransactionKind, str] = {
    TransactionKind.TOURNAMENT_FEE: "total_spent",
    TransactionKind.WITHDRAWAL: "total_withdrawn",
}
OPEN_WITHDRAWAL_STATUSES = frozenset({WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING})
REQUIRED_ACCOUNT_FIELDS: dict[WithdrawalMethod, tuple[str, ...]] = {
    WithdrawalMethod.UPI: ("upi_id",),
    WithdrawalMethod.BANK: ("account_holder_name", "account_number", "ifsc_code"),
}
