from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class WalletTransactionResult:
    transaction_id: int
    user_id: int
    amount: Decimal
    balance_after: Decimal
    idempotent_replay: bool


@dataclass(slots=True)
class WithdrawalRequestResult:
    withdrawal_id: UUID
    amount: Decimal
    status: str
    balance: Decimal


@dataclass(slots=True)
class WithdrawalResolutionResult:
    withdrawal_id: UUID
    user_id: int
    status: str
    balance: Decimal
    transaction_id: int
    processed_at: datetime


@dataclass(slots=True)
class WalletSummary:
    user_id: int
    balance: Decimal
    pending_withdrawals: Decimal
    open_withdrawal_count: int
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_earned: Decimal
    total_spent: Decimal
    is_locked: bool
    lock_reason: str | None


@dataclass(slots=True)
class WalletAuditResult:
    user_id: int
    balance: Decimal
    expected_balance: Decimal

    @property
    def drift(self) -> Decimal:
        return self.balance - self.expected_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0 and self.balance >= 0
