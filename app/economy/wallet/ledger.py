from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.db.models.wallet_transactions import WalletTransaction
from app.db.models.wallet_withdrawals import WalletWithdrawal
from app.db.models.wallets import Wallet
from app.economy.money import ZERO, to_money
from app.economy.wallet.constants import (
    CREDIT_KIND_COUNTERS,
    DEBIT_KIND_COUNTERS,
    REQUIRED_ACCOUNT_FIELDS,
    TransactionKind,
    TransactionStatus,
    WithdrawalMethod,
)
from app.economy.wallet.errors import (
    AccountDetailsRequiredError,
    BelowMinimumWithdrawalError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidWalletOperationError,
    WalletLockedError,
)


def _positive_amount(amount: Decimal) -> Decimal:
    resolved = to_money(amount)
    if resolved <= ZERO:
        raise InvalidAmountError
    return resolved


def _touch(wallet: Wallet, now_utc: datetime) -> None:
    wallet.version = (wallet.version or 0) + 1
    wallet.updated_at = now_utc


def _bump_counter(wallet: Wallet, counter: str, amount: Decimal) -> None:
    setattr(wallet, counter, (getattr(wallet, counter) or ZERO) + amount)


def ensure_debit_allowed(wallet: Wallet, *, amount: Decimal) -> None:
    if wallet.is_locked:
        raise WalletLockedError(wallet.lock_reason or None)
    if amount > wallet.balance:
        raise InsufficientBalanceError


def apply_credit(
    wallet: Wallet,
    *,
    amount: Decimal,
    kind: TransactionKind,
    description: str,
    idempotency_key: str,
    now_utc: datetime,
    payment_id: UUID | None = None,
    tournament_id: UUID | None = None,
    withdrawal_id: UUID | None = None,
    is_hold_release: bool = False,
    metadata: Mapping[str, object] | None = None,
) -> WalletTransaction:
    credit_amount = _positive_amount(amount)
    if kind not in CREDIT_KIND_COUNTERS:
        raise InvalidWalletOperationError(f"'{kind}' is not a credit kind")

    wallet.balance = to_money(wallet.balance + credit_amount)
    if not is_hold_release:
        _bump_counter(wallet, CREDIT_KIND_COUNTERS[kind], credit_amount)
    _touch(wallet, now_utc)

    return WalletTransaction(
        user_id=wallet.user_id,
        kind=str(kind),
        direction="credit",
        amount=credit_amount,
        status=str(TransactionStatus.COMPLETED),
        balance_after=wallet.balance,
        description=description,
        tournament_id=tournament_id,
        payment_id=payment_id,
        withdrawal_id=withdrawal_id,
        is_hold_release=is_hold_release,
        idempotency_key=idempotency_key,
        metadata_=dict(metadata or {}),
        created_at=now_utc,
    )


def apply_debit(
    wallet: Wallet,
    *,
    amount: Decimal,
    kind: TransactionKind,
    description: str,
    idempotency_key: str,
    now_utc: datetime,
    payment_id: UUID | None = None,
    tournament_id: UUID | None = None,
    metadata: Mapping[str, object] | None = None,
) -> WalletTransaction:
    debit_amount = _positive_amount(amount)
    if kind not in DEBIT_KIND_COUNTERS:
        raise InvalidWalletOperationError(f"'{kind}' is not a debit kind")
    ensure_debit_allowed(wallet, amount=debit_amount)

    wallet.balance = to_money(wallet.balance - debit_amount)
    _bump_counter(wallet, DEBIT_KIND_COUNTERS[kind], debit_amount)
    _touch(wallet, now_utc)

    return WalletTransaction(
        user_id=wallet.user_id,
        kind=str(kind),
        direction="debit",
        amount=-debit_amount,
        status=str(TransactionStatus.COMPLETED),
        balance_after=wallet.balance,
        description=description,
        tournament_id=tournament_id,
        payment_id=payment_id,
        idempotency_key=idempotency_key,
        metadata_=dict(metadata or {}),
        created_at=now_utc,
    )


def validate_account_details(
    method: WithdrawalMethod,
    account_details: Mapping[str, object],
) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for field in REQUIRED_ACCOUNT_FIELDS[method]:
        value = account_details.get(field)
        if not isinstance(value, str) or not value.strip():
            raise AccountDetailsRequiredError(f"'{field}' is required for {method} withdrawals")
        cleaned[field] = value.strip()
    return cleaned


def place_withdrawal_hold(
    wallet: Wallet,
    *,
    amount: Decimal,
    min_withdrawal: Decimal,
    now_utc: datetime,
) -> Decimal:
    hold_amount = _positive_amount(amount)
    if wallet.is_locked:
        raise WalletLockedError(wallet.lock_reason or None)
    if hold_amount < min_withdrawal:
        raise BelowMinimumWithdrawalError(f"Minimum withdrawal amount is {to_money(min_withdrawal)}")
    if hold_amount > wallet.balance:
        raise InsufficientBalanceError

    wallet.balance = to_money(wallet.balance - hold_amount)
    _touch(wallet, now_utc)
    return hold_amount


def settle_withdrawal_hold(
    wallet: Wallet,
    *,
    withdrawal: WalletWithdrawal,
    now_utc: datetime,
) -> WalletTransaction:
    wallet.total_withdrawn = (wallet.total_withdrawn or ZERO) + withdrawal.amount
    _touch(wallet, now_utc)
    return WalletTransaction(
        user_id=wallet.user_id,
        kind=str(TransactionKind.WITHDRAWAL),
        direction="debit",
        amount=-withdrawal.amount,
        status=str(TransactionStatus.COMPLETED),
        balance_after=wallet.balance,
        description=f"Withdrawal via {withdrawal.method}",
        withdrawal_id=withdrawal.id,
        idempotency_key=f"withdrawal:{withdrawal.id}:completed",
        metadata_={"transaction_reference": withdrawal.transaction_reference},
        created_at=now_utc,
    )


def release_withdrawal_hold(
    wallet: Wallet,
    *,
    withdrawal: WalletWithdrawal,
    now_utc: datetime,
) -> WalletTransaction:
    return apply_credit(
        wallet,
        amount=withdrawal.amount,
        kind=TransactionKind.REFUND,
        description="Withdrawal rejected, amount returned",
        idempotency_key=f"withdrawal:{withdrawal.id}:rejected",
        now_utc=now_utc,
        withdrawal_id=withdrawal.id,
        is_hold_release=True,
        metadata={"rejection_reason": withdrawal.rejection_reason},
    )


def expected_balance(
    *,
    completed_credits: Decimal,
    completed_debits: Decimal,
    open_holds: Decimal,
) -> Decimal:
    return to_money(completed_credits - completed_debits - open_holds)
