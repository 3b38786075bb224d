from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from app.db.models.wallet_withdrawals import WalletWithdrawal
from app.db.models.wallets import Wallet
from app.economy.wallet.constants import TransactionKind, WithdrawalMethod
from app.economy.wallet.errors import (
    AccountDetailsRequiredError,
    BelowMinimumWithdrawalError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidWalletOperationError,
    WalletLockedError,
)
from app.economy.wallet.ledger import (
    apply_credit,
    apply_debit,
    expected_balance,
    place_withdrawal_hold,
    release_withdrawal_hold,
    settle_withdrawal_hold,
    validate_account_details,
)
from app.economy.wallet.types import WalletAuditResult

UTC = timezone.utc
NOW_UTC = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def wallet(balance: str = "150.00", **overrides: object) -> Wallet:
    fields: dict[str, object] = {
        "user_id": 42,
        "balance": Decimal(balance),
        "total_deposited": Decimal("0"),
        "total_withdrawn": Decimal("0"),
        "total_earned": Decimal("0"),
        "total_spent": Decimal("0"),
        "is_active": True,
        "is_locked": False,
        "lock_reason": None,
        "version": 0,
        "created_at": NOW_UTC,
    }
    fields.update(overrides)
    return Wallet(**fields)


def withdrawal(amount: str) -> WalletWithdrawal:
    return WalletWithdrawal(
        id=uuid4(),
        user_id=42,
        amount=Decimal(amount),
        method="upi",
        account_details={"upi_id": "player@upi"},
        status="pending",
        requested_at=NOW_UTC,
    )


def test_credit_updates_balance_counter_and_signs_row() -> None:
    target = wallet()
    row = apply_credit(
        target,
        amount=Decimal("50"),
        kind=TransactionKind.DEPOSIT,
        description="Top-up",
        idempotency_key="topup:1",
        now_utc=NOW_UTC,
    )

    assert target.balance == Decimal("200.00")
    assert target.total_deposited == Decimal("50.00")
    assert target.version == 1
    assert row.direction == "credit"
    assert row.amount == Decimal("50.00")
    assert row.balance_after == Decimal("200.00")


def test_debit_writes_negative_amount() -> None:
    target = wallet()
    row = apply_debit(
        target,
        amount=Decimal("100"),
        kind=TransactionKind.TOURNAMENT_FEE,
        description="Fee",
        idempotency_key="fee:1",
        now_utc=NOW_UTC,
    )

    assert target.balance == Decimal("50.00")
    assert target.total_spent == Decimal("100.00")
    assert row.amount == Decimal("-100.00")
    assert row.direction == "debit"


def test_debit_over_balance_leaves_wallet_unchanged() -> None:
    target = wallet("150.00")

    with pytest.raises(InsufficientBalanceError):
        apply_debit(
            target,
            amount=Decimal("200"),
            kind=TransactionKind.TOURNAMENT_FEE,
            description="Fee",
            idempotency_key="fee:2",
            now_utc=NOW_UTC,
        )

    assert target.balance == Decimal("150.00")
    assert target.version == 0


def test_locked_wallet_rejects_debit_with_reason() -> None:
    target = wallet(is_locked=True, lock_reason="chargeback review")

    with pytest.raises(WalletLockedError) as exc_info:
        apply_debit(
            target,
            amount=Decimal("1"),
            kind=TransactionKind.TOURNAMENT_FEE,
            description="Fee",
            idempotency_key="fee:3",
            now_utc=NOW_UTC,
        )
    assert "chargeback review" in str(exc_info.value)


def test_non_positive_amounts_and_wrong_kinds_are_rejected() -> None:
    with pytest.raises(InvalidAmountError):
        apply_credit(
            wallet(),
            amount=Decimal("0"),
            kind=TransactionKind.DEPOSIT,
            description="x",
            idempotency_key="k",
            now_utc=NOW_UTC,
        )
    with pytest.raises(InvalidWalletOperationError):
        apply_credit(
            wallet(),
            amount=Decimal("1"),
            kind=TransactionKind.TOURNAMENT_FEE,
            description="x",
            idempotency_key="k",
            now_utc=NOW_UTC,
        )


def test_withdrawal_hold_rules() -> None:
    with pytest.raises(BelowMinimumWithdrawalError):
        place_withdrawal_hold(wallet(), amount=Decimal("50"), min_withdrawal=Decimal("100"), now_utc=NOW_UTC)
    with pytest.raises(InsufficientBalanceError):
        place_withdrawal_hold(wallet(), amount=Decimal("151"), min_withdrawal=Decimal("100"), now_utc=NOW_UTC)


def test_hold_then_settle_keeps_ledger_equation() -> None:
    target = wallet("0.00")
    apply_credit(
        target,
        amount=Decimal("500"),
        kind=TransactionKind.PRIZE_WON,
        description="Prize",
        idempotency_key="prize:t:1",
        now_utc=NOW_UTC,
    )
    hold = place_withdrawal_hold(target, amount=Decimal("200"), min_withdrawal=Decimal("100"), now_utc=NOW_UTC)

    assert target.balance == Decimal("300.00")
    assert expected_balance(
        completed_credits=Decimal("500"),
        completed_debits=Decimal("0"),
        open_holds=hold,
    ) == target.balance

    request = withdrawal("200")
    row = settle_withdrawal_hold(target, withdrawal=request, now_utc=NOW_UTC)

    assert target.balance == Decimal("300.00")
    assert target.total_withdrawn == Decimal("200")
    assert row.amount == Decimal("-200")
    assert row.idempotency_key == f"withdrawal:{request.id}:completed"
    assert expected_balance(
        completed_credits=Decimal("500"),
        completed_debits=Decimal("200"),
        open_holds=Decimal("0"),
    ) == target.balance


def test_rejected_withdrawal_returns_hold_without_touching_earnings() -> None:
    target = wallet("300.00", total_earned=Decimal("500"))
    request = withdrawal("200")
    request.rejection_reason = "invalid upi"

    row = release_withdrawal_hold(target, withdrawal=request, now_utc=NOW_UTC)

    assert target.balance == Decimal("500.00")
    assert target.total_earned == Decimal("500")
    assert row.is_hold_release is True
    assert row.idempotency_key == f"withdrawal:{request.id}:rejected"


def test_account_details_per_method() -> None:
    assert validate_account_details(WithdrawalMethod.UPI, {"upi_id": " me@upi "}) == {"upi_id": "me@upi"}
    with pytest.raises(AccountDetailsRequiredError):
        validate_account_details(
            WithdrawalMethod.BANK,
            {"account_holder_name": "A", "account_number": "1"},
        )


def test_audit_result_flags_drift_and_negative_balance() -> None:
    assert WalletAuditResult(user_id=1, balance=Decimal("10"), expected_balance=Decimal("10")).is_consistent
    drifted = WalletAuditResult(user_id=1, balance=Decimal("12"), expected_balance=Decimal("10"))
    assert drifted.drift == Decimal("2")
    assert not drifted.is_consistent
