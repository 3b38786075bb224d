from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.wallet_transactions import WalletTransaction
from app.db.models.wallet_withdrawals import WalletWithdrawal
from app.db.repo.wallet_transactions_repo import WalletTransactionsRepo
from app.db.repo.wallet_withdrawals_repo import WalletWithdrawalsRepo
from app.db.repo.wallets_repo import WalletsRepo
from app.economy.money import ZERO
from app.economy.wallet.constants import (
    OPEN_WITHDRAWAL_STATUSES,
    TransactionKind,
    WithdrawalMethod,
    WithdrawalStatus,
)
from app.economy.wallet.errors import (
    RejectionReasonRequiredError,
    WalletNotFoundError,
    WithdrawalAlreadyResolvedError,
    WithdrawalNotFoundError,
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
from app.economy.wallet.types import (
    WalletAuditResult,
    WalletSummary,
    WalletTransactionResult,
    WithdrawalRequestResult,
    WithdrawalResolutionResult,
)

logger = structlog.get_logger(__name__)


def _as_result(transaction: WalletTransaction, *, idempotent_replay: bool) -> WalletTransactionResult:
    return WalletTransactionResult(
        transaction_id=transaction.id,
        user_id=transaction.user_id,
        amount=transaction.amount,
        balance_after=transaction.balance_after,
        idempotent_replay=idempotent_replay,
    )


class WalletService:
    @staticmethod
    async def credit(
        session: AsyncSession,
        *,
        user_id: int,
        amount: Decimal,
        kind: TransactionKind,
        description: str,
        idempotency_key: str,
        now_utc: datetime,
        payment_id: UUID | None = None,
        tournament_id: UUID | None = None,
        metadata: Mapping[str, object] | None = None,
    ) -> WalletTransactionResult:
        wallet = await WalletsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        existing = await WalletTransactionsRepo.get_by_idempotency_key(session, idempotency_key)
        if existing is not None:
            return _as_result(existing, idempotent_replay=True)

        transaction = apply_credit(
            wallet,
            amount=amount,
            kind=kind,
            description=description,
            idempotency_key=idempotency_key,
            now_utc=now_utc,
            payment_id=payment_id,
            tournament_id=tournament_id,
            metadata=metadata,
        )
        await WalletTransactionsRepo.create(session, transaction=transaction)
        logger.info(
            "wallet_credited",
            user_id=user_id,
            kind=str(kind),
            amount=str(transaction.amount),
            balance_after=str(transaction.balance_after),
        )
        return _as_result(transaction, idempotent_replay=False)

    @staticmethod
    async def debit(
        session: AsyncSession,
        *,
        user_id: int,
        amount: Decimal,
        kind: TransactionKind,
        description: str,
        idempotency_key: str,
        now_utc: datetime,
        payment_id: UUID | None = None,
        tournament_id: UUID | None = None,
        metadata: Mapping[str, object] | None = None,
    ) -> WalletTransactionResult:
        wallet = await WalletsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        existing = await WalletTransactionsRepo.get_by_idempotency_key(session, idempotency_key)
        if existing is not None:
            return _as_result(existing, idempotent_replay=True)

        transaction = apply_debit(
            wallet,
            amount=amount,
            kind=kind,
            description=description,
            idempotency_key=idempotency_key,
            now_utc=now_utc,
            payment_id=payment_id,
            tournament_id=tournament_id,
            metadata=metadata,
        )
        await WalletTransactionsRepo.create(session, transaction=transaction)
        logger.info(
            "wallet_debited",
            user_id=user_id,
            kind=str(kind),
            amount=str(transaction.amount),
            balance_after=str(transaction.balance_after),
        )
        return _as_result(transaction, idempotent_replay=False)

    @staticmethod
    async def request_withdrawal(
        session: AsyncSession,
        *,
        user_id: int,
        amount: Decimal,
        method: WithdrawalMethod,
        account_details: Mapping[str, object],
        min_withdrawal: Decimal,
        now_utc: datetime,
    ) -> WithdrawalRequestResult:
        cleaned_details = validate_account_details(method, account_details)
        wallet = await WalletsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        hold_amount = place_withdrawal_hold(
            wallet,
            amount=amount,
            min_withdrawal=min_withdrawal,
            now_utc=now_utc,
        )
        withdrawal = await WalletWithdrawalsRepo.create(
            session,
            withdrawal=WalletWithdrawal(
                id=uuid4(),
                user_id=user_id,
                amount=hold_amount,
                method=str(method),
                account_details=cleaned_details,
                status=str(WithdrawalStatus.PENDING),
                requested_at=now_utc,
            ),
        )
        logger.info(
            "withdrawal_requested",
            user_id=user_id,
            withdrawal_id=str(withdrawal.id),
            amount=str(hold_amount),
            method=str(method),
        )
        return WithdrawalRequestResult(
            withdrawal_id=withdrawal.id,
            amount=hold_amount,
            status=withdrawal.status,
            balance=wallet.balance,
        )

    @staticmethod
    async def resolve_withdrawal(
        session: AsyncSession,
        *,
        withdrawal_id: UUID,
        decision: WithdrawalStatus,
        admin_user_id: int,
        now_utc: datetime,
        transaction_reference: str | None = None,
        rejection_reason: str | None = None,
    ) -> WithdrawalResolutionResult:
        if decision not in {WithdrawalStatus.COMPLETED, WithdrawalStatus.REJECTED}:
            raise ValueError(f"unsupported withdrawal decision: {decision}")
        if decision is WithdrawalStatus.REJECTED and not (rejection_reason or "").strip():
            raise RejectionReasonRequiredError

        withdrawal = await WalletWithdrawalsRepo.get_by_id_for_update(session, withdrawal_id)
        if withdrawal is None:
            raise WithdrawalNotFoundError
        if withdrawal.status not in OPEN_WITHDRAWAL_STATUSES:
            raise WithdrawalAlreadyResolvedError

        wallet = await WalletsRepo.get_by_user_id_for_update(session, withdrawal.user_id)
        if wallet is None:
            raise WalletNotFoundError

        withdrawal.status = str(decision)
        withdrawal.processed_at = now_utc
        withdrawal.processed_by = admin_user_id
        if decision is WithdrawalStatus.COMPLETED:
            withdrawal.transaction_reference = (transaction_reference or "").strip() or None
            transaction = settle_withdrawal_hold(wallet, withdrawal=withdrawal, now_utc=now_utc)
        else:
            withdrawal.rejection_reason = (rejection_reason or "").strip()
            transaction = release_withdrawal_hold(wallet, withdrawal=withdrawal, now_utc=now_utc)
        await WalletTransactionsRepo.create(session, transaction=transaction)

        logger.info(
            "withdrawal_resolved",
            withdrawal_id=str(withdrawal.id),
            user_id=withdrawal.user_id,
            status=withdrawal.status,
            admin_user_id=admin_user_id,
        )
        return WithdrawalResolutionResult(
            withdrawal_id=withdrawal.id,
            user_id=withdrawal.user_id,
            status=withdrawal.status,
            balance=wallet.balance,
            transaction_id=transaction.id,
            processed_at=now_utc,
        )

    @staticmethod
    async def set_lock(
        session: AsyncSession,
        *,
        user_id: int,
        locked: bool,
        reason: str | None,
        admin_user_id: int,
        now_utc: datetime,
    ) -> WalletSummary:
        wallet = await WalletsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        wallet.is_locked = locked
        wallet.lock_reason = ((reason or "").strip() or None) if locked else None
        wallet.version += 1
        wallet.updated_at = now_utc
        logger.info(
            "wallet_lock_changed",
            user_id=user_id,
            locked=locked,
            admin_user_id=admin_user_id,
        )
        return await WalletService.get_summary(session, user_id=user_id)

    @staticmethod
    async def get_summary(session: AsyncSession, *, user_id: int) -> WalletSummary:
        wallet = await WalletsRepo.get_by_user_id(session, user_id)
        if wallet is None:
            return WalletSummary(
                user_id=user_id,
                balance=ZERO,
                pending_withdrawals=ZERO,
                open_withdrawal_count=0,
                total_deposited=ZERO,
                total_withdrawn=ZERO,
                total_earned=ZERO,
                total_spent=ZERO,
                is_locked=False,
                lock_reason=None,
            )

        return WalletSummary(
            user_id=user_id,
            balance=wallet.balance,
            pending_withdrawals=await WalletWithdrawalsRepo.sum_open_holds(session, user_id=user_id),
            open_withdrawal_count=await WalletWithdrawalsRepo.count_open(session, user_id=user_id),
            total_deposited=wallet.total_deposited,
            total_withdrawn=wallet.total_withdrawn,
            total_earned=wallet.total_earned,
            total_spent=wallet.total_spent,
            is_locked=wallet.is_locked,
            lock_reason=wallet.lock_reason,
        )

    @staticmethod
    async def audit(session: AsyncSession, *, user_id: int) -> WalletAuditResult:
        wallet = await WalletsRepo.get_by_user_id_for_update(session, user_id)
        if wallet is None:
            raise WalletNotFoundError

        return WalletAuditResult(
            user_id=user_id,
            balance=wallet.balance,
            expected_balance=expected_balance(
                completed_credits=await WalletTransactionsRepo.sum_completed_credits(
                    session,
                    user_id=user_id,
                ),
                completed_debits=await WalletTransactionsRepo.sum_completed_debits(
                    session,
                    user_id=user_id,
                ),
                open_holds=await WalletWithdrawalsRepo.sum_open_holds(session, user_id=user_id),
            ),
        )
