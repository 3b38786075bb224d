from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.payments_repo import PaymentsRepo
from app.economy.money import to_money
from app.economy.payments.constants import (
    REGISTRATION_PAYMENT_TYPES,
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
)
from app.economy.payments.errors import (
    InvalidPaymentTransitionError,
    PaymentAmountMismatchError,
    PaymentNotFoundError,
    PaymentNotOwnedError,
)
from app.economy.payments.state import transition
from app.economy.payments.types import WalletPaymentResult
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService

from .effects import _apply_success_effects

logger = structlog.get_logger(__name__)


async def pay_with_wallet(
    session: AsyncSession,
    *,
    payment_id: UUID,
    user_id: int,
    now_utc: datetime,
    expected_amount: Decimal | None = None,
) -> WalletPaymentResult:
    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        raise PaymentNotFoundError
    if payment.user_id != user_id:
        raise PaymentNotOwnedError
    if payment.payment_type not in REGISTRATION_PAYMENT_TYPES:
        raise InvalidPaymentTransitionError("Only registration payments can be paid from the wallet")
    if payment.payment_status != PaymentStatus.PENDING:
        raise InvalidPaymentTransitionError(
            f"Cannot pay a '{payment.payment_status}' payment from the wallet"
        )
    if expected_amount is not None and to_money(expected_amount) != payment.amount:
        raise PaymentAmountMismatchError

    debit = await WalletService.debit(
        session,
        user_id=user_id,
        amount=payment.amount,
        kind=TransactionKind.TOURNAMENT_FEE,
        description=f"Tournament fee {payment.invoice_id}",
        idempotency_key=f"fee:{payment.id}",
        now_utc=now_utc,
        payment_id=payment.id,
        tournament_id=payment.tournament_id,
    )

    transition(payment, PaymentStatus.SUCCESS, now_utc=now_utc)
    payment.payment_gateway = str(PaymentGateway.WALLET)
    payment.payment_method = str(PaymentMethod.WALLET)
    payment.requires_manual_review = False
    payment.is_verified = True
    payment.verified_at = now_utc
    await _apply_success_effects(
        session,
        payment=payment,
        now_utc=now_utc,
        enforce_coupon_caps=True,
    )

    logger.info(
        "payment_paid_with_wallet",
        payment_id=str(payment.id),
        user_id=user_id,
        amount=str(payment.amount),
        balance_after=str(debit.balance_after),
    )
    return WalletPaymentResult(
        payment_id=payment.id,
        payment_status=payment.payment_status,
        amount=payment.amount,
        wallet_balance=debit.balance_after,
    )
