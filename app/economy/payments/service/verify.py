from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.repo.payments_repo import PaymentsRepo
from app.economy.payments.constants import (
    CLOSED_UNPAID_PAYMENT_STATUSES,
    PAID_PAYMENT_STATUSES,
    PaymentStatus,
    PaymentType,
)
from app.economy.payments.errors import (
    GatewayMisconfiguredError,
    InvalidSignatureError,
    PaymentAlreadySettledError,
    PaymentNotFoundError,
    PaymentNotOwnedError,
)
from app.economy.payments.state import transition
from app.economy.payments.types import PaymentVerifyResult
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService
from app.services.payment_signatures import is_valid_payment_signature

from .effects import _apply_success_effects

logger = structlog.get_logger(__name__)


async def _credit_late_capture(
    session: AsyncSession,
    *,
    payment: Payment,
    gateway_payment_id: str,
    signature: str,
    now_utc: datetime,
) -> PaymentVerifyResult:
    """Money captured for an order that was already closed goes to the payer's wallet."""
    if payment.gateway_payment_id is not None and payment.gateway_payment_id != gateway_payment_id:
        raise PaymentAlreadySettledError
    if payment.gateway_payment_id is None:
        payment.gateway_payment_id = gateway_payment_id
        payment.gateway_signature = signature
        payment.is_verified = True
        payment.verified_at = now_utc
        payment.metadata_ = {**(payment.metadata_ or {}), "captured_after_close": True}
        payment.updated_at = now_utc

    kind = (
        TransactionKind.DEPOSIT
        if payment.payment_type == PaymentType.WALLET_TOPUP
        else TransactionKind.REFUND
    )
    credit = await WalletService.credit(
        session,
        user_id=payment.user_id,
        amount=payment.amount,
        kind=kind,
        description=f"Late payment for {payment.invoice_id}",
        idempotency_key=f"gateway:{gateway_payment_id}",
        now_utc=now_utc,
        payment_id=payment.id,
        tournament_id=payment.tournament_id,
        metadata={"payment_status": payment.payment_status},
    )
    if not credit.idempotent_replay:
        logger.warning(
            "payment_captured_after_close",
            payment_id=str(payment.id),
            payment_type=payment.payment_type,
            payment_status=payment.payment_status,
            amount=str(payment.amount),
            wallet_transaction_id=credit.transaction_id,
        )
    return PaymentVerifyResult(
        payment_id=payment.id,
        payment_type=payment.payment_type,
        payment_status=payment.payment_status,
        idempotent_replay=credit.idempotent_replay,
        wallet_transaction_id=credit.transaction_id,
    )


async def verify_gateway_payment(
    session: AsyncSession,
    *,
    user_id: int,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    secret: str,
    now_utc: datetime,
) -> PaymentVerifyResult:
    if not secret:
        raise GatewayMisconfiguredError
    if not is_valid_payment_signature(
        order_id=gateway_order_id,
        payment_id=gateway_payment_id,
        signature=signature,
        secret=secret,
    ):
        logger.warning("payment_signature_invalid", gateway_order_id=gateway_order_id, user_id=user_id)
        raise InvalidSignatureError

    payment = await PaymentsRepo.get_by_gateway_order_id_for_update(session, gateway_order_id)
    if payment is None:
        raise PaymentNotFoundError
    if payment.user_id != user_id:
        raise PaymentNotOwnedError

    if payment.payment_status in PAID_PAYMENT_STATUSES:
        if payment.gateway_payment_id != gateway_payment_id:
            raise PaymentAlreadySettledError
        logger.info("payment_verify_replayed", payment_id=str(payment.id))
        return PaymentVerifyResult(
            payment_id=payment.id,
            payment_type=payment.payment_type,
            payment_status=payment.payment_status,
            idempotent_replay=True,
        )

    if payment.payment_status in CLOSED_UNPAID_PAYMENT_STATUSES:
        return await _credit_late_capture(
            session,
            payment=payment,
            gateway_payment_id=gateway_payment_id,
            signature=signature,
            now_utc=now_utc,
        )

    transition(payment, PaymentStatus.SUCCESS, now_utc=now_utc)
    payment.gateway_payment_id = gateway_payment_id
    payment.gateway_signature = signature
    payment.is_verified = True
    payment.verified_at = now_utc

    await _apply_success_effects(
        session,
        payment=payment,
        now_utc=now_utc,
        enforce_coupon_caps=False,
    )
    logger.info(
        "payment_verified",
        payment_id=str(payment.id),
        payment_type=payment.payment_type,
        amount=str(payment.amount),
    )
    return PaymentVerifyResult(
        payment_id=payment.id,
        payment_type=payment.payment_type,
        payment_status=payment.payment_status,
        idempotent_replay=False,
    )
