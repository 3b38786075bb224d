from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.repo.payments_repo import PaymentsRepo
from app.economy.money import ZERO, to_minor_units, to_money
from app.economy.payments.constants import (
    OPEN_PAYMENT_STATUSES,
    PaymentGateway,
    PaymentStatus,
    PaymentType,
)
from app.economy.payments.errors import (
    InvalidPaymentTransitionError,
    PaymentGatewayMismatchError,
    PaymentNotFoundError,
    PaymentNotOwnedError,
    ZeroAmountOrderError,
)
from app.economy.payments.state import transition
from app.economy.payments.types import PaymentOrderResult
from app.economy.wallet.errors import TopupAmountOutOfRangeError
from app.services.payment_gateway import PaymentGatewayClient

from .builder import _build_payment

logger = structlog.get_logger(__name__)


def _as_order_result(
    payment: Payment,
    *,
    key_id: str,
    idempotent_replay: bool,
) -> PaymentOrderResult:
    return PaymentOrderResult(
        payment_id=payment.id,
        gateway_order_id=payment.gateway_order_id or "",
        amount=payment.amount,
        amount_minor=to_minor_units(payment.amount),
        currency=payment.currency,
        key_id=key_id,
        idempotent_replay=idempotent_replay,
    )


async def _attach_gateway_order(
    payment: Payment,
    *,
    gateway: PaymentGatewayClient,
    now_utc: datetime,
) -> PaymentOrderResult:
    if payment.payment_gateway != PaymentGateway.EXTERNAL:
        raise PaymentGatewayMismatchError
    if payment.amount <= ZERO:
        raise ZeroAmountOrderError
    if payment.gateway_order_id is not None and payment.payment_status in OPEN_PAYMENT_STATUSES:
        return _as_order_result(payment, key_id=gateway.key_id, idempotent_replay=True)
    if payment.payment_status != PaymentStatus.PENDING:
        raise InvalidPaymentTransitionError(
            f"Cannot create a gateway order for a '{payment.payment_status}' payment"
        )

    order = await gateway.create_order(
        amount_minor=to_minor_units(payment.amount),
        currency=payment.currency,
        receipt=payment.invoice_id,
        notes={"payment_id": str(payment.id), "payment_type": payment.payment_type},
    )
    payment.gateway_order_id = order.order_id
    transition(payment, PaymentStatus.PROCESSING, now_utc=now_utc)
    logger.info(
        "payment_order_created",
        payment_id=str(payment.id),
        payment_type=payment.payment_type,
        amount_minor=order.amount_minor,
    )
    return _as_order_result(payment, key_id=gateway.key_id, idempotent_replay=False)


async def create_gateway_order(
    session: AsyncSession,
    *,
    payment_id: UUID,
    user_id: int,
    gateway: PaymentGatewayClient,
    now_utc: datetime,
) -> PaymentOrderResult:
    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        raise PaymentNotFoundError
    if payment.user_id != user_id:
        raise PaymentNotOwnedError
    return await _attach_gateway_order(payment, gateway=gateway, now_utc=now_utc)


async def create_topup(
    session: AsyncSession,
    *,
    user_id: int,
    amount: Decimal | int | str,
    min_topup: Decimal,
    max_topup: Decimal,
    currency: str,
    gateway: PaymentGatewayClient,
    now_utc: datetime,
) -> PaymentOrderResult:
    try:
        topup_amount = to_money(amount)
    except (InvalidOperation, ValueError) as exc:
        raise TopupAmountOutOfRangeError from exc
    if topup_amount < min_topup or topup_amount > max_topup:
        raise TopupAmountOutOfRangeError(
            f"Top-up amount must be between {min_topup} and {max_topup}"
        )

    payment = await PaymentsRepo.create(
        session,
        payment=_build_payment(
            payment_type=PaymentType.WALLET_TOPUP,
            user_id=user_id,
            base_amount=topup_amount,
            discount_amount=ZERO,
            amount=topup_amount,
            currency=currency,
            status=PaymentStatus.PENDING,
            gateway=PaymentGateway.EXTERNAL,
            now_utc=now_utc,
        ),
    )
    return await _attach_gateway_order(payment, gateway=gateway, now_utc=now_utc)
