from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.repo.payments_repo import PaymentsRepo
from app.economy.coupons.types import CouponQuote
from app.economy.money import ZERO
from app.economy.payments.constants import (
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    SettlementPath,
)
from app.economy.payments.state import transition
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService

from .builder import _build_payment
from .effects import _record_paid_registration

logger = structlog.get_logger(__name__)


def _zero_amount_gateway(quote: CouponQuote) -> tuple[PaymentGateway, PaymentMethod]:
    if quote.base_amount == ZERO:
        return PaymentGateway.NONE, PaymentMethod.FREE
    return PaymentGateway.MANUAL, PaymentMethod.COUPON


async def create_registration_payment(
    session: AsyncSession,
    *,
    payment_type: PaymentType,
    user_id: int,
    tournament_id: UUID,
    quote: CouponQuote,
    settlement: SettlementPath,
    currency: str,
    now_utc: datetime,
    team_id: UUID | None = None,
) -> Payment:
    common = {
        "payment_type": payment_type,
        "user_id": user_id,
        "tournament_id": tournament_id,
        "team_id": team_id,
        "paying_captain_id": user_id if payment_type is PaymentType.TEAM else None,
        "base_amount": quote.base_amount,
        "discount_amount": quote.discount_amount,
        "amount": quote.final_amount,
        "currency": currency,
        "coupon_id": quote.coupon_id,
        "coupon_code": quote.coupon_code,
        "now_utc": now_utc,
    }

    if quote.final_amount == ZERO:
        gateway, method = _zero_amount_gateway(quote)
        payment = await PaymentsRepo.create(
            session,
            payment=_build_payment(
                **common,
                status=PaymentStatus.SUCCESS,
                gateway=gateway,
                method=method,
            ),
        )
        await _record_paid_registration(
            session,
            payment=payment,
            now_utc=now_utc,
            enforce_coupon_caps=True,
        )
    elif settlement is SettlementPath.WALLET:
        payment = await PaymentsRepo.create(
            session,
            payment=_build_payment(
                **common,
                status=PaymentStatus.PENDING,
                gateway=PaymentGateway.WALLET,
                method=PaymentMethod.WALLET,
            ),
        )
        await WalletService.debit(
            session,
            user_id=user_id,
            amount=payment.amount,
            kind=TransactionKind.TOURNAMENT_FEE,
            description=f"Tournament fee {payment.invoice_id}",
            idempotency_key=f"fee:{payment.id}",
            now_utc=now_utc,
            payment_id=payment.id,
            tournament_id=tournament_id,
        )
        transition(payment, PaymentStatus.SUCCESS, now_utc=now_utc)
        payment.is_verified = True
        await _record_paid_registration(
            session,
            payment=payment,
            now_utc=now_utc,
            enforce_coupon_caps=True,
        )
    elif settlement is SettlementPath.EXTERNAL:
        payment = await PaymentsRepo.create(
            session,
            payment=_build_payment(
                **common,
                status=PaymentStatus.PENDING,
                gateway=PaymentGateway.EXTERNAL,
            ),
        )
    else:
        payment = await PaymentsRepo.create(
            session,
            payment=_build_payment(
                **common,
                status=PaymentStatus.PENDING,
                gateway=PaymentGateway.MANUAL,
                method=PaymentMethod.UPI,
                requires_manual_review=True,
            ),
        )

    logger.info(
        "payment_created",
        payment_id=str(payment.id),
        payment_type=payment.payment_type,
        user_id=user_id,
        amount=str(payment.amount),
        payment_status=payment.payment_status,
        payment_gateway=payment.payment_gateway,
    )
    return payment
