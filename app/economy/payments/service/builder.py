from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from app.db.models.payments import Payment
from app.economy.payments.constants import (
    INVOICE_PREFIXES,
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)


def _build_invoice_id(payment_type: PaymentType, *, now_utc: datetime) -> str:
    return f"{INVOICE_PREFIXES[payment_type]}-{now_utc:%Y%m%d}-{uuid4().hex[:10].upper()}"


def _build_payment(
    *,
    payment_type: PaymentType,
    user_id: int,
    base_amount: Decimal,
    discount_amount: Decimal,
    amount: Decimal,
    currency: str,
    status: PaymentStatus,
    gateway: PaymentGateway,
    now_utc: datetime,
    method: PaymentMethod | None = None,
    tournament_id: UUID | None = None,
    team_id: UUID | None = None,
    paying_captain_id: int | None = None,
    coupon_id: int | None = None,
    coupon_code: str | None = None,
    requires_manual_review: bool = False,
    metadata: dict[str, object] | None = None,
) -> Payment:
    return Payment(
        id=uuid4(),
        payment_type=str(payment_type),
        user_id=user_id,
        tournament_id=tournament_id,
        team_id=team_id,
        paying_captain_id=paying_captain_id,
        base_amount=base_amount,
        discount_amount=discount_amount,
        amount=amount,
        currency=currency,
        payment_status=str(status),
        payment_gateway=str(gateway),
        payment_method=str(method) if method is not None else None,
        coupon_id=coupon_id,
        coupon_code=coupon_code,
        invoice_id=_build_invoice_id(payment_type, now_utc=now_utc),
        requires_manual_review=requires_manual_review,
        is_verified=False,
        metadata_=metadata or {},
        initiated_at=now_utc,
        completed_at=now_utc if status is PaymentStatus.SUCCESS else None,
        version=0,
        created_at=now_utc,
    )
