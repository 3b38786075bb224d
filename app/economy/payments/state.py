from __future__ import annotations

from datetime import datetime

from app.db.models.payments import Payment
from app.economy.payments.constants import PaymentStatus
from app.economy.payments.errors import InvalidPaymentTransitionError

ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {
            PaymentStatus.PROCESSING,
            PaymentStatus.SUCCESS,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
            PaymentStatus.EXPIRED,
            PaymentStatus.ON_HOLD,
        }
    ),
    PaymentStatus.PROCESSING: frozenset(
        {
            PaymentStatus.SUCCESS,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
            PaymentStatus.EXPIRED,
        }
    ),
    PaymentStatus.ON_HOLD: frozenset(
        {PaymentStatus.SUCCESS, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.SUCCESS: frozenset({PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}),
    PaymentStatus.PARTIALLY_REFUNDED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.EXPIRED: frozenset(),
}

TERMINAL_PAYMENT_STATUSES = frozenset(
    {
        PaymentStatus.SUCCESS,
        PaymentStatus.FAILED,
        PaymentStatus.REFUNDED,
        PaymentStatus.CANCELLED,
        PaymentStatus.EXPIRED,
    }
)

_TIMESTAMP_FIELD_BY_STATUS: dict[PaymentStatus, str] = {
    PaymentStatus.PROCESSING: "processing_at",
    PaymentStatus.SUCCESS: "completed_at",
    PaymentStatus.FAILED: "failed_at",
    PaymentStatus.PARTIALLY_REFUNDED: "refunded_at",
    PaymentStatus.REFUNDED: "refunded_at",
    PaymentStatus.CANCELLED: "cancelled_at",
    PaymentStatus.EXPIRED: "cancelled_at",
}

_ROSTER_STATUS_BY_PAYMENT_STATUS: dict[PaymentStatus, str] = {
    PaymentStatus.PENDING: "pending",
    PaymentStatus.PROCESSING: "pending",
    PaymentStatus.ON_HOLD: "pending",
    PaymentStatus.SUCCESS: "paid",
    PaymentStatus.PARTIALLY_REFUNDED: "paid",
    PaymentStatus.REFUNDED: "refunded",
    PaymentStatus.FAILED: "failed",
    PaymentStatus.CANCELLED: "failed",
    PaymentStatus.EXPIRED: "failed",
}


def can_transition(current: PaymentStatus | str, target: PaymentStatus | str) -> bool:
    return PaymentStatus(target) in ALLOWED_TRANSITIONS[PaymentStatus(current)]


def is_terminal(status: PaymentStatus | str) -> bool:
    return PaymentStatus(status) in TERMINAL_PAYMENT_STATUSES


def roster_status_for(status: PaymentStatus | str) -> str:
    return _ROSTER_STATUS_BY_PAYMENT_STATUS[PaymentStatus(status)]


def transition(payment: Payment, target: PaymentStatus, *, now_utc: datetime) -> None:
    current = PaymentStatus(payment.payment_status)
    if not can_transition(current, target):
        raise InvalidPaymentTransitionError(
            f"Payment cannot move from '{current}' to '{target}'"
        )

    payment.payment_status = str(target)
    timestamp_field = _TIMESTAMP_FIELD_BY_STATUS.get(target)
    if timestamp_field is not None:
        setattr(payment, timestamp_field, now_utc)
    payment.version = (payment.version or 0) + 1
    payment.updated_at = now_utc
