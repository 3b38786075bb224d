from __future__ import annotations

from enum import StrEnum


class PaymentType(StrEnum):
    INDIVIDUAL = "individual"
    TEAM = "team"
    PRIZE_PAYOUT = "prize_payout"
    REFUND = "refund"
    WALLET_TOPUP = "wallet_topup"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    ON_HOLD = "on_hold"


class PaymentGateway(StrEnum):
    MANUAL = "manual"
    WALLET = "wallet"
    EXTERNAL = "external"
    NONE = "none"


class PaymentMethod(StrEnum):
    UPI = "upi"
    CARD = "card"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    COUPON = "coupon"
    FREE = "free"
    BANK_TRANSFER = "bank_transfer"


class SettlementPath(StrEnum):
    MANUAL = "manual"
    EXTERNAL = "external"
    WALLET = "wallet"


class ManualDecision(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


REGISTRATION_PAYMENT_TYPES = frozenset({PaymentType.INDIVIDUAL, PaymentType.TEAM})
OPEN_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.PENDING, PaymentStatus.PROCESSING, PaymentStatus.ON_HOLD}
)
PAID_PAYMENT_STATUSES = frozenset({PaymentStatus.SUCCESS, PaymentStatus.PARTIALLY_REFUNDED})
REFUNDABLE_PAYMENT_STATUSES = PAID_PAYMENT_STATUSES
INVOICE_PREFIXES: dict[PaymentType, str] = {
    PaymentType.INDIVIDUAL: "INV",
    PaymentType.TEAM: "INV",
    PaymentType.WALLET_TOPUP: "TOP",
    PaymentType.PRIZE_PAYOUT: "POUT",
    PaymentType.REFUND: "RFD",
}


class RefundStatus(StrEnum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


CLOSED_UNPAID_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.EXPIRED}
)
RESERVED_REFUND_STATUSES = frozenset({RefundStatus.PENDING, RefundStatus.PROCESSED})
