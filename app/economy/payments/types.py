from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class PaymentOrderResult:
    payment_id: UUID
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str
    idempotent_replay: bool


@dataclass(slots=True)
class PaymentVerifyResult:
    payment_id: UUID
    payment_type: str
    payment_status: str
    idempotent_replay: bool
    wallet_transaction_id: int | None = None


@dataclass(slots=True)
class ManualDecisionResult:
    payment_id: UUID
    payment_status: str
    slot_released: bool


@dataclass(slots=True)
class PaymentRefundResult:
    payment_id: UUID
    refund_id: UUID
    refund_amount: Decimal
    total_refunded: Decimal
    payment_status: str
    idempotent_replay: bool = False


@dataclass(slots=True)
class PaymentRefundPlan:
    payment_id: UUID
    refund_id: UUID
    amount: Decimal
    status: str
    payment_gateway: str
    gateway_payment_id: str | None


@dataclass(slots=True)
class WalletPaymentResult:
    payment_id: UUID
    payment_status: str
    amount: Decimal
    wallet_balance: Decimal


@dataclass(slots=True)
class ManualProofResult:
    payment_id: UUID
    payment_status: str
    transaction_id: str
