from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.core.errors import LedgerError
from app.db.session import SessionLocal
from app.economy.payments.service import PaymentService
from app.economy.payments.types import PaymentOrderResult
from app.services.alerts import send_ops_alert
from app.services.payment_gateway import get_payment_gateway

from .caller import resolve_caller
from .errors import as_http_exception

router = APIRouter(tags=["payments"])


class PaymentOrderResponse(BaseModel):
    payment_id: UUID
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str
    idempotent_replay: bool


class PaymentVerifyRequest(BaseModel):
    gateway_order_id: str = Field(min_length=1, max_length=64)
    gateway_payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1, max_length=128)


class PaymentVerifyResponse(BaseModel):
    payment_id: UUID
    payment_type: str
    payment_status: str
    idempotent_replay: bool
    wallet_transaction_id: int | None = None


class ManualProofRequest(BaseModel):
    transaction_reference: str = Field(min_length=1, max_length=64)


class ManualProofResponse(BaseModel):
    payment_id: UUID
    payment_status: str
    transaction_id: str


class WalletPaymentRequest(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)


class WalletPaymentResponse(BaseModel):
    payment_id: UUID
    payment_status: str
    amount: Decimal
    wallet_balance: Decimal


def as_order_response(result: PaymentOrderResult) -> PaymentOrderResponse:
    return PaymentOrderResponse(
        payment_id=result.payment_id,
        gateway_order_id=result.gateway_order_id,
        amount=result.amount,
        amount_minor=result.amount_minor,
        currency=result.currency,
        key_id=result.key_id,
        idempotent_replay=result.idempotent_replay,
    )


@router.post("/payments/{payment_id}/order", response_model=PaymentOrderResponse)
async def create_order(payment_id: UUID, request: Request) -> PaymentOrderResponse:
    caller = resolve_caller(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.create_gateway_order(
                session,
                payment_id=payment_id,
                user_id=caller.user_id,
                gateway=get_payment_gateway(),
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return as_order_response(result)


@router.post("/payments/verify", response_model=PaymentVerifyResponse)
async def verify_payment(payload: PaymentVerifyRequest, request: Request) -> PaymentVerifyResponse:
    settings = get_settings()
    caller = resolve_caller(request, settings=settings)
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.verify_gateway_payment(
                session,
                user_id=caller.user_id,
                gateway_order_id=payload.gateway_order_id,
                gateway_payment_id=payload.gateway_payment_id,
                signature=payload.signature,
                secret=settings.payment_gateway_key_secret,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    if result.wallet_transaction_id is not None and not result.idempotent_replay:
        await send_ops_alert(
            event="payment_captured_after_close",
            payload={
                "payment_id": str(result.payment_id),
                "payment_type": result.payment_type,
                "payment_status": result.payment_status,
                "wallet_transaction_id": result.wallet_transaction_id,
            },
        )
    return PaymentVerifyResponse(
        payment_id=result.payment_id,
        payment_type=result.payment_type,
        payment_status=result.payment_status,
        idempotent_replay=result.idempotent_replay,
        wallet_transaction_id=result.wallet_transaction_id,
    )


@router.post("/payments/{payment_id}/manual-proof", response_model=ManualProofResponse)
async def submit_manual_proof(
    payment_id: UUID,
    payload: ManualProofRequest,
    request: Request,
) -> ManualProofResponse:
    caller = resolve_caller(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.submit_manual_proof(
                session,
                payment_id=payment_id,
                user_id=caller.user_id,
                transaction_reference=payload.transaction_reference,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return ManualProofResponse(
        payment_id=result.payment_id,
        payment_status=result.payment_status,
        transaction_id=result.transaction_id,
    )


@router.post("/payments/{payment_id}/pay-with-wallet", response_model=WalletPaymentResponse)
async def pay_with_wallet(
    payment_id: UUID,
    payload: WalletPaymentRequest,
    request: Request,
) -> WalletPaymentResponse:
    caller = resolve_caller(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.pay_with_wallet(
                session,
                payment_id=payment_id,
                user_id=caller.user_id,
                expected_amount=payload.amount,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return WalletPaymentResponse(
        payment_id=result.payment_id,
        payment_status=result.payment_status,
        amount=result.amount,
        wallet_balance=result.wallet_balance,
    )
