from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings
from app.core.errors import LedgerError
from app.db.session import SessionLocal
from app.economy.payments.service import PaymentService
from app.economy.wallet.constants import WithdrawalMethod
from app.economy.wallet.service import WalletService
from app.services.payment_gateway import get_payment_gateway

from .caller import resolve_caller
from .errors import as_http_exception
from .payments import PaymentOrderResponse, as_order_response

router = APIRouter(tags=["wallet"])


class WalletSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    balance: Decimal
    pending_withdrawals: Decimal
    open_withdrawal_count: int
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_earned: Decimal
    total_spent: Decimal
    is_locked: bool
    lock_reason: str | None = None


class TopupRequest(BaseModel):
    amount: Decimal = Field(gt=0)


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    method: WithdrawalMethod
    account_details: dict[str, str] = Field(default_factory=dict)


class WithdrawalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    withdrawal_id: UUID
    amount: Decimal
    status: str
    balance: Decimal


@router.get("/wallet", response_model=WalletSummaryResponse)
async def get_wallet(request: Request) -> WalletSummaryResponse:
    caller = resolve_caller(request, settings=get_settings())
    async with SessionLocal.begin() as session:
        summary = await WalletService.get_summary(session, user_id=caller.user_id)
    return WalletSummaryResponse.model_validate(summary)


@router.post("/wallet/topup", response_model=PaymentOrderResponse)
async def topup(payload: TopupRequest, request: Request) -> PaymentOrderResponse:
    settings = get_settings()
    caller = resolve_caller(request, settings=settings)
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.create_topup(
                session,
                user_id=caller.user_id,
                amount=payload.amount,
                min_topup=settings.wallet_min_topup,
                max_topup=settings.wallet_max_topup,
                currency=settings.payment_currency,
                gateway=get_payment_gateway(),
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return as_order_response(result)


@router.post("/wallet/withdrawals", response_model=WithdrawalResponse)
async def request_withdrawal(payload: WithdrawalRequest, request: Request) -> WithdrawalResponse:
    settings = get_settings()
    caller = resolve_caller(request, settings=settings)
    try:
        async with SessionLocal.begin() as session:
            result = await WalletService.request_withdrawal(
                session,
                user_id=caller.user_id,
                amount=payload.amount,
                method=payload.method,
                account_details=payload.account_details,
                min_withdrawal=settings.wallet_min_withdrawal,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return WithdrawalResponse.model_validate(result)
