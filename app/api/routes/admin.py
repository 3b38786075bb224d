from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings
from app.core.errors import LedgerError
from app.db.session import SessionLocal
from app.economy.payments.constants import ManualDecision
from app.economy.payments.service import PaymentService
from app.economy.wallet.constants import WithdrawalStatus
from app.economy.wallet.service import WalletService
from app.game.tournaments.service import declare_winners
from app.game.tournaments.types import WinnerEntryInput
from app.services.payment_gateway import get_payment_gateway

from .caller import resolve_admin
from .errors import as_http_exception
from .wallet import WalletSummaryResponse

router = APIRouter(prefix="/admin", tags=["admin"])


class ManualDecisionRequest(BaseModel):
    decision: ManualDecision
    transaction_reference: str | None = Field(default=None, max_length=64)
    rejection_reason: str | None = Field(default=None, max_length=256)


class ManualDecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    payment_status: str
    slot_released: bool


class RefundRequest(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)
    reason: str = Field(min_length=1, max_length=256)
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=64)


class RefundResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    refund_id: UUID
    refund_amount: Decimal
    total_refunded: Decimal
    payment_status: str
    idempotent_replay: bool


class WithdrawalResolveRequest(BaseModel):
    decision: Literal["completed", "rejected"]
    transaction_reference: str | None = Field(default=None, max_length=64)
    rejection_reason: str | None = Field(default=None, max_length=256)


class WithdrawalResolveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    withdrawal_id: UUID
    user_id: int
    status: str
    balance: Decimal
    transaction_id: int
    processed_at: datetime


class WalletLockRequest(BaseModel):
    locked: bool
    reason: str | None = Field(default=None, max_length=256)


class WinnerEntryRequest(BaseModel):
    rank: int = Field(ge=1)
    prize_amount: Decimal = Field(gt=0)
    user_id: int | None = Field(default=None, gt=0)
    team_id: UUID | None = None


class DeclareWinnersRequest(BaseModel):
    winners: list[WinnerEntryRequest] = Field(min_length=1, max_length=100)


class WinnerOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    status: str
    prize_amount: Decimal
    receiver_user_id: int | None = None
    wallet_transaction_id: int | None = None
    paid_at: datetime | None = None
    error_code: str | None = None
    error_kind: str | None = None
    message: str | None = None


class DeclareWinnersResponse(BaseModel):
    tournament_id: UUID
    tournament_status: str
    entries: list[WinnerOutcomeResponse]
    failed_ranks: list[int]


@router.post("/payments/{payment_id}/decision", response_model=ManualDecisionResponse)
async def decide_payment(
    payment_id: UUID,
    payload: ManualDecisionRequest,
    request: Request,
) -> ManualDecisionResponse:
    admin = resolve_admin(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.decide_manual_payment(
                session,
                payment_id=payment_id,
                decision=payload.decision,
                admin_user_id=admin.user_id,
                transaction_reference=payload.transaction_reference,
                rejection_reason=payload.rejection_reason,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return ManualDecisionResponse.model_validate(result)


@router.post("/payments/{payment_id}/refund", response_model=RefundResponse)
async def refund_payment(
    payment_id: UUID,
    payload: RefundRequest,
    request: Request,
) -> RefundResponse:
    admin = resolve_admin(request, settings=get_settings())
    try:
        result = await PaymentService.refund_payment(
            payment_id=payment_id,
            amount=payload.amount,
            reason=payload.reason,
            admin_user_id=admin.user_id,
            gateway=get_payment_gateway(),
            now_utc=datetime.now(timezone.utc),
            request_key=payload.idempotency_key,
            session_factory=SessionLocal,
        )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return RefundResponse.model_validate(result)


@router.post("/withdrawals/{withdrawal_id}/resolve", response_model=WithdrawalResolveResponse)
async def resolve_withdrawal(
    withdrawal_id: UUID,
    payload: WithdrawalResolveRequest,
    request: Request,
) -> WithdrawalResolveResponse:
    admin = resolve_admin(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await WalletService.resolve_withdrawal(
                session,
                withdrawal_id=withdrawal_id,
                decision=WithdrawalStatus(payload.decision),
                admin_user_id=admin.user_id,
                transaction_reference=payload.transaction_reference,
                rejection_reason=payload.rejection_reason,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return WithdrawalResolveResponse.model_validate(result)


@router.post("/wallets/{user_id}/lock", response_model=WalletSummaryResponse)
async def lock_wallet(
    user_id: int,
    payload: WalletLockRequest,
    request: Request,
) -> WalletSummaryResponse:
    admin = resolve_admin(request, settings=get_settings())
    async with SessionLocal.begin() as session:
        summary = await WalletService.set_lock(
            session,
            user_id=user_id,
            locked=payload.locked,
            reason=payload.reason,
            admin_user_id=admin.user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return WalletSummaryResponse.model_validate(summary)


@router.post("/tournaments/{tournament_id}/winners", response_model=DeclareWinnersResponse)
async def declare_tournament_winners(
    tournament_id: UUID,
    payload: DeclareWinnersRequest,
    request: Request,
) -> DeclareWinnersResponse:
    settings = get_settings()
    admin = resolve_admin(request, settings=settings)
    try:
        result = await declare_winners(
            tournament_id=tournament_id,
            entries=[
                WinnerEntryInput(
                    rank=winner.rank,
                    prize_amount=winner.prize_amount,
                    user_id=winner.user_id,
                    team_id=winner.team_id,
                )
                for winner in payload.winners
            ],
            admin_user_id=admin.user_id,
            currency=settings.payment_currency,
            now_utc=datetime.now(timezone.utc),
            session_factory=SessionLocal,
        )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return DeclareWinnersResponse(
        tournament_id=result.tournament_id,
        tournament_status=result.tournament_status,
        entries=[WinnerOutcomeResponse.model_validate(entry) for entry in result.entries],
        failed_ranks=result.failed_ranks,
    )
