from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.core.errors import LedgerError
from app.db.session import SessionLocal
from app.economy.payments.constants import SettlementPath
from app.game.tournaments.service import (
    cancel_registration,
    register_player,
    register_squad,
)
from app.game.tournaments.types import RegistrationResult, SquadMemberInput

from .caller import resolve_caller
from .errors import as_http_exception

router = APIRouter(tags=["tournaments"])


class RegisterRequest(BaseModel):
    coupon_code: str | None = Field(default=None, max_length=32)
    settlement: SettlementPath = SettlementPath.MANUAL
    partner_game_id: str | None = Field(default=None, max_length=32)
    partner_in_game_name: str | None = Field(default=None, max_length=64)


class SquadMemberRequest(BaseModel):
    game_id: str = Field(max_length=32)
    in_game_name: str = Field(max_length=64)


class RegisterSquadRequest(BaseModel):
    members: list[SquadMemberRequest] = Field(max_length=8)
    team_name: str | None = Field(default=None, max_length=64)
    team_tag: str | None = Field(default=None, max_length=8)
    coupon_code: str | None = Field(default=None, max_length=32)
    settlement: SettlementPath = SettlementPath.MANUAL


class DiscountResponse(BaseModel):
    base_amount: Decimal
    discount_amount: Decimal
    coupon_code: str | None = None


class RegistrationPaymentResponse(BaseModel):
    id: UUID
    invoice_id: str
    amount: Decimal
    status: str
    gateway: str


class RegistrationResponse(BaseModel):
    tournament_id: UUID
    payable_amount: Decimal
    discount: DiscountResponse
    payment: RegistrationPaymentResponse
    roster_payment_status: str
    current_participants: int
    team_id: UUID | None = None


class CancellationResponse(BaseModel):
    tournament_id: UUID
    payment_id: UUID
    payment_status: str
    slot_released: bool


def _as_registration_response(result: RegistrationResult) -> RegistrationResponse:
    return RegistrationResponse(
        tournament_id=result.tournament_id,
        payable_amount=result.payable_amount,
        discount=DiscountResponse(
            base_amount=result.base_amount,
            discount_amount=result.discount_amount,
            coupon_code=result.coupon_code,
        ),
        payment=RegistrationPaymentResponse(
            id=result.payment_id,
            invoice_id=result.invoice_id,
            amount=result.payable_amount,
            status=result.payment_status,
            gateway=result.payment_gateway,
        ),
        roster_payment_status=result.roster_payment_status,
        current_participants=result.current_participants,
        team_id=result.team_id,
    )


@router.post("/tournaments/{tournament_id}/register", response_model=RegistrationResponse)
async def register(
    tournament_id: UUID,
    payload: RegisterRequest,
    request: Request,
) -> RegistrationResponse:
    settings = get_settings()
    caller = resolve_caller(request, settings=settings)
    try:
        async with SessionLocal.begin() as session:
            result = await register_player(
                session,
                tournament_id=tournament_id,
                user_id=caller.user_id,
                coupon_code=payload.coupon_code,
                settlement=payload.settlement,
                partner_game_id=payload.partner_game_id,
                partner_in_game_name=payload.partner_in_game_name,
                currency=settings.payment_currency,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return _as_registration_response(result)


@router.post("/tournaments/{tournament_id}/register-squad", response_model=RegistrationResponse)
async def register_team(
    tournament_id: UUID,
    payload: RegisterSquadRequest,
    request: Request,
) -> RegistrationResponse:
    settings = get_settings()
    caller = resolve_caller(request, settings=settings)
    try:
        async with SessionLocal.begin() as session:
            result = await register_squad(
                session,
                tournament_id=tournament_id,
                user_id=caller.user_id,
                members=[
                    SquadMemberInput(game_id=member.game_id, in_game_name=member.in_game_name)
                    for member in payload.members
                ],
                team_name=payload.team_name,
                team_tag=payload.team_tag,
                coupon_code=payload.coupon_code,
                settlement=payload.settlement,
                currency=settings.payment_currency,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return _as_registration_response(result)


@router.post(
    "/tournaments/{tournament_id}/registration/cancel",
    response_model=CancellationResponse,
)
async def cancel(tournament_id: UUID, request: Request) -> CancellationResponse:
    caller = resolve_caller(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            result = await cancel_registration(
                session,
                tournament_id=tournament_id,
                user_id=caller.user_id,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc
    return CancellationResponse(
        tournament_id=result.tournament_id,
        payment_id=result.payment_id,
        payment_status=result.payment_status,
        slot_released=result.slot_released,
    )
