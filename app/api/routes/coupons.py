from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.core.errors import LedgerError
from app.db.session import SessionLocal
from app.game.tournaments.service import quote_registration_fee

from .caller import resolve_caller
from .errors import as_http_exception

router = APIRouter(tags=["coupons"])


class CouponValidateRequest(BaseModel):
    tournament_id: UUID
    coupon_code: str = Field(default="", max_length=32)


class CouponValidateResponse(BaseModel):
    coupon_code: str | None = None
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    message: str


@router.post("/coupons/validate", response_model=CouponValidateResponse)
async def validate_coupon(payload: CouponValidateRequest, request: Request) -> CouponValidateResponse:
    caller = resolve_caller(request, settings=get_settings())
    try:
        async with SessionLocal.begin() as session:
            quote = await quote_registration_fee(
                session,
                tournament_id=payload.tournament_id,
                user_id=caller.user_id,
                coupon_code=payload.coupon_code,
                now_utc=datetime.now(timezone.utc),
            )
    except LedgerError as exc:
        raise as_http_exception(exc) from exc

    return CouponValidateResponse(
        coupon_code=quote.coupon_code,
        base_amount=quote.base_amount,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
        message=quote.message,
    )
