from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from app.db.models.coupons import Coupon
from app.economy.coupons.errors import (
    CouponExpiredError,
    CouponNotAllowedForGameIdError,
    CouponNotAllowedForUserError,
    CouponNotApplicableError,
    CouponNotFoundError,
    CouponUsageLimitReachedError,
    MinimumOrderNotMetError,
    PerUserUsageLimitReachedError,
)
from app.economy.coupons.types import CouponQuote
from app.economy.money import ZERO, floor_units, to_money

COUPON_APPLIED_MESSAGE = "Coupon applied successfully"
NO_COUPON_MESSAGE = "No coupon applied"


class DiscountType(StrEnum):
    PERCENT = "percent"
    FLAT = "flat"
    FREE = "free"


def normalize_coupon_code(raw_code: str | None) -> str:
    return (raw_code or "").strip().upper()


def compute_discount(*, discount_type: str, discount_value: Decimal, base_amount: Decimal) -> Decimal:
    base = to_money(max(base_amount, ZERO))
    kind = DiscountType(discount_type)
    if kind is DiscountType.FREE:
        return base
    if kind is DiscountType.PERCENT:
        percent = min(max(Decimal(discount_value), Decimal(0)), Decimal(100))
        return min(base, floor_units(base * percent / Decimal(100)))
    return min(base, to_money(max(Decimal(discount_value), Decimal(0))))


def ensure_coupon_eligible(
    coupon: Coupon | None,
    *,
    user_id: int,
    game_id: str | None,
    tournament_id: UUID,
    base_amount: Decimal,
    user_use_count: int,
    now_utc: datetime,
) -> Coupon:
    if coupon is None or not coupon.is_active:
        raise CouponNotFoundError
    if coupon.expires_at is not None and coupon.expires_at < now_utc:
        raise CouponExpiredError
    if coupon.applicable_tournament_ids and tournament_id not in coupon.applicable_tournament_ids:
        raise CouponNotApplicableError
    if coupon.allowed_user_ids and user_id not in coupon.allowed_user_ids:
        raise CouponNotAllowedForUserError
    if coupon.allowed_game_ids and (game_id or "") not in coupon.allowed_game_ids:
        raise CouponNotAllowedForGameIdError
    if base_amount < (coupon.min_order_amount or ZERO):
        raise MinimumOrderNotMetError(
            f"Minimum order amount for this coupon is {to_money(coupon.min_order_amount)}"
        )
    ensure_usage_caps(coupon, user_use_count=user_use_count)
    return coupon


def ensure_usage_caps(coupon: Coupon, *, user_use_count: int) -> None:
    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        raise CouponUsageLimitReachedError
    if coupon.max_uses_per_user is not None and user_use_count >= coupon.max_uses_per_user:
        raise PerUserUsageLimitReachedError


def quote_without_coupon(base_amount: Decimal) -> CouponQuote:
    base = to_money(base_amount)
    return CouponQuote(
        base_amount=base,
        discount_amount=ZERO,
        final_amount=base,
        message=NO_COUPON_MESSAGE,
    )


def quote_with_coupon(coupon: Coupon, *, base_amount: Decimal) -> CouponQuote:
    base = to_money(base_amount)
    discount = compute_discount(
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        base_amount=base,
    )
    return CouponQuote(
        base_amount=base,
        discount_amount=discount,
        final_amount=max(ZERO, base - discount),
        message=COUPON_APPLIED_MESSAGE,
        coupon_id=coupon.id,
        coupon_code=coupon.code,
    )
