from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.coupons_repo import CouponsRepo
from app.economy.coupons.errors import (
    CouponNotFoundError,
    CouponUsageLimitReachedError,
    PerUserUsageLimitReachedError,
)
from app.economy.coupons.rules import (
    ensure_coupon_eligible,
    ensure_usage_caps,
    normalize_coupon_code,
    quote_with_coupon,
    quote_without_coupon,
)
from app.economy.coupons.types import CouponQuote

logger = structlog.get_logger(__name__)


class CouponService:
    @staticmethod
    async def evaluate(
        session: AsyncSession,
        *,
        code: str | None,
        user_id: int,
        game_id: str | None,
        tournament_id: UUID,
        base_amount: Decimal,
        now_utc: datetime,
    ) -> CouponQuote:
        normalized_code = normalize_coupon_code(code)
        if not normalized_code:
            return quote_without_coupon(base_amount)

        coupon = await CouponsRepo.get_by_code(session, normalized_code)
        user_use_count = 0
        if coupon is not None:
            user_use_count = await CouponsRepo.get_user_use_count(
                session,
                coupon_id=coupon.id,
                user_id=user_id,
            )
        coupon = ensure_coupon_eligible(
            coupon,
            user_id=user_id,
            game_id=game_id,
            tournament_id=tournament_id,
            base_amount=base_amount,
            user_use_count=user_use_count,
            now_utc=now_utc,
        )
        return quote_with_coupon(coupon, base_amount=base_amount)

    @staticmethod
    async def commit_usage(
        session: AsyncSession,
        *,
        coupon_id: int,
        user_id: int,
        now_utc: datetime,
        enforce_caps: bool,
    ) -> int:
        coupon = await CouponsRepo.get_by_id_for_update(session, coupon_id)
        if coupon is None:
            raise CouponNotFoundError

        user_use_count = await CouponsRepo.get_user_use_count(
            session,
            coupon_id=coupon.id,
            user_id=user_id,
        )
        try:
            ensure_usage_caps(coupon, user_use_count=user_use_count)
        except (CouponUsageLimitReachedError, PerUserUsageLimitReachedError) as exc:
            if enforce_caps:
                raise
            logger.warning(
                "coupon_usage_cap_overrun",
                coupon_id=coupon.id,
                user_id=user_id,
                reason=type(exc).__name__,
            )

        coupon.used_count += 1
        coupon.updated_at = now_utc
        new_user_count = await CouponsRepo.increment_user_usage(
            session,
            coupon_id=coupon.id,
            user_id=user_id,
            now_utc=now_utc,
        )
        logger.info(
            "coupon_usage_committed",
            coupon_id=coupon.id,
            user_id=user_id,
            used_count=coupon.used_count,
            user_use_count=new_user_count,
        )
        return coupon.used_count
