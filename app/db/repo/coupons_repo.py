from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.coupons import Coupon, CouponUsage


class CouponsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, coupon: Coupon) -> Coupon:
        session.add(coupon)
        await session.flush()
        return coupon

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, coupon_id: int) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.id == coupon_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_use_count(session: AsyncSession, *, coupon_id: int, user_id: int) -> int:
        stmt = select(CouponUsage.use_count).where(
            CouponUsage.coupon_id == coupon_id,
            CouponUsage.user_id == user_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def increment_user_usage(
        session: AsyncSession,
        *,
        coupon_id: int,
        user_id: int,
        now_utc: datetime,
    ) -> int:
        stmt = (
            pg_insert(CouponUsage)
            .values(coupon_id=coupon_id, user_id=user_id, use_count=1, last_used_at=now_utc)
            .on_conflict_do_update(
                index_elements=[CouponUsage.coupon_id, CouponUsage.user_id],
                set_={
                    "use_count": CouponUsage.use_count + 1,
                    "last_used_at": now_utc,
                },
            )
            .returning(CouponUsage.use_count)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())
