from app.economy.coupons.service import CouponService

__all__ = ["CouponService"]
