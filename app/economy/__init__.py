from app.economy.coupons import CouponService
from app.economy.payments.service import PaymentService
from app.economy.wallet import WalletService

__all__ = [
    "CouponService",
    "PaymentService",
    "WalletService",
]
