from app.core.errors import LedgerError, InvariantViolation, PreconditionFailure


class CouponError(LedgerError):
    pass


class CouponNotFoundError(CouponError, PreconditionFailure):
    """Invalid or inactive coupon code."""


class CouponExpiredError(CouponError, PreconditionFailure):
    """Coupon has expired."""


class CouponNotApplicableError(CouponError, PreconditionFailure):
    """Coupon is not valid for this tournament."""


class CouponNotAllowedForUserError(CouponError, PreconditionFailure):
    """Coupon is not available for this account."""


class CouponNotAllowedForGameIdError(CouponError, PreconditionFailure):
    """Coupon is not available for this game ID."""


class MinimumOrderNotMetError(CouponError, PreconditionFailure):
    """Order amount is below the coupon minimum."""


class CouponUsageLimitReachedError(CouponError, InvariantViolation):
    """Coupon usage limit reached."""


class PerUserUsageLimitReachedError(CouponError, InvariantViolation):
    """You have already used this coupon the maximum number of times."""
