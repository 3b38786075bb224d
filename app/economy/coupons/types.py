from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(slots=True)
class CouponQuote:
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    message: str
    coupon_id: int | None = None
    coupon_code: str | None = None

    @property
    def has_coupon(self) -> bool:
        return self.coupon_id is not None
