from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

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
from app.economy.coupons.rules import (
    NO_COUPON_MESSAGE,
    compute_discount,
    ensure_coupon_eligible,
    normalize_coupon_code,
    quote_with_coupon,
    quote_without_coupon,
)

UTC = timezone.utc
NOW_UTC = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
TOURNAMENT_ID = uuid4()


def coupon(**overrides: object) -> Coupon:
    fields: dict[str, object] = {
        "id": 7,
        "code": "SAVE50",
        "discount_type": "flat",
        "discount_value": Decimal("50"),
        "applicable_tournament_ids": [],
        "allowed_user_ids": [],
        "allowed_game_ids": [],
        "min_order_amount": Decimal("0"),
        "max_uses": None,
        "max_uses_per_user": 1,
        "used_count": 0,
        "expires_at": None,
        "is_active": True,
        "created_at": NOW_UTC,
    }
    fields.update(overrides)
    return Coupon(**fields)


def eligible(candidate: Coupon | None, **overrides: object) -> Coupon:
    kwargs: dict[str, object] = {
        "user_id": 10,
        "game_id": "1234567890",
        "tournament_id": TOURNAMENT_ID,
        "base_amount": Decimal("100"),
        "user_use_count": 0,
        "now_utc": NOW_UTC,
    }
    kwargs.update(overrides)
    return ensure_coupon_eligible(candidate, **kwargs)


def test_normalize_coupon_code_trims_and_uppercases() -> None:
    assert normalize_coupon_code("  save50 ") == "SAVE50"
    assert normalize_coupon_code(None) == ""


@pytest.mark.parametrize(
    ("discount_type", "discount_value", "base_amount", "expected"),
    [
        ("percent", Decimal("10"), Decimal("200"), Decimal("20.00")),
        ("percent", Decimal("33"), Decimal("99"), Decimal("32.00")),
        ("percent", Decimal("150"), Decimal("80"), Decimal("80.00")),
        ("flat", Decimal("50"), Decimal("100"), Decimal("50.00")),
        ("flat", Decimal("500"), Decimal("100"), Decimal("100.00")),
        ("free", Decimal("0"), Decimal("200"), Decimal("200.00")),
        ("flat", Decimal("50"), Decimal("0"), Decimal("0.00")),
    ],
)
def test_compute_discount_never_exceeds_base(
    discount_type: str,
    discount_value: Decimal,
    base_amount: Decimal,
    expected: Decimal,
) -> None:
    assert (
        compute_discount(
            discount_type=discount_type,
            discount_value=discount_value,
            base_amount=base_amount,
        )
        == expected
    )


def test_quote_without_coupon_keeps_base_amount() -> None:
    quote = quote_without_coupon(Decimal("200"))

    assert quote.final_amount == Decimal("200.00")
    assert quote.discount_amount == Decimal("0.00")
    assert quote.message == NO_COUPON_MESSAGE
    assert quote.has_coupon is False


def test_save50_quote_halves_a_hundred() -> None:
    quote = quote_with_coupon(coupon(), base_amount=Decimal("100"))

    assert quote.final_amount == Decimal("50.00")
    assert quote.discount_amount == Decimal("50.00")
    assert quote.coupon_code == "SAVE50"
    assert quote.has_coupon is True


def test_freeall_quote_is_zero_payable() -> None:
    quote = quote_with_coupon(
        coupon(code="FREEALL", discount_type="free", discount_value=Decimal("0")),
        base_amount=Decimal("200"),
    )

    assert quote.final_amount == Decimal("0.00")
    assert quote.discount_amount == Decimal("200.00")


def test_missing_or_inactive_coupon_is_not_found() -> None:
    with pytest.raises(CouponNotFoundError):
        eligible(None)
    with pytest.raises(CouponNotFoundError):
        eligible(coupon(is_active=False))


def test_expired_coupon_is_rejected() -> None:
    with pytest.raises(CouponExpiredError):
        eligible(coupon(expires_at=NOW_UTC - timedelta(seconds=1)))


def test_coupon_bound_to_other_tournaments_is_not_applicable() -> None:
    with pytest.raises(CouponNotApplicableError):
        eligible(coupon(applicable_tournament_ids=[uuid4()]))


def test_user_and_game_id_allowlists() -> None:
    with pytest.raises(CouponNotAllowedForUserError):
        eligible(coupon(allowed_user_ids=[11]))
    with pytest.raises(CouponNotAllowedForGameIdError):
        eligible(coupon(allowed_game_ids=["9999999999"]))
    with pytest.raises(CouponNotAllowedForGameIdError):
        eligible(coupon(allowed_game_ids=["9999999999"]), game_id=None)

    assert eligible(coupon(allowed_user_ids=[10], allowed_game_ids=["1234567890"])).code == "SAVE50"


def test_minimum_order_reports_threshold() -> None:
    with pytest.raises(MinimumOrderNotMetError) as exc_info:
        eligible(coupon(min_order_amount=Decimal("150")))

    assert "150.00" in str(exc_info.value)


def test_global_cap_checked_before_per_user_cap() -> None:
    with pytest.raises(CouponUsageLimitReachedError):
        eligible(coupon(max_uses=3, used_count=3), user_use_count=1)


def test_save50_second_use_by_same_user_hits_per_user_cap() -> None:
    save50 = coupon()
    assert eligible(save50, user_use_count=0) is save50

    with pytest.raises(PerUserUsageLimitReachedError):
        eligible(save50, user_use_count=1)


def test_save50_on_free_tournament_is_still_checked_against_caps() -> None:
    with pytest.raises(PerUserUsageLimitReachedError):
        eligible(coupon(), base_amount=Decimal("0"), user_use_count=1)
    with pytest.raises(MinimumOrderNotMetError):
        eligible(coupon(min_order_amount=Decimal("1")), base_amount=Decimal("0"))
