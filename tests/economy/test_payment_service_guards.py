from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.db.models.payments import Payment
from app.economy.payments.errors import (
    GatewayRejectedError,
    GatewayUnavailableError,
    InvalidPaymentTransitionError,
    PaymentAlreadySettledError,
)
from app.economy.payments.service import order as order_module
from app.economy.payments.service import refund as refund_module
from app.economy.payments.service import verify as verify_module
from app.economy.payments.types import PaymentRefundPlan, PaymentRefundResult
from app.economy.wallet.types import WalletTransactionResult
from app.services.payment_gateway import GatewayOrder, GatewayRefund
from app.services.payment_signatures import compute_payment_signature

UTC = timezone.utc
NOW_UTC = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
SECRET = "gateway_secret"


def _payment(**overrides: object) -> Payment:
    fields: dict[str, object] = {
        "id": uuid4(),
        "payment_type": "individual",
        "user_id": 42,
        "tournament_id": uuid4(),
        "base_amount": Decimal("200.00"),
        "discount_amount": Decimal("0.00"),
        "amount": Decimal("200.00"),
        "currency": "INR",
        "payment_status": "expired",
        "payment_gateway": "external",
        "gateway_order_id": "order_late_1",
        "gateway_payment_id": None,
        "invoice_id": "INV-20260301-LATE000001",
        "is_verified": False,
        "metadata_": {},
        "version": 3,
        "initiated_at": NOW_UTC,
        "created_at": NOW_UTC,
    }
    fields.update(overrides)
    return Payment(**fields)


def _patch_verify(
    monkeypatch: pytest.MonkeyPatch,
    payment: Payment,
    *,
    credit_replay: bool = False,
) -> list[dict[str, object]]:
    credits: list[dict[str, object]] = []

    async def fake_get_by_order(session, gateway_order_id):  # noqa: ARG001
        return payment

    async def fake_credit(session, **kwargs):  # noqa: ARG001
        credits.append(kwargs)
        return WalletTransactionResult(
            transaction_id=901,
            user_id=kwargs["user_id"],
            amount=kwargs["amount"],
            balance_after=kwargs["amount"],
            idempotent_replay=credit_replay,
        )

    async def fail_success_effects(session, **kwargs):  # noqa: ARG001
        raise AssertionError("success effects must not run for a closed payment")

    monkeypatch.setattr(
        verify_module,
        "PaymentsRepo",
        SimpleNamespace(get_by_gateway_order_id_for_update=fake_get_by_order),
    )
    monkeypatch.setattr(verify_module, "WalletService", SimpleNamespace(credit=fake_credit))
    monkeypatch.setattr(verify_module, "_apply_success_effects", fail_success_effects)
    return credits


async def _verify(payment_id: str = "pay_late_1"):
    return await verify_module.verify_gateway_payment(
        object(),
        user_id=42,
        gateway_order_id="order_late_1",
        gateway_payment_id=payment_id,
        signature=compute_payment_signature(
            order_id="order_late_1",
            payment_id=payment_id,
            secret=SECRET,
        ),
        secret=SECRET,
        now_utc=NOW_UTC,
    )


@pytest.mark.asyncio
async def test_verify_after_expiry_credits_payer_wallet_and_records_capture(monkeypatch) -> None:
    payment = _payment()
    credits = _patch_verify(monkeypatch, payment)

    result = await _verify()

    assert result.payment_status == "expired"
    assert result.idempotent_replay is False
    assert result.wallet_transaction_id == 901
    assert payment.gateway_payment_id == "pay_late_1"
    assert payment.is_verified is True
    assert payment.metadata_["captured_after_close"] is True
    assert len(credits) == 1
    assert credits[0]["amount"] == Decimal("200.00")
    assert credits[0]["kind"] == "refund"
    assert credits[0]["idempotency_key"] == "gateway:pay_late_1"


@pytest.mark.asyncio
async def test_late_topup_capture_is_credited_as_deposit(monkeypatch) -> None:
    payment = _payment(payment_type="wallet_topup", tournament_id=None, payment_status="cancelled")
    credits = _patch_verify(monkeypatch, payment)

    await _verify()

    assert credits[0]["kind"] == "deposit"


@pytest.mark.asyncio
async def test_repeated_late_capture_is_a_replay(monkeypatch) -> None:
    payment = _payment(gateway_payment_id="pay_late_1", is_verified=True)
    credits = _patch_verify(monkeypatch, payment, credit_replay=True)

    result = await _verify()

    assert result.idempotent_replay is True
    assert credits[0]["idempotency_key"] == "gateway:pay_late_1"


@pytest.mark.asyncio
async def test_second_capture_id_on_closed_payment_is_rejected(monkeypatch) -> None:
    payment = _payment(gateway_payment_id="pay_late_1", is_verified=True)
    credits = _patch_verify(monkeypatch, payment)

    with pytest.raises(PaymentAlreadySettledError):
        await _verify("pay_other")

    assert credits == []


class _OrderGateway:
    key_id = "rzp_test_key"

    def __init__(self) -> None:
        self.calls = 0

    async def create_order(self, *, amount_minor, currency, receipt, notes):  # noqa: ARG002
        self.calls += 1
        return GatewayOrder(order_id="order_new", amount_minor=amount_minor, currency=currency)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["expired", "cancelled", "failed"])
async def test_closed_payment_never_replays_its_old_order(status: str) -> None:
    gateway = _OrderGateway()
    payment = _payment(payment_status=status, gateway_order_id="order_1")

    with pytest.raises(InvalidPaymentTransitionError):
        await order_module._attach_gateway_order(payment, gateway=gateway, now_utc=NOW_UTC)

    assert gateway.calls == 0


@pytest.mark.asyncio
async def test_processing_payment_replays_existing_order() -> None:
    gateway = _OrderGateway()
    payment = _payment(payment_status="processing", gateway_order_id="order_1")

    result = await order_module._attach_gateway_order(payment, gateway=gateway, now_utc=NOW_UTC)

    assert result.gateway_order_id == "order_1"
    assert result.idempotent_replay is True
    assert gateway.calls == 0


class _Transaction:
    def __init__(self, log: list[str]) -> None:
        self._log = log

    async def __aenter__(self) -> object:
        self._log.append("begin")
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._log.append("rollback" if exc_type else "commit")
        return False


class _SessionFactory:
    def __init__(self) -> None:
        self.log: list[str] = []

    def begin(self) -> _Transaction:
        return _Transaction(self.log)


class _RefundGateway:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, object]] = []

    async def refund(self, *, gateway_payment_id: str, amount_minor: int, receipt: str) -> GatewayRefund:
        self.calls.append(
            {"gateway_payment_id": gateway_payment_id, "amount_minor": amount_minor, "receipt": receipt}
        )
        if self.error is not None:
            raise self.error
        return GatewayRefund(refund_id="rfnd_1", amount_minor=amount_minor)


def _patch_refund_steps(
    monkeypatch: pytest.MonkeyPatch,
    plan: PaymentRefundPlan,
) -> dict[str, list[dict[str, object]]]:
    calls: dict[str, list[dict[str, object]]] = {"complete": [], "fail": []}

    async def fake_reserve(session, **kwargs):  # noqa: ARG001
        return plan

    async def fake_complete(session, **kwargs):  # noqa: ARG001
        calls["complete"].append(kwargs)
        return PaymentRefundResult(
            payment_id=plan.payment_id,
            refund_id=plan.refund_id,
            refund_amount=plan.amount,
            total_refunded=plan.amount,
            payment_status="partially_refunded",
        )

    async def fake_fail(session, **kwargs):  # noqa: ARG001
        calls["fail"].append(kwargs)

    monkeypatch.setattr(refund_module, "reserve_refund", fake_reserve)
    monkeypatch.setattr(refund_module, "complete_refund", fake_complete)
    monkeypatch.setattr(refund_module, "fail_refund", fake_fail)
    return calls


def _plan(**overrides: object) -> PaymentRefundPlan:
    fields: dict[str, object] = {
        "payment_id": uuid4(),
        "refund_id": uuid4(),
        "amount": Decimal("50.00"),
        "status": "pending",
        "payment_gateway": "external",
        "gateway_payment_id": "pay_9",
    }
    fields.update(overrides)
    return PaymentRefundPlan(**fields)


async def _refund(gateway: _RefundGateway, factory: _SessionFactory) -> PaymentRefundResult:
    return await refund_module.refund_payment(
        payment_id=uuid4(),
        amount=Decimal("50"),
        reason="Match cancelled",
        admin_user_id=1,
        gateway=gateway,
        now_utc=NOW_UTC,
        request_key="refund-req-1",
        session_factory=factory,
    )


@pytest.mark.asyncio
async def test_gateway_refund_runs_between_committed_reserve_and_complete(monkeypatch) -> None:
    plan = _plan()
    calls = _patch_refund_steps(monkeypatch, plan)
    gateway = _RefundGateway()
    factory = _SessionFactory()

    result = await _refund(gateway, factory)

    assert result.refund_amount == Decimal("50.00")
    assert gateway.calls == [
        {"gateway_payment_id": "pay_9", "amount_minor": 5000, "receipt": str(plan.refund_id)}
    ]
    assert calls["complete"][0]["gateway_refund_id"] == "rfnd_1"
    assert calls["fail"] == []
    assert factory.log == ["begin", "commit", "begin", "commit"]


@pytest.mark.asyncio
async def test_gateway_rejection_marks_refund_failed(monkeypatch) -> None:
    plan = _plan()
    calls = _patch_refund_steps(monkeypatch, plan)
    gateway = _RefundGateway(GatewayRejectedError("Refund amount exceeds captured amount"))

    with pytest.raises(GatewayRejectedError):
        await _refund(gateway, _SessionFactory())

    assert calls["complete"] == []
    assert calls["fail"][0]["refund_id"] == plan.refund_id
    assert calls["fail"][0]["failure_reason"] == "Refund amount exceeds captured amount"


@pytest.mark.asyncio
async def test_gateway_timeout_leaves_refund_pending_for_retry(monkeypatch) -> None:
    calls = _patch_refund_steps(monkeypatch, _plan())

    with pytest.raises(GatewayUnavailableError):
        await _refund(_RefundGateway(GatewayUnavailableError()), _SessionFactory())

    assert calls["complete"] == []
    assert calls["fail"] == []


@pytest.mark.asyncio
async def test_already_processed_refund_skips_gateway(monkeypatch) -> None:
    calls = _patch_refund_steps(monkeypatch, _plan(status="processed"))
    gateway = _RefundGateway()

    await _refund(gateway, _SessionFactory())

    assert gateway.calls == []
    assert len(calls["complete"]) == 1


@pytest.mark.asyncio
async def test_wallet_refund_never_calls_gateway(monkeypatch) -> None:
    calls = _patch_refund_steps(monkeypatch, _plan(payment_gateway="wallet", gateway_payment_id=None))
    gateway = _RefundGateway()

    await _refund(gateway, _SessionFactory())

    assert gateway.calls == []
    assert calls["complete"][0]["gateway_refund_id"] is None
