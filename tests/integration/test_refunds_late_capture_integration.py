from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.db.models.payment_refunds import PaymentRefund
from app.db.models.payments import Payment
from app.db.models.tournament_participants import TournamentParticipant
from app.db.models.wallet_transactions import WalletTransaction
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.session import SessionLocal
from app.economy.payments.constants import SettlementPath
from app.economy.payments.errors import (
    GatewayRejectedError,
    InvalidPaymentTransitionError,
    PaymentNotRefundableError,
)
from app.economy.payments.service import PaymentService
from app.economy.wallet.service import WalletService
from app.game.tournaments.service import register_player
from app.services.payment_gateway import GatewayOrder, GatewayRefund
from app.services.payment_signatures import compute_payment_signature
from tests.integration.ledger_fixtures import (
    CURRENCY,
    create_tournament,
    create_user,
    fund_wallet,
)

UTC = timezone.utc
GATEWAY_SECRET = "integration_gateway_secret"


class _FakeGateway:
    key_id = "rzp_test_integration"

    def __init__(self, *, refund_error: Exception | None = None) -> None:
        self.refund_error = refund_error
        self.orders: list[str] = []
        self.refunds: list[dict[str, object]] = []

    async def create_order(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> GatewayOrder:
        order_id = f"order_{uuid4().hex[:14]}"
        self.orders.append(order_id)
        return GatewayOrder(order_id=order_id, amount_minor=amount_minor, currency=currency)

    async def refund(self, *, gateway_payment_id: str, amount_minor: int, receipt: str) -> GatewayRefund:
        self.refunds.append(
            {"gateway_payment_id": gateway_payment_id, "amount_minor": amount_minor, "receipt": receipt}
        )
        if self.refund_error is not None:
            raise self.refund_error
        return GatewayRefund(refund_id=f"rfnd_{len(self.refunds)}", amount_minor=amount_minor)


async def _register(tournament_id, user_id: int, settlement: SettlementPath):
    async with SessionLocal.begin() as session:
        return await register_player(
            session,
            tournament_id=tournament_id,
            user_id=user_id,
            now_utc=datetime.now(UTC),
            currency=CURRENCY,
            settlement=settlement,
        )


async def _open_gateway_order(payment_id, user_id: int, gateway: _FakeGateway) -> str:
    async with SessionLocal.begin() as session:
        order = await PaymentService.create_gateway_order(
            session,
            payment_id=payment_id,
            user_id=user_id,
            gateway=gateway,
            now_utc=datetime.now(UTC),
        )
    return order.gateway_order_id


async def _verify(user_id: int, gateway_order_id: str, gateway_payment_id: str):
    async with SessionLocal.begin() as session:
        return await PaymentService.verify_gateway_payment(
            session,
            user_id=user_id,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            signature=compute_payment_signature(
                order_id=gateway_order_id,
                payment_id=gateway_payment_id,
                secret=GATEWAY_SECRET,
            ),
            secret=GATEWAY_SECRET,
            now_utc=datetime.now(UTC),
        )


async def _refund(payment_id, amount, gateway: _FakeGateway, request_key: str | None = None):
    return await PaymentService.refund_payment(
        payment_id=payment_id,
        amount=amount,
        reason="Tournament rescheduled",
        admin_user_id=1,
        gateway=gateway,
        now_utc=datetime.now(UTC),
        request_key=request_key,
    )


async def _expire(payment_id) -> bool:
    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        return await PaymentService.expire_stale_payment(
            session,
            payment_id=payment_id,
            older_than_utc=now_utc + timedelta(minutes=1),
            now_utc=now_utc,
        )


@pytest.mark.asyncio
async def test_gateway_verify_confirms_registration_roster() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc)
    user_id = await create_user(70)
    gateway = _FakeGateway()

    registration = await _register(tournament_id, user_id, SettlementPath.EXTERNAL)
    assert registration.roster_payment_status == "pending"
    order_id = await _open_gateway_order(registration.payment_id, user_id, gateway)

    verified = await _verify(user_id, order_id, "pay_roster_1")

    assert verified.payment_status == "success"
    async with SessionLocal.begin() as session:
        participant = await session.get(
            TournamentParticipant,
            {"tournament_id": tournament_id, "user_id": user_id},
        )
    assert participant is not None
    assert participant.payment_status == "paid"


@pytest.mark.asyncio
async def test_verify_after_expiry_credits_wallet_once() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc)
    user_id = await create_user(71)
    gateway = _FakeGateway()

    registration = await _register(tournament_id, user_id, SettlementPath.EXTERNAL)
    order_id = await _open_gateway_order(registration.payment_id, user_id, gateway)
    assert await _expire(registration.payment_id) is True

    first = await _verify(user_id, order_id, "pay_late_1")
    second = await _verify(user_id, order_id, "pay_late_1")

    assert first.payment_status == "expired"
    assert first.idempotent_replay is False
    assert first.wallet_transaction_id is not None
    assert second.idempotent_replay is True
    assert second.wallet_transaction_id == first.wallet_transaction_id

    async with SessionLocal.begin() as session:
        payment = await session.get(Payment, registration.payment_id)
        summary = await WalletService.get_summary(session, user_id=user_id)
        audit = await WalletService.audit(session, user_id=user_id)
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        credits = await session.scalar(
            select(func.count())
            .select_from(WalletTransaction)
            .where(WalletTransaction.idempotency_key == "gateway:pay_late_1")
        )
    assert payment is not None
    assert payment.gateway_payment_id == "pay_late_1"
    assert payment.metadata_["captured_after_close"] is True
    assert summary.balance == Decimal("200.00")
    assert audit.is_consistent
    assert credits == 1
    assert tournament is not None
    assert tournament.current_participants == 0


@pytest.mark.asyncio
async def test_expired_payment_does_not_hand_out_its_old_order() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc)
    user_id = await create_user(72)
    gateway = _FakeGateway()

    registration = await _register(tournament_id, user_id, SettlementPath.EXTERNAL)
    await _open_gateway_order(registration.payment_id, user_id, gateway)
    await _expire(registration.payment_id)

    with pytest.raises(InvalidPaymentTransitionError):
        await _open_gateway_order(registration.payment_id, user_id, gateway)

    assert len(gateway.orders) == 1


@pytest.mark.asyncio
async def test_partial_then_full_wallet_refund_caps_at_remaining() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc, service_fee=Decimal("200"))
    user_id = await create_user(73)
    await fund_wallet(user_id, Decimal("200"), now_utc=now_utc)
    registration = await _register(tournament_id, user_id, SettlementPath.WALLET)
    gateway = _FakeGateway()

    partial = await _refund(registration.payment_id, Decimal("50"), gateway)
    assert partial.refund_amount == Decimal("50.00")
    assert partial.total_refunded == Decimal("50.00")
    assert partial.payment_status == "partially_refunded"

    rest = await _refund(registration.payment_id, Decimal("500"), gateway)
    assert rest.refund_amount == Decimal("150.00")
    assert rest.total_refunded == Decimal("200.00")
    assert rest.payment_status == "refunded"

    with pytest.raises(PaymentNotRefundableError):
        await _refund(registration.payment_id, None, gateway)

    async with SessionLocal.begin() as session:
        summary = await WalletService.get_summary(session, user_id=user_id)
        audit = await WalletService.audit(session, user_id=user_id)
        participant = await session.get(
            TournamentParticipant,
            {"tournament_id": tournament_id, "user_id": user_id},
        )
    assert summary.balance == Decimal("200.00")
    assert audit.is_consistent
    assert participant is not None
    assert participant.payment_status == "refunded"
    assert gateway.refunds == []


@pytest.mark.asyncio
async def test_refund_retry_with_same_request_key_moves_money_once() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc)
    user_id = await create_user(74)
    gateway = _FakeGateway()
    registration = await _register(tournament_id, user_id, SettlementPath.EXTERNAL)
    order_id = await _open_gateway_order(registration.payment_id, user_id, gateway)
    await _verify(user_id, order_id, "pay_refund_1")

    first = await _refund(registration.payment_id, Decimal("80"), gateway, request_key="rq-1")
    retried = await _refund(registration.payment_id, Decimal("80"), gateway, request_key="rq-1")

    assert retried.refund_id == first.refund_id
    assert retried.idempotent_replay is True
    assert retried.total_refunded == Decimal("80.00")
    assert gateway.refunds == [
        {
            "gateway_payment_id": "pay_refund_1",
            "amount_minor": 8000,
            "receipt": str(first.refund_id),
        }
    ]
    async with SessionLocal.begin() as session:
        refund_rows = await session.scalar(select(func.count()).select_from(PaymentRefund))
    assert refund_rows == 1


@pytest.mark.asyncio
async def test_gateway_refund_rejection_leaves_payment_unchanged() -> None:
    now_utc = datetime.now(UTC)
    tournament_id = await create_tournament(now_utc=now_utc)
    user_id = await create_user(75)
    gateway = _FakeGateway(refund_error=GatewayRejectedError("Payment already refunded at gateway"))
    registration = await _register(tournament_id, user_id, SettlementPath.EXTERNAL)
    order_id = await _open_gateway_order(registration.payment_id, user_id, gateway)
    await _verify(user_id, order_id, "pay_refund_2")

    with pytest.raises(GatewayRejectedError):
        await _refund(registration.payment_id, None, gateway)

    async with SessionLocal.begin() as session:
        payment = await session.get(Payment, registration.payment_id)
        refund = await session.scalar(select(PaymentRefund))
        participant = await session.get(
            TournamentParticipant,
            {"tournament_id": tournament_id, "user_id": user_id},
        )
    assert payment is not None
    assert payment.payment_status == "success"
    assert payment.refunded_at is None
    assert refund is not None
    assert refund.status == "failed"
    assert refund.failure_reason == "Payment already refunded at gateway"
    assert participant is not None
    assert participant.payment_status == "paid"

    gateway.refund_error = None
    refunded = await _refund(registration.payment_id, None, gateway)
    assert refunded.refund_amount == Decimal("200.00")
    assert refunded.payment_status == "refunded"
