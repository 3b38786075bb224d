from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models.payment_refunds import PaymentRefund
from app.db.repo.payment_refunds_repo import PaymentRefundsRepo
from app.db.repo.payments_repo import PaymentsRepo
from app.db.session import SessionLocal
from app.economy.money import ZERO, to_minor_units, to_money
from app.economy.payments.constants import (
    REFUNDABLE_PAYMENT_STATUSES,
    REGISTRATION_PAYMENT_TYPES,
    RESERVED_REFUND_STATUSES,
    PaymentGateway,
    PaymentStatus,
    RefundStatus,
)
from app.economy.payments.errors import (
    GatewayMisconfiguredError,
    GatewayRejectedError,
    PaymentNotFoundError,
    PaymentNotRefundableError,
    RefundAmountInvalidError,
)
from app.economy.payments.state import transition
from app.economy.payments.types import PaymentRefundPlan, PaymentRefundResult
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService
from app.services.payment_gateway import PaymentGatewayClient

from .effects import _sync_roster_status

logger = structlog.get_logger(__name__)


def _refund_amount(*, requested: Decimal | None, remaining: Decimal) -> Decimal:
    if requested is None:
        return remaining
    amount = to_money(requested)
    if amount <= ZERO:
        raise RefundAmountInvalidError
    return min(amount, remaining)


def _as_plan(refund: PaymentRefund, *, payment_gateway: str, gateway_payment_id: str | None) -> PaymentRefundPlan:
    return PaymentRefundPlan(
        payment_id=refund.payment_id,
        refund_id=refund.id,
        amount=refund.amount,
        status=refund.status,
        payment_gateway=payment_gateway,
        gateway_payment_id=gateway_payment_id,
    )


async def reserve_refund(
    session: AsyncSession,
    *,
    payment_id: UUID,
    amount: Decimal | None,
    reason: str,
    admin_user_id: int,
    request_key: str | None,
    now_utc: datetime,
) -> PaymentRefundPlan:
    """Record a pending refund before any money moves.

    Pending refunds count against the refundable remainder, so a retried or
    concurrent request can never reserve the same money twice.
    """
    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        raise PaymentNotFoundError

    if request_key is not None:
        existing = await PaymentRefundsRepo.get_by_request_key(
            session,
            payment_id=payment.id,
            request_key=request_key,
        )
        if existing is not None:
            if existing.status == RefundStatus.FAILED:
                raise PaymentNotRefundableError("This refund request was rejected by the gateway")
            return _as_plan(
                existing,
                payment_gateway=payment.payment_gateway,
                gateway_payment_id=payment.gateway_payment_id,
            )

    if payment.payment_type not in REGISTRATION_PAYMENT_TYPES:
        raise PaymentNotRefundableError("Only registration payments can be refunded")
    if payment.payment_status not in REFUNDABLE_PAYMENT_STATUSES:
        raise PaymentNotRefundableError
    if payment.payment_gateway == PaymentGateway.EXTERNAL and not payment.gateway_payment_id:
        raise PaymentNotRefundableError("Payment has no gateway payment to refund")

    reserved = to_money(
        await PaymentRefundsRepo.sum_amount(
            session,
            payment_id=payment.id,
            statuses=RESERVED_REFUND_STATUSES,
        )
    )
    remaining = payment.amount - reserved
    if remaining <= ZERO:
        raise PaymentNotRefundableError
    refund_amount = _refund_amount(requested=amount, remaining=remaining)

    refund = await PaymentRefundsRepo.create(
        session,
        refund=PaymentRefund(
            id=uuid4(),
            payment_id=payment.id,
            request_key=request_key,
            amount=refund_amount,
            reason=reason,
            status=str(RefundStatus.PENDING),
            initiated_by=admin_user_id,
            requested_at=now_utc,
        ),
    )
    logger.info(
        "payment_refund_reserved",
        payment_id=str(payment.id),
        refund_id=str(refund.id),
        refund_amount=str(refund_amount),
        admin_user_id=admin_user_id,
    )
    return _as_plan(
        refund,
        payment_gateway=payment.payment_gateway,
        gateway_payment_id=payment.gateway_payment_id,
    )


async def complete_refund(
    session: AsyncSession,
    *,
    payment_id: UUID,
    refund_id: UUID,
    gateway_refund_id: str | None,
    now_utc: datetime,
) -> PaymentRefundResult:
    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    refund = await PaymentRefundsRepo.get_by_id_for_update(session, refund_id)
    if payment is None or refund is None or refund.payment_id != payment.id:
        raise PaymentNotFoundError

    previously_processed = to_money(
        await PaymentRefundsRepo.sum_processed(session, payment_id=payment.id)
    )
    if refund.status == RefundStatus.PROCESSED:
        return PaymentRefundResult(
            payment_id=payment.id,
            refund_id=refund.id,
            refund_amount=refund.amount,
            total_refunded=previously_processed,
            payment_status=payment.payment_status,
            idempotent_replay=True,
        )
    if refund.status != RefundStatus.PENDING:
        raise PaymentNotRefundableError("This refund request was rejected by the gateway")

    if payment.payment_gateway == PaymentGateway.EXTERNAL:
        refund.gateway_refund_id = gateway_refund_id
    else:
        credit = await WalletService.credit(
            session,
            user_id=payment.user_id,
            amount=refund.amount,
            kind=TransactionKind.REFUND,
            description=f"Refund for {payment.invoice_id}",
            idempotency_key=f"refund:{refund.id}",
            now_utc=now_utc,
            payment_id=payment.id,
            tournament_id=payment.tournament_id,
            metadata={"reason": refund.reason},
        )
        refund.wallet_transaction_id = credit.transaction_id

    refund.status = str(RefundStatus.PROCESSED)
    refund.processed_at = now_utc

    new_total = previously_processed + refund.amount
    target = (
        PaymentStatus.REFUNDED if new_total >= payment.amount else PaymentStatus.PARTIALLY_REFUNDED
    )
    transition(payment, target, now_utc=now_utc)
    await _sync_roster_status(session, payment=payment, now_utc=now_utc)
    await session.flush()

    logger.info(
        "payment_refunded",
        payment_id=str(payment.id),
        refund_id=str(refund.id),
        refund_amount=str(refund.amount),
        total_refunded=str(new_total),
        payment_gateway=payment.payment_gateway,
        admin_user_id=refund.initiated_by,
    )
    return PaymentRefundResult(
        payment_id=payment.id,
        refund_id=refund.id,
        refund_amount=refund.amount,
        total_refunded=new_total,
        payment_status=payment.payment_status,
    )


async def fail_refund(
    session: AsyncSession,
    *,
    refund_id: UUID,
    failure_reason: str,
    now_utc: datetime,
) -> None:
    refund = await PaymentRefundsRepo.get_by_id_for_update(session, refund_id)
    if refund is None or refund.status != RefundStatus.PENDING:
        return
    refund.status = str(RefundStatus.FAILED)
    refund.failure_reason = failure_reason[:256]
    refund.processed_at = now_utc
    logger.warning("payment_refund_failed", refund_id=str(refund_id), failure_reason=failure_reason)


async def refund_payment(
    *,
    payment_id: UUID,
    amount: Decimal | None,
    reason: str,
    admin_user_id: int,
    gateway: PaymentGatewayClient,
    now_utc: datetime,
    request_key: str | None = None,
    session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
) -> PaymentRefundResult:
    """Refund a registration payment in three committed steps.

    The refund row is committed as pending before the gateway is called with
    the refund id as its receipt. A definitive gateway rejection marks the row
    failed; a timeout leaves it pending so a retry with the same request key
    resumes the same refund instead of issuing a second one.
    """
    async with session_factory.begin() as session:
        plan = await reserve_refund(
            session,
            payment_id=payment_id,
            amount=amount,
            reason=reason,
            admin_user_id=admin_user_id,
            request_key=request_key,
            now_utc=now_utc,
        )

    gateway_refund_id: str | None = None
    if plan.status == RefundStatus.PENDING and plan.payment_gateway == PaymentGateway.EXTERNAL:
        try:
            gateway_refund = await gateway.refund(
                gateway_payment_id=plan.gateway_payment_id or "",
                amount_minor=to_minor_units(plan.amount),
                receipt=str(plan.refund_id),
            )
        except (GatewayRejectedError, GatewayMisconfiguredError) as exc:
            async with session_factory.begin() as session:
                await fail_refund(
                    session,
                    refund_id=plan.refund_id,
                    failure_reason=exc.message,
                    now_utc=now_utc,
                )
            raise
        gateway_refund_id = gateway_refund.refund_id

    async with session_factory.begin() as session:
        return await complete_refund(
            session,
            payment_id=plan.payment_id,
            refund_id=plan.refund_id,
            gateway_refund_id=gateway_refund_id,
            now_utc=now_utc,
        )
