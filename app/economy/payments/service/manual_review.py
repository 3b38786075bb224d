from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.payments_repo import PaymentsRepo
from app.economy.payments.constants import ManualDecision, PaymentStatus
from app.economy.payments.errors import (
    ManualReviewNotRequiredError,
    PaymentNotFoundError,
    PaymentNotOwnedError,
    RejectionReasonRequiredError,
    TransactionReferenceRequiredError,
)
from app.economy.payments.state import transition
from app.economy.payments.types import ManualDecisionResult, ManualProofResult

from .effects import _apply_success_effects
from .lifecycle import close_open_payment

logger = structlog.get_logger(__name__)


async def submit_manual_proof(
    session: AsyncSession,
    *,
    payment_id: UUID,
    user_id: int,
    transaction_reference: str,
    now_utc: datetime,
) -> ManualProofResult:
    reference = (transaction_reference or "").strip()
    if not reference:
        raise TransactionReferenceRequiredError

    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        raise PaymentNotFoundError
    if payment.user_id != user_id:
        raise PaymentNotOwnedError
    if not payment.requires_manual_review:
        raise ManualReviewNotRequiredError

    if payment.payment_status == PaymentStatus.ON_HOLD:
        payment.version += 1
        payment.updated_at = now_utc
    else:
        transition(payment, PaymentStatus.ON_HOLD, now_utc=now_utc)
    payment.transaction_id = reference

    logger.info("manual_payment_proof_submitted", payment_id=str(payment.id), user_id=user_id)
    return ManualProofResult(
        payment_id=payment.id,
        payment_status=payment.payment_status,
        transaction_id=reference,
    )


async def decide_manual_payment(
    session: AsyncSession,
    *,
    payment_id: UUID,
    decision: ManualDecision,
    admin_user_id: int,
    now_utc: datetime,
    transaction_reference: str | None = None,
    rejection_reason: str | None = None,
) -> ManualDecisionResult:
    reference = (transaction_reference or "").strip()
    reason = (rejection_reason or "").strip()
    if decision is ManualDecision.APPROVE and not reference:
        raise TransactionReferenceRequiredError
    if decision is ManualDecision.REJECT and not reason:
        raise RejectionReasonRequiredError

    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        raise PaymentNotFoundError
    if not payment.requires_manual_review:
        raise ManualReviewNotRequiredError

    slot_released = False
    if decision is ManualDecision.APPROVE:
        transition(payment, PaymentStatus.SUCCESS, now_utc=now_utc)
        payment.transaction_id = reference
        payment.is_verified = True
        payment.verified_by = admin_user_id
        payment.verified_at = now_utc
        await _apply_success_effects(
            session,
            payment=payment,
            now_utc=now_utc,
            enforce_coupon_caps=False,
        )
    else:
        payment.internal_notes = reason
        payment.metadata_ = {**(payment.metadata_ or {}), "rejection_reason": reason}
        payment.verified_by = admin_user_id
        slot_released = await close_open_payment(
            session,
            payment=payment,
            target=PaymentStatus.FAILED,
            now_utc=now_utc,
        )

    logger.info(
        "manual_payment_decided",
        payment_id=str(payment.id),
        decision=str(decision),
        admin_user_id=admin_user_id,
        slot_released=slot_released,
    )
    return ManualDecisionResult(
        payment_id=payment.id,
        payment_status=payment.payment_status,
        slot_released=slot_released,
    )
