from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.repo.payments_repo import PaymentsRepo
from app.economy.payments.constants import (
    REGISTRATION_PAYMENT_TYPES,
    PaymentGateway,
    PaymentStatus,
)
from app.economy.payments.state import transition
from app.game.tournaments.release import release_slot

logger = structlog.get_logger(__name__)

_EXPIRABLE_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})


async def close_open_payment(
    session: AsyncSession,
    *,
    payment: Payment,
    target: PaymentStatus,
    now_utc: datetime,
) -> bool:
    """Move a locked open payment to failed/cancelled/expired and free its registration slot."""
    transition(payment, target, now_utc=now_utc)
    if payment.payment_type not in REGISTRATION_PAYMENT_TYPES or payment.tournament_id is None:
        return False
    return await release_slot(
        session,
        tournament_id=payment.tournament_id,
        payment_id=payment.id,
        now_utc=now_utc,
    )


async def expire_stale_payment(
    session: AsyncSession,
    *,
    payment_id: UUID,
    older_than_utc: datetime,
    now_utc: datetime,
) -> bool:
    payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
    if payment is None:
        return False
    if payment.payment_gateway != PaymentGateway.EXTERNAL:
        return False
    if payment.payment_status not in _EXPIRABLE_STATUSES or payment.initiated_at > older_than_utc:
        return False

    slot_released = await close_open_payment(
        session,
        payment=payment,
        target=PaymentStatus.EXPIRED,
        now_utc=now_utc,
    )
    logger.info(
        "payment_expired",
        payment_id=str(payment.id),
        payment_type=payment.payment_type,
        slot_released=slot_released,
    )
    return True
