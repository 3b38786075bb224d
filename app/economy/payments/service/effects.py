from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payments import Payment
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.coupons.service import CouponService
from app.economy.payments.constants import PaymentType
from app.economy.payments.state import roster_status_for
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService

SuccessHandler = Callable[..., Awaitable[None]]


async def _sync_roster_status(session: AsyncSession, *, payment: Payment, now_utc: datetime) -> int:
    roster_status = roster_status_for(payment.payment_status)
    if payment.payment_type == PaymentType.TEAM:
        return await TournamentTeamsRepo.set_payment_status_by_payment(
            session,
            payment_id=payment.id,
            payment_status=roster_status,
            now_utc=now_utc,
        )
    return await TournamentParticipantsRepo.set_payment_status_by_payment(
        session,
        payment_id=payment.id,
        payment_status=roster_status,
        now_utc=now_utc,
    )


async def _commit_coupon_usage(
    session: AsyncSession,
    *,
    payment: Payment,
    now_utc: datetime,
    enforce_coupon_caps: bool,
) -> None:
    if payment.coupon_id is None:
        return
    await CouponService.commit_usage(
        session,
        coupon_id=payment.coupon_id,
        user_id=payment.user_id,
        now_utc=now_utc,
        enforce_caps=enforce_coupon_caps,
    )


async def _record_paid_registration(
    session: AsyncSession,
    *,
    payment: Payment,
    now_utc: datetime,
    enforce_coupon_caps: bool,
) -> None:
    await _commit_coupon_usage(
        session,
        payment=payment,
        now_utc=now_utc,
        enforce_coupon_caps=enforce_coupon_caps,
    )
    await UsersRepo.increment_tournaments_played(session, user_id=payment.user_id, now_utc=now_utc)


async def _on_registration_success(
    session: AsyncSession,
    *,
    payment: Payment,
    now_utc: datetime,
    enforce_coupon_caps: bool,
) -> None:
    await _sync_roster_status(session, payment=payment, now_utc=now_utc)
    await _record_paid_registration(
        session,
        payment=payment,
        now_utc=now_utc,
        enforce_coupon_caps=enforce_coupon_caps,
    )


async def _on_topup_success(
    session: AsyncSession,
    *,
    payment: Payment,
    now_utc: datetime,
    enforce_coupon_caps: bool,  # noqa: ARG001
) -> None:
    await WalletService.credit(
        session,
        user_id=payment.user_id,
        amount=payment.amount,
        kind=TransactionKind.DEPOSIT,
        description=f"Wallet top-up {payment.invoice_id}",
        idempotency_key=f"topup:{payment.id}",
        now_utc=now_utc,
        payment_id=payment.id,
        metadata={
            "gateway_order_id": payment.gateway_order_id,
            "gateway_payment_id": payment.gateway_payment_id,
        },
    )


async def _no_follow_up(
    session: AsyncSession,  # noqa: ARG001
    *,
    payment: Payment,  # noqa: ARG001
    now_utc: datetime,  # noqa: ARG001
    enforce_coupon_caps: bool,  # noqa: ARG001
) -> None:
    return None


SUCCESS_HANDLERS: dict[PaymentType, SuccessHandler] = {
    PaymentType.INDIVIDUAL: _on_registration_success,
    PaymentType.TEAM: _on_registration_success,
    PaymentType.WALLET_TOPUP: _on_topup_success,
    PaymentType.PRIZE_PAYOUT: _no_follow_up,
    PaymentType.REFUND: _no_follow_up,
}


async def _apply_success_effects(
    session: AsyncSession,
    *,
    payment: Payment,
    now_utc: datetime,
    enforce_coupon_caps: bool,
) -> None:
    handler = SUCCESS_HANDLERS[PaymentType(payment.payment_type)]
    await handler(
        session,
        payment=payment,
        now_utc=now_utc,
        enforce_coupon_caps=enforce_coupon_caps,
    )
