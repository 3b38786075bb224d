from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from celery.schedules import crontab

from app.core.config import get_settings
from app.db.repo.payments_repo import PaymentsRepo
from app.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.wallets_repo import WalletsRepo
from app.db.session import SessionLocal
from app.economy.payments.service import PaymentService
from app.economy.wallet.service import WalletService
from app.services.alerts import send_ops_alert
from app.services.payments_reliability import (
    compute_wallet_audit_diff,
    find_roster_mismatches,
    reconciliation_status,
)
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

ROSTER_PAIR_SOURCES = (
    ("participant", TournamentParticipantsRepo),
    ("team", TournamentTeamsRepo),
)


async def expire_stale_payment_orders_async(
    *,
    stale_minutes: int | None = None,
    batch_size: int = 200,
) -> dict[str, int]:
    if stale_minutes is None:
        stale_minutes = get_settings().payment_order_stale_minutes
    now_utc = datetime.now(timezone.utc)
    stale_cutoff = now_utc - timedelta(minutes=stale_minutes)

    async with SessionLocal.begin() as session:
        payment_ids = await PaymentsRepo.list_stale_open_external_ids(
            session,
            older_than_utc=stale_cutoff,
            limit=batch_size,
        )

    summary = {"examined": len(payment_ids), "expired": 0, "skipped": 0, "errors": 0}
    for payment_id in payment_ids:
        try:
            async with SessionLocal.begin() as session:
                expired = await PaymentService.expire_stale_payment(
                    session,
                    payment_id=payment_id,
                    older_than_utc=stale_cutoff,
                    now_utc=now_utc,
                )
        except Exception:
            summary["errors"] += 1
            logger.exception("stale_payment_expiry_failed", payment_id=str(payment_id))
            continue
        summary["expired" if expired else "skipped"] += 1

    if summary["expired"] > 0:
        await send_ops_alert(event="stale_payment_orders_expired", payload=summary)
    logger.info("stale_payment_orders_expiry_finished", **summary)
    return summary


async def _sync_single_roster_entry(payment_id: UUID, *, now_utc: datetime) -> bool:
    async with SessionLocal.begin() as session:
        payment = await PaymentsRepo.get_by_id_for_update(session, payment_id)
        if payment is None:
            return False
        updated = await PaymentService._sync_roster_status(
            session,
            payment=payment,
            now_utc=now_utc,
        )
        return updated > 0


async def reconcile_roster_payment_status_async(*, batch_size: int = 500) -> dict[str, int | str]:
    started_at = datetime.now(timezone.utc)
    summary: dict[str, int] = {"examined": 0, "mismatched": 0, "fixed": 0, "errors": 0}

    for source, repo in ROSTER_PAIR_SOURCES:
        after_payment_id: UUID | None = None
        while True:
            async with SessionLocal.begin() as session:
                pairs = await repo.list_payment_pairs(
                    session,
                    after_payment_id=after_payment_id,
                    limit=batch_size,
                )
            if not pairs:
                break
            after_payment_id = pairs[-1][0]
            summary["examined"] += len(pairs)

            for payment_id, roster_status, expected_status in find_roster_mismatches(pairs):
                summary["mismatched"] += 1
                logger.warning(
                    "roster_payment_status_mismatch",
                    source=source,
                    payment_id=str(payment_id),
                    roster_status=roster_status,
                    expected_status=expected_status,
                )
                try:
                    fixed = await _sync_single_roster_entry(payment_id, now_utc=started_at)
                except Exception:
                    summary["errors"] += 1
                    logger.exception("roster_payment_status_fix_failed", payment_id=str(payment_id))
                    continue
                if fixed:
                    summary["fixed"] += 1

            if len(pairs) < batch_size:
                break

    diff_count = summary["mismatched"]
    status = reconciliation_status(diff_count)
    async with SessionLocal.begin() as session:
        await ReconciliationRunsRepo.create(
            session,
            kind="roster",
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            status=status,
            diff_count=diff_count,
            details=dict(summary),
        )

    result: dict[str, int | str] = {**summary, "diff_count": diff_count, "status": status}
    if status == "DIFF":
        await send_ops_alert(event="roster_payment_status_diff_detected", payload=result)
        logger.warning("roster_payment_status_diff_detected", **result)
    else:
        logger.info("roster_reconciliation_finished", **result)
    return result


async def audit_wallet_ledgers_async(*, batch_size: int = 500) -> dict[str, int | str]:
    started_at = datetime.now(timezone.utc)
    summary: dict[str, int] = {"examined": 0, "drifted": 0, "negative": 0, "errors": 0}
    drifted_user_ids: list[int] = []

    after_user_id: int | None = None
    while True:
        async with SessionLocal.begin() as session:
            user_ids = await WalletsRepo.list_user_ids(
                session,
                after_user_id=after_user_id,
                limit=batch_size,
            )
        if not user_ids:
            break
        after_user_id = user_ids[-1]

        for user_id in user_ids:
            summary["examined"] += 1
            try:
                async with SessionLocal.begin() as session:
                    audit = await WalletService.audit(session, user_id=user_id)
            except Exception:
                summary["errors"] += 1
                logger.exception("wallet_ledger_audit_failed", user_id=user_id)
                continue
            if audit.is_consistent:
                continue

            if audit.drift != 0:
                summary["drifted"] += 1
            if audit.balance < 0:
                summary["negative"] += 1
            drifted_user_ids.append(user_id)
            logger.error(
                "wallet_ledger_audit_mismatch",
                user_id=user_id,
                balance=str(audit.balance),
                expected_balance=str(audit.expected_balance),
                drift=str(audit.drift),
            )

        if len(user_ids) < batch_size:
            break

    diff_count = compute_wallet_audit_diff(
        drifted_wallets=summary["drifted"],
        negative_wallets=summary["negative"],
    )
    status = reconciliation_status(diff_count)
    async with SessionLocal.begin() as session:
        await ReconciliationRunsRepo.create(
            session,
            kind="wallet_ledger",
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            status=status,
            diff_count=diff_count,
            details={**summary, "user_ids": drifted_user_ids[:100]},
        )

    result: dict[str, int | str] = {**summary, "diff_count": diff_count, "status": status}
    if status == "DIFF":
        await send_ops_alert(
            event="wallet_ledger_drift_detected",
            payload={**result, "user_ids": drifted_user_ids[:20]},
        )
    logger.info("wallet_ledger_audit_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.payments_reliability.expire_stale_payment_orders")
def expire_stale_payment_orders(
    stale_minutes: int | None = None,
    batch_size: int = 200,
) -> dict[str, int]:
    return run_async_job(
        expire_stale_payment_orders_async(stale_minutes=stale_minutes, batch_size=batch_size),
        job_name="expire_stale_payment_orders",
    )


@celery_app.task(name="app.workers.tasks.payments_reliability.reconcile_roster_payment_status")
def reconcile_roster_payment_status(batch_size: int = 500) -> dict[str, int | str]:
    return run_async_job(
        reconcile_roster_payment_status_async(batch_size=batch_size),
        job_name="reconcile_roster_payment_status",
    )


@celery_app.task(name="app.workers.tasks.payments_reliability.audit_wallet_ledgers")
def audit_wallet_ledgers(batch_size: int = 500) -> dict[str, int | str]:
    return run_async_job(
        audit_wallet_ledgers_async(batch_size=batch_size),
        job_name="audit_wallet_ledgers",
    )


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "expire-stale-payment-orders-every-5-minutes": {
            "task": "app.workers.tasks.payments_reliability.expire_stale_payment_orders",
            "schedule": 300.0,
            "options": {"queue": "q_normal"},
        },
        "reconcile-roster-payment-status-every-15-minutes": {
            "task": "app.workers.tasks.payments_reliability.reconcile_roster_payment_status",
            "schedule": 900.0,
            "options": {"queue": "q_normal"},
        },
        "audit-wallet-ledgers-daily-0330": {
            "task": "app.workers.tasks.payments_reliability.audit_wallet_ledgers",
            "schedule": crontab(hour=3, minute=30),
            "options": {"queue": "q_high"},
        },
    }
)
