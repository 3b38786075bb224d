from celery import Celery
from celery.signals import worker_process_init

from app.core.config import get_settings
from app.core.logging import configure_logging

settings = get_settings()

RELIABILITY_TASK_PREFIX = "app.workers.tasks.payments_reliability"

celery_app = Celery(
    "tournament_ledger",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.payments_reliability"],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_create_missing_queues=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="Asia/Kolkata",
    enable_utc=True,
    task_routes={
        f"{RELIABILITY_TASK_PREFIX}.audit_wallet_ledgers": {"queue": "q_high"},
        f"{RELIABILITY_TASK_PREFIX}.expire_stale_payment_orders": {"queue": "q_normal"},
        f"{RELIABILITY_TASK_PREFIX}.reconcile_roster_payment_status": {"queue": "q_normal"},
    },
    result_expires=86_400,
)


@worker_process_init.connect
def _configure_worker_logging(**kwargs: object) -> None:  # noqa: ARG001
    configure_logging(settings.log_level, service="worker", app_env=settings.app_env)


@celery_app.task(name="app.workers.celery_app.ping")
def ping() -> str:
    return "pong"
