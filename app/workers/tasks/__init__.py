from app.workers.tasks.payments_reliability import (
    audit_wallet_ledgers,
    expire_stale_payment_orders,
    reconcile_roster_payment_status,
)

__all__ = [
    "audit_wallet_ledgers",
    "expire_stale_payment_orders",
    "reconcile_roster_payment_status",
]
