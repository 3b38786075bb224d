from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from app.economy.payments.state import roster_status_for


def find_roster_mismatches(
    pairs: Iterable[tuple[UUID, str, str]],
) -> list[tuple[UUID, str, str]]:
    """Return (payment_id, roster_status, expected_status) for out-of-sync roster rows."""
    mismatches: list[tuple[UUID, str, str]] = []
    for payment_id, roster_status, payment_status in pairs:
        expected = roster_status_for(payment_status)
        if roster_status != expected:
            mismatches.append((payment_id, roster_status, expected))
    return mismatches


def compute_wallet_audit_diff(*, drifted_wallets: int, negative_wallets: int) -> int:
    return max(0, drifted_wallets) + max(0, negative_wallets)


def reconciliation_status(diff_count: int) -> str:
    return "OK" if diff_count == 0 else "DIFF"
