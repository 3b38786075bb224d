from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import structlog

from app.core.logging import (
    REDACTED,
    bind_job_context,
    bind_request_context,
    redact_sensitive_fields,
    render_ledger_values,
)


def test_payment_and_payout_secrets_are_redacted() -> None:
    event = {
        "event": "withdrawal_requested",
        "signature": "abc123",
        "account_number": "001122334455",
        "upi_id": "player@upi",
        "user_id": 42,
    }

    redacted = redact_sensitive_fields(None, "info", event)

    assert redacted["signature"] == REDACTED
    assert redacted["account_number"] == REDACTED
    assert redacted["upi_id"] == REDACTED
    assert redacted["user_id"] == 42


def test_empty_sensitive_values_are_left_alone() -> None:
    assert redact_sensitive_fields(None, "info", {"upi_id": None})["upi_id"] is None


def test_amounts_and_ids_render_as_strings() -> None:
    payment_id = UUID("6f1b7c55-1d55-4a1f-9a8e-6f76b5a0c001")

    rendered = render_ledger_values(
        None,
        "info",
        {"amount": Decimal("200.50"), "payment_id": payment_id, "rank": 1},
    )

    assert rendered == {
        "amount": "200.50",
        "payment_id": "6f1b7c55-1d55-4a1f-9a8e-6f76b5a0c001",
        "rank": 1,
    }


def test_request_context_keeps_service_identity() -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service="api", app_env="test", caller_id=7)

    bind_request_context(caller_id=42, path="/wallet")

    assert structlog.contextvars.get_contextvars() == {
        "service": "api",
        "app_env": "test",
        "caller_id": 42,
        "path": "/wallet",
    }

    bind_job_context(job_name="audit_wallet_ledgers")

    assert structlog.contextvars.get_contextvars() == {
        "service": "api",
        "app_env": "test",
        "job_name": "audit_wallet_ledgers",
    }
    structlog.contextvars.clear_contextvars()
