import logging
import sys
from collections.abc import MutableMapping
from decimal import Decimal
from uuid import UUID

import structlog

REDACTED = "[redacted]"
SENSITIVE_LOG_KEYS = frozenset(
    {
        "signature",
        "gateway_signature",
        "account_number",
        "ifsc_code",
        "upi_id",
        "internal_token",
    }
)


def redact_sensitive_fields(
    logger: object,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    for key in SENSITIVE_LOG_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def render_ledger_values(
    logger: object,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    # Decimal amounts render as strings, never floats
    for key, value in event_dict.items():
        if isinstance(value, (Decimal, UUID)):
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    *,
    service: str = "api",
    app_env: str = "dev",
) -> None:
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            redact_sensitive_fields,
            render_ledger_values,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service, app_env=app_env)


def bind_request_context(**values: object) -> None:
    preserved = {
        key: value
        for key, value in structlog.contextvars.get_contextvars().items()
        if key in {"service", "app_env"}
    }
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**preserved, **values)


def bind_job_context(*, job_name: str) -> None:
    bind_request_context(job_name=job_name)
