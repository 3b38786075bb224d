from __future__ import annotations

from fastapi import HTTPException

from app.core.errors import LedgerError, error_code
from app.economy.payments.errors import GatewayMisconfiguredError, PaymentNotOwnedError
from app.economy.wallet.errors import WalletLockedError

STATUS_BY_CATEGORY: dict[str, int] = {
    "validation": 422,
    "precondition": 409,
    "state_conflict": 409,
    "external_dependency": 502,
    "invariant": 409,
}


def status_code_for(error: LedgerError) -> int:
    if isinstance(error, GatewayMisconfiguredError):
        return 503
    if isinstance(error, (WalletLockedError, PaymentNotOwnedError)):
        return 403
    if type(error).__name__.endswith("NotFoundError"):
        return 404
    return STATUS_BY_CATEGORY.get(error.category, 500)


def as_http_exception(error: LedgerError) -> HTTPException:
    return HTTPException(
        status_code=status_code_for(error),
        detail={
            "code": error_code(error),
            "kind": error.category,
            "message": error.message,
        },
    )
