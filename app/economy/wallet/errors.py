from app.core.errors import (
    LedgerError,
    InvariantViolation,
    PreconditionFailure,
    ValidationFailure,
)


class WalletError(LedgerError):
    pass


class WalletNotFoundError(WalletError, PreconditionFailure):
    """Wallet not found."""


class InvalidAmountError(WalletError, ValidationFailure):
    """Amount must be greater than zero."""


class InvalidWalletOperationError(WalletError, ValidationFailure):
    """Transaction kind is not valid for this operation."""


class AccountDetailsRequiredError(WalletError, ValidationFailure):
    """Account details are incomplete for the chosen withdrawal method."""


class TopupAmountOutOfRangeError(WalletError, ValidationFailure):
    """Top-up amount is outside the allowed range."""


class InsufficientBalanceError(WalletError, InvariantViolation):
    """Insufficient wallet balance."""


class WalletLockedError(WalletError, InvariantViolation):
    """Wallet is locked."""


class BelowMinimumWithdrawalError(WalletError, InvariantViolation):
    """Amount is below the minimum withdrawal."""


class WithdrawalNotFoundError(WalletError, PreconditionFailure):
    """Withdrawal request not found."""


class WithdrawalAlreadyResolvedError(WalletError, InvariantViolation):
    """Withdrawal request has already been resolved."""


class RejectionReasonRequiredError(WalletError, ValidationFailure):
    """A rejection reason is required."""
