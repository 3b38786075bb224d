from app.core.errors import (
    LedgerError,
    ExternalDependencyFailure,
    PreconditionFailure,
    StateConflict,
    ValidationFailure,
)


class PaymentError(LedgerError):
    pass


class PaymentNotFoundError(PaymentError, PreconditionFailure):
    """Payment not found."""


class PaymentNotOwnedError(PaymentError, PreconditionFailure):
    """Payment does not belong to the caller."""


class InvalidSignatureError(PaymentError, ValidationFailure):
    """Payment signature verification failed."""


class InvalidPaymentTransitionError(PaymentError, StateConflict):
    """Payment is not in a state that allows this operation."""


class PaymentAlreadySettledError(PaymentError, StateConflict):
    """Payment was already settled with a different gateway payment."""


class PaymentAmountMismatchError(PaymentError, ValidationFailure):
    """Amount does not match the payment amount."""


class PaymentGatewayMismatchError(PaymentError, PreconditionFailure):
    """Payment is not settled through this gateway."""


class ZeroAmountOrderError(PaymentError, ValidationFailure):
    """A gateway order requires a positive amount."""


class ManualReviewNotRequiredError(PaymentError, PreconditionFailure):
    """Payment is not awaiting manual review."""


class TransactionReferenceRequiredError(PaymentError, ValidationFailure):
    """A transaction reference is required."""


class RejectionReasonRequiredError(PaymentError, ValidationFailure):
    """A rejection reason is required."""


class PaymentNotRefundableError(PaymentError, PreconditionFailure):
    """Only successful payments with a remaining balance can be refunded."""


class RefundAmountInvalidError(PaymentError, ValidationFailure):
    """Refund amount must be greater than zero."""


class GatewayUnavailableError(PaymentError, ExternalDependencyFailure):
    """Payment gateway is unavailable."""


class GatewayMisconfiguredError(PaymentError, ExternalDependencyFailure):
    """Payment gateway is not configured."""


class GatewayRejectedError(PaymentError, ExternalDependencyFailure):
    """Payment gateway rejected the request."""
