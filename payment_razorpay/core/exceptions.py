"""
Error taxonomy for the Razorpay payment provider.

Propagation rules:
- Validation errors are raised before any gateway call.
- Gateway errors raised by mutating operations propagate to the caller.
- Gateway errors during polling (status, confirm, webhooks) are converted
  into result objects by the reconciler.
- SignatureInvalid is raised by SignatureVerifier.ensure_payment and
  ensure_webhook; confirm and handle_webhook turn it into an error result.
"""
from enum import Enum
from typing import Optional


class PaymentProviderError(Exception):
    """Base exception for all payment provider errors."""

    pass


class ConfigurationError(PaymentProviderError):
    """Raised at startup when provider options are missing or invalid."""

    pass


class PaymentValidationError(PaymentProviderError):
    """Raised when operation input is rejected before reaching the gateway."""

    pass


class InvalidAmount(PaymentValidationError):
    """Amount is non-numeric, negative or non-finite."""

    pass


class InvalidCurrency(PaymentValidationError):
    """Currency code is not a three-letter ISO code."""

    pass


class InvalidState(PaymentValidationError):
    """Session lacks the prior state an operation requires."""

    pass


class SignatureInvalid(PaymentProviderError):
    """Authenticity check failed for a payment confirmation or webhook."""

    pass


class GatewayErrorType(Enum):
    """Classification of gateway failures."""

    BAD_REQUEST = "bad_request"  # Rejected by the gateway (4xx)
    GATEWAY = "gateway"  # Gateway-side processing failure
    SERVER = "server"  # Gateway 5xx
    TRANSPORT = "transport"  # Network / HTTP layer


class GatewayError(PaymentProviderError):
    """The remote gateway rejected or failed a request."""

    def __init__(
        self,
        description: str,
        error_type: GatewayErrorType = GatewayErrorType.GATEWAY,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        refund_reference: Optional[str] = None,
    ):
        """
        Initialize gateway error.

        Args:
            description: Gateway-provided description, kept verbatim
            error_type: Classification of error
            operation: Gateway operation that failed
            original_error: Original SDK or transport exception
            refund_reference: Refund already created before the failure, if any
        """
        super().__init__(description)
        self.description = description
        self.error_type = error_type
        self.operation = operation
        self.original_error = original_error
        self.refund_reference = refund_reference
