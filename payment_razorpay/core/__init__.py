"""Core payment session logic: amounts, signatures, statuses and models."""
from .exceptions import (
    ConfigurationError,
    GatewayError,
    GatewayErrorType,
    InvalidAmount,
    InvalidCurrency,
    InvalidState,
    PaymentProviderError,
    PaymentValidationError,
    SignatureInvalid,
)
from .status import SessionStatus, WebhookAction

__all__ = [
    "ConfigurationError",
    "GatewayError",
    "GatewayErrorType",
    "InvalidAmount",
    "InvalidCurrency",
    "InvalidState",
    "PaymentProviderError",
    "PaymentValidationError",
    "SessionStatus",
    "SignatureInvalid",
    "WebhookAction",
]
