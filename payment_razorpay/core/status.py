"""
Status mapping from Razorpay payment and order states to session statuses.

Unrecognized gateway values map to PENDING: the session's true state is
unknown, and failing closed would block legitimate flows.
"""
from enum import Enum


class SessionStatus(str, Enum):
    """Platform-neutral payment session status."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    FAILED = "failed"
    ERROR = "error"
    NOT_SUPPORTED = "not_supported"


class WebhookAction(str, Enum):
    """Action a verified webhook asks the platform to take."""

    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    FAILED = "failed"
    NOT_SUPPORTED = "not_supported"


PAYMENT_STATUS_MAP = {
    "created": SessionStatus.PENDING,
    "authorized": SessionStatus.AUTHORIZED,
    "captured": SessionStatus.CAPTURED,
    "failed": SessionStatus.ERROR,
}

ORDER_STATUS_MAP = {
    "created": SessionStatus.PENDING,
    "attempted": SessionStatus.AUTHORIZED,
    "paid": SessionStatus.CAPTURED,
}


def _normalize(status: object) -> str:
    if not isinstance(status, str):
        return ""
    return status.strip().lower()


def map_payment_status(status: object) -> SessionStatus:
    """Map a Razorpay payment status to a session status."""
    return PAYMENT_STATUS_MAP.get(_normalize(status), SessionStatus.PENDING)


def map_order_status(status: object) -> SessionStatus:
    """Map a Razorpay order status to a session status."""
    return ORDER_STATUS_MAP.get(_normalize(status), SessionStatus.PENDING)
