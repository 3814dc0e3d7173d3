"""
Data models for payment sessions and webhook events.

All models are immutable: operations return new values for the platform to
persist instead of mutating what they were given.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from payment_razorpay.core.status import SessionStatus, WebhookAction

GatewayRecord = Dict[str, Any]

# Markers distinguishing the two cancel no-op cases
NO_PAYMENT = "no_payment"
NOT_CANCELLABLE = "not_cancellable"


class PaymentSession(BaseModel):
    """The platform's record of one checkout payment attempt."""

    model_config = ConfigDict(frozen=True)

    session_id: Optional[str] = None
    gateway_reference: Optional[str] = Field(default=None, description="Razorpay order id")
    amount_minor_units: int = Field(ge=0)
    currency_code: str
    status: SessionStatus = SessionStatus.PENDING
    gateway_payment_id: Optional[str] = None
    payment_record: Optional[GatewayRecord] = None
    order_record: Optional[GatewayRecord] = None
    previous_gateway_reference: Optional[str] = None

    @property
    def payment_id(self) -> Optional[str]:
        """Payment id from the attached record, falling back to the stored id."""
        if self.payment_record and self.payment_record.get("id"):
            return self.payment_record["id"]
        return self.gateway_payment_id


class SessionUpdate(BaseModel):
    """Outcome of a session operation."""

    model_config = ConfigDict(frozen=True)

    status: SessionStatus
    session: PaymentSession
    error: Optional[str] = None
    marker: Optional[str] = None
    refund_reference: Optional[str] = None


class WebhookEvent(BaseModel):
    """A webhook delivery as received on the wire."""

    model_config = ConfigDict(frozen=True)

    raw_body: bytes
    signature_header: Optional[str] = None
    event_type: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    event_id: Optional[str] = None


class WebhookResult(BaseModel):
    """Action and data derived from a webhook."""

    model_config = ConfigDict(frozen=True)

    action: WebhookAction
    verified: bool
    session_ref: Optional[str] = None
    amount: Optional[Decimal] = None
    error: Optional[str] = None
    event_type: Optional[str] = None
    event_id: Optional[str] = None
