"""
Pydantic schemas for API responses.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from payment_razorpay.core.models import WebhookResult
from payment_razorpay.core.status import WebhookAction


class WebhookResponse(BaseModel):
    """Response schema for webhook processing."""

    action: WebhookAction = Field(..., description="Platform action derived from the event")
    verified: bool = Field(..., description="Whether the signature was verified")
    event_type: Optional[str] = Field(default=None, description="Razorpay event type")
    event_id: Optional[str] = Field(default=None, description="Razorpay event id")
    session_ref: Optional[str] = Field(
        default=None, description="Order id (payment events) or payment id (refund events)"
    )
    amount: Optional[Decimal] = Field(default=None, description="Amount in major units")
    message: Optional[str] = Field(default=None, description="Error detail, if any")

    @classmethod
    def from_result(cls, result: WebhookResult) -> "WebhookResponse":
        """Build a response from a webhook result."""
        return cls(
            action=result.action,
            verified=result.verified,
            event_type=result.event_type,
            event_id=result.event_id,
            session_ref=result.session_ref,
            amount=result.amount,
            message=result.error,
        )


class HealthCheckResponse(BaseModel):
    """Response schema for health checks."""

    status: str = Field(..., description="Overall health status (healthy/unhealthy)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual service checks")
    message: Optional[str] = Field(default=None, description="Status message")
