"""
Payment provider contract.

Every gateway integration implements the same operation set so the
platform-facing caller can swap gateways without changes.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from payment_razorpay.core.amounts import Amount
from payment_razorpay.core.models import (
    PaymentSession,
    SessionUpdate,
    WebhookEvent,
    WebhookResult,
)


class PaymentProvider(ABC):
    """Abstract payment provider."""

    identifier: str = ""

    @abstractmethod
    async def initiate(
        self, amount_major: Amount, currency_code: str, session_id: Optional[str] = None
    ) -> SessionUpdate:
        """Create a gateway order for a new session."""
        ...

    @abstractmethod
    async def update(
        self, session: PaymentSession, amount_major: Amount, currency_code: str
    ) -> SessionUpdate:
        """Replace the session's gateway order with one for a new amount."""
        ...

    @abstractmethod
    async def confirm(
        self,
        session: PaymentSession,
        payment_ref: Optional[str],
        signature: Optional[str],
    ) -> SessionUpdate:
        """Authorize a session from a checkout confirmation."""
        ...

    @abstractmethod
    async def capture(self, session: PaymentSession) -> SessionUpdate:
        """Capture the session's authorized payment."""
        ...

    @abstractmethod
    async def cancel(self, session: PaymentSession) -> SessionUpdate:
        """Cancel the session's payment if it can still be cancelled."""
        ...

    @abstractmethod
    async def refund(self, session: PaymentSession, amount_major: Amount) -> SessionUpdate:
        """Refund part or all of the session's payment."""
        ...

    @abstractmethod
    async def delete(self, session: PaymentSession) -> SessionUpdate:
        """Discard the session on the gateway side, where possible."""
        ...

    @abstractmethod
    async def retrieve(self, session: PaymentSession) -> Dict[str, Any]:
        """Return the raw gateway records behind the session."""
        ...

    @abstractmethod
    async def get_status(self, session: PaymentSession) -> SessionUpdate:
        """Poll the gateway for the session's current status."""
        ...

    @abstractmethod
    async def handle_webhook(self, event: WebhookEvent) -> WebhookResult:
        """Verify and interpret a gateway webhook."""
        ...
