"""
Gateway client contract consumed by the reconciler.

Implementations return raw gateway records and raise GatewayError for any
transport failure or gateway rejection.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from payment_razorpay.core.models import GatewayRecord


class GatewayClient(ABC):
    """Abstract payment gateway client."""

    @abstractmethod
    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayRecord:
        """Create an order for the given minor-unit amount."""
        ...

    @abstractmethod
    async def fetch_order(self, order_id: str) -> GatewayRecord:
        """Fetch an order by id."""
        ...

    @abstractmethod
    async def fetch_order_payments(self, order_id: str) -> List[GatewayRecord]:
        """List payments made against an order."""
        ...

    @abstractmethod
    async def fetch_payment(self, payment_id: str) -> GatewayRecord:
        """Fetch a payment by id."""
        ...

    @abstractmethod
    async def capture_payment(
        self, payment_id: str, amount_minor: int, currency: str
    ) -> GatewayRecord:
        """Capture an authorized payment."""
        ...

    @abstractmethod
    async def refund_payment(
        self,
        payment_id: str,
        amount_minor: int,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayRecord:
        """Refund a payment, fully or partially."""
        ...
