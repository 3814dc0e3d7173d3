"""
Razorpay webhook ingress.

Implements:
- Extraction of signature and event id headers from a delivery
- Delegation to the provider for verification and interpretation
- Optional per-action callbacks for the hosting platform
- Webhook metrics

Deduplication by event id is left to the platform; the id is passed through
on every result.
"""
import json
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import structlog

from payment_razorpay.core.exceptions import PaymentProviderError
from payment_razorpay.core.models import WebhookEvent, WebhookResult
from payment_razorpay.core.provider import PaymentProvider
from payment_razorpay.core.status import WebhookAction
from payment_razorpay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "x-razorpay-signature"
EVENT_ID_HEADER = "x-razorpay-event-id"

ActionHandler = Callable[[WebhookResult], Awaitable[Any]]


class WebhookError(PaymentProviderError):
    """Raised when a registered action handler fails."""

    pass


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class WebhookHandler:
    """
    Handles Razorpay webhook deliveries.

    The raw body is kept byte-for-byte; signature verification runs over it
    before any parsing.
    """

    def __init__(self, provider: PaymentProvider):
        """
        Initialize webhook handler.

        Args:
            provider: Provider that verifies and interprets events
        """
        self.provider = provider
        self.action_handlers: Dict[WebhookAction, ActionHandler] = {}

        logger.info("webhook_handler_initialized", provider=provider.identifier)

    def register_handler(self, action: WebhookAction, handler: ActionHandler) -> None:
        """
        Register a callback for a verified webhook action.

        Args:
            action: Action the callback reacts to
            handler: Async callable receiving the WebhookResult

        Example:
            async def on_captured(result):
                ...

            handler.register_handler(WebhookAction.CAPTURED, on_captured)
        """
        self.action_handlers[action] = handler
        logger.info("webhook_handler_registered", action=action.value)

    @staticmethod
    def build_event(
        raw_body: bytes,
        headers: Mapping[str, str],
        data: Optional[Dict[str, Any]] = None,
    ) -> WebhookEvent:
        """
        Build a WebhookEvent from a delivery.

        Args:
            raw_body: Request body exactly as received
            headers: Request headers (any case)
            data: Optional already-parsed body

        Returns:
            WebhookEvent: Event ready for verification
        """
        event_type = None
        if isinstance(data, dict) and isinstance(data.get("event"), str):
            event_type = data["event"]

        return WebhookEvent(
            raw_body=bytes(raw_body),
            signature_header=_header(headers, SIGNATURE_HEADER),
            event_type=event_type,
            payload=data,
            event_id=_header(headers, EVENT_ID_HEADER),
        )

    async def handle(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        data: Optional[Dict[str, Any]] = None,
    ) -> WebhookResult:
        """
        Verify and interpret a webhook delivery.

        Args:
            raw_body: Request body exactly as received
            headers: Request headers
            data: Optional already-parsed body

        Returns:
            WebhookResult: Action derived from the event

        Raises:
            WebhookError: If a registered action handler fails
        """
        start_time = time.time()
        event = self.build_event(raw_body, headers, data)

        logger.info(
            "processing_webhook_event",
            event_id=event.event_id,
            event_type=event.event_type,
            signature_present=event.signature_header is not None,
        )

        result = await self.provider.handle_webhook(event)

        metrics.record_webhook_event(
            result.event_type or "unknown",
            result.action.value,
            time.time() - start_time,
        )

        handler = self.action_handlers.get(result.action)
        if result.verified and handler is not None:
            try:
                await handler(result)
            except Exception as e:
                logger.error(
                    "webhook_action_handler_failed",
                    event_id=result.event_id,
                    action=result.action.value,
                    error=str(e),
                )
                raise WebhookError(
                    f"Failed to handle {result.action.value} for event {result.event_id}: {e}"
                ) from e

        return result

    @staticmethod
    def parse_body(raw_body: bytes) -> Optional[Dict[str, Any]]:
        """Parse a JSON body, returning None when it is not a JSON object."""
        try:
            data = json.loads(raw_body)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
