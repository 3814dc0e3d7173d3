"""
Payment session reconciler for Razorpay.

Maps Razorpay's webhook-and-poll driven state onto platform-neutral session
statuses and verifies authenticity before trusting any transition.

State machine:
    pending -> authorized | error
    authorized -> captured | failed
    captured -> refunded

error, failed and not_supported are terminal here; the platform retries by
creating a new session. The reconciler never persists: every operation
returns a new session value for the caller to store.
"""
import json
import time
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from payment_razorpay.config import ProviderSettings, get_settings
from payment_razorpay.config import validate_options as validate_provider_options
from payment_razorpay.core.amounts import Amount, to_major_units, to_minor_units
from payment_razorpay.core.exceptions import (
    GatewayError,
    InvalidAmount,
    InvalidCurrency,
    InvalidState,
    PaymentProviderError,
    SignatureInvalid,
)
from payment_razorpay.core.models import (
    NO_PAYMENT,
    NOT_CANCELLABLE,
    PaymentSession,
    SessionUpdate,
    WebhookEvent,
    WebhookResult,
)
from payment_razorpay.core.provider import PaymentProvider
from payment_razorpay.core.signatures import SignatureVerifier
from payment_razorpay.core.status import (
    SessionStatus,
    WebhookAction,
    map_order_status,
    map_payment_status,
)
from payment_razorpay.integrations.gateway import GatewayClient
from payment_razorpay.integrations.razorpay_client import RazorpayClient
from payment_razorpay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "razorpay"
GATEWAY_REFUNDED = "refunded"

# event type -> (action, payload entity key, field holding the session reference)
WEBHOOK_DISPATCH: Dict[str, Tuple[WebhookAction, str, str]] = {
    "payment.authorized": (WebhookAction.AUTHORIZED, "payment", "order_id"),
    "payment.captured": (WebhookAction.CAPTURED, "payment", "order_id"),
    "payment.failed": (WebhookAction.FAILED, "payment", "order_id"),
    "refund.processed": (WebhookAction.REFUNDED, "refund", "payment_id"),
}


def normalize_currency(currency_code: str) -> str:
    """
    Upper-case and validate a currency code.

    Raises:
        InvalidCurrency: If the code is not three letters
    """
    if not isinstance(currency_code, str):
        raise InvalidCurrency(f"Currency must be a string, got {currency_code!r}")
    code = currency_code.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise InvalidCurrency("Currency must be 3-letter code")
    return code


class PaymentSessionReconciler(PaymentProvider):
    """
    Razorpay implementation of the payment provider contract.

    Validation errors are raised before any gateway call. Gateway errors
    propagate from mutating operations and become status results in polling
    operations (get_status, confirm, handle_webhook).
    """

    identifier = PROVIDER_NAME

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        gateway: Optional[GatewayClient] = None,
    ):
        """
        Initialize the reconciler.

        Args:
            settings: Provider settings (loaded from environment if omitted)
            gateway: Optional gateway client (RazorpayClient if omitted)
        """
        self.settings = settings or get_settings()
        self.gateway = gateway or RazorpayClient(self.settings)
        self.signatures = SignatureVerifier(
            key_secret=self.settings.key_secret,
            webhook_secret=self.settings.webhook_secret,
        )

        logger.info(
            "payment_provider_initialized",
            provider=self.identifier,
            key_id=self.settings.key_id,
            key_secret_configured=True,
            webhook_secret_configured=self.settings.webhook_secret_configured,
        )

    @staticmethod
    def validate_options(options: Mapping[str, Any]) -> None:
        """Reject provider options missing key_id or key_secret."""
        validate_provider_options(options)

    def _receipt(self) -> str:
        return f"{self.settings.receipt_prefix}_{int(time.time() * 1000)}"

    @staticmethod
    def _result(
        operation: str, status: SessionStatus, session: PaymentSession, **kwargs: Any
    ) -> SessionUpdate:
        status = SessionStatus(status)
        metrics.record_session_transition(operation, status.value)
        return SessionUpdate(status=status, session=session, **kwargs)

    # ------------------------------------------------------------------
    # Order lifecycle
    # ------------------------------------------------------------------

    async def initiate(
        self, amount_major: Amount, currency_code: str, session_id: Optional[str] = None
    ) -> SessionUpdate:
        """
        Create a gateway order for a new session.

        Args:
            amount_major: Amount in major units
            currency_code: ISO currency code
            session_id: Optional platform session id, stored in order notes

        Returns:
            SessionUpdate: Pending session referencing the new order

        Raises:
            InvalidAmount: If amount is invalid
            InvalidCurrency: If currency is invalid
            GatewayError: If the gateway rejects the order
        """
        amount_minor = to_minor_units(amount_major)
        currency = normalize_currency(currency_code)

        notes = {"payment_provider": PROVIDER_NAME}
        if session_id:
            notes["session_id"] = session_id

        try:
            order = await self.gateway.create_order(
                amount_minor, currency, self._receipt(), notes=notes
            )
        except GatewayError as e:
            logger.error("initiate_payment_failed", error=e.description)
            raise

        session = PaymentSession(
            session_id=session_id,
            gateway_reference=order["id"],
            amount_minor_units=amount_minor,
            currency_code=currency,
            status=SessionStatus.PENDING,
            order_record=order,
        )
        logger.info(
            "payment_initiated",
            session_id=session_id,
            order_id=order["id"],
            amount_minor=amount_minor,
            currency=currency,
        )
        return self._result("initiate", SessionStatus.PENDING, session)

    async def update(
        self, session: PaymentSession, amount_major: Amount, currency_code: str
    ) -> SessionUpdate:
        """
        Replace the session's order with a new one for an updated amount.

        Razorpay orders are immutable once created, so a fresh order is
        created and the previous reference is kept alongside it.

        Raises:
            InvalidState: If the session has no gateway order yet
            GatewayError: If the gateway rejects the order
        """
        amount_minor = to_minor_units(amount_major)
        currency = normalize_currency(currency_code)
        if not session.gateway_reference:
            raise InvalidState("Order ID is required to update payment")

        notes = {
            "payment_provider": PROVIDER_NAME,
            "previous_order_id": session.gateway_reference,
        }
        if session.session_id:
            notes["session_id"] = session.session_id

        try:
            order = await self.gateway.create_order(
                amount_minor, currency, self._receipt(), notes=notes
            )
        except GatewayError as e:
            logger.error(
                "update_payment_failed",
                order_id=session.gateway_reference,
                error=e.description,
            )
            raise

        updated = session.model_copy(
            update={
                "gateway_reference": order["id"],
                "previous_gateway_reference": session.gateway_reference,
                "amount_minor_units": amount_minor,
                "currency_code": currency,
                "status": SessionStatus.PENDING,
                "gateway_payment_id": None,
                "payment_record": None,
                "order_record": order,
            }
        )
        logger.info(
            "payment_updated",
            order_id=order["id"],
            previous_order_id=session.gateway_reference,
            amount_minor=amount_minor,
        )
        return self._result("update", SessionStatus.PENDING, updated)

    async def delete(self, session: PaymentSession) -> SessionUpdate:
        """Razorpay orders cannot be deleted; the platform drops the session."""
        logger.info("payment_delete_noop", order_id=session.gateway_reference)
        return self._result("delete", session.status, session)

    # ------------------------------------------------------------------
    # Payment lifecycle
    # ------------------------------------------------------------------

    async def confirm(
        self,
        session: PaymentSession,
        payment_ref: Optional[str],
        signature: Optional[str],
    ) -> SessionUpdate:
        """
        Authorize a session from the checkout callback.

        The signature is verified before any gateway call; a failed check is
        terminal and never falls back to pending.

        Args:
            session: Current session
            payment_ref: razorpay_payment_id from checkout
            signature: razorpay_signature from checkout

        Returns:
            SessionUpdate: Mapped status, or error with a diagnostic
        """
        if not payment_ref and not signature:
            # Customer has not completed checkout yet
            return self._result("confirm", SessionStatus.PENDING, session)

        try:
            self.signatures.ensure_payment(session.gateway_reference, payment_ref, signature)
        except SignatureInvalid as e:
            metrics.record_signature_failure("payment")
            logger.warning(
                "payment_signature_invalid",
                order_id=session.gateway_reference,
                payment_id=payment_ref,
            )
            failed = session.model_copy(update={"status": SessionStatus.ERROR})
            return self._result("confirm", SessionStatus.ERROR, failed, error=str(e))

        try:
            payment = await self.gateway.fetch_payment(payment_ref)
        except GatewayError as e:
            logger.error(
                "confirm_payment_failed",
                order_id=session.gateway_reference,
                payment_id=payment_ref,
                error=e.description,
            )
            failed = session.model_copy(update={"status": SessionStatus.ERROR})
            return self._result("confirm", SessionStatus.ERROR, failed, error=e.description)

        status = map_payment_status(payment.get("status"))
        confirmed = session.model_copy(
            update={
                "status": status,
                "gateway_payment_id": payment_ref,
                "payment_record": payment,
            }
        )
        logger.info(
            "payment_confirmed",
            order_id=session.gateway_reference,
            payment_id=payment_ref,
            gateway_status=payment.get("status"),
            status=status.value,
        )
        return self._result("confirm", status, confirmed)

    async def capture(self, session: PaymentSession) -> SessionUpdate:
        """
        Capture the session's authorized payment for its recorded amount.

        Raises:
            InvalidState: If no payment record with an id and amount is attached
            GatewayError: If the gateway rejects the capture
        """
        record = session.payment_record or {}
        amount_minor = record.get("amount")
        if not record.get("id"):
            raise InvalidState("Payment ID is required to capture payment")
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
            raise InvalidState("Payment amount is required to capture payment")

        currency = record.get("currency") or session.currency_code
        try:
            captured = await self.gateway.capture_payment(record["id"], amount_minor, currency)
        except GatewayError as e:
            logger.error("capture_payment_failed", payment_id=record["id"], error=e.description)
            raise

        updated = session.model_copy(
            update={
                "status": SessionStatus.CAPTURED,
                "gateway_payment_id": record["id"],
                "payment_record": captured,
            }
        )
        logger.info("payment_captured", payment_id=record["id"], amount_minor=amount_minor)
        return self._result("capture", SessionStatus.CAPTURED, updated)

    async def cancel(self, session: PaymentSession) -> SessionUpdate:
        """
        Cancel an authorized payment by refunding it in full.

        Razorpay has no void for authorized payments; a full refund releases
        the hold. Any other state is left untouched and marked so callers can
        tell "nothing to cancel" from "no longer cancellable".

        Raises:
            InvalidState: If the payment record has no amount
            GatewayError: If the refund or re-fetch fails; after a successful
                refund the error carries its refund_reference
        """
        record = session.payment_record or {}
        payment_id = record.get("id")
        if not payment_id:
            logger.info(
                "payment_cancel_noop", order_id=session.gateway_reference, reason=NO_PAYMENT
            )
            return self._result("cancel", session.status, session, marker=NO_PAYMENT)

        if map_payment_status(record.get("status")) is not SessionStatus.AUTHORIZED:
            logger.info(
                "payment_cancel_noop",
                payment_id=payment_id,
                gateway_status=record.get("status"),
                reason=NOT_CANCELLABLE,
            )
            return self._result("cancel", session.status, session, marker=NOT_CANCELLABLE)

        amount_minor = record.get("amount")
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
            raise InvalidState("Payment amount is required to cancel payment")

        try:
            refund = await self.gateway.refund_payment(
                payment_id,
                amount_minor,
                notes={"cancellation_reason": "Payment cancelled by merchant"},
            )
        except GatewayError as e:
            logger.error("cancel_payment_failed", payment_id=payment_id, error=e.description)
            raise

        refund_id = refund.get("id")
        logger.info("payment_refund_created", payment_id=payment_id, refund_id=refund_id)
        try:
            payment = await self.gateway.fetch_payment(payment_id)
        except GatewayError as e:
            # The refund went through; keep its id with the error
            e.refund_reference = refund_id
            logger.error(
                "cancel_refetch_failed",
                payment_id=payment_id,
                refund_id=refund_id,
                error=e.description,
            )
            raise

        if payment.get("status") == GATEWAY_REFUNDED:
            status = SessionStatus.REFUNDED
        else:
            status = map_payment_status(payment.get("status"))
        updated = session.model_copy(update={"status": status, "payment_record": payment})
        logger.info(
            "payment_cancelled",
            payment_id=payment_id,
            refund_id=refund_id,
            status=status.value,
        )
        return self._result("cancel", status, updated, refund_reference=refund_id)

    async def refund(self, session: PaymentSession, amount_major: Amount) -> SessionUpdate:
        """
        Refund part or all of the session's payment.

        Partial refunds are not accumulated here; the gateway ledger is
        authoritative for the remaining balance.

        Raises:
            InvalidAmount: If amount is invalid or zero
            InvalidState: If no payment is attached
            GatewayError: If the gateway rejects the refund
        """
        amount_minor = to_minor_units(amount_major)
        if amount_minor == 0:
            raise InvalidAmount("Refund amount must be positive")
        payment_id = session.payment_id
        if not payment_id:
            raise InvalidState("Payment ID is required to refund payment")

        try:
            refund = await self.gateway.refund_payment(
                payment_id,
                amount_minor,
                notes={"refund_reason": "Refund requested by merchant"},
            )
        except GatewayError as e:
            logger.error("refund_payment_failed", payment_id=payment_id, error=e.description)
            raise

        updated = session.model_copy(update={"status": SessionStatus.REFUNDED})
        logger.info(
            "payment_refunded",
            payment_id=payment_id,
            refund_id=refund.get("id"),
            amount_minor=amount_minor,
        )
        return self._result(
            "refund", SessionStatus.REFUNDED, updated, refund_reference=refund.get("id")
        )

    # ------------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------------

    async def retrieve(self, session: PaymentSession) -> Dict[str, Any]:
        """
        Return the gateway records behind the session.

        Returns:
            Dict[str, Any]: The payment record, or {"order", "payments"}

        Raises:
            InvalidState: If the session references nothing on the gateway
            GatewayError: If the gateway lookup fails
        """
        payment_id = session.payment_id
        if payment_id:
            return await self.gateway.fetch_payment(payment_id)

        if session.gateway_reference:
            order = await self.gateway.fetch_order(session.gateway_reference)
            payments = await self.gateway.fetch_order_payments(session.gateway_reference)
            return {"order": order, "payments": payments}

        raise InvalidState("No valid payment or order ID found")

    async def get_status(self, session: PaymentSession) -> SessionUpdate:
        """
        Poll the gateway for the session's status without changing the session.

        Gateway failures are reported as an error status so polling loops
        keep running.
        """
        payment_id = session.payment_id
        try:
            if payment_id:
                payment = await self.gateway.fetch_payment(payment_id)
                status = map_payment_status(payment.get("status"))
            elif session.gateway_reference:
                order = await self.gateway.fetch_order(session.gateway_reference)
                status = map_order_status(order.get("status"))
            else:
                status = SessionStatus.PENDING
        except GatewayError as e:
            logger.error(
                "get_payment_status_failed",
                order_id=session.gateway_reference,
                payment_id=payment_id,
                error=e.description,
            )
            return self._result("get_status", SessionStatus.ERROR, session, error=e.description)

        return self._result("get_status", status, session)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def handle_webhook(self, event: WebhookEvent) -> WebhookResult:
        """
        Verify a webhook and translate it into a platform action.

        Verification runs first and fails closed. Unknown event types are a
        neutral not_supported outcome. Nothing here raises.
        """
        try:
            self.signatures.ensure_webhook(event.raw_body, event.signature_header)
        except SignatureInvalid as e:
            metrics.record_signature_failure("webhook")
            logger.warning(
                "webhook_signature_invalid",
                event_id=event.event_id,
                webhook_secret_configured=self.signatures.webhook_enabled,
            )
            return WebhookResult(
                action=WebhookAction.FAILED,
                verified=False,
                error=str(e),
                event_type=event.event_type,
                event_id=event.event_id,
            )

        event_type = event.event_type
        try:
            data = event.payload if event.payload is not None else json.loads(event.raw_body)
            event_type = event_type or data.get("event")
            if not isinstance(event_type, str):
                event_type = None

            route = WEBHOOK_DISPATCH.get(event_type)
            if route is None:
                logger.info(
                    "webhook_event_not_supported", event_type=event_type, event_id=event.event_id
                )
                return WebhookResult(
                    action=WebhookAction.NOT_SUPPORTED,
                    verified=True,
                    event_type=event_type,
                    event_id=event.event_id,
                )

            action, entity_key, reference_field = route
            entity = data["payload"][entity_key]["entity"]
            amount: Decimal = to_major_units(entity["amount"])
            error = None
            if action is WebhookAction.FAILED:
                error = entity.get("error_description") or "Payment failed"

            # A ValidationError from untrusted entity fields is a ValueError
            result = WebhookResult(
                action=action,
                verified=True,
                session_ref=entity.get(reference_field),
                amount=amount,
                error=error,
                event_type=event_type,
                event_id=event.event_id,
            )
        except (KeyError, TypeError, ValueError, AttributeError, PaymentProviderError) as e:
            logger.error(
                "webhook_processing_failed",
                event_type=event_type,
                event_id=event.event_id,
                error=str(e),
            )
            return WebhookResult(
                action=WebhookAction.FAILED,
                verified=True,
                error=f"Error processing webhook: {e}",
                event_type=event_type,
                event_id=event.event_id,
            )

        logger.info(
            "webhook_event_processed",
            event_type=event_type,
            event_id=event.event_id,
            action=action.value,
            session_ref=result.session_ref,
        )
        return result
