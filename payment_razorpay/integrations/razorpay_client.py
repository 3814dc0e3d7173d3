"""
Razorpay API client with error classification and instrumentation.

Implements:
- Order creation, lookup and payment listing
- Payment fetch, capture and refund
- Classification of SDK and transport errors into GatewayError
- Prometheus timing and structured logging for every call

The Razorpay SDK is synchronous; calls run in the loop's default executor.
"""
import asyncio
import functools
import time
from typing import Any, Callable, Dict, List, Optional

import razorpay
import requests
import structlog
from razorpay import errors as razorpay_errors

from payment_razorpay import __version__
from payment_razorpay.config import ProviderSettings, get_settings
from payment_razorpay.core.exceptions import GatewayError, GatewayErrorType
from payment_razorpay.core.models import GatewayRecord
from payment_razorpay.integrations.gateway import GatewayClient
from payment_razorpay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)


def describe_error(error: Exception) -> str:
    """
    Extract the most specific description from a gateway error.

    The SDK raises errors whose message is the gateway's error description;
    some carry a structured ``error`` payload instead.
    """
    payload = getattr(error, "error", None)
    if isinstance(payload, dict):
        nested = payload.get("error") if isinstance(payload.get("error"), dict) else payload
        for key in ("description", "message"):
            if nested.get(key):
                return str(nested[key])
    message = str(error)
    return message or type(error).__name__


class RazorpayClient(GatewayClient):
    """
    Wrapper for the Razorpay SDK.

    Features:
    - Blocking SDK calls moved off the event loop
    - Comprehensive error classification
    - Gateway descriptions preserved for diagnostics
    """

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        client: Optional[razorpay.Client] = None,
    ) -> None:
        """
        Initialize Razorpay client.

        Args:
            settings: Provider settings (loaded from environment if omitted)
            client: Optional preconfigured SDK client
        """
        self.settings = settings or get_settings()
        self.client = client or razorpay.Client(
            auth=(self.settings.key_id, self.settings.key_secret.get_secret_value())
        )
        self.client.set_app_details({"title": self.settings.app_name, "version": __version__})

        logger.info(
            "razorpay_client_initialized",
            key_id=self.settings.key_id,
            test_mode=self.settings.is_test_mode,
        )

    @staticmethod
    def _classify_error(error: Exception) -> GatewayErrorType:
        """
        Classify a Razorpay SDK or transport error.

        Args:
            error: Raised exception

        Returns:
            GatewayErrorType: Error classification
        """
        if isinstance(error, razorpay_errors.BadRequestError):
            return GatewayErrorType.BAD_REQUEST
        elif isinstance(error, razorpay_errors.ServerError):
            return GatewayErrorType.SERVER
        elif isinstance(error, requests.exceptions.RequestException):
            return GatewayErrorType.TRANSPORT
        else:
            return GatewayErrorType.GATEWAY

    def _handle_gateway_error(self, operation: str, error: Exception) -> None:
        """
        Log, count and re-raise a gateway error.

        Args:
            operation: Gateway operation name
            error: Raised exception

        Raises:
            GatewayError: Classified error
        """
        error_type = self._classify_error(error)
        description = describe_error(error)

        logger.error(
            "razorpay_api_error",
            operation=operation,
            error_type=error_type.value,
            error_message=description,
        )
        metrics.record_gateway_error(operation, error_type.value)

        raise GatewayError(
            description=description,
            error_type=error_type,
            operation=operation,
            original_error=error,
        ) from error

    async def _call(
        self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> Any:
        """
        Run a blocking SDK call in the default executor.

        Args:
            operation: Operation name for logs and metrics
            func: SDK function
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Any: SDK response

        Raises:
            GatewayError: If the SDK or transport fails
        """
        start_time = time.time()
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))
        except (
            razorpay_errors.BadRequestError,
            razorpay_errors.GatewayError,
            razorpay_errors.ServerError,
            requests.exceptions.RequestException,
        ) as e:
            metrics.record_gateway_call(operation, "error", time.time() - start_time)
            self._handle_gateway_error(operation, e)
            raise  # For type checker

        metrics.record_gateway_call(operation, "success", time.time() - start_time)
        return result

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayRecord:
        """
        Create a Razorpay order.

        Args:
            amount_minor: Amount in minor units (paise)
            currency: Upper-case currency code
            receipt: Merchant receipt identifier
            notes: Optional key/value notes

        Returns:
            GatewayRecord: Created order
        """
        logger.info(
            "creating_order",
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
        )

        order = await self._call(
            "create_order",
            self.client.order.create,
            data={
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )

        logger.info("order_created", order_id=order.get("id"), status=order.get("status"))
        return order

    async def fetch_order(self, order_id: str) -> GatewayRecord:
        """Fetch an order by id."""
        logger.info("fetching_order", order_id=order_id)
        return await self._call("fetch_order", self.client.order.fetch, order_id)

    async def fetch_order_payments(self, order_id: str) -> List[GatewayRecord]:
        """
        List payments made against an order.

        Args:
            order_id: Razorpay order id

        Returns:
            List[GatewayRecord]: Payment records (empty when none)
        """
        logger.info("fetching_order_payments", order_id=order_id)
        collection = await self._call("fetch_order_payments", self.client.order.payments, order_id)
        return list(collection.get("items", []))

    async def fetch_payment(self, payment_id: str) -> GatewayRecord:
        """Fetch a payment by id."""
        logger.info("fetching_payment", payment_id=payment_id)
        return await self._call("fetch_payment", self.client.payment.fetch, payment_id)

    async def capture_payment(
        self, payment_id: str, amount_minor: int, currency: str
    ) -> GatewayRecord:
        """
        Capture an authorized payment.

        Args:
            payment_id: Razorpay payment id
            amount_minor: Amount to capture in minor units
            currency: Payment currency

        Returns:
            GatewayRecord: Captured payment
        """
        logger.info(
            "capturing_payment",
            payment_id=payment_id,
            amount_minor=amount_minor,
        )

        payment = await self._call(
            "capture_payment",
            self.client.payment.capture,
            payment_id,
            amount_minor,
            {"currency": currency},
        )

        logger.info("payment_captured", payment_id=payment_id, status=payment.get("status"))
        return payment

    async def refund_payment(
        self,
        payment_id: str,
        amount_minor: int,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayRecord:
        """
        Refund a payment.

        Args:
            payment_id: Razorpay payment id
            amount_minor: Amount to refund in minor units
            notes: Optional key/value notes

        Returns:
            GatewayRecord: Created refund
        """
        logger.info(
            "creating_refund",
            payment_id=payment_id,
            amount_minor=amount_minor,
        )

        refund = await self._call(
            "refund_payment",
            self.client.payment.refund,
            payment_id,
            {"amount": amount_minor, "notes": notes or {}},
        )

        logger.info("refund_created", refund_id=refund.get("id"), status=refund.get("status"))
        return refund
