"""
Unit tests for the Razorpay SDK wrapper.
"""
from unittest.mock import MagicMock

import pytest
import razorpay
import requests
from razorpay import errors as razorpay_errors

from payment_razorpay.config import ProviderSettings
from payment_razorpay.core.exceptions import GatewayError, GatewayErrorType
from payment_razorpay.integrations.razorpay_client import RazorpayClient, describe_error


@pytest.fixture
def sdk_client() -> MagicMock:
    """Mock razorpay.Client."""
    client = MagicMock()
    client.order.create.return_value = {"id": "order_1", "status": "created"}
    client.order.fetch.return_value = {"id": "order_1", "status": "attempted"}
    client.order.payments.return_value = {"entity": "collection", "count": 1, "items": [{"id": "pay_1"}]}
    client.payment.fetch.return_value = {"id": "pay_1", "status": "authorized"}
    client.payment.capture.return_value = {"id": "pay_1", "status": "captured"}
    client.payment.refund.return_value = {"id": "rfnd_1", "status": "processed"}
    return client


@pytest.fixture
def razorpay_client(test_settings: ProviderSettings, sdk_client: MagicMock) -> RazorpayClient:
    """RazorpayClient over the mock SDK."""
    return RazorpayClient(settings=test_settings, client=sdk_client)


class TestRazorpayClient:
    """Test suite for RazorpayClient."""

    @pytest.mark.unit
    def test_registers_app_details(self, razorpay_client: RazorpayClient, sdk_client: MagicMock) -> None:
        """Test the SDK is tagged with the application name."""
        details = sdk_client.set_app_details.call_args.args[0]
        assert details["title"] == "payment-razorpay-test"

    @pytest.mark.unit
    def test_builds_sdk_client_from_settings(
        self, test_settings: ProviderSettings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the SDK client is authenticated with the configured key pair."""
        factory = MagicMock()
        monkeypatch.setattr(razorpay, "Client", factory)

        RazorpayClient(settings=test_settings)

        factory.assert_called_once_with(auth=("rzp_test_fake_key_id", "test_key_secret"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_order(self, razorpay_client: RazorpayClient, sdk_client: MagicMock) -> None:
        """Test order creation passes minor units, receipt and notes."""
        order = await razorpay_client.create_order(
            49900, "INR", "session_1", notes={"payment_provider": "razorpay"}
        )

        assert order["id"] == "order_1"
        sdk_client.order.create.assert_called_once_with(
            data={
                "amount": 49900,
                "currency": "INR",
                "receipt": "session_1",
                "notes": {"payment_provider": "razorpay"},
            }
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_order_payments_unwraps_collection(
        self, razorpay_client: RazorpayClient, sdk_client: MagicMock
    ) -> None:
        """Test the payments collection is returned as a list."""
        payments = await razorpay_client.fetch_order_payments("order_1")

        assert payments == [{"id": "pay_1"}]
        sdk_client.order.payments.assert_called_once_with("order_1")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_capture_and_refund(self, razorpay_client: RazorpayClient, sdk_client: MagicMock) -> None:
        """Test capture and refund argument shapes."""
        await razorpay_client.capture_payment("pay_1", 49900, "INR")
        await razorpay_client.refund_payment("pay_1", 1000, notes={"refund_reason": "test"})

        sdk_client.payment.capture.assert_called_once_with("pay_1", 49900, {"currency": "INR"})
        sdk_client.payment.refund.assert_called_once_with(
            "pay_1", {"amount": 1000, "notes": {"refund_reason": "test"}}
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, error_type",
        [
            (razorpay_errors.BadRequestError("The id provided does not exist"), GatewayErrorType.BAD_REQUEST),
            (razorpay_errors.ServerError("Internal server error"), GatewayErrorType.SERVER),
            (razorpay_errors.GatewayError("Gateway rejected"), GatewayErrorType.GATEWAY),
            (requests.exceptions.ConnectionError("Connection refused"), GatewayErrorType.TRANSPORT),
        ],
    )
    async def test_errors_are_classified(
        self,
        razorpay_client: RazorpayClient,
        sdk_client: MagicMock,
        error: Exception,
        error_type: GatewayErrorType,
    ) -> None:
        """Test SDK and transport errors become GatewayError."""
        sdk_client.payment.fetch.side_effect = error

        with pytest.raises(GatewayError) as exc_info:
            await razorpay_client.fetch_payment("pay_1")

        assert exc_info.value.error_type is error_type
        assert exc_info.value.operation == "fetch_payment"
        assert exc_info.value.original_error is error
        assert exc_info.value.description == str(error)

    @pytest.mark.unit
    def test_describe_error_prefers_structured_payload(self) -> None:
        """Test a structured error payload's description wins."""
        error = Exception("generic")
        error.error = {"error": {"code": "BAD_REQUEST_ERROR", "description": "Amount exceeds maximum"}}

        assert describe_error(error) == "Amount exceeds maximum"

    @pytest.mark.unit
    def test_describe_error_falls_back_to_type(self) -> None:
        """Test an empty message falls back to the exception type."""
        assert describe_error(RuntimeError()) == "RuntimeError"
