"""
Pytest configuration and fixtures.
"""
import hashlib
import hmac
import json
from typing import Any, AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payment_razorpay.api.main import create_app
from payment_razorpay.config import ProviderSettings
from payment_razorpay.core.models import PaymentSession
from payment_razorpay.core.reconciler import PaymentSessionReconciler
from payment_razorpay.core.status import SessionStatus
from payment_razorpay.integrations.gateway import GatewayClient

KEY_SECRET = "test_key_secret"
WEBHOOK_SECRET = "test_webhook_secret"


def sign(message: bytes | str, secret: str) -> str:
    """HMAC-SHA256 hex digest, as Razorpay computes it."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


@pytest.fixture
def test_settings() -> ProviderSettings:
    """Create test settings."""
    return ProviderSettings(
        key_id="rzp_test_fake_key_id",
        key_secret=KEY_SECRET,
        webhook_secret=WEBHOOK_SECRET,
        app_name="payment-razorpay-test",
        app_env="test",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def settings_without_webhook_secret(test_settings: ProviderSettings) -> ProviderSettings:
    """Test settings with webhook verification disabled."""
    return test_settings.model_copy(update={"webhook_secret": None})


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Gateway double with Razorpay-shaped responses."""
    gateway = AsyncMock(spec=GatewayClient)
    gateway.create_order.return_value = {
        "id": "order_1",
        "entity": "order",
        "amount": 49900,
        "currency": "INR",
        "status": "created",
    }
    gateway.fetch_order.return_value = {"id": "order_1", "status": "created"}
    gateway.fetch_order_payments.return_value = []
    gateway.fetch_payment.return_value = {
        "id": "pay_1",
        "order_id": "order_1",
        "amount": 49900,
        "currency": "INR",
        "status": "authorized",
    }
    gateway.capture_payment.return_value = {
        "id": "pay_1",
        "amount": 49900,
        "currency": "INR",
        "status": "captured",
    }
    gateway.refund_payment.return_value = {
        "id": "rfnd_1",
        "payment_id": "pay_1",
        "amount": 49900,
        "status": "processed",
    }
    return gateway


@pytest.fixture
def reconciler(test_settings: ProviderSettings, mock_gateway: AsyncMock) -> PaymentSessionReconciler:
    """Reconciler backed by the gateway double."""
    return PaymentSessionReconciler(settings=test_settings, gateway=mock_gateway)


@pytest.fixture
def pending_session() -> PaymentSession:
    """Session with an order but no payment yet."""
    return PaymentSession(
        session_id="sess_1",
        gateway_reference="order_1",
        amount_minor_units=49900,
        currency_code="INR",
    )


@pytest.fixture
def authorized_session(pending_session: PaymentSession) -> PaymentSession:
    """Session with an authorized payment attached."""
    return pending_session.model_copy(
        update={
            "status": SessionStatus.AUTHORIZED,
            "gateway_payment_id": "pay_1",
            "payment_record": {
                "id": "pay_1",
                "order_id": "order_1",
                "amount": 49900,
                "currency": "INR",
                "status": "authorized",
            },
        }
    )


@pytest.fixture
def webhook_body() -> Callable[..., bytes]:
    """Build a Razorpay webhook body."""

    def build(event: str, entity_key: str = "payment", **entity: Any) -> bytes:
        payload: Dict[str, Any] = {
            "entity": "event",
            "event": event,
            "payload": {entity_key: {"entity": entity}},
        }
        return json.dumps(payload).encode("utf-8")

    return build


@pytest_asyncio.fixture
async def client(
    test_settings: ProviderSettings, reconciler: PaymentSessionReconciler
) -> AsyncGenerator[AsyncClient, Any]:
    """Create test HTTP client."""
    app = create_app(settings=test_settings, provider=reconciler)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
