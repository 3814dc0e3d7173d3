"""
HMAC-SHA256 signature verification for Razorpay.

Two checks exist:
- Checkout confirmation: HMAC of "{order_id}|{payment_id}" keyed with the API
  key secret.
- Webhooks: HMAC of the raw request body keyed with the webhook secret.

The verify_* functions never raise; malformed input is simply not authentic.
SignatureVerifier.ensure_* raise SignatureInvalid instead of returning False.
"""
import hashlib
import hmac
from typing import Optional, Union

from pydantic import SecretStr

from payment_razorpay.core.exceptions import SignatureInvalid

INVALID_PAYMENT_SIGNATURE = "Invalid payment signature"
INVALID_WEBHOOK_SIGNATURE = "Invalid webhook signature"

Secret = Union[str, SecretStr, None]
Body = Union[bytes, bytearray, memoryview, str]


def _secret_value(secret: Secret) -> Optional[str]:
    if isinstance(secret, SecretStr):
        secret = secret.get_secret_value()
    if not isinstance(secret, str) or not secret:
        return None
    return secret


def _as_bytes(payload: Body) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def compute_signature(message: Body, secret: Union[str, SecretStr]) -> str:
    """
    Compute the hex HMAC-SHA256 of a message.

    Args:
        message: Message bytes (or text, encoded as UTF-8)
        secret: Signing secret

    Returns:
        str: Lower-case hex digest
    """
    key = _secret_value(secret)
    if key is None:
        raise ValueError("A non-empty secret is required to sign")
    return hmac.new(key.encode("utf-8"), _as_bytes(message), hashlib.sha256).hexdigest()


def _matches(message: bytes, provided_signature: object, secret: str) -> bool:
    if not isinstance(provided_signature, str) or not provided_signature:
        return False
    expected = compute_signature(message, secret)
    # Compare bytes so non-ASCII input cannot raise inside compare_digest
    return hmac.compare_digest(
        expected.encode("ascii"), provided_signature.encode("utf-8", "surrogatepass")
    )


def verify_payment_signature(
    order_ref: object,
    payment_ref: object,
    provided_signature: object,
    secret: Secret,
) -> bool:
    """
    Verify the checkout signature for an order/payment pair.

    Args:
        order_ref: Gateway order id
        payment_ref: Gateway payment id
        provided_signature: Signature returned to the client by checkout
        secret: API key secret

    Returns:
        bool: True only if the signature is authentic
    """
    key = _secret_value(secret)
    if key is None:
        return False
    if not isinstance(order_ref, str) or not isinstance(payment_ref, str):
        return False
    if not order_ref or not payment_ref:
        return False
    try:
        message = f"{order_ref}|{payment_ref}".encode("utf-8")
        return _matches(message, provided_signature, key)
    except (TypeError, ValueError, UnicodeError):
        return False


def verify_webhook_signature(
    raw_body: object,
    provided_signature: object,
    secret: Secret,
) -> bool:
    """
    Verify a webhook signature over the raw, unmodified request body.

    Fails closed: returns False when no webhook secret is configured.

    Args:
        raw_body: Request body exactly as received
        provided_signature: X-Razorpay-Signature header value
        secret: Webhook secret

    Returns:
        bool: True only if the signature is authentic
    """
    key = _secret_value(secret)
    if key is None:
        return False
    if not isinstance(raw_body, (bytes, bytearray, memoryview, str)):
        return False
    try:
        return _matches(_as_bytes(raw_body), provided_signature, key)
    except (TypeError, ValueError, UnicodeError):
        return False


class SignatureVerifier:
    """Verifies gateway signatures with process-scoped secrets."""

    def __init__(self, key_secret: Secret, webhook_secret: Secret = None):
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret

    @property
    def webhook_enabled(self) -> bool:
        return _secret_value(self._webhook_secret) is not None

    def verify_payment(
        self, order_ref: object, payment_ref: object, provided_signature: object
    ) -> bool:
        return verify_payment_signature(
            order_ref, payment_ref, provided_signature, self._key_secret
        )

    def verify_webhook(self, raw_body: object, provided_signature: object) -> bool:
        return verify_webhook_signature(raw_body, provided_signature, self._webhook_secret)

    def ensure_payment(
        self, order_ref: object, payment_ref: object, provided_signature: object
    ) -> None:
        """
        Require an authentic checkout signature.

        Raises:
            SignatureInvalid: If the signature does not verify
        """
        if not self.verify_payment(order_ref, payment_ref, provided_signature):
            raise SignatureInvalid(INVALID_PAYMENT_SIGNATURE)

    def ensure_webhook(self, raw_body: object, provided_signature: object) -> None:
        """
        Require an authentic webhook signature.

        Raises:
            SignatureInvalid: If the signature does not verify or no secret is set
        """
        if not self.verify_webhook(raw_body, provided_signature):
            raise SignatureInvalid(INVALID_WEBHOOK_SIGNATURE)
