"""Gateway integrations."""
from .gateway import GatewayClient
from .razorpay_client import RazorpayClient
from .webhook_handler import WebhookHandler

__all__ = ["GatewayClient", "RazorpayClient", "WebhookHandler"]
