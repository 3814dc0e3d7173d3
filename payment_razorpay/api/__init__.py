"""FastAPI application and routes."""
from .main import app, create_app
from .schemas import HealthCheckResponse, WebhookResponse

__all__ = [
    "app",
    "create_app",
    "HealthCheckResponse",
    "WebhookResponse",
]
