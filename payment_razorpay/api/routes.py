"""
API routes for Razorpay webhook ingress and monitoring.
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from payment_razorpay.integrations.webhook_handler import WebhookError, WebhookHandler
from payment_razorpay.monitoring.health import HealthCheck

from .schemas import HealthCheckResponse, WebhookResponse

logger = structlog.get_logger(__name__)

# Create routers
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])
monitoring_router = APIRouter(tags=["monitoring"])


def get_webhook_handler(request: Request) -> WebhookHandler:
    """Webhook handler attached to the application at startup."""
    return request.app.state.webhook_handler


def get_health_check(request: Request) -> HealthCheck:
    """Health check service attached to the application at startup."""
    return request.app.state.health_check


@webhook_router.post(
    "/razorpay",
    response_model=WebhookResponse,
    summary="Razorpay webhook endpoint",
    description="Verify and interpret Razorpay webhook events",
)
async def razorpay_webhook(
    request: Request,
    webhook_handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """
    Handle Razorpay webhook events.

    The signature is checked over the raw body; unverified deliveries are
    rejected with 400. Unsupported event types are acknowledged with 200.
    """
    body = await request.body()
    data = webhook_handler.parse_body(body)

    try:
        result = await webhook_handler.handle(body, request.headers, data)
    except WebhookError as e:
        logger.error("api_webhook_error", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info(
        "api_webhook_received",
        event_id=result.event_id,
        event_type=result.event_type,
        action=result.action.value,
        verified=result.verified,
    )

    if not result.verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)

    return WebhookResponse.from_result(result)


@monitoring_router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Check provider configuration health",
)
async def health(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return await health_check.check_all()


@monitoring_router.get(
    "/health/live",
    response_model=HealthCheckResponse,
    summary="Liveness probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    """Liveness probe endpoint."""
    return await health_check.liveness()


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
