"""
Main FastAPI application.

Webhook ingress service for the Razorpay provider with:
- Request ID tracking
- Structured logging
- Error handling
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from payment_razorpay import __version__
from payment_razorpay.config import ProviderSettings, get_settings
from payment_razorpay.core.provider import PaymentProvider
from payment_razorpay.core.reconciler import PaymentSessionReconciler
from payment_razorpay.integrations.webhook_handler import WebhookHandler
from payment_razorpay.monitoring.health import HealthCheck
from payment_razorpay.monitoring.logging import setup_logging

from .routes import monitoring_router, webhook_router

logger = structlog.get_logger(__name__)


def attach_services(
    app: FastAPI,
    settings: ProviderSettings,
    provider: Optional[PaymentProvider] = None,
) -> None:
    """
    Attach the provider, webhook handler and health check to the app.

    Args:
        app: FastAPI application
        settings: Provider settings
        provider: Optional provider (a reconciler is built from settings if omitted)
    """
    if provider is None:
        provider = PaymentSessionReconciler(settings)

    app.state.settings = settings
    app.state.provider = provider
    app.state.webhook_handler = WebhookHandler(provider)
    app.state.health_check = HealthCheck(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Loads settings and builds services unless they were attached up front.
    """
    if getattr(app.state, "webhook_handler", None) is None:
        settings = get_settings()
        setup_logging(settings)
        attach_services(app, settings)

    settings = app.state.settings
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        test_mode=settings.is_test_mode,
        webhook_secret_configured=settings.webhook_secret_configured,
    )

    yield

    logger.info("application_shutdown")


def create_app(
    settings: Optional[ProviderSettings] = None,
    provider: Optional[PaymentProvider] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Optional settings; loaded from the environment at startup if omitted
        provider: Optional provider to serve webhooks with

    Returns:
        FastAPI: Configured application
    """
    app = FastAPI(
        title="Razorpay Payment Provider",
        description=(
            "Razorpay payment session provider: webhook verification and "
            "translation into platform actions, with health and metrics endpoints."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    if settings is not None:
        attach_services(app, settings, provider)

    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
        """
        Add request ID to all requests for tracing.

        Also adds timing information and structured logging context.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = time.time()

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        logger.info(
            "request_started",
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_seconds=time.time() - start_time,
            )

            return response

        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_seconds=time.time() - start_time,
            )
            raise

        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled exceptions.
        """
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )

    app.include_router(webhook_router)
    app.include_router(monitoring_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "service": "payment-razorpay",
            "version": __version__,
            "status": "operational",
            "webhooks": "/webhooks/razorpay",
            "health": "/health",
            "metrics": "/metrics",
        }

    return app


app = create_app()


def main() -> None:
    """Run the webhook service with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)

    uvicorn.run(
        "payment_razorpay.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
