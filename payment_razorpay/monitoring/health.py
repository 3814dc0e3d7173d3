"""
Health checks for liveness and readiness probes.

Checks:
- Provider credentials are configured
- Webhook signing secret presence (webhooks are rejected without it)
"""
from typing import Any, Dict

import structlog

from payment_razorpay.config import ProviderSettings

logger = structlog.get_logger(__name__)


class HealthCheckError(Exception):
    """Raised when health check fails."""

    pass


class HealthCheck:
    """Health check service for the provider's configuration."""

    def __init__(self, settings: ProviderSettings) -> None:
        """Initialize health check service."""
        self.settings = settings

    async def check_configuration(self) -> Dict[str, Any]:
        """
        Check Razorpay credentials are usable.

        Returns:
            Dict[str, Any]: Configuration health status

        Raises:
            HealthCheckError: If credentials are missing
        """
        if not self.settings.key_id or not self.settings.key_secret.get_secret_value():
            logger.error("configuration_health_check_failed")
            raise HealthCheckError("Razorpay credentials are not configured")

        return {
            "status": "healthy",
            "service": "razorpay",
            "message": "Razorpay credentials configured",
            "test_mode": self.settings.is_test_mode,
        }

    async def check_webhooks(self) -> Dict[str, Any]:
        """
        Report whether webhook verification is enabled.

        A missing secret degrades webhook ingress but not the provider.
        """
        configured = self.settings.webhook_secret_configured
        return {
            "status": "healthy" if configured else "degraded",
            "service": "webhooks",
            "message": (
                "Webhook secret configured"
                if configured
                else "Webhook secret not configured; all webhooks will be rejected"
            ),
        }

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: Overall health status
        """
        checks = {}
        all_healthy = True

        try:
            checks["razorpay"] = await self.check_configuration()
        except HealthCheckError as e:
            checks["razorpay"] = {
                "status": "unhealthy",
                "service": "razorpay",
                "error": str(e),
            }
            all_healthy = False

        checks["webhooks"] = await self.check_webhooks()

        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }

    async def liveness(self) -> Dict[str, Any]:
        """
        Liveness probe.

        Does not check configuration or the gateway.
        """
        return {
            "status": "alive",
            "message": "Application is running",
        }
