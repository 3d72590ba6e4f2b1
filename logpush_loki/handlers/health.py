"""
Health check handler for the Logpush adapter
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from logpush_loki import __version__
from logpush_loki.utils.config import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = 'logpush-loki'


def get_health_status(settings: Settings) -> Dict[str, Any]:
    """
    Get health status information

    The Loki endpoint is not contacted: pushes need the caller's credential,
    so only the presence of the configured endpoint is reported.

    Returns:
        Dictionary containing health status
    """
    health_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "version": __version__,
        "checks": {}
    }

    if settings.loki_push_url:
        health_data["checks"]["loki"] = {
            "status": "healthy",
            "configured": True
        }
    else:
        health_data["checks"]["loki"] = {
            "status": "unhealthy",
            "configured": False,
            "error": "LOKI_PUSH_URL is not set"
        }
        health_data["status"] = "degraded"
        logger.warning("Health check: LOKI_PUSH_URL is not set")

    return health_data
