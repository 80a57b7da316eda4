"""
Health check endpoint for monitoring and load balancer probes.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Response

from ..core.config import settings
from ..core.constants import API_VERSION, BRAND_NAME
from ..schemas.base_responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health status including service info and environment.
    Used by load balancers and monitoring systems.
    """
    if settings.is_testing:
        response.headers["X-Testing"] = "1"
    return HealthResponse(
        status="healthy",
        service=f"{BRAND_NAME.lower()}-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
