# WORKFLOW: Health check endpoints for monitoring and operational status.
# Used by: Load balancers, monitoring systems, operational dashboards
# Endpoints:
# 1. /healthz - Basic health check (always returns healthy)
# 2. /readyz - Readiness check: reference store loaded and jurisdictions registered
# 3. /livez - Liveness check for Kubernetes probes
#
# Readiness flow: Readiness check -> Registry/reference corpora -> Ready/Not ready
# Embedding and LLM providers are optional collaborators and do not gate readiness.

from fastapi import APIRouter
import logging
from datetime import datetime, timezone

from api.dependencies import get_registry
from core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/healthz")
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        Health status of the API
    """
    return {
        "status": "healthy",
        "timestamp": _now(),
        "version": settings.version,
        "environment": settings.environment
    }


@router.get("/readyz")
async def readiness_check():
    """
    Readiness check endpoint.

    Returns:
        Readiness status with the corpus size of every registered jurisdiction
    """
    checks = {"reference_store": False}
    jurisdictions = {}

    try:
        registry = get_registry()
        for name in registry.names():
            jurisdictions[name] = registry.get(name).corpus.stats()
        checks["reference_store"] = bool(jurisdictions)
    except Exception as e:
        logger.error(f"Reference store health check failed: {e}")

    is_ready = all(checks.values())

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": _now(),
        "checks": checks,
        "jurisdictions": jurisdictions,
        "version": settings.version
    }


@router.get("/livez")
async def liveness_check():
    """Liveness check used by Kubernetes liveness probes."""
    return {
        "status": "alive",
        "timestamp": _now()
    }
