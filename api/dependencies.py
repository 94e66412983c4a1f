# WORKFLOW: Engine wiring and FastAPI dependency providers.
# Used by: API routers, application startup
# Functions:
# 1. get_registry() - Load the reference store once and build the jurisdiction registry
# 2. get_orchestrator() - Shipment orchestrator over the shared registry
#
# Engine lifecycle:
# Startup: get_registry() -> load_reference_store() -> build_registry()
# Runtime: Depends(get_registry) / Depends(get_orchestrator) -> shared read-only instances
# Tests override these dependencies with fixtures built from in-memory corpora.

import logging

from corpus.loader import load_reference_store
from services.jurisdictions import JurisdictionRegistry, build_registry
from services.orchestrator import ShipmentOrchestrator

logger = logging.getLogger(__name__)

# Lazy-loaded engine components
_registry = None
_orchestrator = None


def get_registry() -> JurisdictionRegistry:
    """Get the jurisdiction registry (lazy-loaded)."""
    global _registry
    if _registry is None:
        logger.info("Loading reference store...")
        _registry = build_registry(load_reference_store())
        logger.info(f"Jurisdiction registry ready: {_registry.names()}")
    return _registry


def get_orchestrator() -> ShipmentOrchestrator:
    """Get the shipment orchestrator (lazy-loaded)."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ShipmentOrchestrator(get_registry())
    return _orchestrator
