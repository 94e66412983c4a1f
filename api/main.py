#!/usr/bin/env python3
"""
Shipment Compliance API - HS code resolution and export/import verdicts.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from core.config import settings
from api.dependencies import get_registry
from api.middleware.logging import LoggingMiddleware
from api.routers import health, jurisdiction, shipment

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Reference data is loaded once per process and is read-only afterwards
    get_registry()
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    description="Classifies trade items to HS codes and checks export/import compliance",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)
app.add_middleware(LoggingMiddleware)

# Expose health checks both at root and versioned paths
app.include_router(health.router, prefix=settings.api_v1_prefix)

@app.get("/healthz")
async def root_health_check():
    """Root-level health endpoint for external monitors."""
    return await health.health_check()

app.include_router(shipment.router, prefix=settings.api_v1_prefix)
app.include_router(jurisdiction.router, prefix=settings.api_v1_prefix)
logger.info("Shipment and jurisdiction routers included")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
