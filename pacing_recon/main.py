"""
FastAPI application entry point for the Pacing Reconciliation API.

This module configures logging and CORS, registers the API routers, and starts
the ASGI server when run directly.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pacing_recon import __version__
from pacing_recon.api import api_router
from pacing_recon.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description=(
        "Backend for the ad-operations pacing dashboard. "
        "Aggregates delivery exports, classifies pacing severity, "
        "and reconciles active campaigns against contract terms."
    ),
)

# Configure CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)

if settings.auth_enabled:
    logger.info("Authentication enabled for reconciliation routes")
else:
    logger.warning("AUTH_PASSWORD is not set; reconciliation routes are open")


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pacing_recon.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
