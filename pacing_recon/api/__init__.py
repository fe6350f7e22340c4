"""
Backend API package initialization.

This package contains FastAPI router modules for the Pacing Reconciliation backend:
- auth: Login and logout against the credential service
- reconciliation: Reports, missing-contract export and pacing summary
"""

from fastapi import APIRouter

# Import router modules
from pacing_recon.api.auth import router as auth_router
from pacing_recon.api.reconciliation import router as reconciliation_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(reconciliation_router, prefix="/reconciliation", tags=["reconciliation"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "auth_router",
    "reconciliation_router",
]
