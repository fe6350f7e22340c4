"""
FastAPI router module for authentication.

Implements POST /auth/login (issue a session token) and POST /auth/logout
(revoke it). Sessions last a fixed 24 hours by default and are never renewed.

Response shapes:
- /auth/login: { token, username, expiresAt }
- /auth/logout: { loggedOut }
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel, Field

from pacing_recon.core.dependencies import (
    CredentialServiceDep,
    SettingsDep,
    parse_bearer_token,
)
from pacing_recon.services.auth import InvalidCredentialsError


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Requests/Responses
# =============================================================================

class LoginRequest(BaseModel):
    """Request model for login."""
    username: str = Field(..., min_length=1, description="Account username")
    password: str = Field(..., min_length=1, description="Account password")


class LoginResponse(BaseModel):
    """Response model for login."""
    token: str = Field(..., description="Bearer token for subsequent requests")
    username: str = Field(..., description="Authenticated username")
    expiresAt: datetime = Field(..., description="Fixed session expiry (UTC)")


class LogoutResponse(BaseModel):
    """Response model for logout."""
    loggedOut: bool = Field(..., description="False when the token was not active")


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    settings: SettingsDep,
    credentials: CredentialServiceDep
) -> LoginResponse:
    """
    Exchange username and password for a session token.

    Returns 400 when no password is configured (authentication disabled) and
    401 for wrong credentials.
    """
    if not settings.auth_enabled:
        raise HTTPException(
            status_code=400,
            detail="Authentication is not enabled"
        )

    try:
        session = credentials.login(request.username, request.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return LoginResponse(
        token=session.token,
        username=session.username,
        expiresAt=session.expires_at,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    credentials: CredentialServiceDep,
    authorization: Annotated[Optional[str], Header()] = None
) -> LogoutResponse:
    """Revoke the bearer token sent with the request."""
    token = parse_bearer_token(authorization)
    if token is None:
        return LogoutResponse(loggedOut=False)
    return LogoutResponse(loggedOut=credentials.logout(token))
