"""
FastAPI dependency injection module for the Pacing Reconciliation backend.

This module provides reusable FastAPI dependencies for configuration access
and session authentication, keeping endpoint handlers free of infrastructure
lookups.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints
- get_credential_service: Returns the process-wide CredentialService
- CredentialServiceDep: Type alias for injecting the credential service
- require_session: Checks the bearer token when authentication is enabled
- SessionDep: Type alias for injecting the current Session (or None)

Usage Examples:
    @router.post("/reconciliation/report")
    async def build_report(
        request: ReportRequest,
        session: SessionDep,
        settings: SettingsDep
    ) -> ReconciliationReport:
        ...

Testing:
    Every dependency can be swapped through FastAPI's override mechanism:

    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
"""

import hashlib
from datetime import timedelta
from typing import Annotated, Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from pacing_recon.core.config import Settings, get_settings
from pacing_recon.models.schemas import Session
from pacing_recon.services.auth import (
    AuthError,
    CredentialService,
    SessionExpiredError,
)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Note:
        This is a thin wrapper around get_settings() to enable FastAPI's
        dependency override mechanism for testing. In tests, you can do:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Credential Service Dependency
# =============================================================================

# One service per distinct credential configuration, keyed by settings digest
_credential_services: Dict[str, CredentialService] = {}


def _credential_cache_key(username: str, password: str, ttl_hours: int) -> str:
    material = "\0".join([username, password, str(ttl_hours)])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def get_credential_service(settings: SettingsDep) -> CredentialService:
    """
    Return the CredentialService for the active settings.

    Services are cached per credential configuration so sessions survive
    across requests while tests with different settings stay isolated. The
    cache key is a SHA-256 digest; the plaintext password is never a key.
    """
    password = settings.auth_password.get_secret_value() if settings.auth_password else ''
    cache_key = _credential_cache_key(
        settings.auth_username, password, settings.session_ttl_hours
    )

    service = _credential_services.get(cache_key)
    if service is None:
        service = CredentialService(
            username=settings.auth_username,
            password=password,
            session_ttl=timedelta(hours=settings.session_ttl_hours),
        )
        _credential_services[cache_key] = service
    return service


def reset_credential_services() -> None:
    """Forget every cached credential service (and with it every session)."""
    _credential_services.clear()


# Usage: async def endpoint(credentials: CredentialServiceDep)
CredentialServiceDep = Annotated[CredentialService, Depends(get_credential_service)]


# =============================================================================
# Authentication Dependencies
# =============================================================================

def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


async def require_session(
    settings: SettingsDep,
    credentials: CredentialServiceDep,
    authorization: Annotated[Optional[str], Header()] = None
) -> Optional[Session]:
    """
    Resolve the caller's session from the bearer token.

    Returns:
        The live Session, or None when no password is configured and the
        reconciliation routes are open.

    Raises:
        HTTPException: 401 when authentication is enabled and the token is
            missing, unknown, revoked or expired.
    """
    if not settings.auth_enabled:
        return None

    token = parse_bearer_token(authorization)
    try:
        return credentials.validate(token)
    except SessionExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Usage: async def endpoint(session: SessionDep)
SessionDep = Annotated[Optional[Session], Depends(require_session)]
