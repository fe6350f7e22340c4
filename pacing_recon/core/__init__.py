"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities (settings, credential service, sessions)

This module re-exports key components from submodules for convenient importing:

    from pacing_recon.core import get_settings, SettingsDep, SessionDep
"""

# =============================================================================
# Re-exports from pacing_recon.core.config
# =============================================================================
from pacing_recon.core.config import Settings, get_settings

# =============================================================================
# Re-exports from pacing_recon.core.dependencies
# =============================================================================
from pacing_recon.core.dependencies import (
    get_settings_dependency,
    get_credential_service,
    require_session,
    SettingsDep,
    CredentialServiceDep,
    SessionDep,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_credential_service',
    'require_session',
    'SettingsDep',
    'CredentialServiceDep',
    'SessionDep',
]
