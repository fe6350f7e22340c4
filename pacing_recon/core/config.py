"""
Settings and environment management module for the Pacing Reconciliation backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Optional credentials for the built-in credential service

Environment Variables:
- APP_NAME: Display name used by the API root endpoint
- CORS_ORIGINS: Allowed browser origins for the dashboard frontend
- AUTH_USERNAME: Login name accepted by the credential service (default: adops)
- AUTH_PASSWORD: Login password; when unset, reconciliation routes are open
- SESSION_TTL_HOURS: Fixed session validity window (default: 24)
- DEFAULT_PERIOD_DAYS: Window length for period-over-period comparisons (default: 7)
- LOG_LEVEL: Root logging level applied in main.py (default: INFO)

Usage:
    from pacing_recon.core.config import get_settings

    settings = get_settings()
    ttl = settings.session_ttl_hours
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Name reported by the root endpoint.
        cors_origins: Origins allowed by the CORS middleware.
        auth_username: Username accepted by the credential service.
        auth_password: Password accepted by the credential service. None disables
            authentication on the reconciliation routes.
        session_ttl_hours: Hours a session stays valid after login. Sessions are
            never renewed, so this is also the maximum session age.
        default_period_days: Length of the non-overlapping comparison windows used
            when a report asks for period bucketing without a length.
        log_level: Logging level name passed to logging.basicConfig.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service
    # =========================================================================

    app_name: str = 'Pacing Reconciliation API'

    # Dashboard dev servers
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
        'http://localhost:5173',
    ]

    log_level: str = 'INFO'

    # =========================================================================
    # Credential Service
    # =========================================================================

    auth_username: str = 'adops'
    auth_password: Optional[SecretStr] = None

    # Fixed validity window, measured from login
    session_ttl_hours: int = 24

    # =========================================================================
    # Reporting Defaults
    # =========================================================================

    # Period length for trend windows (7, 14 or 30 in the dashboard)
    default_period_days: int = 7

    @property
    def auth_enabled(self) -> bool:
        """True when a password is configured and routes must check sessions."""
        return self.auth_password is not None and bool(self.auth_password.get_secret_value())


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
