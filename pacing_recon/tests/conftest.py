"""
Pytest Configuration and Shared Fixtures for Pacing Reconciliation Backend Tests.

This module provides fixtures and configuration for all backend tests, supporting:
- Sample delivery, pacing and contract-terms rows shaped like the real exports
- Settings fixtures with authentication on and off
- A controllable clock for session expiry tests
- An ASGI test client for API tests (httpx + pytest-asyncio)

Helpers:
- create_csv_bytes: DataFrame to CSV upload bytes
- make_delivery_row: Build one delivery row with the export's header names
- assert_close: Readable float comparison
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pandas as pd
import pytest
from pydantic import SecretStr

from pacing_recon.core.config import Settings, get_settings
from pacing_recon.core.dependencies import (
    get_settings_dependency,
    reset_credential_services,
)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - api: Marks tests that go through the FastAPI application
    """
    config.addinivalue_line(
        'markers',
        'api: marks tests exercising the HTTP layer'
    )


# ============================================================
# HELPER FUNCTIONS (Exported)
# ============================================================

def create_csv_bytes(df: pd.DataFrame) -> bytes:
    """
    Convert DataFrame to CSV bytes for upload testing.

    The output excludes the DataFrame index to match the export format.
    """
    return df.to_csv(index=False).encode('utf-8')


def make_delivery_row(
    campaign: str,
    day: str,
    impressions: Any = 0,
    clicks: Any = 0,
    revenue: Any = 0,
    spend: Any = 0,
    transactions: Any = 0,
    expected: Any = 0,
    actual: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Build a delivery row keyed by the PerformanceReport header names.

    ACTUAL IMPS defaults to the IMPRESSIONS value.
    """
    return {
        'DATE': day,
        'CAMPAIGN ORDER NAME': campaign,
        'IMPRESSIONS': impressions,
        'CLICKS': clicks,
        'TRANSACTIONS': transactions,
        'REVENUE': revenue,
        'SPEND': spend,
        'EXPECTED IMPS': expected,
        'ACTUAL IMPS': impressions if actual is None else actual,
    }


def assert_close(
    actual: float,
    expected: float,
    tolerance: float = 0.001
) -> None:
    """
    Assert two floats are close within tolerance.

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    if abs(actual - expected) >= tolerance:
        raise AssertionError(
            f'{actual} not close to {expected} within tolerance {tolerance}'
        )


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

@pytest.fixture
def delivery_rows() -> List[Dict[str, Any]]:
    """
    Two days of delivery for two campaigns plus the Totals footer row.

    Day 1: ACME 1000 imps / 1000 expected, Globex 500 / 1000
    Day 2: ACME 1050 imps / 1000 expected, Globex 900 / 1000
    """
    rows = [
        make_delivery_row('ACME Spring Sale', '2024-05-01', 1000, 20, 400.0, 200.0, 8, 1000),
        make_delivery_row('Globex Always On', '2024-05-01', 500, 5, 50.0, 100.0, 1, 1000),
        make_delivery_row('ACME Spring Sale', '2024-05-02', 1050, 21, 420.0, 210.0, 9, 1000),
        make_delivery_row('Globex Always On', '2024-05-02', 900, 9, 90.0, 150.0, 2, 1000),
    ]
    rows.append({
        'DATE': 'Totals',
        'CAMPAIGN ORDER NAME': '',
        'IMPRESSIONS': '3,450',
        'CLICKS': '55',
        'TRANSACTIONS': '20',
        'REVENUE': '960.00',
        'SPEND': '660.00',
        'EXPECTED IMPS': '4000',
        'ACTUAL IMPS': '3450',
    })
    return rows


@pytest.fixture
def delivery_df(delivery_rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Delivery rows as a DataFrame, ready for create_csv_bytes."""
    return pd.DataFrame(delivery_rows)


@pytest.fixture
def pacing_rows() -> List[Dict[str, Any]]:
    """
    Pacing snapshot rows, one per campaign (no DATE column).

    Delivery rates: 101% (on pace), 92% (caution), 60% (off pace).
    """
    return [
        {
            'Campaign': 'ACME Spring Sale', 'Days into Flight': '10', 'Days Left': '20',
            'Expected Imps': '10000', 'Actual Imps': '10100', 'Imps Left': '19900',
            'Imps Yesterday': '1000', 'Daily Avg Left': '995',
        },
        {
            'Campaign': 'Globex Always On', 'Days into Flight': '5', 'Days Left': '25',
            'Expected Imps': '5000', 'Actual Imps': '4600', 'Imps Left': '25400',
            'Imps Yesterday': '900', 'Daily Avg Left': '1016',
        },
        {
            'Campaign': 'Initech Launch', 'Days into Flight': '3', 'Days Left': '4',
            'Expected Imps': '5000', 'Actual Imps': '3000', 'Imps Left': '7000',
            'Imps Yesterday': '500', 'Daily Avg Left': '1750',
        },
    ]


@pytest.fixture
def contract_rows() -> List[Dict[str, Any]]:
    """Contract terms covering ACME only, under a differently-cased name."""
    return [
        {'Name': 'acme spring sale ', 'Start Date': '2024-04-15', 'Budget': '5000'},
    ]


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def open_settings() -> Settings:
    """Settings with authentication disabled."""
    return Settings(_env_file=None, auth_password=None)


@pytest.fixture
def auth_settings() -> Settings:
    """Settings with authentication enabled for user adops / s3cret."""
    return Settings(
        _env_file=None,
        auth_username='adops',
        auth_password=SecretStr('s3cret'),
        session_ttl_hours=24,
    )


# ============================================================
# TIME FIXTURES
# ============================================================

class FakeClock:
    """Manually advanced clock for session expiry tests."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at 2024-05-01 09:00 UTC."""
    return FakeClock(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def as_of_date() -> date:
    """Fixed reference date for period bucketing tests."""
    return date(2024, 5, 31)


# ============================================================
# API CLIENT FIXTURES
# ============================================================

def _client_factory(settings: Settings) -> Callable[[], httpx.AsyncClient]:
    from pacing_recon.main import app

    app.dependency_overrides[get_settings_dependency] = lambda: settings
    transport = httpx.ASGITransport(app=app)
    return lambda: httpx.AsyncClient(transport=transport, base_url='http://test')


@pytest.fixture
async def open_client(open_settings: Settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """API client with authentication disabled."""
    from pacing_recon.main import app

    reset_credential_services()
    async with _client_factory(open_settings)() as client:
        yield client
    app.dependency_overrides.clear()
    reset_credential_services()


@pytest.fixture
async def auth_client(auth_settings: Settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """API client with authentication enabled."""
    from pacing_recon.main import app

    reset_credential_services()
    async with _client_factory(auth_settings)() as client:
        yield client
    app.dependency_overrides.clear()
    reset_credential_services()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Keep the cached Settings singleton from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================
# MODULE EXPORTS
# ============================================================

__all__ = [
    'create_csv_bytes',
    'make_delivery_row',
    'assert_close',
    'FakeClock',
]
