"""
Backend Services Module

This module contains the business logic of the Pacing Reconciliation backend.
Engine services are pure functions over in-memory snapshots; the credential
service is the only stateful component.

Services:
- normalizer: Raw CSV rows to typed DeliveryRecords (alias-tolerant)
- aggregation: Per-day, per-campaign and N-day window rollups
- severity: Four-tier severity bands and three-tier pacing status
- contract_terms: Missing contract detection and CSV export
- pacing: Contract-driven flight pacing and test campaign exclusion
- trend: Period-over-period change
- ingestion: CSV parsing and structural validation (pandas)
- reconciliation: Full report assembly
- auth: Credential service with fixed-length sessions

All services are designed to be consumed by the API layer (pacing_recon/api/).
"""

# =============================================================================
# Normalizer Service Exports
# =============================================================================

from pacing_recon.services.normalizer import (
    FIELD_ALIASES,
    lookup_field,
    parse_number,
    parse_date,
    normalize_row,
    normalize_rows,
)

# =============================================================================
# Aggregation Service Exports
# =============================================================================

from pacing_recon.services.aggregation import (
    MetricTotals,
    calculate_derived_metrics,
    aggregate_by_key,
    aggregate_by_date,
    aggregate_by_campaign,
    aggregate_by_period,
)

# =============================================================================
# Severity Service Exports
# =============================================================================

from pacing_recon.services.severity import (
    SEVERITY_BANDS,
    classify,
    classify_ratio,
    pacing_ratio,
    pacing_status,
    assess_pacing,
    summarize_pacing,
)

# =============================================================================
# Contract Terms Service Exports
# =============================================================================

from pacing_recon.services.contract_terms import (
    normalize_campaign_key,
    extract_contract_keys,
    find_missing,
    summarize_missing,
    validate_contract_terms,
    missing_contracts_to_csv,
)

# =============================================================================
# Contract Pacing Service Exports
# =============================================================================

from pacing_recon.services.pacing import (
    InvalidContractTermsError,
    is_test_campaign,
    parse_contract_terms,
    calculate_campaign_metrics,
    process_campaigns,
)

# =============================================================================
# Trend Service Exports
# =============================================================================

from pacing_recon.services.trend import (
    percent_change,
    trend_direction,
    period_over_period_change,
    compare_periods,
)

# =============================================================================
# Ingestion Service Exports
# =============================================================================

from pacing_recon.services.ingestion import (
    identify_feed_type,
    validate_columns,
    read_csv_rows,
    ingest_csv,
    DELIVERY_REQUIRED_COLUMNS,
    PACING_REQUIRED_COLUMNS,
    CONTRACT_TERMS_REQUIRED_COLUMNS,
)

# =============================================================================
# Reconciliation Service Exports
# =============================================================================

from pacing_recon.services.reconciliation import (
    DEFAULT_TREND_METRICS,
    build_reconciliation_report,
)

# =============================================================================
# Credential Service Exports
# =============================================================================

from pacing_recon.services.auth import (
    CredentialService,
    AuthError,
    InvalidCredentialsError,
    InvalidSessionError,
    SessionExpiredError,
)

__all__ = [
    # ----- Normalizer -----
    'FIELD_ALIASES',
    'lookup_field',
    'parse_number',
    'parse_date',
    'normalize_row',
    'normalize_rows',
    # ----- Aggregation -----
    'MetricTotals',
    'calculate_derived_metrics',
    'aggregate_by_key',
    'aggregate_by_date',
    'aggregate_by_campaign',
    'aggregate_by_period',
    # ----- Severity -----
    'SEVERITY_BANDS',
    'classify',
    'classify_ratio',
    'pacing_ratio',
    'pacing_status',
    'assess_pacing',
    'summarize_pacing',
    # ----- Contract Terms -----
    'normalize_campaign_key',
    'extract_contract_keys',
    'find_missing',
    'summarize_missing',
    'validate_contract_terms',
    'missing_contracts_to_csv',
    # ----- Contract Pacing -----
    'InvalidContractTermsError',
    'is_test_campaign',
    'parse_contract_terms',
    'calculate_campaign_metrics',
    'process_campaigns',
    # ----- Trend -----
    'percent_change',
    'trend_direction',
    'period_over_period_change',
    'compare_periods',
    # ----- Ingestion -----
    'identify_feed_type',
    'validate_columns',
    'read_csv_rows',
    'ingest_csv',
    'DELIVERY_REQUIRED_COLUMNS',
    'PACING_REQUIRED_COLUMNS',
    'CONTRACT_TERMS_REQUIRED_COLUMNS',
    # ----- Reconciliation -----
    'DEFAULT_TREND_METRICS',
    'build_reconciliation_report',
    # ----- Credential Service -----
    'CredentialService',
    'AuthError',
    'InvalidCredentialsError',
    'InvalidSessionError',
    'SessionExpiredError',
]
