"""
Package initialization file for backend models.

Re-exports the pydantic schemas and enumerations so other modules can import
them from pacing_recon.models directly.

Usage:
    from pacing_recon.models import (
        DeliveryRecord,
        CampaignAggregate,
        SeverityTier,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from pacing_recon.models.enums import (
    FeedType,
    PacingStatus,
    SeverityTier,
    TrendDirection,
    TrendMetric,
)

# =============================================================================
# Schemas
# =============================================================================

from pacing_recon.models.schemas import (
    # Input records
    DeliveryRecord,
    DateRange,
    # Aggregates
    CampaignAggregate,
    PeriodAggregate,
    # Pacing
    PacingAssessment,
    PacingSummary,
    # Contract reconciliation
    MissingContractInfo,
    MissingContractSummary,
    ContractTermsValidationResult,
    # Contract-driven pacing
    ContractTerms,
    CampaignPacingMetrics,
    ContractPacingResult,
    # Trends and report
    MetricComparison,
    ReconciliationReport,
    # Ingestion and sessions
    ValidationError,
    Session,
)

__all__ = [
    "FeedType",
    "PacingStatus",
    "SeverityTier",
    "TrendDirection",
    "TrendMetric",
    "DeliveryRecord",
    "DateRange",
    "CampaignAggregate",
    "PeriodAggregate",
    "PacingAssessment",
    "PacingSummary",
    "MissingContractInfo",
    "MissingContractSummary",
    "ContractTermsValidationResult",
    "ContractTerms",
    "CampaignPacingMetrics",
    "ContractPacingResult",
    "MetricComparison",
    "ReconciliationReport",
    "ValidationError",
    "Session",
]
