"""
Pydantic models for the Pacing Reconciliation backend.

This module holds the engine's data model (delivery records, campaign and period
aggregates, pacing assessments, contract reconciliation results) together with
the ingestion and session models used by the API layer.

Engine models are frozen: every report is recomputed wholesale from a fresh
input snapshot and nothing downstream mutates it.

All models use Pydantic v2 syntax.
"""

from datetime import datetime, date as DateType
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from pacing_recon.models.enums import (
    PacingStatus,
    SeverityTier,
    TrendDirection,
    TrendMetric,
)


# =============================================================================
# Input Records
# =============================================================================


class DeliveryRecord(BaseModel):
    """
    One normalized delivery observation.

    Produced by the row normalizer from a raw CSV row. Every numeric field is
    already coerced (0 for absent, blank or non-numeric source values).

    `date` is None when the source value was missing, unparseable, or the
    "Totals" footer row; such records never enter date-aware aggregation.
    """
    model_config = ConfigDict(frozen=True)

    campaign_name: str = Field(default="", description="Campaign order name, trimmed")
    date: Optional[DateType] = Field(default=None, description="Delivery day")
    raw_date: Optional[str] = Field(default=None, description="Source date value as text")

    impressions: float = 0.0
    clicks: float = 0.0
    revenue: float = 0.0
    spend: float = 0.0
    transactions: float = 0.0

    # Pacing report columns
    expected_impressions: float = 0.0
    actual_impressions: float = 0.0
    impressions_yesterday: float = 0.0
    daily_avg_left: float = 0.0
    days_into_flight: float = 0.0
    days_left: float = 0.0
    impressions_left: float = 0.0

    @property
    def is_dated(self) -> bool:
        """True when the record can take part in date-aware aggregation."""
        return self.date is not None


class DateRange(BaseModel):
    """Inclusive date filter; either bound may be open."""
    model_config = ConfigDict(frozen=True)

    start: Optional[DateType] = None
    end: Optional[DateType] = None

    def contains(self, day: DateType) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


# =============================================================================
# Aggregates
# =============================================================================


class CampaignAggregate(BaseModel):
    """
    Delivery totals for one campaign.

    Keyed by the normalized campaign key (trimmed, case-folded). The display name
    is the first spelling seen in the input.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "key": "acme spring sale",
                "campaign_name": "ACME Spring Sale",
                "impressions": 2050,
                "clicks": 41,
                "revenue": 820.0,
                "spend": 410.0,
                "transactions": 12,
                "expected_impressions": 2000,
                "actual_impressions": 2050,
                "row_count": 2,
                "delivery_rate": 1.025,
            }
        },
    )

    key: str = Field(..., description="Normalized campaign key")
    campaign_name: str = Field(..., description="First-seen campaign name")
    impressions: float = 0.0
    clicks: float = 0.0
    revenue: float = 0.0
    spend: float = 0.0
    transactions: float = 0.0
    expected_impressions: float = 0.0
    actual_impressions: float = 0.0
    impressions_yesterday: float = 0.0
    daily_avg_left: float = 0.0
    row_count: int = Field(default=0, ge=0)
    delivery_rate: float = Field(
        default=0.0,
        description="actual_impressions / expected_impressions, 0 when nothing was expected",
    )


class PeriodAggregate(BaseModel):
    """
    Delivery totals for one calendar day or one multi-day window.

    For daily rollups `period_end` equals `date`. Derived rates are computed from
    the period totals and are 0 when their denominator is 0.
    """
    model_config = ConfigDict(frozen=True)

    date: DateType = Field(..., description="First day of the period")
    period_end: DateType = Field(..., description="Last day of the period (inclusive)")
    impressions: float = 0.0
    clicks: float = 0.0
    revenue: float = 0.0
    spend: float = 0.0
    transactions: float = 0.0
    expected_impressions: float = 0.0
    actual_impressions: float = 0.0
    row_count: int = Field(default=0, ge=0)
    ctr: float = Field(default=0.0, description="clicks / impressions * 100")
    roas: float = Field(default=0.0, description="revenue / spend")
    aov: float = Field(default=0.0, description="revenue / transactions")
    delivery_rate: float = Field(default=0.0, description="actual / expected impressions")


# =============================================================================
# Pacing
# =============================================================================


class PacingAssessment(BaseModel):
    """Severity and alert status for one period or campaign."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="ISO date or normalized campaign key")
    label: str = Field(..., description="Display label (date or campaign name)")
    expected_impressions: float
    actual_impressions: float
    ratio: float = Field(..., description="actual / expected, 0 when nothing was expected")
    severity: SeverityTier
    status: PacingStatus


class PacingSummary(BaseModel):
    """
    Portfolio-level pacing counts.

    Delivery percentages are computed from portfolio totals, not averaged from
    per-campaign rates.
    """
    model_config = ConfigDict(frozen=True)

    total_campaigns: int = Field(default=0, ge=0)
    on_pace: int = Field(default=0, ge=0)
    caution: int = Field(default=0, ge=0)
    off_pace: int = Field(default=0, ge=0)
    avg_delivery_rate: float = Field(default=0.0, description="sum actual / sum expected * 100")
    avg_yesterday_delivery: float = Field(
        default=0.0,
        description="sum imps yesterday / sum daily avg left * 100",
    )
    at_risk_pct: float = Field(default=0.0, description="off_pace / total_campaigns * 100")


# =============================================================================
# Contract Reconciliation
# =============================================================================


class MissingContractInfo(BaseModel):
    """A delivering campaign with no contract terms on file."""
    model_config = ConfigDict(frozen=True)

    campaign_name: str
    total_impressions: float = 0.0
    total_spend: float = 0.0
    total_revenue: float = 0.0


class MissingContractSummary(BaseModel):
    """Totals across the missing-contract set, used for top-level alerting."""
    model_config = ConfigDict(frozen=True)

    campaign_count: int = Field(default=0, ge=0)
    total_impressions: float = 0.0
    total_spend: float = 0.0
    total_revenue: float = 0.0


class ContractTermsValidationResult(BaseModel):
    """
    Outcome of checking active campaigns against the contract-terms dataset.

    `missing_campaigns` is ordered by impressions, most active first.
    """
    model_config = ConfigDict(frozen=True)

    missing_campaigns: List[MissingContractInfo] = Field(default_factory=list)
    total_missing_campaigns: int = Field(default=0, ge=0)
    has_active_campaigns_missing: bool = False
    summary: MissingContractSummary = Field(default_factory=MissingContractSummary)


# =============================================================================
# Contract-Driven Pacing
# =============================================================================


class ContractTerms(BaseModel):
    """
    Parsed contract terms for one campaign order.

    The flight is inclusive of both start_date and end_date.
    """
    model_config = ConfigDict(frozen=True)

    campaign_name: str
    budget: float = Field(..., ge=0)
    cpm: float = Field(..., ge=0)
    impressions_goal: float = Field(..., ge=0)
    start_date: DateType
    end_date: DateType

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class CampaignPacingMetrics(BaseModel):
    """
    Flight-to-date pacing for one contracted campaign.

    `impressions_yesterday` and `daily_avg_left` carry the same meaning as the
    pacing report columns of the same name, so these metrics can be summarized
    like pacing snapshot rows.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "key": "acme spring sale",
                "campaign_name": "ACME Spring Sale",
                "budget": 3000.0,
                "cpm": 10.0,
                "impressions_goal": 300000,
                "start_date": "2024-05-01",
                "end_date": "2024-05-30",
                "as_of_date": "2024-05-11",
                "days_into_campaign": 10,
                "days_until_end": 19,
                "expected_impressions": 100000,
                "actual_impressions": 95000,
                "current_pacing": 0.95,
                "remaining_impressions": 205000,
                "daily_avg_left": 10789.47,
                "impressions_yesterday": 9800,
                "yesterday_vs_needed": 0.908,
            }
        },
    )

    key: str = Field(..., description="Normalized campaign key")
    campaign_name: str
    budget: float
    cpm: float
    impressions_goal: float
    start_date: DateType
    end_date: DateType
    as_of_date: DateType = Field(..., description="Most recent delivery date used for the flight clock")
    days_into_campaign: int = Field(default=0, ge=0)
    days_until_end: int = Field(default=0, ge=0)
    expected_impressions: float = Field(default=0.0, description="goal / flight days * days into campaign")
    actual_impressions: float = 0.0
    current_pacing: float = Field(default=0.0, description="actual / expected, 0 when nothing was expected")
    remaining_impressions: float = Field(default=0.0, ge=0)
    daily_avg_left: float = Field(default=0.0, description="Remaining impressions needed per remaining day")
    impressions_yesterday: float = Field(default=0.0, description="Delivery on the second most recent day")
    yesterday_vs_needed: float = Field(default=0.0, description="impressions_yesterday / daily_avg_left")
    assessment: PacingAssessment


class ContractPacingResult(BaseModel):
    """Pacing for every usable contract, plus the contracts that were skipped."""
    model_config = ConfigDict(frozen=True)

    campaigns: List[CampaignPacingMetrics] = Field(default_factory=list)
    skipped_campaigns: List[str] = Field(
        default_factory=list,
        description="Contract names skipped for missing or invalid terms",
    )
    excluded_test_campaigns: List[str] = Field(default_factory=list)
    summary: PacingSummary = Field(default_factory=PacingSummary)


# =============================================================================
# Trends
# =============================================================================


class MetricComparison(BaseModel):
    """One metric of one period compared against the period before it."""
    model_config = ConfigDict(frozen=True)

    metric: TrendMetric
    period_start: DateType
    period_end: DateType
    current: float
    previous: Optional[float] = Field(
        default=None,
        description="None for the earliest period, which has nothing to compare against",
    )
    change_pct: float = 0.0
    direction: TrendDirection = TrendDirection.FLAT


# =============================================================================
# Report
# =============================================================================


class ReconciliationReport(BaseModel):
    """
    Everything the reporting layer needs for one input snapshot.

    `contract_validation` is None when no contract-terms data was supplied;
    `contract_pacing` is None unless contract-terms rows were supplied.
    """
    model_config = ConfigDict(frozen=True)

    periods: List[PeriodAggregate] = Field(default_factory=list)
    campaigns: List[CampaignAggregate] = Field(default_factory=list)
    period_pacing: List[PacingAssessment] = Field(default_factory=list)
    campaign_pacing: List[PacingAssessment] = Field(default_factory=list)
    pacing_summary: PacingSummary = Field(default_factory=PacingSummary)
    contract_validation: Optional[ContractTermsValidationResult] = None
    contract_pacing: Optional[ContractPacingResult] = None
    trends: Dict[TrendMetric, float] = Field(default_factory=dict)
    comparisons: Dict[TrendMetric, List[MetricComparison]] = Field(
        default_factory=dict,
        description="Each period compared with the one before it, per trend metric",
    )
    total_row_count: int = Field(default=0, ge=0)
    excluded_row_count: int = Field(
        default=0,
        ge=0,
        description="Rows left out of date-aware rollups (no date, bad date, or Totals)",
    )


# =============================================================================
# Ingestion Models
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting structural problems with an upload (missing columns,
    empty file, unreadable CSV).
    """
    field: str = Field(
        ...,
        description="Field with validation error"
    )
    message: str = Field(
        ...,
        description="Error message"
    )
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="Row number where error occurred"
    )


# =============================================================================
# Sessions
# =============================================================================


class Session(BaseModel):
    """An authenticated session issued by the credential service."""
    model_config = ConfigDict(frozen=True)

    token: str
    username: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
