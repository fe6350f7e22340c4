"""
Reconciliation report builder.

Main entry point for the engine: takes one snapshot of delivery rows (and
optionally contract-terms data) and produces the complete ReconciliationReport.

Steps:
1. Normalize raw rows into DeliveryRecords
2. Aggregate by day, or by N-day windows when period_days is given
3. Aggregate by campaign
4. Assess pacing per period and per campaign
5. Summarize pacing across campaigns
6. Reconcile active campaigns against contract terms (when supplied)
7. Compute contract-driven pacing (when contract rows are supplied)
8. Compute period-over-period trends and per-period comparisons

Every call recomputes from scratch; nothing is cached between snapshots.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pacing_recon.models.enums import TrendMetric
from pacing_recon.models.schemas import (
    CampaignAggregate,
    DateRange,
    DeliveryRecord,
    PacingAssessment,
    PeriodAggregate,
    ReconciliationReport,
)
from pacing_recon.services.aggregation import (
    aggregate_by_campaign,
    aggregate_by_date,
    aggregate_by_period,
    filter_records,
)
from pacing_recon.services.contract_terms import (
    extract_contract_keys,
    validate_contract_terms,
)
from pacing_recon.services.normalizer import normalize_rows
from pacing_recon.services.pacing import process_campaigns
from pacing_recon.services.severity import assess_pacing, summarize_pacing
from pacing_recon.services.trend import compare_periods, period_over_period_change

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TREND_METRICS: List[TrendMetric] = [
    TrendMetric.IMPRESSIONS,
    TrendMetric.CLICKS,
    TrendMetric.REVENUE,
    TrendMetric.SPEND,
    TrendMetric.CTR,
    TrendMetric.ROAS,
]


def assess_periods(periods: Iterable[PeriodAggregate]) -> List[PacingAssessment]:
    return [
        assess_pacing(
            key=period.date.isoformat(),
            label=period.date.isoformat(),
            actual=period.actual_impressions,
            expected=period.expected_impressions,
        )
        for period in periods
    ]


def assess_campaigns(campaigns: Iterable[CampaignAggregate]) -> List[PacingAssessment]:
    return [
        assess_pacing(
            key=campaign.key,
            label=campaign.campaign_name,
            actual=campaign.actual_impressions,
            expected=campaign.expected_impressions,
        )
        for campaign in campaigns
    ]


def build_reconciliation_report(
    delivery_rows: Iterable[Mapping[str, Any]],
    contract_rows: Optional[Iterable[Mapping[str, Any]]] = None,
    contract_keys: Optional[Iterable[str]] = None,
    date_range: Optional[DateRange] = None,
    trend_metrics: Sequence[TrendMetric] = DEFAULT_TREND_METRICS,
    period_days: Optional[int] = None,
    exclude_test_campaigns: bool = True
) -> ReconciliationReport:
    """
    Build the full reconciliation report for one input snapshot.

    Args:
        delivery_rows: Raw string-keyed delivery rows
        contract_rows: Raw contract-terms rows; their names are extracted with
            the contract alias list
        contract_keys: Contract campaign names or keys, merged with any keys
            extracted from contract_rows
        date_range: Optional inclusive date filter
        trend_metrics: Metrics to compute period-over-period change for
        period_days: Roll periods up into N-day windows instead of days
        exclude_test_campaigns: Leave test, demo and draft orders out of
            contract-driven pacing

    Returns:
        ReconciliationReport. contract_validation is None when neither
        contract_rows nor contract_keys is given; contract_pacing is None
        without contract_rows.

    Raises:
        ValueError: If period_days is given and less than 1
    """
    records: List[DeliveryRecord] = normalize_rows(delivery_rows)
    included = filter_records(records, date_range)
    excluded = len(records) - len(included)

    logger.info(
        f"Building reconciliation report from {len(records)} rows "
        f"({excluded} excluded from rollups)"
    )

    if period_days is None:
        periods = aggregate_by_date(included)
    else:
        periods = aggregate_by_period(included, period_days)
    campaigns = aggregate_by_campaign(included)

    if contract_rows is not None:
        contract_rows = list(contract_rows)

    contract_validation = None
    if contract_rows is not None or contract_keys is not None:
        known = set()
        if contract_rows is not None:
            known |= extract_contract_keys(contract_rows)
        if contract_keys is not None:
            known |= set(contract_keys)
        contract_validation = validate_contract_terms(included, known)

    contract_pacing = None
    if contract_rows is not None:
        contract_pacing = process_campaigns(
            contract_rows, included, exclude_test_campaigns=exclude_test_campaigns
        )

    metrics = [TrendMetric(metric) for metric in trend_metrics]
    trends = {metric: period_over_period_change(periods, metric) for metric in metrics}

    report = ReconciliationReport(
        periods=periods,
        campaigns=campaigns,
        period_pacing=assess_periods(periods),
        campaign_pacing=assess_campaigns(campaigns),
        pacing_summary=summarize_pacing(campaigns),
        contract_validation=contract_validation,
        contract_pacing=contract_pacing,
        trends=trends,
        comparisons=compare_periods(periods, metrics),
        total_row_count=len(records),
        excluded_row_count=excluded,
    )

    logger.info(
        f"Report built: {len(periods)} periods, {len(campaigns)} campaigns"
    )
    return report


__all__ = [
    "DEFAULT_TREND_METRICS",
    "assess_periods",
    "assess_campaigns",
    "build_reconciliation_report",
]
