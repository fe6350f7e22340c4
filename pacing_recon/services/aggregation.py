"""
Delivery aggregation service for the Pacing Reconciliation backend.

Groups normalized DeliveryRecords by a key (calendar day, campaign, or an N-day
window) and derives rate metrics from the group totals.

Key Functions:
- aggregate_by_key: Generic grouping with an optional inclusive date range
- aggregate_by_date: Daily PeriodAggregates, ascending by date
- aggregate_by_campaign: CampaignAggregates in first-occurrence order
- aggregate_by_period: Non-overlapping N-day windows ending on the latest date
- calculate_derived_metrics: CTR, ROAS, AOV and delivery rate from totals

Derived Metrics:
- ctr = clicks / impressions * 100
- roas = revenue / spend
- aov = revenue / transactions
- delivery_rate = actual_impressions / expected_impressions

Each derived metric is 0 when its denominator is 0. Derived values are always
computed once per group from summed totals, never averaged from per-row rates.

Records without a usable date (missing, unparseable, or the "Totals" row) are
excluded from every aggregation here.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from pacing_recon.models.schemas import (
    CampaignAggregate,
    DateRange,
    DeliveryRecord,
    PeriodAggregate,
)

# Configure module logger
logger = logging.getLogger(__name__)

KeyFn = Callable[[DeliveryRecord], Optional[Hashable]]


# =============================================================================
# Accumulator
# =============================================================================


@dataclass
class MetricTotals:
    """
    Running sums for one aggregation bucket.

    Attributes mirror the summable DeliveryRecord fields; row_count counts the
    contributing records.
    """
    impressions: float = 0.0
    clicks: float = 0.0
    revenue: float = 0.0
    spend: float = 0.0
    transactions: float = 0.0
    expected_impressions: float = 0.0
    actual_impressions: float = 0.0
    impressions_yesterday: float = 0.0
    daily_avg_left: float = 0.0
    row_count: int = 0

    def add(self, record: DeliveryRecord) -> None:
        self.impressions += record.impressions
        self.clicks += record.clicks
        self.revenue += record.revenue
        self.spend += record.spend
        self.transactions += record.transactions
        self.expected_impressions += record.expected_impressions
        self.actual_impressions += record.actual_impressions
        self.impressions_yesterday += record.impressions_yesterday
        self.daily_avg_left += record.daily_avg_left
        self.row_count += 1


# =============================================================================
# Derived Metric Calculations
# =============================================================================


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def calculate_derived_metrics(totals: MetricTotals) -> Dict[str, float]:
    """
    Calculate rate metrics from bucket totals.

    Args:
        totals: Summed metrics for one bucket

    Returns:
        Dictionary with ctr, roas, aov and delivery_rate. Never NaN or infinite.

    Example:
        >>> totals = MetricTotals(impressions=1000, clicks=25, revenue=300.0, spend=100.0)
        >>> calculate_derived_metrics(totals)['ctr']
        2.5
    """
    return {
        'ctr': safe_ratio(totals.clicks, totals.impressions) * 100,
        'roas': safe_ratio(totals.revenue, totals.spend),
        'aov': safe_ratio(totals.revenue, totals.transactions),
        'delivery_rate': safe_ratio(totals.actual_impressions, totals.expected_impressions),
    }


# =============================================================================
# Grouping
# =============================================================================


def filter_records(
    records: Iterable[DeliveryRecord],
    date_range: Optional[DateRange] = None
) -> List[DeliveryRecord]:
    """
    Keep dated records that fall inside the optional inclusive date range.

    Undated records (no date, bad date, Totals row) are always dropped.
    """
    kept: List[DeliveryRecord] = []
    for record in records:
        if record.date is None:
            continue
        if date_range is not None and not date_range.contains(record.date):
            continue
        kept.append(record)
    return kept


def aggregate_by_key(
    records: Iterable[DeliveryRecord],
    key_fn: KeyFn,
    date_range: Optional[DateRange] = None
) -> Dict[Hashable, MetricTotals]:
    """
    Group records by key and sum their metrics.

    Args:
        records: Normalized delivery records
        key_fn: Maps a record to its bucket key. None or "" skips the record.
        date_range: Optional inclusive date filter applied before grouping

    Returns:
        Mapping of key to MetricTotals, in order of each key's first occurrence
    """
    buckets: Dict[Hashable, MetricTotals] = {}
    skipped = 0

    for record in filter_records(records, date_range):
        key = key_fn(record)
        if key is None or key == '':
            skipped += 1
            continue
        totals = buckets.get(key)
        if totals is None:
            totals = MetricTotals()
            buckets[key] = totals
        totals.add(record)

    if skipped:
        logger.debug(f"Skipped {skipped} records with an empty grouping key")

    return buckets


def _period_aggregate(start: date, end: date, totals: MetricTotals) -> PeriodAggregate:
    return PeriodAggregate(
        date=start,
        period_end=end,
        impressions=totals.impressions,
        clicks=totals.clicks,
        revenue=totals.revenue,
        spend=totals.spend,
        transactions=totals.transactions,
        expected_impressions=totals.expected_impressions,
        actual_impressions=totals.actual_impressions,
        row_count=totals.row_count,
        **calculate_derived_metrics(totals),
    )


def aggregate_by_date(
    records: Iterable[DeliveryRecord],
    date_range: Optional[DateRange] = None
) -> List[PeriodAggregate]:
    """
    Roll records up to one PeriodAggregate per calendar day.

    Returns:
        Daily aggregates sorted ascending by date
    """
    buckets = aggregate_by_key(records, lambda record: record.date, date_range)
    return [
        _period_aggregate(day, day, totals)
        for day, totals in sorted(buckets.items(), key=lambda item: item[0])
    ]


def aggregate_by_campaign(
    records: Iterable[DeliveryRecord],
    date_range: Optional[DateRange] = None
) -> List[CampaignAggregate]:
    """
    Roll records up to one CampaignAggregate per normalized campaign key.

    Returns:
        Campaign aggregates in order of first appearance in the input
    """
    # Imported here to keep contract_terms free to import this module
    from pacing_recon.services.contract_terms import normalize_campaign_key

    filtered = filter_records(records, date_range)

    display_names: Dict[str, str] = {}
    for record in filtered:
        key = normalize_campaign_key(record.campaign_name)
        if key and key not in display_names:
            display_names[key] = record.campaign_name.strip()

    buckets = aggregate_by_key(
        filtered,
        lambda record: normalize_campaign_key(record.campaign_name),
    )

    campaigns: List[CampaignAggregate] = []
    for key, totals in buckets.items():
        campaigns.append(CampaignAggregate(
            key=key,
            campaign_name=display_names[key],
            impressions=totals.impressions,
            clicks=totals.clicks,
            revenue=totals.revenue,
            spend=totals.spend,
            transactions=totals.transactions,
            expected_impressions=totals.expected_impressions,
            actual_impressions=totals.actual_impressions,
            impressions_yesterday=totals.impressions_yesterday,
            daily_avg_left=totals.daily_avg_left,
            row_count=totals.row_count,
            delivery_rate=calculate_derived_metrics(totals)['delivery_rate'],
        ))
    return campaigns


def aggregate_by_period(
    records: Iterable[DeliveryRecord],
    period_days: int,
    date_range: Optional[DateRange] = None
) -> List[PeriodAggregate]:
    """
    Roll records up into non-overlapping windows of `period_days` days.

    Windows are laid out backwards from the most recent delivery date: the last
    window ends on that date, the one before it ends the day before the last
    window starts, and so on. Only complete windows that start on or after the
    earliest delivery date are kept, and windows without any rows are dropped.

    Args:
        records: Normalized delivery records
        period_days: Window length in days (7, 14 and 30 in the dashboard)
        date_range: Optional inclusive date filter applied first

    Returns:
        Window aggregates sorted ascending by start date

    Raises:
        ValueError: If period_days is less than 1
    """
    if period_days < 1:
        raise ValueError(f"period_days must be at least 1, got {period_days}")

    filtered = filter_records(records, date_range)
    if not filtered:
        return []

    earliest = min(record.date for record in filtered)
    latest = max(record.date for record in filtered)
    total_days = (latest - earliest).days + 1
    complete_periods = total_days // period_days

    windows: List[tuple] = []
    period_end = latest
    for _ in range(complete_periods):
        period_start = period_end - timedelta(days=period_days - 1)
        windows.append((period_start, period_end))
        period_end = period_start - timedelta(days=1)

    def window_for(record: DeliveryRecord) -> Optional[tuple]:
        for start, end in windows:
            if start <= record.date <= end:
                return (start, end)
        return None

    buckets = aggregate_by_key(filtered, window_for)
    return [
        _period_aggregate(start, end, totals)
        for (start, end), totals in sorted(buckets.items(), key=lambda item: item[0][0])
    ]


__all__ = [
    "MetricTotals",
    "safe_ratio",
    "calculate_derived_metrics",
    "filter_records",
    "aggregate_by_key",
    "aggregate_by_date",
    "aggregate_by_campaign",
    "aggregate_by_period",
]
