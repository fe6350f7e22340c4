"""
Severity Classifier Service

Buckets pacing ratios (actual / expected impressions) into the four-tier
severity scale and derives the coarse three-tier pacing status used for
portfolio summary counts.

Severity bands (inclusive on both ends, evaluated tightest first):
- on-target: [0.99, 1.01]  (within ±1%)
- minor:     [0.90, 1.10]  (within ±1-10%)
- moderate:  [0.75, 1.25]  (within ±10-25%)
- major:     everything else (±25%+)

When nothing was expected the ratio is 0, which lands in major.

Pacing status (deviation of the delivery rate from 100%, in points):
- on_pace: deviation <= 2
- caution: deviation <= 10
- off_pace: anything else
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Union

from pacing_recon.models.enums import PacingStatus, SeverityTier
from pacing_recon.models.schemas import (
    CampaignAggregate,
    CampaignPacingMetrics,
    DeliveryRecord,
    PacingAssessment,
    PacingSummary,
)

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Severity Bands
# =============================================================================


@dataclass(frozen=True)
class SeverityBand:
    """Inclusive ratio band plus its display metadata."""
    tier: SeverityTier
    lower: float
    upper: float
    label: str
    description: str
    symbol: str

    def contains(self, ratio: float) -> bool:
        return self.lower <= ratio <= self.upper


# Order matters: tightest band first
SEVERITY_BANDS: List[SeverityBand] = [
    SeverityBand(SeverityTier.ON_TARGET, 0.99, 1.01, "On Target", "Within ±1%", "✓"),
    SeverityBand(SeverityTier.MINOR, 0.90, 1.10, "Minor Deviation", "Within ±1-10%", "!"),
    SeverityBand(SeverityTier.MODERATE, 0.75, 1.25, "Moderate Deviation", "Within ±10-25%", "!!"),
    SeverityBand(SeverityTier.MAJOR, 0.0, 2.0, "Major Deviation", "±25%+", "!!!"),
]

# Deviation thresholds in percentage points for PacingStatus
ON_PACE_MAX_DEVIATION: float = 2.0
CAUTION_MAX_DEVIATION: float = 10.0


def get_band(tier: SeverityTier) -> SeverityBand:
    """Look up display metadata for a tier."""
    for band in SEVERITY_BANDS:
        if band.tier == tier:
            return band
    raise ValueError(f"No band defined for tier: {tier}")


# =============================================================================
# Classification
# =============================================================================


def pacing_ratio(actual: float, expected: float) -> float:
    """actual / expected, or 0 when nothing was expected."""
    if expected <= 0:
        return 0.0
    return actual / expected


def classify_ratio(ratio: float) -> SeverityTier:
    """
    Walk the severity bands tightest first and return the first match.

    Ratios outside every band (below 0.75 or above 1.25, including the
    extremes beyond the nominal major band) are major.

    Examples:
        >>> classify_ratio(1.0)
        <SeverityTier.ON_TARGET: 'on-target'>
        >>> classify_ratio(0.5)
        <SeverityTier.MAJOR: 'major'>
    """
    for band in SEVERITY_BANDS:
        if band.contains(ratio):
            return band.tier
    return SeverityTier.MAJOR


def classify(actual: float, expected: float) -> SeverityTier:
    """
    Classify delivery against expectation.

    Args:
        actual: Delivered impressions
        expected: Expected impressions

    Returns:
        SeverityTier for the ratio actual / expected (major when expected <= 0)
    """
    return classify_ratio(pacing_ratio(actual, expected))


# =============================================================================
# Pacing Status
# =============================================================================


def delivery_rate_pct(actual: float, expected: float) -> float:
    """Delivery rate as a percentage, 0 when nothing was expected."""
    if expected <= 0:
        return 0.0
    return actual * 100 / expected


def pacing_status(actual: float, expected: float) -> PacingStatus:
    """
    Coarse alert status from the deviation of the delivery rate from 100%.

    Examples:
        >>> pacing_status(1015, 1000)
        <PacingStatus.ON_PACE: 'on_pace'>
        >>> pacing_status(920, 1000)
        <PacingStatus.CAUTION: 'caution'>
    """
    deviation = abs(delivery_rate_pct(actual, expected) - 100)
    if deviation <= ON_PACE_MAX_DEVIATION:
        return PacingStatus.ON_PACE
    if deviation <= CAUTION_MAX_DEVIATION:
        return PacingStatus.CAUTION
    return PacingStatus.OFF_PACE


def assess_pacing(key: str, label: str, actual: float, expected: float) -> PacingAssessment:
    """Bundle ratio, severity and status for one period or campaign."""
    ratio = pacing_ratio(actual, expected)
    return PacingAssessment(
        key=key,
        label=label,
        expected_impressions=expected,
        actual_impressions=actual,
        ratio=ratio,
        severity=classify_ratio(ratio),
        status=pacing_status(actual, expected),
    )


def summarize_pacing(
    records: Iterable[Union[DeliveryRecord, CampaignAggregate, CampaignPacingMetrics]]
) -> PacingSummary:
    """
    Count pacing statuses across a set of pacing rows.

    Works on pacing snapshot rows, which carry no date and hold one campaign
    each, as well as on campaign aggregates and contract pacing metrics.
    Each item counts as one campaign. Portfolio percentages are taken from totals rather than
    averaged per campaign.

    Args:
        records: Pacing records, campaign aggregates or contract pacing metrics

    Returns:
        PacingSummary (all zeros for an empty input)
    """
    counts = {status: 0 for status in PacingStatus}
    total_expected = 0.0
    total_actual = 0.0
    total_yesterday = 0.0
    total_daily_avg_left = 0.0
    total = 0

    for record in records:
        total += 1
        counts[pacing_status(record.actual_impressions, record.expected_impressions)] += 1
        total_expected += record.expected_impressions
        total_actual += record.actual_impressions
        total_yesterday += record.impressions_yesterday
        total_daily_avg_left += record.daily_avg_left

    if total == 0:
        return PacingSummary()

    summary = PacingSummary(
        total_campaigns=total,
        on_pace=counts[PacingStatus.ON_PACE],
        caution=counts[PacingStatus.CAUTION],
        off_pace=counts[PacingStatus.OFF_PACE],
        avg_delivery_rate=delivery_rate_pct(total_actual, total_expected),
        avg_yesterday_delivery=delivery_rate_pct(total_yesterday, total_daily_avg_left),
        at_risk_pct=counts[PacingStatus.OFF_PACE] / total * 100,
    )
    logger.info(
        f"Pacing summary: {summary.on_pace} on pace, {summary.caution} caution, "
        f"{summary.off_pace} off pace out of {total}"
    )
    return summary


__all__ = [
    "SeverityBand",
    "SEVERITY_BANDS",
    "get_band",
    "pacing_ratio",
    "classify_ratio",
    "classify",
    "delivery_rate_pct",
    "pacing_status",
    "assess_pacing",
    "summarize_pacing",
]
