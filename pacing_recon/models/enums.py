"""
Enumeration definitions for the Pacing Reconciliation backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in pydantic models and API responses.
"""

from enum import Enum


class SeverityTier(str, Enum):
    """
    Four-tier pacing severity, ordered from healthiest to worst.

    Each tier is an inclusive band over the pacing ratio (actual / expected):
    - on-target: [0.99, 1.01]
    - minor: [0.90, 1.10]
    - moderate: [0.75, 1.25]
    - major: everything the tighter bands do not capture

    Bands overlap; they are evaluated tightest first and the first match wins.
    """
    ON_TARGET = "on-target"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        """Position in the ordering, 0 for on-target up to 3 for major."""
        return list(SeverityTier).index(self)


class PacingStatus(str, Enum):
    """
    Coarse three-tier alert status used for summary counts.

    Based on the deviation of the delivery rate from 100%:
    - on_pace: deviation <= 2 points
    - caution: deviation <= 10 points
    - off_pace: anything else

    Independent of SeverityTier; the thresholds differ on purpose.
    """
    ON_PACE = "on_pace"
    CAUTION = "caution"
    OFF_PACE = "off_pace"


class FeedType(str, Enum):
    """
    CSV upload kinds recognised by the ingestion service.

    - delivery: daily campaign performance report (DATE, CAMPAIGN ORDER NAME, ...)
    - pacing: pacing snapshot report (Campaign, Expected Imps, Actual Imps, ...)
    - contract_terms: campaign order contract terms (Name, Start Date, Budget, ...)
    """
    DELIVERY = "delivery"
    PACING = "pacing"
    CONTRACT_TERMS = "contract_terms"
    UNKNOWN = "unknown"


class TrendMetric(str, Enum):
    """Metrics that period-over-period trends can be computed for."""
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    REVENUE = "revenue"
    SPEND = "spend"
    TRANSACTIONS = "transactions"
    CTR = "ctr"
    ROAS = "roas"
    AOV = "aov"
    DELIVERY_RATE = "delivery_rate"


class TrendDirection(str, Enum):
    """Sign of a period-over-period change."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"
