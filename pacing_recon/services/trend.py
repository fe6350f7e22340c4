"""
Trend Calculator Service

Period-over-period percentage change for aggregated delivery metrics.

The series is sorted by period start before comparing, so callers may pass
aggregates in any order. A change is only meaningful with a non-zero baseline:
fewer than two periods, or a previous value of 0, yields 0.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from pacing_recon.models.enums import TrendDirection, TrendMetric
from pacing_recon.models.schemas import MetricComparison, PeriodAggregate

MetricSelector = Union[TrendMetric, str, Callable[[PeriodAggregate], float]]

# Changes smaller than this (in percent) are reported as flat
FLAT_TOLERANCE: float = 1e-9


def _selector(metric: MetricSelector) -> Callable[[PeriodAggregate], float]:
    if callable(metric) and not isinstance(metric, str):
        return metric
    name = TrendMetric(metric).value
    return lambda period: float(getattr(period, name))


def _sorted_series(series: Iterable[PeriodAggregate]) -> List[PeriodAggregate]:
    return sorted(series, key=lambda period: period.date)


def percent_change(current: float, previous: Optional[float]) -> float:
    """
    (current - previous) / previous * 100, or 0 without a usable baseline.

    Examples:
        >>> percent_change(110, 100)
        10.0
        >>> percent_change(50, 0)
        0.0
    """
    if previous is None or previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def trend_direction(change: float) -> TrendDirection:
    if change > FLAT_TOLERANCE:
        return TrendDirection.UP
    if change < -FLAT_TOLERANCE:
        return TrendDirection.DOWN
    return TrendDirection.FLAT


def period_over_period_change(
    series: Iterable[PeriodAggregate],
    metric: MetricSelector
) -> float:
    """
    Percentage change of a metric from the second-to-last to the last period.

    Args:
        series: Period aggregates, any order
        metric: A TrendMetric, its string value, or a function of a period

    Returns:
        Percentage change, 0 with fewer than two periods or a zero baseline

    Raises:
        ValueError: If metric names no known TrendMetric
    """
    select = _selector(metric)
    ordered = _sorted_series(series)
    if len(ordered) < 2:
        return 0.0
    return percent_change(select(ordered[-1]), select(ordered[-2]))


def compare_periods(
    series: Iterable[PeriodAggregate],
    metrics: Sequence[TrendMetric]
) -> Dict[TrendMetric, List[MetricComparison]]:
    """
    Compare every period with the one before it, per metric.

    The earliest period has no previous value; its change is 0 and its
    direction flat.

    Returns:
        Mapping of metric to comparisons in ascending period order
    """
    ordered = _sorted_series(series)
    comparisons: Dict[TrendMetric, List[MetricComparison]] = {}

    for metric in metrics:
        metric = TrendMetric(metric)
        select = _selector(metric)
        rows: List[MetricComparison] = []
        previous: Optional[float] = None
        for period in ordered:
            current = select(period)
            change = percent_change(current, previous)
            rows.append(MetricComparison(
                metric=metric,
                period_start=period.date,
                period_end=period.period_end,
                current=current,
                previous=previous,
                change_pct=change,
                direction=trend_direction(change),
            ))
            previous = current
        comparisons[metric] = rows

    return comparisons


__all__ = [
    "FLAT_TOLERANCE",
    "percent_change",
    "trend_direction",
    "period_over_period_change",
    "compare_periods",
]
