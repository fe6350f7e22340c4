"""
Contract Pacing Service

Computes flight-to-date pacing for each contracted campaign from its contract
terms (budget, CPM, impressions goal, flight dates) and the delivery records.

Flight clock:
- The flight runs from start_date to end_date inclusive.
- The "as of" day is the campaign's most recent delivery date, falling back to
  the latest delivery date across all campaigns, then to today.
- days_into_campaign = as_of - start_date, clamped to [0, flight days]
- days_until_end = end_date - as_of, floored at 0

Metrics:
- expected = goal / flight days * days_into_campaign
- current_pacing = actual / expected (0 when nothing is expected yet)
- remaining = max(0, goal - actual)
- daily_avg_left = remaining / days_until_end (0 once the flight has ended)
- impressions_yesterday = delivery on the second most recent delivery day
- yesterday_vs_needed = impressions_yesterday / daily_avg_left

Contracts with missing or invalid terms are skipped and reported by name.
Test, demo and draft campaigns are excluded by default.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pacing_recon.models.schemas import (
    CampaignPacingMetrics,
    ContractPacingResult,
    ContractTerms,
    DeliveryRecord,
)
from pacing_recon.services.aggregation import aggregate_by_date
from pacing_recon.services.contract_terms import contract_name, normalize_campaign_key
from pacing_recon.services.normalizer import lookup_field, parse_date, parse_optional_number
from pacing_recon.services.severity import assess_pacing, pacing_ratio, summarize_pacing

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Test Campaign Detection
# =============================================================================

TEST_CAMPAIGN_KEYWORDS: List[str] = ['test', 'demo', 'draft']
TEST_AGENCY_ABBREVIATION: str = 'TST'

# "<io id>: <agency>: ..." or "<io id>/<io id>: <agency>: ..." or "<agency>: ..."
_AGENCY_PREFIX = re.compile(r'^\s*(?:\d+(?:\s*/\s*\d+)?\s*:\s*)?([^:]+?)\s*:')


class InvalidContractTermsError(ValueError):
    """Contract row lacks a usable name, budget, CPM, goal or flight."""


# =============================================================================
# Test Campaigns
# =============================================================================


def extract_agency_abbreviation(campaign_name: Optional[str]) -> Optional[str]:
    """
    Agency abbreviation from a campaign order name.

    Examples:
        >>> extract_agency_abbreviation("2001234: TST: Sandbox Order")
        'TST'
        >>> extract_agency_abbreviation("ACME Spring Sale") is None
        True
    """
    if not campaign_name:
        return None
    match = _AGENCY_PREFIX.match(campaign_name)
    if match is None:
        return None
    return match.group(1).strip()


def is_test_campaign(campaign_name: Optional[str]) -> bool:
    """True for test, demo or draft orders and for the TST agency."""
    if not campaign_name:
        return False
    lowered = campaign_name.lower()
    if any(keyword in lowered for keyword in TEST_CAMPAIGN_KEYWORDS):
        return True
    return extract_agency_abbreviation(campaign_name) == TEST_AGENCY_ABBREVIATION


# =============================================================================
# Contract Terms
# =============================================================================


def _required_number(row: Mapping[str, Any], field_name: str, name: str) -> float:
    number = parse_optional_number(lookup_field(row, field_name))
    if number is None:
        raise InvalidContractTermsError(f"Contract '{name}' has no usable {field_name}")
    if number < 0:
        raise InvalidContractTermsError(f"Contract '{name}' has a negative {field_name}")
    return number


def _required_date(row: Mapping[str, Any], field_name: str, name: str) -> date:
    parsed = parse_date(lookup_field(row, field_name))
    if parsed is None:
        raise InvalidContractTermsError(f"Contract '{name}' has no usable {field_name}")
    return parsed


def parse_contract_terms(row: Mapping[str, Any]) -> ContractTerms:
    """
    Parse one contract-terms row.

    Raises:
        InvalidContractTermsError: If the name, budget, CPM, impressions goal or
            either flight date is missing or unparseable, or the flight ends
            before it starts
    """
    name = contract_name(row)
    if name is None or not name.strip():
        raise InvalidContractTermsError("Contract row has no campaign name")
    name = name.strip()

    budget = _required_number(row, 'budget', name)
    cpm = _required_number(row, 'cpm', name)
    goal = _required_number(row, 'impressions_goal', name)
    start = _required_date(row, 'start_date', name)
    end = _required_date(row, 'end_date', name)
    if end < start:
        raise InvalidContractTermsError(f"Contract '{name}' ends before it starts")

    return ContractTerms(
        campaign_name=name,
        budget=budget,
        cpm=cpm,
        impressions_goal=goal,
        start_date=start,
        end_date=end,
    )


# =============================================================================
# Metrics
# =============================================================================


def latest_delivery_date(records: Iterable[DeliveryRecord]) -> Optional[date]:
    dates = [record.date for record in records if record.date is not None]
    return max(dates) if dates else None


def calculate_campaign_metrics(
    terms: ContractTerms,
    records: Iterable[DeliveryRecord],
    fallback_date: Optional[date] = None
) -> CampaignPacingMetrics:
    """
    Flight-to-date pacing for one contract.

    Args:
        terms: Parsed contract terms
        records: Delivery records; only dated records of this campaign count
        fallback_date: As-of day when the campaign has no delivery yet
            (defaults to today)

    Returns:
        CampaignPacingMetrics with its PacingAssessment
    """
    key = normalize_campaign_key(terms.campaign_name)
    campaign_records = [
        record for record in records
        if record.date is not None and normalize_campaign_key(record.campaign_name) == key
    ]

    as_of = latest_delivery_date(campaign_records) or fallback_date or date.today()
    total_days = terms.total_days
    days_into = max(0, min((as_of - terms.start_date).days, total_days))
    days_until_end = max(0, (terms.end_date - as_of).days)

    expected = terms.impressions_goal / total_days * days_into
    actual = sum(record.impressions for record in campaign_records)
    remaining = max(0.0, terms.impressions_goal - actual)
    daily_avg_left = remaining / days_until_end if days_until_end > 0 else 0.0

    daily = aggregate_by_date(campaign_records)
    yesterday = daily[-2].impressions if len(daily) > 1 else 0.0

    return CampaignPacingMetrics(
        key=key,
        campaign_name=terms.campaign_name,
        budget=terms.budget,
        cpm=terms.cpm,
        impressions_goal=terms.impressions_goal,
        start_date=terms.start_date,
        end_date=terms.end_date,
        as_of_date=as_of,
        days_into_campaign=days_into,
        days_until_end=days_until_end,
        expected_impressions=expected,
        actual_impressions=actual,
        current_pacing=pacing_ratio(actual, expected),
        remaining_impressions=remaining,
        daily_avg_left=daily_avg_left,
        impressions_yesterday=yesterday,
        yesterday_vs_needed=yesterday / daily_avg_left if daily_avg_left > 0 else 0.0,
        assessment=assess_pacing(key, terms.campaign_name, actual, expected),
    )


def process_campaigns(
    contract_rows: Iterable[Mapping[str, Any]],
    records: Iterable[DeliveryRecord],
    exclude_test_campaigns: bool = True,
    as_of: Optional[date] = None
) -> ContractPacingResult:
    """
    Compute pacing for every contract row.

    Args:
        contract_rows: Raw contract-terms rows
        records: Normalized delivery records
        exclude_test_campaigns: Leave out test, demo, draft and TST orders
        as_of: Fallback as-of day for campaigns without delivery; defaults to
            the latest delivery date across all records

    Returns:
        ContractPacingResult in contract order. Only the first contract row of
        each campaign is used.
    """
    records = list(records)
    fallback = as_of or latest_delivery_date(records)

    campaigns: List[CampaignPacingMetrics] = []
    skipped: List[str] = []
    excluded: List[str] = []
    seen: Dict[str, str] = {}

    for row in contract_rows:
        name = contract_name(row)
        label = name.strip() if name else ''

        if exclude_test_campaigns and is_test_campaign(label):
            excluded.append(label)
            continue

        try:
            terms = parse_contract_terms(row)
        except InvalidContractTermsError as e:
            logger.warning(f"Skipping contract: {e}")
            skipped.append(label)
            continue

        key = normalize_campaign_key(terms.campaign_name)
        if key in seen:
            logger.debug(f"Ignoring duplicate contract row for '{terms.campaign_name}'")
            continue
        seen[key] = terms.campaign_name

        campaigns.append(calculate_campaign_metrics(terms, records, fallback))

    logger.info(
        f"Processed {len(campaigns)} contracts "
        f"({len(skipped)} skipped, {len(excluded)} test campaigns excluded)"
    )

    return ContractPacingResult(
        campaigns=campaigns,
        skipped_campaigns=skipped,
        excluded_test_campaigns=excluded,
        summary=summarize_pacing(campaigns),
    )


__all__ = [
    "TEST_CAMPAIGN_KEYWORDS",
    "TEST_AGENCY_ABBREVIATION",
    "InvalidContractTermsError",
    "extract_agency_abbreviation",
    "is_test_campaign",
    "parse_contract_terms",
    "latest_delivery_date",
    "calculate_campaign_metrics",
    "process_campaigns",
]
