"""
Contract Reconciler Service

Cross-checks delivering campaigns against the contract-terms dataset and
reports campaigns that are spending without contract terms on file.

Matching is on the normalized campaign key (trimmed, case-folded) only. There
is no fuzzy matching: "ACME Spring" and "ACME Spring 2024" are different
campaigns.

Contract rows name their campaign under one of several headers depending on
the export. The name is resolved through the "contract_name" entry of the
normalizer's FIELD_ALIASES table, so header case and padding do not matter.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Set

from pacing_recon.models.schemas import (
    CampaignAggregate,
    ContractTermsValidationResult,
    DateRange,
    DeliveryRecord,
    MissingContractInfo,
    MissingContractSummary,
)
from pacing_recon.services.aggregation import aggregate_by_campaign
from pacing_recon.services.normalizer import lookup_field

# Configure module logger
logger = logging.getLogger(__name__)

EXPORT_HEADER: str = 'Campaign Name,Total Impressions,Total Spend,Total Attributed Sales'


# =============================================================================
# Keys
# =============================================================================


def normalize_campaign_key(name: Optional[str]) -> str:
    """
    Matching key for a campaign name.

    Examples:
        >>> normalize_campaign_key("  ACME Spring Sale ")
        'acme spring sale'
    """
    if name is None:
        return ''
    return str(name).strip().casefold()


def contract_name(row: Mapping[str, Any]) -> Optional[str]:
    """Campaign name of a contract-terms row, or None when it has none."""
    value = lookup_field(row, 'contract_name')
    if value is None:
        return None
    return str(value)


def extract_contract_keys(contract_rows: Iterable[Mapping[str, Any]]) -> Set[str]:
    """
    Collect normalized campaign keys from contract-terms rows.

    Rows with no recognisable name column are ignored.
    """
    keys: Set[str] = set()
    unnamed = 0
    for row in contract_rows:
        name = contract_name(row)
        if name is None:
            unnamed += 1
            continue
        keys.add(normalize_campaign_key(name))

    if unnamed:
        logger.debug(f"Ignored {unnamed} contract rows without a campaign name")
    return keys


# =============================================================================
# Reconciliation
# =============================================================================


def find_missing(
    campaign_aggregates: Iterable[CampaignAggregate],
    known_contract_keys: Iterable[str]
) -> List[MissingContractInfo]:
    """
    Campaigns whose normalized key is absent from the contract keys.

    Args:
        campaign_aggregates: Aggregated campaigns to check
        known_contract_keys: Contract keys, normalized here again so callers may
            pass raw names

    Returns:
        Missing campaigns in input order
    """
    known = {normalize_campaign_key(key) for key in known_contract_keys}
    missing: List[MissingContractInfo] = []
    for campaign in campaign_aggregates:
        if normalize_campaign_key(campaign.key) in known:
            continue
        missing.append(MissingContractInfo(
            campaign_name=campaign.campaign_name,
            total_impressions=campaign.impressions,
            total_spend=campaign.spend,
            total_revenue=campaign.revenue,
        ))
    return missing


def summarize_missing(missing: Iterable[MissingContractInfo]) -> MissingContractSummary:
    """Plain sums across the missing set."""
    count = 0
    impressions = 0.0
    spend = 0.0
    revenue = 0.0
    for info in missing:
        count += 1
        impressions += info.total_impressions
        spend += info.total_spend
        revenue += info.total_revenue
    return MissingContractSummary(
        campaign_count=count,
        total_impressions=impressions,
        total_spend=spend,
        total_revenue=revenue,
    )


def validate_contract_terms(
    records: Iterable[DeliveryRecord],
    contract_keys: Iterable[str],
    date_range: Optional[DateRange] = None
) -> ContractTermsValidationResult:
    """
    Check active campaigns against the contract-terms dataset.

    A campaign is active when it has delivered at least one impression in the
    (optional) date range. The missing list is ordered by impressions, largest
    first, so the biggest gaps surface at the top.

    Args:
        records: Normalized delivery records
        contract_keys: Contract campaign keys or names
        date_range: Optional inclusive date filter

    Returns:
        ContractTermsValidationResult
    """
    active = [
        campaign
        for campaign in aggregate_by_campaign(records, date_range)
        if campaign.impressions > 0
    ]
    missing = sorted(
        find_missing(active, contract_keys),
        key=lambda info: info.total_impressions,
        reverse=True,
    )

    if missing:
        logger.warning(
            f"{len(missing)} of {len(active)} active campaigns have no contract terms"
        )

    return ContractTermsValidationResult(
        missing_campaigns=missing,
        total_missing_campaigns=len(missing),
        has_active_campaigns_missing=bool(missing),
        summary=summarize_missing(missing),
    )


# =============================================================================
# Export
# =============================================================================


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def missing_contracts_to_csv(missing: Iterable[MissingContractInfo]) -> str:
    """
    Render the missing-contract list as CSV text.

    The campaign name is always double-quoted, impressions are written as-is
    and spend and revenue with two decimals. Lines are joined with "\\n".

    Example:
        >>> missing_contracts_to_csv([MissingContractInfo(
        ...     campaign_name="ACME", total_impressions=100, total_spend=5, total_revenue=7.5)])
        'Campaign Name,Total Impressions,Total Spend,Total Attributed Sales\\n"ACME",100,5.00,7.50'
    """
    lines = [EXPORT_HEADER]
    for info in missing:
        impressions = info.total_impressions
        if float(impressions).is_integer():
            impressions_text = str(int(impressions))
        else:
            impressions_text = str(impressions)
        lines.append(
            f"{_quote(info.campaign_name)},{impressions_text},"
            f"{info.total_spend:.2f},{info.total_revenue:.2f}"
        )
    return '\n'.join(lines)


__all__ = [
    "EXPORT_HEADER",
    "normalize_campaign_key",
    "contract_name",
    "extract_contract_keys",
    "find_missing",
    "summarize_missing",
    "validate_contract_terms",
    "missing_contracts_to_csv",
]
