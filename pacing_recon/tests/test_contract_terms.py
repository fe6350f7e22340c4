"""
Test Module for the Contract Reconciler Service.

Covers:
- Campaign key normalization and contract name aliases (any header case)
- Missing-contract detection (exact normalized match, order, totals)
- Active-campaign validation and impression ordering
- CSV export format
"""

from datetime import date

from pacing_recon.models.enums import FeedType
from pacing_recon.models.schemas import (
    CampaignAggregate,
    DateRange,
    MissingContractInfo,
)
from pacing_recon.services.contract_terms import (
    EXPORT_HEADER,
    extract_contract_keys,
    find_missing,
    missing_contracts_to_csv,
    normalize_campaign_key,
    summarize_missing,
    validate_contract_terms,
)
from pacing_recon.services.ingestion import ingest_csv
from pacing_recon.services.normalizer import normalize_rows
from pacing_recon.tests.conftest import make_delivery_row


def _campaign(name: str, impressions: float = 100, spend: float = 10, revenue: float = 20) -> CampaignAggregate:
    return CampaignAggregate(
        key=normalize_campaign_key(name),
        campaign_name=name,
        impressions=impressions,
        spend=spend,
        revenue=revenue,
    )


# =============================================================================
# TEST CLASS: Keys
# =============================================================================

class TestContractKeys:
    """Tests for key normalization and extraction."""

    def test_normalize_trims_and_casefolds(self):
        assert normalize_campaign_key('  ACME Spring Sale ') == 'acme spring sale'
        assert normalize_campaign_key(None) == ''

    def test_extract_uses_alias_order(self):
        rows = [
            {'NAME': 'Alpha', 'CAMPAIGN': 'ignored'},
            {'Campaign Name': 'Beta'},
            {'name': '', 'Name': 'Gamma'},
            {'Budget': '100'},
        ]
        assert extract_contract_keys(rows) == {'alpha', 'beta', 'gamma'}

    def test_name_headers_match_any_case(self):
        rows = [{'campaign name': 'ACME Spring Sale'}, {'NAme': 'Globex Always On'}]
        keys = extract_contract_keys(rows)

        assert keys == {'acme spring sale', 'globex always on'}
        assert find_missing([_campaign('ACME Spring Sale'), _campaign('Globex Always On')], keys) == []

    def test_mixed_case_header_from_csv(self):
        rows, errors = ingest_csv(b'NAme,Budget\nACME Spring Sale,5000\n', FeedType.CONTRACT_TERMS)

        assert errors == []
        assert extract_contract_keys(rows) == {'acme spring sale'}


# =============================================================================
# TEST CLASS: Missing Detection
# =============================================================================

class TestFindMissing:
    """Tests for exact normalized-key matching."""

    def test_all_covered(self):
        campaigns = [_campaign('ACME'), _campaign('Globex')]
        assert find_missing(campaigns, {'acme', 'globex'}) == []

    def test_case_insensitive_match_against_raw_names(self):
        campaigns = [_campaign('ACME Spring Sale')]
        assert find_missing(campaigns, ['  acme SPRING sale']) == []

    def test_missing_preserves_input_order_and_totals(self):
        campaigns = [_campaign('Zed', 5), _campaign('ACME', 100), _campaign('Beta', 50, 7.5, 30)]
        missing = find_missing(campaigns, {'acme'})

        assert [m.campaign_name for m in missing] == ['Zed', 'Beta']
        assert missing[1].total_impressions == 50
        assert missing[1].total_spend == 7.5
        assert missing[1].total_revenue == 30

    def test_no_fuzzy_matching(self):
        missing = find_missing([_campaign('ACME Spring 2024')], {'acme spring'})
        assert len(missing) == 1

    def test_repeated_check_is_stable(self):
        campaigns = [_campaign('Zed', 5), _campaign('ACME', 100), _campaign('Beta', 50)]
        first = find_missing(campaigns, {'acme'})

        assert find_missing(campaigns, {'acme'}) == first

        # Feeding the missing set back through changes nothing
        again = find_missing(
            [_campaign(m.campaign_name, m.total_impressions, m.total_spend, m.total_revenue) for m in first],
            {'acme'},
        )
        assert again == first

    def test_summarize_missing(self):
        missing = find_missing([_campaign('A', 100, 10, 20), _campaign('B', 50, 5, 1)], set())
        summary = summarize_missing(missing)

        assert summary.campaign_count == 2
        assert summary.total_impressions == 150
        assert summary.total_spend == 15
        assert summary.total_revenue == 21


class TestValidateContractTerms:
    """Tests for active-campaign validation."""

    def test_inactive_campaigns_ignored_and_sorted(self):
        rows = [
            make_delivery_row('Small', '2024-05-01', 10),
            make_delivery_row('Dormant', '2024-05-01', 0, spend=50),
            make_delivery_row('Large', '2024-05-01', 900),
            make_delivery_row('Covered', '2024-05-01', 5000),
        ]
        result = validate_contract_terms(normalize_rows(rows), {'covered'})

        assert [m.campaign_name for m in result.missing_campaigns] == ['Large', 'Small']
        assert result.total_missing_campaigns == 2
        assert result.has_active_campaigns_missing
        assert result.summary.total_impressions == 910

    def test_everything_covered(self, delivery_rows):
        keys = {'acme spring sale', 'globex always on'}
        result = validate_contract_terms(normalize_rows(delivery_rows), keys)

        assert result.missing_campaigns == []
        assert not result.has_active_campaigns_missing

    def test_date_range_limits_activity(self):
        rows = [
            make_delivery_row('Old', '2024-04-01', 100),
            make_delivery_row('New', '2024-05-01', 100),
        ]
        result = validate_contract_terms(
            normalize_rows(rows), set(), DateRange(start=date(2024, 5, 1))
        )

        assert [m.campaign_name for m in result.missing_campaigns] == ['New']


# =============================================================================
# TEST CLASS: CSV Export
# =============================================================================

class TestMissingContractsCsv:
    """Tests for the export format."""

    def test_header_only_when_empty(self):
        assert missing_contracts_to_csv([]) == EXPORT_HEADER

    def test_rows_formatted(self):
        csv_text = missing_contracts_to_csv([
            MissingContractInfo(campaign_name='ACME, Inc', total_impressions=1200,
                                total_spend=45.5, total_revenue=100),
            MissingContractInfo(campaign_name='Say "Hi"', total_impressions=3,
                                total_spend=0.125, total_revenue=0),
        ])
        lines = csv_text.split('\n')

        assert lines[0] == 'Campaign Name,Total Impressions,Total Spend,Total Attributed Sales'
        assert lines[1] == '"ACME, Inc",1200,45.50,100.00'
        assert lines[2] == '"Say ""Hi""",3,0.12,0.00'
        assert not csv_text.endswith('\n')
