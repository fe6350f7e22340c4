"""
Test Module for the Row Normalizer Service.

Covers:
- Alias lookup across header spellings and casing
- Number coercion (blank, non-numeric, separators, currency symbols)
- Date parsing, including the Totals footer row
"""

from datetime import date, datetime

import pytest

from pacing_recon.services.normalizer import (
    FIELD_ALIASES,
    lookup_field,
    normalize_row,
    normalize_rows,
    parse_date,
    parse_number,
)


# =============================================================================
# TEST CLASS: Field Lookup
# =============================================================================

class TestLookupField:
    """Tests for alias-tolerant header lookup."""

    def test_exact_alias_match(self):
        assert lookup_field({'EXPECTED IMPS': '100'}, 'expected_impressions') == '100'

    @pytest.mark.parametrize('header', ['Expected Imps', 'EXPECTED IMPS', 'EXPECTED_IMPS'])
    def test_every_alias_spelling_resolves(self, header: str):
        assert lookup_field({header: '250'}, 'expected_impressions') == '250'

    def test_case_insensitive_trimmed_header(self):
        assert lookup_field({'  expected imps ': '75'}, 'expected_impressions') == '75'

    def test_first_non_blank_alias_wins(self):
        row = {'CAMPAIGN ORDER NAME': '', 'Campaign': 'ACME'}
        assert lookup_field(row, 'campaign_name') == 'ACME'

    def test_missing_field_returns_none(self):
        assert lookup_field({'OTHER': '1'}, 'clicks') is None

    def test_unknown_field_name_raises(self):
        with pytest.raises(ValueError):
            lookup_field({}, 'not_a_field')

    def test_alias_table_covers_pacing_columns(self):
        for name in ('expected_impressions', 'actual_impressions', 'impressions_yesterday',
                     'daily_avg_left', 'days_into_flight', 'days_left', 'impressions_left'):
            assert name in FIELD_ALIASES


# =============================================================================
# TEST CLASS: Number Coercion
# =============================================================================

class TestParseNumber:
    """Tests for numeric coercion; invalid input is always 0."""

    @pytest.mark.parametrize('raw,expected', [
        ('1000', 1000.0),
        (' 12.5 ', 12.5),
        ('1,250', 1250.0),
        ('$1,250.75', 1250.75),
        ('-40', -40.0),
        (7, 7.0),
        (2.5, 2.5),
    ])
    def test_valid_numbers(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', '   ', 'n/a', 'abc', True, float('nan'), float('inf')])
    def test_invalid_numbers_become_zero(self, raw):
        assert parse_number(raw) == 0.0


# =============================================================================
# TEST CLASS: Date Parsing
# =============================================================================

class TestParseDate:
    """Tests for date parsing and the Totals sentinel."""

    @pytest.mark.parametrize('raw', ['2024-05-01', '05/01/2024', '5/1/24', '2024/05/01', '2024-05-01 13:45:00'])
    def test_supported_formats(self, raw: str):
        assert parse_date(raw) == date(2024, 5, 1)

    def test_date_and_datetime_pass_through(self):
        assert parse_date(date(2024, 5, 1)) == date(2024, 5, 1)
        assert parse_date(datetime(2024, 5, 1, 8, 30)) == date(2024, 5, 1)

    def test_totals_sentinel_is_undated(self):
        assert parse_date('Totals') is None

    @pytest.mark.parametrize('raw', [None, '', 'yesterday', '2024-13-45'])
    def test_unparseable_is_undated(self, raw):
        assert parse_date(raw) is None


# =============================================================================
# TEST CLASS: Row Normalization
# =============================================================================

class TestNormalizeRow:
    """Tests for whole-row normalization."""

    def test_delivery_row(self):
        record = normalize_row({
            'DATE': '2024-05-01',
            'CAMPAIGN ORDER NAME': '  ACME Spring Sale ',
            'IMPRESSIONS': '1,000',
            'CLICKS': '20',
            'REVENUE': '$400.00',
            'SPEND': '200',
            'TRANSACTIONS': '8',
        })

        assert record.campaign_name == 'ACME Spring Sale'
        assert record.date == date(2024, 5, 1)
        assert record.impressions == 1000.0
        assert record.revenue == 400.0
        assert record.is_dated

    def test_missing_columns_default_to_zero(self):
        record = normalize_row({'DATE': '2024-05-01', 'CAMPAIGN ORDER NAME': 'ACME'})

        assert record.impressions == 0.0
        assert record.expected_impressions == 0.0
        assert record.spend == 0.0

    def test_pacing_row_without_date(self):
        record = normalize_row({
            'Campaign': 'Globex',
            'Expected Imps': '5000',
            'Actual Imps': '4600',
            'Imps Yesterday': '900',
            'Daily Avg Left': '1016',
        })

        assert record.campaign_name == 'Globex'
        assert record.date is None
        assert record.expected_impressions == 5000.0
        assert record.actual_impressions == 4600.0
        assert record.daily_avg_left == 1016.0

    def test_impressions_fall_back_to_actual_imps(self):
        record = normalize_row({
            'DATE': '2024-05-01',
            'CAMPAIGN ORDER NAME': 'A',
            'EXPECTED IMPS': '1000',
            'ACTUAL IMPS': '950',
        })

        assert record.impressions == 950.0
        assert record.actual_impressions == 950.0

    def test_impressions_column_wins_over_actual_imps(self):
        record = normalize_row({'IMPRESSIONS': '1200', 'ACTUAL IMPS': '950'})

        assert record.impressions == 1200.0
        assert record.actual_impressions == 950.0

    def test_totals_row_keeps_raw_date(self):
        record = normalize_row({'DATE': 'Totals', 'IMPRESSIONS': '3450'})

        assert record.date is None
        assert record.raw_date == 'Totals'
        assert record.impressions == 3450.0

    def test_normalize_rows_preserves_order(self, delivery_rows):
        records = normalize_rows(delivery_rows)

        assert len(records) == len(delivery_rows)
        assert [r.campaign_name for r in records[:2]] == ['ACME Spring Sale', 'Globex Always On']
        assert records[-1].date is None
