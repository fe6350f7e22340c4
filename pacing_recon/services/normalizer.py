"""
Row Normalizer Service

Turns raw, string-keyed CSV rows into typed DeliveryRecord models.

Header spellings drifted across export versions ("Expected Imps", "EXPECTED IMPS",
"EXPECTED_IMPS", ...), so every logical field is looked up through the declarative
FIELD_ALIASES table instead of ad hoc comparisons. Lookup tries each alias in
order, first as an exact key and then as a case-insensitive, whitespace-trimmed
header match. The first alias holding a non-blank value wins.

Coercion rules:
- Numeric fields: absent, blank or non-numeric values become 0. Thousands
  separators and a leading currency symbol are tolerated.
- Date field: parsed against DATE_FORMATS. The "Totals" footer row (exact,
  case-sensitive) and unparseable values give date=None, which keeps the
  record out of every date-aware rollup.

The normalizer never raises for data-quality problems.
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pacing_recon.models.schemas import DeliveryRecord

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Header Aliases
# =============================================================================

# Reserved DATE value on the summary footer row of delivery exports
TOTALS_SENTINEL: str = 'Totals'

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    'campaign_name': ('CAMPAIGN ORDER NAME', 'Campaign', 'CAMPAIGN', 'Campaign Name', 'CAMPAIGN NAME'),
    'date': ('DATE', 'Date', 'DAY'),
    # Pacing-style exports carry only Actual Imps; IMPRESSIONS wins when both exist
    'impressions': ('IMPRESSIONS', 'Impressions', 'IMPS', 'ACTUAL IMPS', 'Actual Imps', 'ACTUAL_IMPS'),
    'clicks': ('CLICKS', 'Clicks'),
    'revenue': ('REVENUE', 'Revenue', 'ATTRIBUTED REVENUE', 'ATTRIBUTED SALES'),
    'spend': ('SPEND', 'Spend', 'COST'),
    'transactions': ('TRANSACTIONS', 'Transactions', 'ORDERS'),
    'expected_impressions': ('Expected Imps', 'EXPECTED IMPS', 'EXPECTED_IMPS'),
    'actual_impressions': ('Actual Imps', 'ACTUAL IMPS', 'ACTUAL_IMPS'),
    'impressions_yesterday': ('Imps Yesterday', 'IMPS YESTERDAY', 'IMPS_YESTERDAY'),
    'daily_avg_left': ('Daily Avg Left', 'DAILY AVG LEFT', 'DAILY_AVG_LEFT'),
    'days_into_flight': ('Days into Flight', 'DAYS INTO FLIGHT', 'Days Into Flight', 'DAYS_INTO_FLIGHT'),
    'days_left': ('Days Left', 'DAYS LEFT', 'DAYS_LEFT'),
    'impressions_left': ('Imps Left', 'IMPS LEFT', 'IMPS_LEFT'),
    # Contract-terms columns
    'contract_name': ('NAME', 'CAMPAIGN', 'CAMPAIGN NAME', 'CAMPAIGN ORDER NAME'),
    'budget': ('Budget', 'BUDGET', 'TOTAL BUDGET'),
    'cpm': ('CPM', 'CPM RATE'),
    'impressions_goal': ('Impressions Goal', 'IMPRESSIONS GOAL', 'IMPRESSION GOAL', 'IMPS GOAL'),
    'start_date': ('Start Date', 'START DATE', 'START_DATE', 'FLIGHT START'),
    'end_date': ('End Date', 'END DATE', 'END_DATE', 'FLIGHT END'),
}

NUMERIC_FIELDS: List[str] = [
    'impressions',
    'clicks',
    'revenue',
    'spend',
    'transactions',
    'expected_impressions',
    'actual_impressions',
    'impressions_yesterday',
    'daily_avg_left',
    'days_into_flight',
    'days_left',
    'impressions_left',
]

# Tried in order; the first format that parses wins
DATE_FORMATS: Tuple[str, ...] = (
    '%Y-%m-%d',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%d %H:%M:%S',
    '%m/%d/%Y',
    '%m/%d/%y',
    '%Y/%m/%d',
)

_CURRENCY_PREFIXES: Tuple[str, ...] = ('$', '€', '£')


# =============================================================================
# FIELD LOOKUP
# =============================================================================

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def lookup_field(raw_row: Mapping[str, Any], field_name: str) -> Any:
    """
    Resolve a logical field against a raw row using FIELD_ALIASES.

    Args:
        raw_row: String-keyed source row
        field_name: Logical field name (a FIELD_ALIASES key)

    Returns:
        The first non-blank value found, or None
    """
    aliases = FIELD_ALIASES.get(field_name)
    if aliases is None:
        raise ValueError(f"Unknown field: {field_name}")

    folded: Optional[Dict[str, Any]] = None
    for alias in aliases:
        value = raw_row.get(alias)
        if not _is_blank(value):
            return value

        # Header case and padding differ between exports
        if folded is None:
            folded = {}
            for key, key_value in raw_row.items():
                if _is_blank(key_value):
                    continue
                folded.setdefault(str(key).strip().casefold(), key_value)
        value = folded.get(alias.strip().casefold())
        if not _is_blank(value):
            return value

    return None


# =============================================================================
# VALUE COERCION
# =============================================================================

def parse_optional_number(value: Any) -> Optional[float]:
    """
    Coerce a raw cell to a float, or None when it holds no usable number.

    Examples:
        >>> parse_optional_number("$1,250.50")
        1250.5
        >>> parse_optional_number("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        for prefix in _CURRENCY_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix):]
                break
        text = text.replace(',', '')
        try:
            number = float(text)
        except ValueError:
            return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_number(value: Any) -> float:
    """
    Coerce a raw cell to a float, defaulting to 0.

    Examples:
        >>> parse_number("1,250")
        1250.0
        >>> parse_number("$12.50")
        12.5
        >>> parse_number("n/a")
        0.0
    """
    number = parse_optional_number(value)
    return 0.0 if number is None else number


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a raw DATE cell to a calendar day.

    Returns None for blank values, the "Totals" sentinel and anything that does
    not match DATE_FORMATS.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if text == TOTALS_SENTINEL:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_row(raw_row: Mapping[str, Any]) -> DeliveryRecord:
    """
    Normalize one raw row into a DeliveryRecord.

    Args:
        raw_row: String-keyed mapping, typically one parsed CSV row

    Returns:
        DeliveryRecord with every numeric field coerced and the date parsed
        (None when the row cannot be placed on a calendar day)
    """
    campaign = lookup_field(raw_row, 'campaign_name')
    raw_date = lookup_field(raw_row, 'date')

    values: Dict[str, float] = {
        name: parse_number(lookup_field(raw_row, name))
        for name in NUMERIC_FIELDS
    }

    return DeliveryRecord(
        campaign_name=str(campaign).strip() if campaign is not None else '',
        date=parse_date(raw_date),
        raw_date=str(raw_date).strip() if raw_date is not None else None,
        **values,
    )


def normalize_rows(raw_rows: Iterable[Mapping[str, Any]]) -> List[DeliveryRecord]:
    """Normalize a batch of raw rows, preserving order."""
    records = [normalize_row(row) for row in raw_rows]
    undated = sum(1 for record in records if not record.is_dated)
    if undated:
        logger.debug(f"{undated} of {len(records)} rows have no usable date")
    return records


__all__ = [
    "FIELD_ALIASES",
    "NUMERIC_FIELDS",
    "DATE_FORMATS",
    "TOTALS_SENTINEL",
    "lookup_field",
    "parse_optional_number",
    "parse_number",
    "parse_date",
    "normalize_row",
    "normalize_rows",
]
