"""
CSV Feed Ingestion Service

This module parses and structurally validates the CSV uploads the reconciliation
engine consumes. Row-level data quality (blank numbers, bad dates, the Totals
footer) is left to the row normalizer; ingestion only rejects uploads that can
not be reconciled at all.

Feed Types:
- delivery: Daily campaign performance report ("...PerformanceReport...csv")
- pacing: Pacing snapshot report ("...pacing-report...csv")
- contract_terms: Campaign order contract terms ("...contract_terms...csv")

Rejection Rules:
- The file does not parse as CSV
- The file has a header but no data rows
- A required column for the feed type is missing (case-insensitive match)
"""

from typing import Any, BinaryIO, Dict, List, Optional, TextIO, Tuple, Union
import io
import logging

import numpy as np
import pandas as pd

from pacing_recon.models import FeedType, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

CsvSource = Union[bytes, str, BinaryIO, TextIO]

# =============================================================================
# CONSTANTS - Required Columns
# =============================================================================

DELIVERY_REQUIRED_COLUMNS: List[str] = [
    'DATE',
    'CAMPAIGN ORDER NAME',
    'IMPRESSIONS',
    'CLICKS',
    'TRANSACTIONS',
    'REVENUE',
    'SPEND',
]

PACING_REQUIRED_COLUMNS: List[str] = [
    'CAMPAIGN',
    'DAYS INTO FLIGHT',
    'DAYS LEFT',
    'EXPECTED IMPS',
    'ACTUAL IMPS',
    'IMPS LEFT',
    'IMPS YESTERDAY',
    'DAILY AVG LEFT',
]

CONTRACT_TERMS_REQUIRED_COLUMNS: List[str] = [
    'NAME',
]

# Filename fragments (lower-cased) identifying each feed, checked in order
FEED_FILENAME_MARKERS: List[Tuple[str, FeedType]] = [
    ('performancereport', FeedType.DELIVERY),
    ('pacing-report', FeedType.PACING),
    ('pacing_report', FeedType.PACING),
    ('campaign_order_contract_terms', FeedType.CONTRACT_TERMS),
    ('contract_terms', FeedType.CONTRACT_TERMS),
]


def _get_required_columns(feed_type: FeedType) -> List[str]:
    """
    Get the list of required columns for a specific feed type.

    Args:
        feed_type: The feed type

    Returns:
        List of required column names

    Raises:
        ValueError: For FeedType.UNKNOWN, which has no column contract
    """
    if feed_type == FeedType.DELIVERY:
        return DELIVERY_REQUIRED_COLUMNS.copy()
    elif feed_type == FeedType.PACING:
        return PACING_REQUIRED_COLUMNS.copy()
    elif feed_type == FeedType.CONTRACT_TERMS:
        return CONTRACT_TERMS_REQUIRED_COLUMNS.copy()
    else:
        raise ValueError(f"Unknown feed type: {feed_type}")


def identify_feed_type(filename: Optional[str]) -> FeedType:
    """
    Infer the feed type from an upload's filename.

    Examples:
        >>> identify_feed_type("Acme_PerformanceReport_2024-05.csv")
        <FeedType.DELIVERY: 'delivery'>
        >>> identify_feed_type("notes.csv")
        <FeedType.UNKNOWN: 'unknown'>
    """
    if not filename:
        return FeedType.UNKNOWN
    lowered = filename.lower()
    for marker, feed_type in FEED_FILENAME_MARKERS:
        if marker in lowered:
            return feed_type
    return FeedType.UNKNOWN


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_columns(
    columns: List[str],
    feed_type: FeedType
) -> List[ValidationError]:
    """
    Validate that all required columns are present.

    Header matching ignores case and surrounding whitespace.

    Args:
        columns: Header names from the upload
        feed_type: The feed type

    Returns:
        List of ValidationError objects for any missing columns
    """
    errors: List[ValidationError] = []
    present = {str(col).strip().lower() for col in columns}

    for col in _get_required_columns(feed_type):
        if col.lower() not in present:
            errors.append(ValidationError(
                field=col,
                message=f"Required column '{col}' is missing for {feed_type.value} feed",
                row_number=None
            ))

    return errors


# =============================================================================
# PARSING
# =============================================================================

def _to_file_like(source: CsvSource) -> Union[io.BytesIO, io.StringIO, BinaryIO, TextIO]:
    if isinstance(source, bytes):
        return io.BytesIO(source)
    if isinstance(source, str):
        return io.StringIO(source)
    if hasattr(source, 'read'):
        content = source.read()
        if isinstance(content, bytes):
            return io.BytesIO(content)
        return io.StringIO(content)
    raise TypeError(f"Unsupported CSV source: {type(source).__name__}")


def read_csv_frame(source: CsvSource) -> pd.DataFrame:
    """
    Parse CSV content into a string-typed DataFrame.

    Every cell is kept as text (no NA inference), headers are trimmed and rows
    where every cell is blank are dropped.

    Raises:
        pd.errors.ParserError, pd.errors.EmptyDataError: On unreadable content
    """
    df = pd.read_csv(
        _to_file_like(source),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        encoding='utf-8-sig',
    )
    df.columns = [str(col).strip() for col in df.columns]
    # Short rows come back as NaN even with NA inference off
    df = df.fillna('')

    if df.empty:
        return df

    blank = df.apply(lambda col: col.str.strip().eq('')).to_numpy(dtype=bool)
    keep = ~np.all(blank, axis=1)
    dropped = int(len(df) - keep.sum())
    if dropped:
        logger.debug(f"Dropped {dropped} blank CSV rows")

    return df[keep].reset_index(drop=True)


def read_csv_rows(source: CsvSource) -> List[Dict[str, str]]:
    """
    Parse CSV content into string-keyed row dicts for the row normalizer.

    Args:
        source: CSV bytes, CSV text, or a readable file object

    Returns:
        One dict per data row, keyed by trimmed header name
    """
    return read_csv_frame(source).to_dict(orient='records')


# =============================================================================
# INGESTION FUNCTIONS
# =============================================================================

def ingest_csv(
    source: CsvSource,
    feed_type: FeedType
) -> Tuple[Optional[List[Dict[str, Any]]], List[ValidationError]]:
    """
    Parse and structurally validate a CSV upload.

    Performs the following steps:
    1. Parse CSV using pandas
    2. Reject uploads with no data rows
    3. Validate required columns for the feed type

    Args:
        source: CSV bytes, CSV text, or a readable file object
        feed_type: The feed type (delivery, pacing or contract_terms)

    Returns:
        Tuple of (rows or None, list of validation errors)
    """
    errors: List[ValidationError] = []

    try:
        df = read_csv_frame(source)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        errors.append(ValidationError(
            field='file',
            message=f'Failed to parse CSV file: {str(e)}',
            row_number=None
        ))
        logger.warning(f"Rejected {feed_type.value} upload: {errors[0].message}")
        return None, errors

    if df.empty:
        errors.append(ValidationError(
            field='file',
            message='CSV file is empty or contains no data rows',
            row_number=None
        ))
        logger.warning(f"Rejected {feed_type.value} upload: no data rows")
        return None, errors

    logger.info(f"Parsed {feed_type.value} CSV with {len(df)} rows and {len(df.columns)} columns")

    column_errors = validate_columns(list(df.columns), feed_type)
    if column_errors:
        errors.extend(column_errors)
        missing = ', '.join(error.field for error in column_errors)
        logger.warning(f"Rejected {feed_type.value} upload: missing columns {missing}")
        return None, errors

    return df.to_dict(orient='records'), errors


__all__ = [
    "DELIVERY_REQUIRED_COLUMNS",
    "PACING_REQUIRED_COLUMNS",
    "CONTRACT_TERMS_REQUIRED_COLUMNS",
    "identify_feed_type",
    "validate_columns",
    "read_csv_frame",
    "read_csv_rows",
    "ingest_csv",
]
