"""
FastAPI router module for pacing reconciliation.

Implements POST /reconciliation/report (JSON rows), POST /reconciliation/report/csv
(CSV text), POST /reconciliation/missing-contracts/export (CSV download),
POST /reconciliation/pacing-summary, POST /reconciliation/contract-pacing and
POST /reconciliation/uploads/validate.

Handlers only translate HTTP bodies into engine calls and serialize the
results; every number is computed by the engine services. When a password is
configured, each route requires a bearer session token.

Response shapes:
- /report, /report/csv: ReconciliationReport
- /missing-contracts/export: text/csv with the four export columns
- /pacing-summary: PacingSummary
- /contract-pacing: ContractPacingResult
- /uploads/validate: UploadValidationResponse
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from pacing_recon.core.dependencies import SessionDep, SettingsDep
from pacing_recon.core.config import Settings
from pacing_recon.models.enums import FeedType, TrendMetric
from pacing_recon.models.schemas import (
    ContractPacingResult,
    DateRange,
    PacingSummary,
    ReconciliationReport,
    ValidationError,
)
from pacing_recon.services.contract_terms import (
    extract_contract_keys,
    missing_contracts_to_csv,
    validate_contract_terms,
)
from pacing_recon.services.ingestion import identify_feed_type, ingest_csv
from pacing_recon.services.normalizer import normalize_rows
from pacing_recon.services.pacing import process_campaigns
from pacing_recon.services.reconciliation import (
    DEFAULT_TREND_METRICS,
    build_reconciliation_report,
)
from pacing_recon.services.severity import summarize_pacing


# Configure logging
logger = logging.getLogger(__name__)

EXPORT_FILENAME = "missing_contract_terms.csv"


# =============================================================================
# Local Pydantic Models for API Requests
# =============================================================================

class ReportOptions(BaseModel):
    """Options shared by every report request."""
    startDate: Optional[date] = Field(
        default=None,
        description="Inclusive start of the reporting window"
    )
    endDate: Optional[date] = Field(
        default=None,
        description="Inclusive end of the reporting window"
    )
    trendMetrics: Optional[List[TrendMetric]] = Field(
        default=None,
        description="Metrics to compute period-over-period change for"
    )
    periodDays: Optional[int] = Field(
        default=None,
        ge=1,
        description="Bucket periods into non-overlapping N-day windows"
    )
    bucketByPeriod: bool = Field(
        default=False,
        description="Bucket by the configured default period length when periodDays is unset"
    )
    includeTestCampaigns: bool = Field(
        default=False,
        description="Keep test, demo and draft orders in contract-driven pacing"
    )


class ReportRequest(ReportOptions):
    """Request model for building a report from already-parsed rows."""
    deliveryRows: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Delivery rows keyed by CSV header"
    )
    contractRows: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Contract-terms rows keyed by CSV header"
    )
    contractKeys: Optional[List[str]] = Field(
        default=None,
        description="Campaign names known to have contract terms"
    )


class CsvReportRequest(ReportOptions):
    """Request model for building a report from raw CSV exports."""
    deliveryCsv: str = Field(
        ...,
        description="Delivery (PerformanceReport) CSV content"
    )
    contractTermsCsv: Optional[str] = Field(
        default=None,
        description="Contract terms CSV content"
    )


class PacingSummaryRequest(BaseModel):
    """Request model for the pacing summary; pass rows or CSV content."""
    rows: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Pacing report rows keyed by CSV header"
    )
    pacingCsv: Optional[str] = Field(
        default=None,
        description="Pacing report CSV content"
    )


class ContractPacingRequest(BaseModel):
    """Request model for contract-driven pacing; pass rows or CSV content for each feed."""
    deliveryRows: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Delivery rows keyed by CSV header"
    )
    deliveryCsv: Optional[str] = Field(
        default=None,
        description="Delivery (PerformanceReport) CSV content"
    )
    contractRows: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Contract-terms rows with Budget, CPM, Impressions Goal and flight dates"
    )
    contractTermsCsv: Optional[str] = Field(
        default=None,
        description="Contract terms CSV content"
    )
    asOfDate: Optional[date] = Field(
        default=None,
        description="As-of day for campaigns with no delivery yet"
    )
    includeTestCampaigns: bool = Field(
        default=False,
        description="Keep test, demo and draft orders"
    )


class UploadValidationRequest(BaseModel):
    """Request model for checking an upload before it is used."""
    filename: Optional[str] = Field(
        default=None,
        description="Original filename, used to detect the feed type"
    )
    content: str = Field(
        ...,
        description="CSV content"
    )
    feedType: Optional[FeedType] = Field(
        default=None,
        description="Feed type; detected from the filename when omitted"
    )


class UploadValidationResponse(BaseModel):
    """Response model for upload validation."""
    feedType: FeedType = Field(..., description="Feed type the upload was checked against")
    valid: bool = Field(..., description="True when the upload passed structural validation")
    rowCount: int = Field(default=0, ge=0, description="Data rows parsed")
    columns: List[str] = Field(default_factory=list, description="Parsed header names")
    errors: List[ValidationError] = Field(default_factory=list)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================

def _date_range(options: ReportOptions) -> Optional[DateRange]:
    if options.startDate is None and options.endDate is None:
        return None
    return DateRange(start=options.startDate, end=options.endDate)


def _period_days(options: ReportOptions, settings: Settings) -> Optional[int]:
    if options.periodDays is not None:
        return options.periodDays
    if options.bucketByPeriod:
        return settings.default_period_days
    return None


def _rejected(label: str, errors: List[ValidationError]) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": f"{label} upload was rejected",
            "errors": [error.model_dump() for error in errors],
        },
    )


def _ingest(content: str, feed_type: FeedType, label: str) -> List[Dict[str, Any]]:
    rows, errors = ingest_csv(content, feed_type)
    if rows is None:
        raise _rejected(label, errors)
    return rows


def _build(
    options: ReportOptions,
    settings: Settings,
    delivery_rows: List[Dict[str, Any]],
    contract_rows: Optional[List[Dict[str, Any]]] = None,
    contract_keys: Optional[List[str]] = None
) -> ReconciliationReport:
    return build_reconciliation_report(
        delivery_rows,
        contract_rows=contract_rows,
        contract_keys=contract_keys,
        date_range=_date_range(options),
        trend_metrics=options.trendMetrics or DEFAULT_TREND_METRICS,
        period_days=_period_days(options, settings),
        exclude_test_campaigns=not options.includeTestCampaigns,
    )


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.post("/report", response_model=ReconciliationReport)
async def build_report(
    request: ReportRequest,
    session: SessionDep,
    settings: SettingsDep
) -> ReconciliationReport:
    """
    Build a reconciliation report from parsed delivery rows.

    Contract reconciliation runs when contractRows or contractKeys is given;
    otherwise contract_validation is null.
    """
    try:
        report = _build(
            request,
            settings,
            request.deliveryRows,
            contract_rows=request.contractRows,
            contract_keys=request.contractKeys,
        )
        logger.info(f"Built report for {report.total_row_count} delivery rows")
        return report

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error building reconciliation report")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to build reconciliation report: {str(e)}"
        )


@router.post("/report/csv", response_model=ReconciliationReport)
async def build_report_from_csv(
    request: CsvReportRequest,
    session: SessionDep,
    settings: SettingsDep
) -> ReconciliationReport:
    """
    Build a reconciliation report from raw CSV exports.

    Uploads that fail structural validation (unparseable, no data rows,
    missing required columns) are rejected with 422 and the error list.
    """
    try:
        delivery_rows = _ingest(request.deliveryCsv, FeedType.DELIVERY, "Delivery")
        contract_rows = None
        if request.contractTermsCsv is not None:
            contract_rows = _ingest(request.contractTermsCsv, FeedType.CONTRACT_TERMS, "Contract terms")

        return _build(request, settings, delivery_rows, contract_rows=contract_rows)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error building reconciliation report from CSV")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to build reconciliation report: {str(e)}"
        )


@router.post("/missing-contracts/export")
async def export_missing_contracts(
    request: ReportRequest,
    session: SessionDep
) -> Response:
    """
    Download active campaigns without contract terms as CSV.

    Campaigns are ordered by impressions, largest first.
    """
    try:
        known = set(request.contractKeys or [])
        if request.contractRows is not None:
            known |= extract_contract_keys(request.contractRows)

        result = validate_contract_terms(
            normalize_rows(request.deliveryRows),
            known,
            date_range=_date_range(request),
        )
        content = missing_contracts_to_csv(result.missing_campaigns)
        logger.info(f"Exported {result.total_missing_campaigns} missing-contract campaigns")

        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error exporting missing contracts")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to export missing contracts: {str(e)}"
        )


@router.post("/pacing-summary", response_model=PacingSummary)
async def pacing_summary(
    request: PacingSummaryRequest,
    session: SessionDep
) -> PacingSummary:
    """
    Summarize pacing status counts for a pacing snapshot.

    Each pacing row is one campaign; rows carry no delivery date.
    """
    try:
        if request.pacingCsv is not None:
            rows = _ingest(request.pacingCsv, FeedType.PACING, "Pacing report")
        elif request.rows is not None:
            rows = request.rows
        else:
            raise HTTPException(
                status_code=422,
                detail="Provide either rows or pacingCsv"
            )

        return summarize_pacing(normalize_rows(rows))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error summarizing pacing")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to summarize pacing: {str(e)}"
        )


@router.post("/contract-pacing", response_model=ContractPacingResult)
async def contract_pacing(
    request: ContractPacingRequest,
    session: SessionDep
) -> ContractPacingResult:
    """
    Compute flight-to-date pacing for every contract.

    Contracts missing Budget, CPM, Impressions Goal or flight dates are listed
    in skipped_campaigns rather than failing the request.
    """
    try:
        if request.deliveryCsv is not None:
            delivery_rows = _ingest(request.deliveryCsv, FeedType.DELIVERY, "Delivery")
        elif request.deliveryRows is not None:
            delivery_rows = request.deliveryRows
        else:
            raise HTTPException(
                status_code=422,
                detail="Provide either deliveryRows or deliveryCsv"
            )

        if request.contractTermsCsv is not None:
            contract_rows = _ingest(request.contractTermsCsv, FeedType.CONTRACT_TERMS, "Contract terms")
        elif request.contractRows is not None:
            contract_rows = request.contractRows
        else:
            raise HTTPException(
                status_code=422,
                detail="Provide either contractRows or contractTermsCsv"
            )

        return process_campaigns(
            contract_rows,
            normalize_rows(delivery_rows),
            exclude_test_campaigns=not request.includeTestCampaigns,
            as_of=request.asOfDate,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error computing contract pacing")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute contract pacing: {str(e)}"
        )


@router.post("/uploads/validate", response_model=UploadValidationResponse)
async def validate_upload(
    request: UploadValidationRequest,
    session: SessionDep
) -> UploadValidationResponse:
    """
    Structurally validate an upload.

    The feed type comes from feedType or, failing that, the filename. Returns
    422 when neither identifies a feed; otherwise 200 with valid=false and the
    error list for rejected uploads.
    """
    feed_type = request.feedType or identify_feed_type(request.filename)
    if feed_type == FeedType.UNKNOWN:
        raise HTTPException(
            status_code=422,
            detail=f"Could not determine feed type for '{request.filename}'"
        )

    try:
        rows, errors = ingest_csv(request.content, feed_type)
        columns = list(rows[0].keys()) if rows else []
        return UploadValidationResponse(
            feedType=feed_type,
            valid=rows is not None,
            rowCount=len(rows) if rows else 0,
            columns=columns,
            errors=errors,
        )

    except Exception as e:
        logger.exception("Error validating upload")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to validate upload: {str(e)}"
        )
