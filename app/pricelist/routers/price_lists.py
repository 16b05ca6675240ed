"""
Price-list upload, analysis, reconciliation and export router.

Upload a supplier sheet to make it the active dataset, then query its
summary, anomaly counts, supplier profile and validation state, reconcile it
against a catalog snapshot, and download the import or report workbooks.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from pricelist.models import (
    AnalysisSummary,
    AnomalyStats,
    PriceRecord,
    ReconcileResponse,
    RecordStatus,
    SupplierBreakdown,
    UploadResponse,
    ValidationResult,
)
from pricelist.services.anomalies import aggregate_anomalies, summarize, summarize_by_supplier
from pricelist.services.export import write_export_workbook, write_report_workbook
from pricelist.services.file_ingestion import IngestionError
from pricelist.services.pipeline import process_upload
from pricelist.services.reconciliation import reconcile_with_catalog
from pricelist.services.validation import validate_for_sync
from pricelist.utils.config import EXPORT_FILENAME, REPORT_FILENAME
from pricelist.utils.dataset import CATALOG_CACHE_KEY, ActiveDataset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/price-lists", tags=["price-lists"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_PREVIEW_ROWS = 10


def get_dataset(request: Request) -> ActiveDataset:
    """Return the app-wide active dataset."""
    return request.app.state.dataset


def _require_records(dataset: ActiveDataset) -> list[PriceRecord]:
    if not dataset.is_loaded:
        raise HTTPException(
            status_code=404,
            detail="No price list loaded; upload one first",
        )
    return dataset.records


def _workbook_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ---------------------------------------------------------------------------
# POST /upload
# ---------------------------------------------------------------------------
@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload a supplier price list (Excel or CSV)",
)
async def upload_price_list(
    file: UploadFile = File(..., description="Excel (.xlsx/.xls) or CSV file"),
    dataset: ActiveDataset = Depends(get_dataset),
) -> UploadResponse:
    """Parse and analyse a price list; it replaces the active dataset."""
    try:
        result = await process_upload(file)
    except IngestionError as exc:
        logger.warning("Rejected upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to process uploaded file %s", file.filename)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    records = result["records"]
    dataset.replace(result["filename"], result["schema"].value, records)

    return UploadResponse(
        filename=result["filename"],
        schema_variant=result["schema"].value,
        row_count=len(records),
        summary=summarize(records),
        anomalies=aggregate_anomalies(records),
        preview=records[:_PREVIEW_ROWS],
    )


# ---------------------------------------------------------------------------
# GET /records
# ---------------------------------------------------------------------------
@router.get(
    "/records",
    response_model=list[PriceRecord],
    summary="Records of the active price list",
)
async def get_records(
    status: RecordStatus | None = Query(None, description="Filter by change status"),
    dataset: ActiveDataset = Depends(get_dataset),
) -> list[PriceRecord]:
    records = _require_records(dataset)
    if status is None:
        return records
    return [r for r in records if r.status is status]


# ---------------------------------------------------------------------------
# GET /summary, /anomalies, /suppliers, /validation
# ---------------------------------------------------------------------------
@router.get(
    "/summary",
    response_model=AnalysisSummary,
    summary="Per-status counts and financial impact",
)
async def get_summary(dataset: ActiveDataset = Depends(get_dataset)) -> AnalysisSummary:
    return summarize(_require_records(dataset))


@router.get(
    "/anomalies",
    response_model=AnomalyStats,
    summary="Anomaly and unmatched counts",
)
async def get_anomalies(dataset: ActiveDataset = Depends(get_dataset)) -> AnomalyStats:
    return aggregate_anomalies(_require_records(dataset))


@router.get(
    "/suppliers",
    response_model=list[SupplierBreakdown],
    summary="Price-change profile per supplier",
)
async def get_suppliers(
    dataset: ActiveDataset = Depends(get_dataset),
) -> list[SupplierBreakdown]:
    return summarize_by_supplier(_require_records(dataset))


@router.get(
    "/validation",
    response_model=ValidationResult,
    summary="Pre-sync data-integrity check",
)
async def get_validation(
    dataset: ActiveDataset = Depends(get_dataset),
) -> ValidationResult:
    return validate_for_sync(_require_records(dataset))


# ---------------------------------------------------------------------------
# POST /reconcile
# ---------------------------------------------------------------------------
@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    summary="Merge the active price list with a catalog snapshot",
)
async def reconcile(
    catalog: list[PriceRecord] | None = Body(
        None, description="Catalog records; omit to reuse the cached snapshot"
    ),
    dataset: ActiveDataset = Depends(get_dataset),
) -> ReconcileResponse:
    """Enrich the active records with catalog identifiers.

    A posted catalog replaces the cached snapshot.  Without a body the last
    snapshot is reused even if it has gone stale.
    """
    records = _require_records(dataset)
    cache = dataset.catalog_cache

    if catalog is not None:
        cache.set(CATALOG_CACHE_KEY, catalog)
    else:
        catalog = cache.get(CATALOG_CACHE_KEY)
        if catalog is None:
            raise HTTPException(
                status_code=404,
                detail="No catalog snapshot available; post catalog records",
            )
        if cache.is_stale(CATALOG_CACHE_KEY):
            logger.warning("Reconciling against a stale catalog snapshot")

    try:
        result = reconcile_with_catalog(records, catalog)
    except Exception as exc:
        logger.exception("Catalog reconciliation failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ReconcileResponse(
        total_records=result.total_records,
        matched=result.matched,
        matched_by_sku=result.matched_by_sku,
        matched_by_barcode=result.matched_by_barcode,
        unmatched=result.unmatched,
        match_rate=result.match_rate,
        duplicate_catalog_skus=result.duplicate_catalog_skus,
        catalog_size=len(catalog),
    )


# ---------------------------------------------------------------------------
# GET /export, /report
# ---------------------------------------------------------------------------
@router.get(
    "/export",
    summary="Download the commerce-platform import workbook",
)
async def export_workbook(
    dataset: ActiveDataset = Depends(get_dataset),
) -> StreamingResponse:
    records = _require_records(dataset)
    try:
        content = write_export_workbook(records)
    except Exception as exc:
        logger.exception("Failed to export price list")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return _workbook_response(content, EXPORT_FILENAME)


@router.get(
    "/report",
    summary="Download the price analysis workbook",
)
async def report_workbook(
    dataset: ActiveDataset = Depends(get_dataset),
) -> StreamingResponse:
    records = _require_records(dataset)
    try:
        content = write_report_workbook(records)
    except Exception as exc:
        logger.exception("Failed to build price analysis report")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return _workbook_response(content, REPORT_FILENAME)
