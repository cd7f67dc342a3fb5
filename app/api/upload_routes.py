"""RevPace — Upload API Routes.

Platform metric and flat-fee contract uploads, either as JSON rows
(parsed client-side) or as raw CSV files.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlmodel import Session, col, select

from app.database import get_session
from app.connectors.csv.parser import (
    FLAT_FEE_COLUMNS,
    FLAT_FEE_REQUIRED,
    PLATFORM_COLUMNS,
    PLATFORM_REQUIRED,
    missing_columns,
    parse_flat_fee_rows,
    parse_platform_rows,
    read_csv_rows,
)
from app.connectors.csv.transformer import (
    allocations_for_partner,
    finish_upload,
    start_upload,
    store_flat_fee_contracts,
    upsert_platform_metrics,
)
from app.core.exceptions import ValidationError
from app.models.raw_models import UploadHistory
from app.models.upload_models import (
    UploadFlatFeeRequest,
    UploadFlatFeeResponse,
    UploadPlatformDataRequest,
    UploadPlatformDataResponse,
)
from app.core.logging import get_logger

logger = get_logger("api.upload")

router = APIRouter(prefix="/upload", tags=["Upload"])


# ── Shared Helpers ──


def _require_columns(rows: List[Dict[str, Any]], columns, required) -> None:
    if not rows:
        raise HTTPException(status_code=400, detail="No data rows found")
    headers = set()
    for row in rows:
        headers.update(row.keys())
    missing = missing_columns(headers, columns, required)
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required columns: {', '.join(missing)}",
        )


async def _read_upload(file: UploadFile) -> List[Dict[str, Any]]:
    content = await file.read()
    try:
        return read_csv_rows(content)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _process_platform_rows(
    session: Session, platform_key: str, rows: List[Dict[str, Any]], filename: str = ""
) -> UploadPlatformDataResponse:
    if not platform_key or not platform_key.strip():
        raise HTTPException(status_code=400, detail="platformKey is required")
    _require_columns(rows, PLATFORM_COLUMNS, PLATFORM_REQUIRED)

    upload = start_upload(session, "platform", filename, platform_key)
    parsed, skipped = parse_platform_rows(rows)
    try:
        written = upsert_platform_metrics(session, platform_key, parsed)
    except Exception as e:
        logger.error(f"Platform upload failed: {e}", extra={"platform_key": platform_key})
        finish_upload(session, upload, error=str(e))
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")

    finish_upload(session, upload, written, len(skipped))
    logger.info(
        f"Processed {written} rows ({len(skipped)} skipped) for {platform_key}",
        extra={"platform_key": platform_key},
    )
    return UploadPlatformDataResponse(
        records_processed=written,
        records_skipped=len(skipped),
        platform_key=platform_key,
        upload_id=upload.id,
    )


def _process_flat_fee_rows(
    session: Session, rows: List[Dict[str, Any]], filename: str = ""
) -> UploadFlatFeeResponse:
    _require_columns(rows, FLAT_FEE_COLUMNS, FLAT_FEE_REQUIRED)

    upload = start_upload(session, "flatfee", filename)
    try:
        contracts = parse_flat_fee_rows(rows)
        processed, allocations = store_flat_fee_contracts(session, contracts)
    except ValidationError as e:
        finish_upload(session, upload, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Flat fee upload failed: {e}")
        finish_upload(session, upload, error=str(e))
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")

    finish_upload(session, upload, processed)
    return UploadFlatFeeResponse(
        contracts_processed=processed,
        weeks_generated=len(allocations),
        upload_id=upload.id,
        allocations=allocations,
    )


# ── Endpoints ──


@router.post("/platform-data", response_model=UploadPlatformDataResponse)
async def upload_platform_data(
    request: UploadPlatformDataRequest,
    session: Session = Depends(get_session),
):
    """Upsert platform brand rows. Unparseable rows are skipped."""
    return _process_platform_rows(session, request.platform_key, request.rows)


@router.post("/platform-data/csv", response_model=UploadPlatformDataResponse)
async def upload_platform_csv(
    platform_key: str = Form(..., alias="platformKey"),
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """Upsert platform brand rows from a CSV file."""
    rows = await _read_upload(file)
    return _process_platform_rows(session, platform_key, rows, file.filename or "")


@router.post("/flat-fees", response_model=UploadFlatFeeResponse)
async def upload_flat_fees(
    request: UploadFlatFeeRequest,
    session: Session = Depends(get_session),
):
    """Upsert flat-fee contracts and allocate them across finance weeks."""
    return _process_flat_fee_rows(session, request.rows)


@router.post("/flat-fees/csv", response_model=UploadFlatFeeResponse)
async def upload_flat_fee_csv(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """Upsert flat-fee contracts from a CSV file."""
    rows = await _read_upload(file)
    return _process_flat_fee_rows(session, rows, file.filename or "")


@router.get("/flat-fees/{partner}/allocations")
async def get_partner_allocations(
    partner: str,
    session: Session = Depends(get_session),
):
    """Stored weekly allocations for a flat-fee partner."""
    allocations = allocations_for_partner(session, partner)
    if not allocations:
        raise HTTPException(
            status_code=404, detail=f"No allocations found for partner '{partner}'"
        )
    return {
        "partnerName": partner,
        "count": len(allocations),
        "allocations": [
            {
                "weekStart": a.week_start,
                "weekEnd": a.week_end,
                "weeklyRevenue": a.weekly_revenue,
                "contractId": a.contract_id,
            }
            for a in allocations
        ],
    }


@router.get("/history")
async def get_upload_history(
    limit: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_session),
):
    """Most recent uploads first."""
    results = session.exec(
        select(UploadHistory)
        .order_by(col(UploadHistory.uploaded_at).desc(), col(UploadHistory.id).desc())
        .limit(limit)
    ).all()

    return {
        "success": True,
        "history": [
            {
                "id": r.id,
                "filename": r.filename,
                "uploadType": r.upload_type,
                "platformKey": r.platform_key,
                "status": r.status,
                "recordsProcessed": r.records_processed,
                "recordsSkipped": r.records_skipped,
                "errorMessage": r.error_message,
                "uploadedAt": r.uploaded_at.isoformat(),
            }
            for r in results
        ],
    }
