"""RevPace — Skimlinks Merchant Report Routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlmodel import Session, col, select

from app.database import get_session
from app.analyzer.finance_calendar import parse_month
from app.connectors.csv.parser import parse_skimlinks_report
from app.connectors.csv.transformer import (
    finish_upload,
    replace_skimlinks_month,
    start_upload,
)
from app.core.exceptions import ValidationError
from app.models.contract_models import SkimlinksMerchant
from app.models.upload_models import UploadSkimlinksRequest, UploadSkimlinksResponse
from app.core.logging import get_logger

logger = get_logger("api.skimlinks")

router = APIRouter(prefix="/skimlinks", tags=["Skimlinks"])


def _validate_month(month: str) -> str:
    try:
        parse_month(month)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return month.strip()


@router.post("/upload", response_model=UploadSkimlinksResponse)
async def upload_report(
    request: UploadSkimlinksRequest,
    session: Session = Depends(get_session),
):
    """Replace a month's merchant report with the uploaded CSV content."""
    month = _validate_month(request.month)
    if not request.csv_content.strip():
        raise HTTPException(status_code=400, detail="CSV content is required")

    try:
        merchants = parse_skimlinks_report(request.csv_content)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not merchants:
        raise HTTPException(status_code=400, detail="No merchant data found in CSV")

    upload = start_upload(session, "skimlinks", platform_key="skimlinks")
    try:
        count = replace_skimlinks_month(session, month, merchants)
    except Exception as e:
        logger.error(f"Skimlinks upload failed: {e}")
        finish_upload(session, upload, error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to upload CSV: {str(e)}")
    finish_upload(session, upload, count)

    return UploadSkimlinksResponse(
        message=f"Successfully uploaded {count} merchants for {month}",
        count=count,
        month=month,
    )


@router.get("/merchants")
async def get_merchants(
    month: str = Query(..., description="YYYY-MM"),
    session: Session = Depends(get_session),
):
    """Merchants for a month, highest revenue first."""
    month = _validate_month(month)
    rows = session.exec(
        select(SkimlinksMerchant)
        .where(SkimlinksMerchant.month == month)
        .order_by(col(SkimlinksMerchant.revenue).desc())
    ).all()

    if not rows:
        return {
            "month": month,
            "merchants": [],
            "message": "No data available for this month",
        }

    return {
        "month": month,
        "uploadedAt": max(r.uploaded_at for r in rows).isoformat(),
        "merchants": [
            {
                "merchant": r.merchant,
                "clicks": r.clicks,
                "sales": r.sales,
                "conversionRate": r.conversion_rate,
                "gmv": r.gmv,
                "revenue": r.revenue,
                "epc": r.epc,
            }
            for r in rows
        ],
    }


@router.get("/months")
async def get_available_months(session: Session = Depends(get_session)):
    """Months with a stored report, most recent first."""
    rows = session.exec(
        select(
            SkimlinksMerchant.month,
            func.max(SkimlinksMerchant.uploaded_at),
            func.count(SkimlinksMerchant.id),
        )
        .group_by(SkimlinksMerchant.month)
        .order_by(col(SkimlinksMerchant.month).desc())
    ).all()

    return {
        "months": [
            {
                "month": month,
                "uploadedAt": uploaded_at.isoformat() if uploaded_at else None,
                "merchantCount": count,
            }
            for month, uploaded_at, count in rows
        ]
    }
