"""RevPace — Brand API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from app.database import get_session
from app.analyzer.pipeline import brand_details, list_brands
from app.api.dependencies import reporting_period
from app.models.pacing_models import ReportingPeriod

router = APIRouter(prefix="/brands", tags=["Brands"])


@router.get("")
async def get_all_brands(
    platform: Optional[str] = Query(None, description="Filter by platform key"),
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Brands active in the reporting month with their latest MTD totals."""
    brands = list_brands(session, period, platform_key=platform)
    return {
        "total": len(brands),
        "brands": [b.model_dump(by_alias=True) for b in brands],
    }


@router.get("/{brand}")
async def get_brand(
    brand: str,
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """A single brand's latest MTD totals and snapshot history."""
    summary = brand_details(session, period, brand)
    if summary is None:
        raise HTTPException(status_code=404, detail="Brand not found")
    return summary.model_dump(by_alias=True)
