"""RevPace — Dashboard API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from app.database import get_session
from app.analyzer.pacing_engine import build_pacing_result
from app.analyzer.pipeline import (
    build_dashboard_overview,
    build_platform_performance,
    categorize_platforms,
    weekly_revenue_by_platform,
)
from app.api.dependencies import reporting_period
from app.core.exceptions import PacingWindowError, ValidationError
from app.models.pacing_models import PacingResult, ReportingPeriod
from app.core.logging import get_logger

logger = get_logger("api.dashboard")

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# ── Endpoints ──


@router.get("/overview")
async def get_overview(
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Overall dashboard summary plus platforms grouped by category."""
    try:
        overview = build_dashboard_overview(session, period)
        categorized = categorize_platforms(build_platform_performance(session, period))
    except Exception as e:
        logger.error(f"Dashboard overview failed: {e}", extra={"endpoint": "overview"})
        raise HTTPException(
            status_code=500, detail=f"Failed to fetch dashboard overview: {str(e)}"
        )

    return {
        "summary": overview.model_dump(by_alias=True, mode="json"),
        "platforms": [p.model_dump(by_alias=True) for p in categorized.all],
        "platformsByCategory": {
            "attribution": [p.model_dump(by_alias=True) for p in categorized.attribution],
            "affiliate": [p.model_dump(by_alias=True) for p in categorized.affiliate],
            "flatfee": [p.model_dump(by_alias=True) for p in categorized.flatfee],
        },
    }


@router.get("/platform-performance")
async def get_platform_performance(
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Detailed platform performance with brand breakdown."""
    platforms = build_platform_performance(session, period)
    return {
        "success": True,
        "month": period.month,
        "platforms": [p.model_dump(by_alias=True) for p in platforms],
    }


@router.get("/weekly-revenue")
async def get_weekly_revenue(
    from_week: Optional[str] = Query(None, alias="fromWeek"),
    to_week: Optional[str] = Query(None, alias="toWeek"),
    session: Session = Depends(get_session),
):
    """Weekly revenue for every platform and flat-fee partner in a range."""
    if not from_week or not to_week:
        raise HTTPException(
            status_code=400,
            detail="fromWeek and toWeek query parameters are required",
        )
    try:
        data = weekly_revenue_by_platform(session, from_week, to_week)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": [d.model_dump(by_alias=True) for d in data],
        "fromWeek": from_week,
        "toWeek": to_week,
    }


@router.get("/brands/{platform}")
async def get_brands_by_platform(
    platform: str,
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Brand details for one platform."""
    platforms = build_platform_performance(session, period)
    match = next((p for p in platforms if platform in (p.name, p.display_name)), None)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Platform '{platform}' not found")

    return {
        "success": True,
        "platform": match.name,
        "brands": [b.model_dump(by_alias=True) for b in match.brands],
        "summary": {
            "mtdRevenue": match.mtd_revenue,
            "mtdGmv": match.mtd_gmv,
            "targetGmv": match.target_gmv,
            "pacing": match.pacing,
            "brandCount": match.brand_count,
        },
    }


@router.get("/pacing", response_model=PacingResult)
async def calculate_pacing(
    actual: float = Query(..., description="Month-to-date actual"),
    target: float = Query(..., description="Monthly target"),
    as_of: str = Query(..., alias="asOf", description="Reference date (YYYY-MM-DD)"),
    month: Optional[str] = Query(None, description="Reporting month (YYYY-MM)"),
):
    """Ad-hoc pacing for a single actual/target pair."""
    try:
        return build_pacing_result(actual, target, as_of, month)
    except PacingWindowError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
