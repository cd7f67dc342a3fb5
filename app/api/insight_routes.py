"""RevPace — Insight API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.analyzer.pipeline import build_dashboard_overview
from app.analyzer.risk_engine import (
    find_underperforming_brands,
    revenue_by_category,
    top_performers,
)
from app.analyzer.trend_engine import monthly_revenue_trends, top_brands
from app.api.dependencies import reporting_period
from app.models.pacing_models import ReportingPeriod

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.get("/trends")
async def get_trends(
    months: int = Query(6, ge=1, le=24),
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Monthly revenue for the last ``months`` months, oldest first."""
    trends = monthly_revenue_trends(session, period.reference_date, months)
    return {"trends": [t.model_dump(by_alias=True) for t in trends]}


@router.get("/top-brands")
async def get_top_brands(
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Brands ranked by all-time weekly revenue."""
    brands = top_brands(session, limit)
    return {"total": len(brands), "brands": [b.model_dump(by_alias=True) for b in brands]}


@router.get("/underperforming")
async def get_underperforming(
    threshold: Optional[float] = Query(None, ge=0, description="Pacing % threshold"),
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Brands pacing below the threshold, worst first."""
    brands = find_underperforming_brands(session, period, threshold)
    return {
        "month": period.month,
        "count": len(brands),
        "brands": [b.model_dump(by_alias=True) for b in brands],
    }


@router.get("/overview")
async def get_insights_overview(
    period: ReportingPeriod = Depends(reporting_period),
    session: Session = Depends(get_session),
):
    """Headline totals, category split and top performers in one call."""
    overview = build_dashboard_overview(session, period)
    return {
        "summary": overview.model_dump(by_alias=True, mode="json"),
        "categories": revenue_by_category(session, period).model_dump(by_alias=True),
        "topPerformers": [
            p.model_dump(by_alias=True) for p in top_performers(session, period, limit=5)
        ],
    }
