"""RevPace — Trend Engine.

Month-over-month revenue trends and all-time brand rankings,
built from summed weekly revenue.
"""

from datetime import date
from typing import List

from sqlalchemy import func
from sqlmodel import Session, select

from app.analyzer import finance_calendar
from app.core.platform_registry import platform_category
from app.analyzer.pipeline import flat_fee_partners
from app.models.normalized_models import PlatformMetric
from app.models.analysis_models import MonthlyTrend, TopBrand
from app.core.logging import get_logger

logger = get_logger("analyzer.trend")


def _shift_month(anchor: date, months: int) -> date:
    """First day of the month ``months`` away from ``anchor``'s month."""
    index = anchor.year * 12 + (anchor.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _direction(change_pct: float) -> str:
    if change_pct > 2:
        return "up"
    elif change_pct < -2:
        return "down"
    return "flat"


def _month_revenue(session: Session, month_start: date) -> float:
    month_end = finance_calendar.month_bounds(month_start)[1]
    total = session.exec(
        select(func.sum(PlatformMetric.weekly_revenue)).where(
            PlatformMetric.date >= month_start.isoformat(),
            PlatformMetric.date <= month_end.isoformat(),
        )
    ).one()
    return float(total or 0.0)


def monthly_revenue_trends(
    session: Session,
    today: date,
    months: int = 6,
) -> List[MonthlyTrend]:
    """Revenue per calendar month for the last ``months`` months, oldest first."""
    current = today.replace(day=1)
    trends: List[MonthlyTrend] = []
    previous = _month_revenue(session, _shift_month(current, -months))

    for offset in range(months - 1, -1, -1):
        month_start = _shift_month(current, -offset)
        revenue = _month_revenue(session, month_start)

        # Zero baseline: insufficient data, not +100%
        if previous == 0:
            trend = MonthlyTrend(
                month=month_start.strftime("%Y-%m"),
                label=month_start.strftime("%b"),
                revenue=round(revenue, 2),
                previous_period_available=False,
            )
        else:
            change = (revenue - previous) / previous * 100
            trend = MonthlyTrend(
                month=month_start.strftime("%Y-%m"),
                label=month_start.strftime("%b"),
                revenue=round(revenue, 2),
                change_pct=round(change, 2),
                direction=_direction(change),
            )
        trends.append(trend)
        previous = revenue

    logger.info(f"Computed {len(trends)} monthly revenue trends")
    return trends


def top_brands(session: Session, limit: int = 10) -> List[TopBrand]:
    """Brands ranked by all-time summed weekly revenue."""
    total = func.sum(PlatformMetric.weekly_revenue)
    rows = session.exec(
        select(PlatformMetric.brand, PlatformMetric.platform_key, total)
        .group_by(PlatformMetric.brand, PlatformMetric.platform_key)
        .order_by(total.desc())
        .limit(limit)
    ).all()
    flat_partners = flat_fee_partners(session)

    return [
        TopBrand(
            name=brand,
            platform=platform_key,
            category=platform_category(platform_key, flat_partners).value,
            revenue=round(float(revenue or 0.0), 2),
        )
        for brand, platform_key, revenue in rows
    ]
