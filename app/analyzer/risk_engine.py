"""RevPace — Risk Engine.

Flags brands that need attention and ranks the ones that don't:
- Pacing below threshold → underperforming (high severity below half of it)
- Top performers by MTD revenue or GMV
- Revenue split by platform category
"""

from collections import defaultdict
from typing import Dict, List

from sqlmodel import Session

from app.config import settings
from app.analyzer.pacing_engine import compute_pacing, resolve_pacing_window
from app.analyzer.pipeline import flat_fee_partners, latest_metrics
from app.core.platform_registry import PlatformCategory, platform_category
from app.models.pacing_models import ReportingPeriod
from app.models.analysis_models import (
    CategoryRevenue,
    TopPerformer,
    UnderperformingBrand,
)
from app.core.logging import get_logger

logger = get_logger("analyzer.risk")

HIGH_SEVERITY_RATIO = 0.5  # Below half the threshold


def find_underperforming_brands(
    session: Session,
    period: ReportingPeriod,
    threshold: float | None = None,
) -> List[UnderperformingBrand]:
    """Brands with a target whose pacing is below ``threshold`` percent."""
    if threshold is None:
        threshold = settings.underperforming_threshold
    days_accounted, days_in_month = resolve_pacing_window(
        period.month_start, period.reference_date
    )

    flagged: List[UnderperformingBrand] = []
    for m in latest_metrics(session, period):
        if m.target_gmv <= 0:
            continue
        pacing = compute_pacing(m.mtd_gmv, m.target_gmv, days_accounted, days_in_month)
        if pacing >= threshold:
            continue
        flagged.append(
            UnderperformingBrand(
                brand=m.brand,
                platform=m.platform_key,
                mtd_gmv=m.mtd_gmv,
                target_gmv=m.target_gmv,
                pacing=round(pacing, 1),
                gap=round(m.target_gmv - m.mtd_gmv, 2),
                severity="high" if pacing < threshold * HIGH_SEVERITY_RATIO else "medium",
            )
        )

    flagged.sort(key=lambda b: b.pacing)
    logger.info(
        f"Found {len(flagged)} brands pacing below {threshold:.0f}% for {period.month}"
    )
    return flagged


def top_performers(
    session: Session,
    period: ReportingPeriod,
    metric: str = "revenue",
    limit: int = 10,
) -> List[TopPerformer]:
    """Brands ranked by summed latest MTD revenue (or GMV) across platforms."""
    totals: Dict[str, TopPerformer] = {}
    for m in latest_metrics(session, period):
        entry = totals.setdefault(m.brand, TopPerformer(brand=m.brand))
        entry.mtd_revenue += m.mtd_revenue
        entry.mtd_gmv += m.mtd_gmv

    key = (lambda p: p.mtd_gmv) if metric == "gmv" else (lambda p: p.mtd_revenue)
    return sorted(totals.values(), key=key, reverse=True)[:limit]


def revenue_by_category(session: Session, period: ReportingPeriod) -> CategoryRevenue:
    """MTD revenue per platform category."""
    flat_partners = flat_fee_partners(session)
    categories: Dict[str, float] = defaultdict(float)
    for c in PlatformCategory:
        categories[c.value] = 0.0

    for m in latest_metrics(session, period):
        categories[platform_category(m.platform_key, flat_partners).value] += m.mtd_revenue

    return CategoryRevenue(
        revenue_by_category={k: round(v, 2) for k, v in categories.items()},
        total=round(sum(categories.values()), 2),
    )
