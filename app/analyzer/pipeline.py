"""RevPace — Dashboard Aggregation Pipeline.

Groups stored platform metrics by platform and brand, takes the latest
month-to-date snapshot of each, sums them, and runs the pacing engine per
brand, per platform and in total:

  resolve period → latest snapshot per (platform, brand) → totals → pacing

Every figure uses pacing_engine.compute_pacing, so the dashboard, the
scheduler digest and the agent tools report the same numbers.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.config import settings
from app.analyzer import finance_calendar
from app.analyzer.pacing_engine import (
    compute_pacing,
    pct_to_target,
    resolve_pacing_window,
)
from app.core.platform_registry import (
    PlatformCategory,
    canonical_platform_key,
    normalize_platform_key,
    platform_category,
)
from app.models.normalized_models import PlatformMetric
from app.models.contract_models import FlatFeeAllocation, FlatFeeContract
from app.models.pacing_models import ReportingPeriod
from app.models.analysis_models import (
    BrandPerformance,
    BrandSummary,
    CategorizedPlatforms,
    DashboardOverview,
    PlatformPerformance,
    PlatformWeeklyRevenue,
    WeekRevenue,
)
from app.core.logging import get_logger

logger = get_logger("analyzer.pipeline")


def business_today() -> date:
    """Today's date in the configured business timezone."""
    return datetime.now(ZoneInfo(settings.business_timezone)).date()


def resolve_period(
    month: Optional[str] = None,
    as_of: Optional[str] = None,
    today: Optional[date] = None,
) -> ReportingPeriod:
    """Resolve query parameters into a ReportingPeriod.

    ``as_of`` defaults to today; ``month`` defaults to the month of ``as_of``.
    Raises PacingWindowError when ``as_of`` is outside ``month``.
    """
    reference = finance_calendar.parse_date(as_of) if as_of else (today or business_today())
    anchor = finance_calendar.parse_month(month) if month else reference

    resolve_pacing_window(anchor, reference)
    month_start, month_end = finance_calendar.month_bounds(anchor)
    return ReportingPeriod(
        month=month_start.strftime("%Y-%m"),
        month_start=month_start,
        month_end=month_end,
        reference_date=reference,
    )


def _window(period: ReportingPeriod) -> tuple[int, int]:
    """(days_accounted, days_in_month) for a resolved period."""
    return resolve_pacing_window(period.month_start, period.reference_date)


def latest_metrics(
    session: Session,
    period: ReportingPeriod,
    platform_key: Optional[str] = None,
) -> List[PlatformMetric]:
    """Latest snapshot per (platform_key, brand) inside the reporting window."""
    query = select(PlatformMetric).where(
        PlatformMetric.date >= period.month_start.isoformat(),
        PlatformMetric.date <= period.reference_date.isoformat(),
    )
    if platform_key:
        query = query.where(
            PlatformMetric.platform_key == canonical_platform_key(platform_key)
        )
    rows = session.exec(
        query.order_by(
            PlatformMetric.platform_key,
            PlatformMetric.brand,
            col(PlatformMetric.date).desc(),
        )
    ).all()

    latest: Dict[tuple[str, str], PlatformMetric] = {}
    for r in rows:
        latest.setdefault((r.platform_key, r.brand), r)
    return list(latest.values())


def flat_fee_partners(session: Session) -> Set[str]:
    """Partner names that have at least one flat-fee contract."""
    names = session.exec(select(FlatFeeContract.partner_name).distinct()).all()
    return set(names)


def _brand_performance(
    metric: PlatformMetric, days_accounted: int, days_in_month: int
) -> BrandPerformance:
    return BrandPerformance(
        brand=metric.brand,
        platform=metric.platform_key,
        date=metric.date,
        weekly_revenue=metric.weekly_revenue,
        mtd_revenue=metric.mtd_revenue,
        mtd_gmv=metric.mtd_gmv,
        target_gmv=metric.target_gmv,
        total_contract_revenue=metric.total_contract_revenue,
        pct_to_target=round(pct_to_target(metric.mtd_gmv, metric.target_gmv), 2),
        pacing_pct=round(
            compute_pacing(
                metric.mtd_gmv, metric.target_gmv, days_accounted, days_in_month
            ),
            2,
        ),
        days_left=days_in_month - days_accounted,
    )


def build_dashboard_overview(
    session: Session, period: ReportingPeriod
) -> DashboardOverview:
    """Overall month-to-date summary."""
    metrics = latest_metrics(session, period)
    days_accounted, days_in_month = _window(period)

    total_revenue = sum(m.mtd_revenue for m in metrics)
    total_target = sum(m.target_gmv for m in metrics)
    total_gmv = sum(m.mtd_gmv for m in metrics)

    return DashboardOverview(
        month=period.month,
        as_of=period.reference_date,
        total_revenue=round(total_revenue, 2),
        total_target=round(total_target, 2),
        total_gmv=round(total_gmv, 2),
        total_brands=len(metrics),
        overall_pacing=round(
            compute_pacing(total_gmv, total_target, days_accounted, days_in_month), 2
        ),
        achievement_pct=round(pct_to_target(total_revenue, total_target), 2),
        days_accounted=days_accounted,
        days_in_month=days_in_month,
        days_left=days_in_month - days_accounted,
        currency=settings.currency,
    )


def build_platform_performance(
    session: Session, period: ReportingPeriod
) -> List[PlatformPerformance]:
    """Per-platform totals with brand breakdown, ordered by platform key."""
    metrics = latest_metrics(session, period)
    days_accounted, days_in_month = _window(period)
    flat_partners = flat_fee_partners(session)

    grouped: Dict[str, List[PlatformMetric]] = defaultdict(list)
    for m in metrics:
        grouped[m.platform_key].append(m)

    platforms: List[PlatformPerformance] = []
    for platform_key in sorted(grouped):
        brands = grouped[platform_key]
        mtd_revenue = sum(b.mtd_revenue for b in brands)
        mtd_gmv = sum(b.mtd_gmv for b in brands)
        target_gmv = sum(b.target_gmv for b in brands)
        weekly_revenue = sum(b.weekly_revenue for b in brands)

        platforms.append(
            PlatformPerformance(
                name=platform_key,
                display_name=normalize_platform_key(platform_key),
                category=platform_category(platform_key, flat_partners).value,
                mtd_revenue=round(mtd_revenue, 2),
                mtd_gmv=round(mtd_gmv, 2),
                target_gmv=round(target_gmv, 2),
                weekly_revenue=round(weekly_revenue, 2),
                pacing=round(
                    compute_pacing(mtd_gmv, target_gmv, days_accounted, days_in_month),
                    2,
                ),
                pct_to_target=round(pct_to_target(mtd_gmv, target_gmv), 2),
                days_accounted=days_accounted,
                days_left=days_in_month - days_accounted,
                brand_count=len(brands),
                brands=[
                    _brand_performance(b, days_accounted, days_in_month)
                    for b in brands
                ],
            )
        )

    logger.info(
        f"Aggregated {len(metrics)} brand snapshots across {len(platforms)} platforms "
        f"for {period.month} (as of {period.reference_date})"
    )
    return platforms


def categorize_platforms(
    platforms: Iterable[PlatformPerformance],
) -> CategorizedPlatforms:
    """Bucket platform performance by category."""
    result = CategorizedPlatforms()
    for p in platforms:
        result.all.append(p)
        if p.category == PlatformCategory.FLATFEE.value:
            result.flatfee.append(p)
        elif p.category == PlatformCategory.AFFILIATE.value:
            result.affiliate.append(p)
        else:
            result.attribution.append(p)
    return result


def weekly_revenue_by_platform(
    session: Session, from_week: str, to_week: str
) -> List[PlatformWeeklyRevenue]:
    """Weekly revenue per platform, plus flat-fee allocations, in a date range."""
    start = finance_calendar.parse_date(from_week).isoformat()
    stop = finance_calendar.parse_date(to_week).isoformat()

    metric_rows = session.exec(
        select(
            PlatformMetric.platform_key,
            PlatformMetric.date,
            func.sum(PlatformMetric.weekly_revenue),
        )
        .where(PlatformMetric.date >= start, PlatformMetric.date <= stop)
        .group_by(PlatformMetric.platform_key, PlatformMetric.date)
        .order_by(PlatformMetric.platform_key, PlatformMetric.date)
    ).all()

    allocations = session.exec(
        select(FlatFeeAllocation)
        .where(
            FlatFeeAllocation.week_start >= start,
            FlatFeeAllocation.week_start <= stop,
        )
        .order_by(FlatFeeAllocation.partner_name, FlatFeeAllocation.week_start)
    ).all()

    series: Dict[str, Dict[str, float]] = {}
    flat: Set[str] = set()
    for platform_key, day, revenue in metric_rows:
        series.setdefault(platform_key, {})[day] = float(revenue or 0.0)
    for a in allocations:
        if a.partner_name not in series:
            flat.add(a.partner_name)
        series.setdefault(a.partner_name, {})[a.week_start] = a.weekly_revenue

    return [
        PlatformWeeklyRevenue(
            platform=name,
            week_revenues=[
                WeekRevenue(date=day, revenue=round(value, 2))
                for day, value in sorted(weeks.items())
            ],
            is_flat_fee=name in flat,
        )
        for name, weeks in series.items()
    ]


def _brand_summary(
    brand: str,
    platform_key: str,
    details: List[PlatformMetric],
    days_accounted: int,
    days_in_month: int,
) -> BrandSummary:
    ordered = sorted(details, key=lambda m: m.date, reverse=True)
    latest = ordered[0]
    return BrandSummary(
        id=brand,
        name=brand,
        platform=platform_key,
        revenue=latest.mtd_revenue or 0.0,
        gmv=latest.mtd_gmv or 0.0,
        transaction_details=[
            _brand_performance(m, days_accounted, days_in_month) for m in ordered
        ],
    )


def list_brands(
    session: Session,
    period: ReportingPeriod,
    platform_key: Optional[str] = None,
) -> List[BrandSummary]:
    """Every brand active this month, with its latest MTD totals and history."""
    query = select(PlatformMetric).where(
        PlatformMetric.date >= period.month_start.isoformat(),
        PlatformMetric.date <= period.reference_date.isoformat(),
    )
    if platform_key:
        query = query.where(
            PlatformMetric.platform_key == canonical_platform_key(platform_key)
        )
    rows = session.exec(query).all()
    days_accounted, days_in_month = _window(period)

    grouped: Dict[tuple[str, str], List[PlatformMetric]] = defaultdict(list)
    for r in rows:
        grouped[(r.platform_key, r.brand)].append(r)

    return [
        _brand_summary(brand, platform, details, days_accounted, days_in_month)
        for (platform, brand), details in sorted(grouped.items())
    ]


def brand_details(
    session: Session, period: ReportingPeriod, brand: str
) -> Optional[BrandSummary]:
    """Latest month-to-date state of a brand.

    Falls back to the most recent historical snapshot when the brand has no
    rows in the reporting month; that snapshot is paced against its own month
    as of its own date. Returns None for an unknown brand.
    """
    days_accounted, days_in_month = _window(period)
    rows = session.exec(
        select(PlatformMetric)
        .where(
            PlatformMetric.brand == brand,
            PlatformMetric.date >= period.month_start.isoformat(),
            PlatformMetric.date <= period.reference_date.isoformat(),
        )
        .order_by(col(PlatformMetric.date).desc())
    ).all()

    if not rows:
        rows = session.exec(
            select(PlatformMetric)
            .where(PlatformMetric.brand == brand)
            .order_by(col(PlatformMetric.date).desc())
            .limit(1)
        ).all()
        if not rows:
            return None
        logger.info(f"No {period.month} data for {brand}; using last snapshot")
        snapshot_date = rows[0].date
        days_accounted, days_in_month = resolve_pacing_window(snapshot_date, snapshot_date)

    return _brand_summary(
        brand, rows[0].platform_key, list(rows), days_accounted, days_in_month
    )
