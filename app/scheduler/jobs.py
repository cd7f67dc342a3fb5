"""RevPace — Scheduler Jobs.

APScheduler daily job that logs a pacing digest for the current month.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from app.config import settings
from app.database import engine
from app.analyzer.pipeline import build_dashboard_overview, resolve_period
from app.analyzer.risk_engine import find_underperforming_brands
from app.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler(timezone=settings.business_timezone)


def build_pacing_digest(session: Session, period=None) -> dict:
    """Overall pacing plus the brands falling behind, for one period."""
    period = period or resolve_period()
    overview = build_dashboard_overview(session, period)
    behind = find_underperforming_brands(session, period)
    return {
        "month": period.month,
        "asOf": period.reference_date.isoformat(),
        "overallPacing": overview.overall_pacing,
        "totalRevenue": overview.total_revenue,
        "daysLeft": overview.days_left,
        "underperforming": [b.brand for b in behind],
        "highSeverity": [b.brand for b in behind if b.severity == "high"],
    }


async def daily_pacing_digest():
    """Log the month-to-date pacing digest."""
    logger.info("Scheduled pacing digest starting...")
    try:
        with Session(engine) as session:
            digest = build_pacing_digest(session)
        logger.info(
            f"Pacing digest {digest['month']}: overall {digest['overallPacing']}%, "
            f"{len(digest['underperforming'])} brands below "
            f"{settings.underperforming_threshold:.0f}% "
            f"({len(digest['highSeverity'])} high severity)"
        )
    except Exception as e:
        logger.error(f"Scheduled pacing digest failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_pacing_digest,
        "cron",
        hour=settings.digest_hour,
        minute=0,
        id="daily_pacing_digest",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Daily pacing digest at {settings.digest_hour}:00 "
        f"{settings.business_timezone}"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
