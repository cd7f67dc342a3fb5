"""RevPace — Pacing Engine.

Projects whether a month-to-date actual is on track for a monthly target.

Canonical formula, used by every dashboard surface and agent tool:

    pacing = (actual_to_date / days_accounted) * days_left / target * 100

The daily run-rate is projected over the days remaining in the month and
expressed as a percentage of the target. Pacing is 0 when there is no
target to pace against or no days have been accounted yet.
"""

import math
from datetime import date
from typing import Optional, Tuple

from app.analyzer import finance_calendar
from app.analyzer.finance_calendar import DateLike
from app.core.exceptions import PacingWindowError
from app.models.pacing_models import PacingResult


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def compute_pacing(
    actual_to_date: float,
    target: float,
    days_accounted: int,
    days_in_month: int,
) -> float:
    """Projected pacing percentage. Never raises for arithmetic reasons."""
    if not target or target <= 0 or days_accounted <= 0:
        return 0.0

    accounted = min(days_accounted, days_in_month)
    remaining = max(days_in_month - accounted, 0)
    pacing = ((actual_to_date / accounted) * remaining / target) * 100
    return _finite_or_zero(pacing)


def pct_to_target(actual_to_date: float, target: float) -> float:
    """Share of the target already banked, as a percentage."""
    if not target or target <= 0:
        return 0.0
    return _finite_or_zero((actual_to_date / target) * 100)


def resolve_pacing_window(
    reporting_month: DateLike,
    reference_date: DateLike,
) -> Tuple[int, int]:
    """Return (days_accounted, days_in_month) for a reference inside the month.

    ``reporting_month`` may be any date in the month, or a ``YYYY-MM`` string.
    Raises PacingWindowError when the reference date lies outside that month.
    """
    if isinstance(reporting_month, str) and len(reporting_month.strip()) == 7:
        month_anchor: date = finance_calendar.parse_month(reporting_month)
    else:
        month_anchor = finance_calendar.parse_date(reporting_month)
    reference = finance_calendar.parse_date(reference_date)

    month_start, month_end = finance_calendar.month_bounds(month_anchor)
    if not (month_start <= reference <= month_end):
        raise PacingWindowError(
            f"Reference date {reference.isoformat()} is outside reporting month "
            f"{month_start.strftime('%Y-%m')}",
            field="as_of",
        )
    return (
        finance_calendar.days_accounted(reference),
        finance_calendar.days_in_month(month_anchor),
    )


def build_pacing_result(
    actual_to_date: float,
    target: float,
    reference_date: DateLike,
    reporting_month: Optional[DateLike] = None,
) -> PacingResult:
    """Full pacing picture for one actual/target pair."""
    if reporting_month is None:
        reporting_month = reference_date
    accounted, month_days = resolve_pacing_window(reporting_month, reference_date)

    return PacingResult(
        pacing_pct=compute_pacing(actual_to_date, target, accounted, month_days),
        pct_to_target=pct_to_target(actual_to_date, target),
        days_accounted=accounted,
        days_in_month=month_days,
        days_left=month_days - accounted,
    )
