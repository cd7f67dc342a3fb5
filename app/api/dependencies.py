"""RevPace — Shared Route Dependencies."""

from typing import Optional

from fastapi import HTTPException, Query

from app.analyzer.pipeline import resolve_period
from app.core.exceptions import PacingWindowError, ValidationError
from app.models.pacing_models import ReportingPeriod


def reporting_period(
    month: Optional[str] = Query(None, description="Reporting month (YYYY-MM)"),
    as_of: Optional[str] = Query(
        None, alias="asOf", description="Actuals run through this date (YYYY-MM-DD)"
    ),
) -> ReportingPeriod:
    """Resolve ?month=&asOf= into a ReportingPeriod, or fail with 400/422."""
    try:
        return resolve_period(month=month, as_of=as_of)
    except PacingWindowError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
