"""RevPace — Finance Calendar & Pacing Value Models.

Derived values produced by the engine. None of these are persisted
(flat-fee weeks are materialized separately as FlatFeeAllocation rows).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that serializes to camelCase for the dashboard client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FinanceWeek(CamelModel):
    """A Thursday → Wednesday reporting week."""

    start: date
    end: date


class PacingResult(CamelModel):
    """Pacing of a month-to-date actual against a monthly target."""

    pacing_pct: float
    pct_to_target: float = 0.0
    days_accounted: int
    days_in_month: int
    days_left: int


class ReportingPeriod(CamelModel):
    """The month being reported on, and the date the actuals run through."""

    month: str  # YYYY-MM
    month_start: date
    month_end: date
    reference_date: date


class FlatFeeContractInput(CamelModel):
    """A fixed-revenue partnership as seen by the allocator."""

    partner_name: str
    contract_start: date
    contract_end: date
    total_contract_revenue: float


class WeeklyAllocation(CamelModel):
    """One finance week's share of a flat-fee contract."""

    partner_name: str
    week_start: date
    week_end: date
    weekly_revenue: float
    contract_id: Optional[int] = None
