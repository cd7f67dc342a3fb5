"""RevPace — Dashboard Output Schemas."""

from datetime import date
from typing import Dict, List, Optional

from app.models.pacing_models import CamelModel


# ─────────────────────────────────────────────
# DASHBOARD
# ─────────────────────────────────────────────


class DashboardOverview(CamelModel):
    """Month-to-date totals across every platform and brand."""

    month: str
    as_of: date
    total_revenue: float = 0.0
    total_target: float = 0.0
    total_gmv: float = 0.0
    total_brands: int = 0
    overall_pacing: float = 0.0
    achievement_pct: float = 0.0
    days_accounted: int = 0
    days_in_month: int = 0
    days_left: int = 0
    currency: str = "USD"


class BrandPerformance(CamelModel):
    """Latest month-to-date state of a brand on one platform."""

    brand: str
    platform: str = ""
    date: str
    weekly_revenue: float = 0.0
    mtd_revenue: float = 0.0
    mtd_gmv: float = 0.0
    target_gmv: float = 0.0
    total_contract_revenue: Optional[float] = None
    pct_to_target: float = 0.0
    pacing_pct: float = 0.0
    days_left: int = 0


class PlatformPerformance(CamelModel):
    """A platform's totals plus its brand breakdown."""

    name: str
    display_name: str = ""
    category: str = "attribution"
    mtd_revenue: float = 0.0
    mtd_gmv: float = 0.0
    target_gmv: float = 0.0
    weekly_revenue: float = 0.0
    pacing: float = 0.0
    pct_to_target: float = 0.0
    days_accounted: int = 0
    days_left: int = 0
    brand_count: int = 0
    brands: List[BrandPerformance] = []


class CategorizedPlatforms(CamelModel):
    attribution: List[PlatformPerformance] = []
    affiliate: List[PlatformPerformance] = []
    flatfee: List[PlatformPerformance] = []
    all: List[PlatformPerformance] = []


class WeekRevenue(CamelModel):
    date: str
    revenue: float


class PlatformWeeklyRevenue(CamelModel):
    """Weekly revenue series for a platform or flat-fee partner."""

    platform: str
    week_revenues: List[WeekRevenue] = []
    is_flat_fee: bool = False


# ─────────────────────────────────────────────
# BRANDS
# ─────────────────────────────────────────────


class BrandSummary(CamelModel):
    id: str
    name: str
    platform: str
    revenue: float = 0.0
    gmv: float = 0.0
    transaction_details: List[BrandPerformance] = []


# ─────────────────────────────────────────────
# RISKS & TRENDS
# ─────────────────────────────────────────────


class UnderperformingBrand(CamelModel):
    """A brand pacing below the alert threshold."""

    brand: str
    platform: str
    mtd_gmv: float
    target_gmv: float
    pacing: float
    gap: float
    severity: str = "medium"  # "medium" | "high"


class TopPerformer(CamelModel):
    brand: str
    mtd_revenue: float = 0.0
    mtd_gmv: float = 0.0


class CategoryRevenue(CamelModel):
    revenue_by_category: Dict[str, float] = {}
    total: float = 0.0


class MonthlyTrend(CamelModel):
    """Revenue for a calendar month compared with the month before."""

    month: str  # YYYY-MM
    label: str  # e.g. "Nov"
    revenue: float = 0.0
    change_pct: float = 0.0
    direction: str = "flat"  # "up" | "down" | "flat"
    previous_period_available: bool = True


class TopBrand(CamelModel):
    name: str
    platform: str
    category: str
    revenue: float = 0.0
