"""RevPace — Platform Metric Model.

Every platform upload (CSV or JSON rows) normalizes into this format.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class PlatformMetric(SQLModel, table=True):
    """Month-to-date actuals for one (platform, brand, date).

    Unique constraint on (platform_key, brand, date) makes uploads
    idempotent upserts. History rows are never deleted; the latest date
    for a (platform_key, brand) is the current dashboard state.
    """

    __tablename__ = "platform_metrics"
    __table_args__ = (
        UniqueConstraint(
            "platform_key",
            "brand",
            "date",
            name="uq_platform_metric",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    platform_key: str = Field(index=True, description="Registry key or partner name")
    brand: str = Field(index=True, description="Brand name")
    date: str = Field(index=True, description="As-of date, YYYY-MM-DD")
    weekly_revenue: float = Field(default=0.0, description="Current finance week revenue")
    mtd_revenue: float = Field(default=0.0, description="Revenue since month start")
    mtd_gmv: float = Field(default=0.0, description="GMV since month start")
    target_gmv: float = Field(default=0.0, description="Monthly GMV goal")
    total_contract_revenue: Optional[float] = Field(
        default=None, description="Total value of a fixed-term deal"
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
