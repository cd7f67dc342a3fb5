"""RevPace — Flat-Fee Contract & Skimlinks Models."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class FlatFeeContract(SQLModel, table=True):
    """A fixed-revenue partnership.

    Identity is (partner_name, contract_start, contract_end): re-uploading
    the same contract updates it in place.
    """

    __tablename__ = "flat_fee_contracts"
    __table_args__ = (
        UniqueConstraint(
            "partner_name",
            "contract_start",
            "contract_end",
            name="uq_flat_fee_contract",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    partner_name: str = Field(index=True)
    contract_start: str = Field(description="YYYY-MM-DD")
    contract_end: str = Field(description="YYYY-MM-DD")
    total_contract_revenue: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FlatFeeAllocation(SQLModel, table=True):
    """A contract's share of one finance week (Thursday → Wednesday)."""

    __tablename__ = "flat_fee_allocations"
    __table_args__ = (
        UniqueConstraint(
            "partner_name",
            "week_start",
            "week_end",
            name="uq_flat_fee_allocation",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    partner_name: str = Field(index=True)
    week_start: str = Field(index=True, description="Thursday, YYYY-MM-DD")
    week_end: str = Field(description="Wednesday, YYYY-MM-DD")
    weekly_revenue: float = Field(default=0.0)
    contract_id: Optional[int] = Field(
        default=None, foreign_key="flat_fee_contracts.id", index=True
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SkimlinksMerchant(SQLModel, table=True):
    """One merchant row of a Skimlinks publisher report for a month."""

    __tablename__ = "skimlinks_merchants"

    id: Optional[int] = Field(default=None, primary_key=True)
    month: str = Field(index=True, description="YYYY-MM")
    merchant: str
    clicks: int = 0
    sales: int = 0
    conversion_rate: float = 0.0
    gmv: float = 0.0
    revenue: float = 0.0
    epc: float = 0.0
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
