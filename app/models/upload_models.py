"""RevPace — Upload Request / Response Schemas."""

from datetime import date
from typing import Any, Dict, List, Optional

from app.models.pacing_models import CamelModel, WeeklyAllocation


class PlatformRow(CamelModel):
    """A parsed platform upload row."""

    date: date
    brand: str
    weekly_revenue: float
    mtd_revenue: float
    mtd_gmv: float
    target_gmv: float
    total_contract_revenue: Optional[float] = None


class SkimlinksRow(CamelModel):
    """A parsed merchant row from a Skimlinks publisher report."""

    merchant: str
    clicks: int = 0
    sales: int = 0
    conversion_rate: float = 0.0
    gmv: float = 0.0
    revenue: float = 0.0
    epc: float = 0.0


# ── Requests ──


class UploadPlatformDataRequest(CamelModel):
    """Rows are kept loose so bad rows can be skipped one by one."""

    platform_key: str
    rows: List[Dict[str, Any]]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "platformKey": "creator-connections",
                    "rows": [
                        {
                            "date": "2025-11-17",
                            "brand": "Acme",
                            "weeklyRevenue": "$1,200",
                            "mtdRevenue": 5400,
                            "mtdGmv": 48000,
                            "targetGmv": 90000,
                        }
                    ],
                }
            ]
        }
    }


class UploadFlatFeeRequest(CamelModel):
    rows: List[Dict[str, Any]]


class UploadSkimlinksRequest(CamelModel):
    csv_content: str
    month: str  # YYYY-MM


# ── Responses ──


class UploadPlatformDataResponse(CamelModel):
    success: bool = True
    records_processed: int = 0
    records_skipped: int = 0
    platform_key: str
    upload_id: Optional[int] = None


class UploadFlatFeeResponse(CamelModel):
    success: bool = True
    contracts_processed: int = 0
    weeks_generated: int = 0
    upload_id: Optional[int] = None
    allocations: List[WeeklyAllocation] = []


class UploadSkimlinksResponse(CamelModel):
    success: bool = True
    message: str = ""
    count: int = 0
    month: str
