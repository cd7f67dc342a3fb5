"""RevPace — Upload Rows → Database.

Persists parsed upload rows using idempotent upserts:
- platform metrics on (platform_key, brand, date), committed in chunks
- flat-fee contracts on (partner_name, contract_start, contract_end) and
  their weekly allocations on (partner_name, week_start, week_end),
  one transaction per contract
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from app.config import settings
from app.analyzer.flat_fee_engine import allocate
from app.core.platform_registry import canonical_platform_key
from app.models.normalized_models import PlatformMetric
from app.models.contract_models import (
    FlatFeeAllocation,
    FlatFeeContract,
    SkimlinksMerchant,
)
from app.models.raw_models import UploadHistory
from app.models.pacing_models import FlatFeeContractInput, WeeklyAllocation
from app.models.upload_models import PlatformRow, SkimlinksRow
from app.core.logging import get_logger

logger = get_logger("connectors.transformer")


def _chunks(items: list, size: int):
    size = max(size, 1)
    for i in range(0, len(items), size):
        yield items[i : i + size]


# ─────────────────────────────────────────────
# UPLOAD HISTORY
# ─────────────────────────────────────────────


def start_upload(
    session: Session, upload_type: str, filename: str = "", platform_key: str = ""
) -> UploadHistory:
    """Record an upload as processing."""
    upload = UploadHistory(
        filename=filename, upload_type=upload_type, platform_key=platform_key
    )
    session.add(upload)
    session.commit()
    session.refresh(upload)
    return upload


def finish_upload(
    session: Session,
    upload: UploadHistory,
    records_processed: int = 0,
    records_skipped: int = 0,
    error: Optional[str] = None,
) -> UploadHistory:
    """Mark an upload as success, or as error when ``error`` is given."""
    upload.status = "error" if error else "success"
    upload.records_processed = records_processed
    upload.records_skipped = records_skipped
    upload.error_message = error
    session.add(upload)
    session.commit()
    return upload


# ─────────────────────────────────────────────
# PLATFORM METRICS
# ─────────────────────────────────────────────


def upsert_platform_metrics(
    session: Session,
    platform_key: str,
    rows: List[PlatformRow],
    batch_size: Optional[int] = None,
) -> int:
    """Upsert rows for a platform. Each chunk commits atomically.

    Returns the number of rows written.
    """
    key = canonical_platform_key(platform_key)
    batch_size = batch_size or settings.upload_batch_size
    written = 0

    for chunk in _chunks(rows, batch_size):
        try:
            for row in chunk:
                day = row.date.isoformat()
                existing = session.exec(
                    select(PlatformMetric).where(
                        PlatformMetric.platform_key == key,
                        PlatformMetric.brand == row.brand,
                        PlatformMetric.date == day,
                    )
                ).first()

                if existing:
                    existing.weekly_revenue = row.weekly_revenue
                    existing.mtd_revenue = row.mtd_revenue
                    existing.mtd_gmv = row.mtd_gmv
                    existing.target_gmv = row.target_gmv
                    existing.total_contract_revenue = row.total_contract_revenue
                    existing.updated_at = datetime.now(timezone.utc)
                    session.add(existing)
                else:
                    session.add(
                        PlatformMetric(
                            platform_key=key,
                            brand=row.brand,
                            date=day,
                            weekly_revenue=row.weekly_revenue,
                            mtd_revenue=row.mtd_revenue,
                            mtd_gmv=row.mtd_gmv,
                            target_gmv=row.target_gmv,
                            total_contract_revenue=row.total_contract_revenue,
                        )
                    )
                # Flush so a repeated (brand, date) later in the chunk updates
                session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise
        written += len(chunk)

    logger.info(
        f"Upserted {written} rows for {key} in batches of {batch_size}",
        extra={"platform_key": key},
    )
    return written


# ─────────────────────────────────────────────
# FLAT-FEE CONTRACTS
# ─────────────────────────────────────────────


def _upsert_contract(session: Session, contract: FlatFeeContractInput) -> FlatFeeContract:
    start = contract.contract_start.isoformat()
    end = contract.contract_end.isoformat()
    existing = session.exec(
        select(FlatFeeContract).where(
            FlatFeeContract.partner_name == contract.partner_name,
            FlatFeeContract.contract_start == start,
            FlatFeeContract.contract_end == end,
        )
    ).first()

    if existing:
        existing.total_contract_revenue = contract.total_contract_revenue
        existing.updated_at = datetime.now(timezone.utc)
        record = existing
    else:
        record = FlatFeeContract(
            partner_name=contract.partner_name,
            contract_start=start,
            contract_end=end,
            total_contract_revenue=contract.total_contract_revenue,
        )
    session.add(record)
    session.flush()
    return record


def _upsert_allocation(session: Session, allocation: WeeklyAllocation) -> None:
    week_start = allocation.week_start.isoformat()
    week_end = allocation.week_end.isoformat()
    existing = session.exec(
        select(FlatFeeAllocation).where(
            FlatFeeAllocation.partner_name == allocation.partner_name,
            FlatFeeAllocation.week_start == week_start,
            FlatFeeAllocation.week_end == week_end,
        )
    ).first()

    if existing:
        existing.weekly_revenue = allocation.weekly_revenue
        existing.contract_id = allocation.contract_id
        existing.updated_at = datetime.now(timezone.utc)
        session.add(existing)
    else:
        session.add(
            FlatFeeAllocation(
                partner_name=allocation.partner_name,
                week_start=week_start,
                week_end=week_end,
                weekly_revenue=allocation.weekly_revenue,
                contract_id=allocation.contract_id,
            )
        )


def _drop_stale_allocations(
    session: Session, contract_id: int, allocations: List[WeeklyAllocation]
) -> int:
    """Delete this contract's weeks that the new plan no longer covers."""
    planned = {(a.week_start.isoformat(), a.week_end.isoformat()) for a in allocations}
    stale = [
        row
        for row in session.exec(
            select(FlatFeeAllocation).where(FlatFeeAllocation.contract_id == contract_id)
        ).all()
        if (row.week_start, row.week_end) not in planned
    ]
    for row in stale:
        session.delete(row)
    return len(stale)


def store_flat_fee_contracts(
    session: Session,
    contracts: List[FlatFeeContractInput],
    prorate_partial_weeks: Optional[bool] = None,
) -> Tuple[int, List[WeeklyAllocation]]:
    """Allocate and persist contracts.

    Every contract is allocated (and so validated) before anything is
    written. Each contract and its weeks then commit as one unit.
    Returns (contracts_processed, allocations).
    """
    if prorate_partial_weeks is None:
        prorate_partial_weeks = settings.flat_fee_prorate_partial_weeks

    planned = [(c, allocate(c, prorate_partial_weeks)) for c in contracts]

    stored: List[WeeklyAllocation] = []
    for contract, allocations in planned:
        try:
            record = _upsert_contract(session, contract)
            dropped = _drop_stale_allocations(session, record.id, allocations)
            if dropped:
                logger.info(f"Removed {dropped} stale weeks for {contract.partner_name}")
            for allocation in allocations:
                allocation.contract_id = record.id
                _upsert_allocation(session, allocation)
            session.commit()
        except Exception:
            session.rollback()
            logger.error(f"Rolled back contract for {contract.partner_name}")
            raise
        stored.extend(allocations)
        logger.info(
            f"Allocated {contract.partner_name} ({contract.contract_start} → "
            f"{contract.contract_end}) across {len(allocations)} weeks"
        )

    return len(planned), stored


def allocations_for_partner(session: Session, partner_name: str) -> List[FlatFeeAllocation]:
    return list(
        session.exec(
            select(FlatFeeAllocation)
            .where(FlatFeeAllocation.partner_name == partner_name)
            .order_by(FlatFeeAllocation.week_start)
        ).all()
    )


# ─────────────────────────────────────────────
# SKIMLINKS
# ─────────────────────────────────────────────


def replace_skimlinks_month(
    session: Session, month: str, merchants: List[SkimlinksRow]
) -> int:
    """Replace the stored merchant report for ``month``."""
    try:
        previous = session.exec(
            select(SkimlinksMerchant).where(SkimlinksMerchant.month == month)
        ).all()
        for row in previous:
            session.delete(row)
        for m in merchants:
            session.add(SkimlinksMerchant(month=month, **m.model_dump()))
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"Stored {len(merchants)} Skimlinks merchants for {month}")
    return len(merchants)
