"""RevPace — Flat-Fee Weekly Allocator.

Spreads a lump-sum contract across the finance weeks it spans.

Default: an even split over the Thursday-starting weeks inside the
contract (days before the first Thursday are not allocated).
With ``prorate_partial_weeks`` every overlapping week is included and
weighted by the number of contract days it covers.
"""

from datetime import timedelta
from typing import List

from app.analyzer.finance_calendar import (
    finance_weeks_between,
    finance_weeks_overlapping,
)
from app.core.exceptions import ValidationError
from app.models.pacing_models import FlatFeeContractInput, WeeklyAllocation


def _validate(contract: FlatFeeContractInput) -> None:
    if not contract.partner_name or not contract.partner_name.strip():
        raise ValidationError("Contract is missing a partner name", field="partnerName")
    if contract.contract_start > contract.contract_end:
        raise ValidationError(
            f"Contract for {contract.partner_name} starts after it ends "
            f"({contract.contract_start} > {contract.contract_end})",
            field="contractEnd",
            partner=contract.partner_name,
        )
    if contract.total_contract_revenue < 0:
        raise ValidationError(
            f"Contract for {contract.partner_name} has negative revenue",
            field="totalContractRevenue",
            partner=contract.partner_name,
        )


def _even_split(contract: FlatFeeContractInput) -> List[WeeklyAllocation]:
    weeks = finance_weeks_between(contract.contract_start, contract.contract_end)
    if not weeks:
        raise ValidationError(
            f"Contract for {contract.partner_name} does not cover any finance week "
            f"({contract.contract_start} → {contract.contract_end})",
            field="contractEnd",
            partner=contract.partner_name,
        )

    weekly_revenue = contract.total_contract_revenue / len(weeks)
    return [
        WeeklyAllocation(
            partner_name=contract.partner_name,
            week_start=week.start,
            week_end=week.end,
            weekly_revenue=weekly_revenue,
        )
        for week in weeks
    ]


def _day_weighted_split(contract: FlatFeeContractInput) -> List[WeeklyAllocation]:
    weeks = finance_weeks_overlapping(contract.contract_start, contract.contract_end)
    total_days = (contract.contract_end - contract.contract_start).days + 1
    if not weeks or total_days <= 0:
        raise ValidationError(
            f"Contract for {contract.partner_name} does not cover any finance week",
            field="contractEnd",
            partner=contract.partner_name,
        )

    allocations: List[WeeklyAllocation] = []
    for week in weeks:
        first = max(week.start, contract.contract_start)
        last = min(week.end, contract.contract_end)
        covered = (last - first).days + 1
        allocations.append(
            WeeklyAllocation(
                partner_name=contract.partner_name,
                week_start=week.start,
                week_end=week.start + timedelta(days=6),
                weekly_revenue=contract.total_contract_revenue * covered / total_days,
            )
        )
    return allocations


def allocate(
    contract: FlatFeeContractInput,
    prorate_partial_weeks: bool = False,
) -> List[WeeklyAllocation]:
    """Produce one WeeklyAllocation per finance week of the contract.

    Raises ValidationError for an inverted range, negative revenue, or a
    contract that covers no finance week.
    """
    _validate(contract)
    if prorate_partial_weeks:
        return _day_weighted_split(contract)
    return _even_split(contract)
