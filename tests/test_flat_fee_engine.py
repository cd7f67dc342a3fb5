"""
Tests for the flat-fee weekly allocator.

Covers:
- Even split over Thursday-starting weeks (default)
- Day-weighted proration over overlapping weeks (opt-in)
- Allocations always summing to the contract total
- Rejection of invalid contracts
"""

from datetime import date, timedelta

import pytest

from app.analyzer.flat_fee_engine import allocate
from app.core.exceptions import ValidationError
from app.models.pacing_models import FlatFeeContractInput


def _contract(start, end, total=52000.0, partner="Acme Media"):
    return FlatFeeContractInput(
        partner_name=partner,
        contract_start=start,
        contract_end=end,
        total_contract_revenue=total,
    )


class TestEvenSplit:
    def test_four_week_contract(self):
        allocations = allocate(_contract(date(2025, 11, 1), date(2025, 11, 30)))
        assert len(allocations) == 4
        assert all(a.weekly_revenue == pytest.approx(13000) for a in allocations)
        assert [a.week_start for a in allocations] == [
            date(2025, 11, 6),
            date(2025, 11, 13),
            date(2025, 11, 20),
            date(2025, 11, 27),
        ]
        assert all(a.week_end == a.week_start + timedelta(days=6) for a in allocations)
        assert all(a.partner_name == "Acme Media" for a in allocations)

    def test_sum_equals_contract_total(self):
        allocations = allocate(
            _contract(date(2025, 1, 2), date(2025, 12, 31), total=100000)
        )
        assert sum(a.weekly_revenue for a in allocations) == pytest.approx(100000)

    def test_zero_revenue_contract(self):
        allocations = allocate(_contract(date(2025, 11, 6), date(2025, 11, 19), total=0))
        assert [a.weekly_revenue for a in allocations] == [0.0, 0.0]

    def test_range_without_thursday_rejected(self):
        with pytest.raises(ValidationError) as exc:
            allocate(_contract(date(2025, 11, 7), date(2025, 11, 11)))
        assert exc.value.partner == "Acme Media"


class TestDayWeightedSplit:
    def test_partial_weeks_weighted_by_days(self):
        allocations = allocate(
            _contract(date(2025, 11, 1), date(2025, 11, 30), total=30000),
            prorate_partial_weeks=True,
        )
        assert [a.week_start for a in allocations] == [
            date(2025, 10, 30),
            date(2025, 11, 6),
            date(2025, 11, 13),
            date(2025, 11, 20),
            date(2025, 11, 27),
        ]
        assert [round(a.weekly_revenue, 2) for a in allocations] == [
            5000.0,
            7000.0,
            7000.0,
            7000.0,
            4000.0,
        ]
        assert sum(a.weekly_revenue for a in allocations) == pytest.approx(30000)

    def test_short_contract_inside_one_week(self):
        allocations = allocate(
            _contract(date(2025, 11, 7), date(2025, 11, 11), total=5000),
            prorate_partial_weeks=True,
        )
        assert len(allocations) == 1
        assert allocations[0].week_start == date(2025, 11, 6)
        assert allocations[0].weekly_revenue == pytest.approx(5000)


class TestValidation:
    def test_inverted_range(self):
        with pytest.raises(ValidationError):
            allocate(_contract(date(2025, 11, 30), date(2025, 11, 1)))

    def test_negative_revenue(self):
        with pytest.raises(ValidationError):
            allocate(_contract(date(2025, 11, 1), date(2025, 11, 30), total=-1))

    def test_blank_partner(self):
        with pytest.raises(ValidationError):
            allocate(_contract(date(2025, 11, 1), date(2025, 11, 30), partner="  "))
