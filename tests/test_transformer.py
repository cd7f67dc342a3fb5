"""
Tests for persisting parsed uploads.

Covers:
- Platform metric upserts on (platform_key, brand, date), chunked commits
- Platform key canonicalization through the registry
- Idempotent flat-fee contract re-uploads (no duplicate contracts/allocations)
- All-or-nothing validation across a contract batch
- Upload history bookkeeping
- Skimlinks month replacement
"""

from datetime import date

import pytest
from sqlmodel import select

from app.connectors.csv.transformer import (
    allocations_for_partner,
    finish_upload,
    replace_skimlinks_month,
    start_upload,
    store_flat_fee_contracts,
    upsert_platform_metrics,
)
from app.core.exceptions import ValidationError
from app.models.contract_models import (
    FlatFeeAllocation,
    FlatFeeContract,
    SkimlinksMerchant,
)
from app.models.normalized_models import PlatformMetric
from app.models.pacing_models import FlatFeeContractInput
from app.models.upload_models import PlatformRow, SkimlinksRow


def _row(brand="Acme", day=date(2025, 11, 13), weekly=100.0, mtd=1000.0):
    return PlatformRow(
        date=day,
        brand=brand,
        weekly_revenue=weekly,
        mtd_revenue=mtd,
        mtd_gmv=mtd * 10,
        target_gmv=90000,
    )


def _contract(partner="Acme Media", total=52000.0):
    return FlatFeeContractInput(
        partner_name=partner,
        contract_start=date(2025, 11, 1),
        contract_end=date(2025, 11, 30),
        total_contract_revenue=total,
    )


class TestPlatformMetrics:
    def test_insert_then_update(self, session):
        assert upsert_platform_metrics(session, "Skimlinks", [_row()]) == 1
        assert upsert_platform_metrics(session, "skimlinks", [_row(weekly=250.0)]) == 1

        rows = session.exec(select(PlatformMetric)).all()
        assert len(rows) == 1
        assert rows[0].platform_key == "skimlinks"
        assert rows[0].weekly_revenue == 250.0

    def test_repeated_key_within_one_upload(self, session):
        written = upsert_platform_metrics(
            session, "impact", [_row(weekly=1.0), _row(weekly=2.0)]
        )
        assert written == 2
        rows = session.exec(select(PlatformMetric)).all()
        assert len(rows) == 1
        assert rows[0].weekly_revenue == 2.0

    def test_chunked_commits(self, session):
        rows = [_row(brand=f"Brand {i}") for i in range(7)]
        assert upsert_platform_metrics(session, "awin", rows, batch_size=3) == 7
        assert len(session.exec(select(PlatformMetric)).all()) == 7


class TestFlatFeeContracts:
    def test_store_allocations(self, session):
        processed, allocations = store_flat_fee_contracts(session, [_contract()])
        assert processed == 1
        assert len(allocations) == 4

        contract = session.exec(select(FlatFeeContract)).one()
        stored = allocations_for_partner(session, "Acme Media")
        assert [a.week_start for a in stored] == [
            "2025-11-06",
            "2025-11-13",
            "2025-11-20",
            "2025-11-27",
        ]
        assert all(a.weekly_revenue == pytest.approx(13000) for a in stored)
        assert all(a.contract_id == contract.id for a in stored)

    def test_reupload_is_idempotent(self, session):
        store_flat_fee_contracts(session, [_contract()])
        store_flat_fee_contracts(session, [_contract(total=60000)])

        contracts = session.exec(select(FlatFeeContract)).all()
        assert len(contracts) == 1
        assert contracts[0].total_contract_revenue == 60000

        allocations = session.exec(select(FlatFeeAllocation)).all()
        assert len(allocations) == 4
        assert all(a.weekly_revenue == pytest.approx(15000) for a in allocations)

    def test_invalid_contract_rejects_whole_batch(self, session):
        bad = FlatFeeContractInput(
            partner_name="Globex Deals",
            contract_start=date(2025, 11, 30),
            contract_end=date(2025, 11, 1),
            total_contract_revenue=1000,
        )
        with pytest.raises(ValidationError):
            store_flat_fee_contracts(session, [_contract(), bad])

        assert session.exec(select(FlatFeeContract)).all() == []
        assert session.exec(select(FlatFeeAllocation)).all() == []

    def test_prorated_allocation(self, session):
        _, allocations = store_flat_fee_contracts(
            session, [_contract(total=30000)], prorate_partial_weeks=True
        )
        assert len(allocations) == 5
        assert sum(a.weekly_revenue for a in allocations) == pytest.approx(30000)

    def test_mode_switch_drops_weeks_outside_new_plan(self, session):
        store_flat_fee_contracts(session, [_contract(total=40000)], prorate_partial_weeks=True)
        store_flat_fee_contracts(session, [_contract(total=40000)], prorate_partial_weeks=False)

        allocations = session.exec(
            select(FlatFeeAllocation).order_by(FlatFeeAllocation.week_start)
        ).all()
        assert [a.week_start for a in allocations] == [
            "2025-11-06",
            "2025-11-13",
            "2025-11-20",
            "2025-11-27",
        ]
        assert sum(a.weekly_revenue for a in allocations) == pytest.approx(40000)


class TestUploadHistory:
    def test_success_and_error(self, session):
        upload = start_upload(session, "platform", "nov.csv", "impact")
        assert upload.status == "processing"

        finish_upload(session, upload, 10, 2)
        assert upload.status == "success"
        assert upload.records_skipped == 2

        failed = start_upload(session, "flatfee")
        finish_upload(session, failed, error="boom")
        assert failed.status == "error"
        assert failed.error_message == "boom"


class TestSkimlinks:
    def test_replace_month(self, session):
        replace_skimlinks_month(
            session, "2025-11", [SkimlinksRow(merchant="A"), SkimlinksRow(merchant="B")]
        )
        replace_skimlinks_month(session, "2025-10", [SkimlinksRow(merchant="C")])
        count = replace_skimlinks_month(
            session, "2025-11", [SkimlinksRow(merchant="D", revenue=12.5)]
        )

        assert count == 1
        november = session.exec(
            select(SkimlinksMerchant).where(SkimlinksMerchant.month == "2025-11")
        ).all()
        assert [m.merchant for m in november] == ["D"]
        assert len(session.exec(select(SkimlinksMerchant)).all()) == 2
