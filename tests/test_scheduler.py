"""Tests for the scheduled pacing digest."""

from app.scheduler.jobs import build_pacing_digest


def test_digest_for_seeded_month(seeded, november):
    digest = build_pacing_digest(seeded, november)
    assert digest["month"] == "2025-11"
    assert digest["asOf"] == "2025-11-15"
    assert digest["totalRevenue"] == 4500
    assert digest["underperforming"] == ["Globex", "Acme"]
    assert digest["highSeverity"] == ["Globex", "Acme"]


def test_digest_for_empty_month(session, november):
    digest = build_pacing_digest(session, november)
    assert digest["overallPacing"] == 0.0
    assert digest["underperforming"] == []
