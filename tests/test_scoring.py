"""Tests for Panchayat utilization scoring."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from services.scoring_service import (
    ScoringService,
    SessionAggregate,
    compute_utilization_score,
    summarize_sessions,
)

from tests.helpers import minutes_ago


# =============================================================================
# Pure scoring
# =============================================================================

class TestComputeUtilizationScore:

    def test_no_sessions_scores_zero(self):
        assert compute_utilization_score(SessionAggregate()) == 0

    def test_saturated_components_score_100(self):
        agg = SessionAggregate(
            session_count=80,
            total_acres=250.0,
            total_subsidy=250.0 * 900,
            avg_duration_hours=9.5,
        )
        assert compute_utilization_score(agg) == 100

    def test_mixed_case(self):
        # 20 (acres) + 6 (sessions) + 10 (duration) + 5 (subsidy/acre)
        agg = SessionAggregate(
            session_count=10,
            total_acres=50.0,
            total_subsidy=12500.0,
            avg_duration_hours=4.0,
        )
        assert compute_utilization_score(agg) == 41

    def test_zero_acres_skips_subsidy_component(self):
        agg = SessionAggregate(
            session_count=25,
            total_acres=0.0,
            total_subsidy=5000.0,
            avg_duration_hours=8.0,
        )
        assert compute_utilization_score(agg) == 35

    def test_rounds_half_up(self):
        # 15 + 10 + 5 + 2.5 = 32.5
        agg = SessionAggregate(
            session_count=25,
            total_acres=25.0,
            total_subsidy=3125.0,
            avg_duration_hours=2.0,
        )
        assert compute_utilization_score(agg) == 33

    def test_monotonic_in_acres(self):
        scores = [
            compute_utilization_score(
                SessionAggregate(
                    session_count=10,
                    total_acres=acres,
                    total_subsidy=10000.0,
                    avg_duration_hours=3.0,
                )
            )
            for acres in (10.0, 40.0, 80.0, 120.0)
        ]
        # subsidy per acre falls as acres grow, but acres dominate
        assert scores == sorted(scores)
        assert all(0 <= s <= 100 for s in scores)


def test_summarize_sessions_ignores_open_rows():
    start = minutes_ago(600)
    rows = [
        SimpleNamespace(start_time=start, end_time=start + timedelta(hours=2), acres_covered=5.0, subsidy_amount=1000.0),
        SimpleNamespace(start_time=start, end_time=start + timedelta(hours=4), acres_covered=None, subsidy_amount=None),
        SimpleNamespace(start_time=start, end_time=None, acres_covered=99.0, subsidy_amount=99.0),
    ]

    agg = summarize_sessions(rows)

    assert agg.session_count == 2
    assert agg.total_acres == 5.0
    assert agg.total_subsidy == 1000.0
    assert agg.avg_duration_hours == pytest.approx(3.0)


# =============================================================================
# Persisted scores
# =============================================================================

@pytest.fixture
def seed_verified_work(seed_session):
    """Two qualifying sessions plus two that must not count."""

    async def _create(machine, panchayat):
        start = minutes_ago(24 * 60)
        for offset in (0, 5):
            begin = start + timedelta(hours=offset)
            await seed_session(
                machine,
                start_time=begin,
                end_time=begin + timedelta(hours=4),
                panchayat_id=panchayat.id,
                verified=True,
                acres_covered=25.0,
                subsidy_amount=6250.0,
            )
        # unverified
        await seed_session(
            machine,
            start_time=start + timedelta(hours=10),
            end_time=start + timedelta(hours=14),
            panchayat_id=panchayat.id,
            acres_covered=500.0,
        )
        # still open
        await seed_session(
            machine,
            start_time=minutes_ago(30),
            panchayat_id=panchayat.id,
            verified=True,
        )

    return _create


@pytest.mark.asyncio
class TestScoringService:

    async def test_update_panchayat_score_persists(self, db_session, seed_panchayat, seed_machine, seed_verified_work):
        panchayat = await seed_panchayat()
        machine = await seed_machine(panchayat=panchayat)
        await seed_verified_work(machine, panchayat)

        score = await ScoringService(db_session).update_panchayat_score(panchayat.id)
        await db_session.commit()

        # 20 + 1.2 + 10 + 5 = 36.2
        assert score == 36
        await db_session.refresh(panchayat)
        assert panchayat.utilization_score == 36

    async def test_panchayat_without_sessions_scores_zero(self, db_session, seed_panchayat):
        panchayat = await seed_panchayat(utilization_score=70)

        assert await ScoringService(db_session).update_panchayat_score(panchayat.id) == 0

    async def test_recompute_all_respects_state_filter(self, db_session, seed_panchayat, seed_machine, seed_verified_work):
        haryana = await seed_panchayat(name="Tigaon", state="Haryana")
        punjab = await seed_panchayat(name="Bhadaur", state="Punjab", utilization_score=55)
        machine = await seed_machine(panchayat=haryana)
        await seed_verified_work(machine, haryana)

        scores = await ScoringService(db_session).recompute_all(state="Haryana")

        assert scores == {haryana.id: 36}
        assert punjab.utilization_score == 55

    async def test_score_endpoint(self, client, seed_panchayat, seed_machine, seed_verified_work):
        panchayat = await seed_panchayat()
        machine = await seed_machine(panchayat=panchayat)
        await seed_verified_work(machine, panchayat)

        response = await client.post(f"/api/panchayats/{panchayat.id}/score")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "panchayat_id": panchayat.id,
            "utilization_score": 36,
        }

    async def test_score_endpoint_unknown_panchayat_is_404(self, client):
        response = await client.post("/api/panchayats/missing/score")

        assert response.status_code == 404
        assert response.json()["error"] == "ResourceNotFound"
