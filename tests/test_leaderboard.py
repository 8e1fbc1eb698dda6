"""Tests for Panchayat ranking, medals and the leaderboard endpoint."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from db.models import Panchayat
from services.leaderboard_service import LeaderboardService

from tests.helpers import minutes_ago

pytestmark = pytest.mark.asyncio


@pytest.fixture
def seed_field(seed_panchayat):
    """Seven Haryana Panchayats scored 90 down to 30."""

    async def _create():
        created = []
        for n, score in enumerate((90, 80, 70, 60, 50, 40, 30), start=1):
            created.append(
                await seed_panchayat(name=f"P{n}", utilization_score=score, id=f"p-{n}")
            )
        return created

    return _create


class TestCalculateLeaderboard:

    async def test_medals_and_bottom_five(self, db_session, seed_field):
        await seed_field()

        result = await LeaderboardService(db_session).calculate_leaderboard()

        assert result.total_panchayats == 7
        assert [(e.id, e.rank, e.medal) for e in result.top_performers] == [
            ("p-1", 1, "GOLD"),
            ("p-2", 2, "SILVER"),
            ("p-3", 3, "BRONZE"),
        ]
        assert [e.rank for e in result.bottom_performers] == [7, 6, 5, 4, 3]
        assert all(e.medal is None for e in result.bottom_performers)

    async def test_ranks_are_persisted(self, db_session, seed_field):
        await seed_field()

        await LeaderboardService(db_session).calculate_leaderboard()
        await db_session.commit()

        rows = (await db_session.execute(select(Panchayat.id, Panchayat.rank))).all()
        assert dict(rows) == {f"p-{n}": n for n in range(1, 8)}

    async def test_ties_break_by_id(self, db_session, seed_panchayat):
        await seed_panchayat(name="Later", utilization_score=50, id="p-b")
        await seed_panchayat(name="Earlier", utilization_score=50, id="p-a")
        await seed_panchayat(name="Leader", utilization_score=75, id="p-z")

        result = await LeaderboardService(db_session).calculate_leaderboard()

        assert [e.id for e in result.top_performers] == ["p-z", "p-a", "p-b"]

    async def test_fewer_than_three_panchayats(self, db_session, seed_panchayat):
        await seed_panchayat(utilization_score=12, id="p-only")

        result = await LeaderboardService(db_session).calculate_leaderboard()

        assert [(e.id, e.medal) for e in result.top_performers] == [("p-only", "GOLD")]
        assert [e.id for e in result.bottom_performers] == ["p-only"]

    async def test_empty_scope(self, db_session):
        result = await LeaderboardService(db_session).get_national_leaderboard()

        assert result.total_panchayats == 0
        assert result.top_performers == []
        assert result.bottom_performers == []

    async def test_state_and_district_filters(self, db_session, seed_panchayat):
        await seed_panchayat(state="Haryana", district="Faridabad", utilization_score=40, id="p-hf")
        await seed_panchayat(state="Haryana", district="Karnal", utilization_score=60, id="p-hk")
        await seed_panchayat(state="Punjab", district="Barnala", utilization_score=90, id="p-pb")
        service = LeaderboardService(db_session)

        state = await service.get_state_leaderboard("Haryana")
        district = await service.get_district_leaderboard("Haryana", "Faridabad")

        assert [e.id for e in state.top_performers] == ["p-hk", "p-hf"]
        assert [e.id for e in district.top_performers] == ["p-hf"]
        assert district.top_performers[0].rank == 1

    async def test_entries_carry_session_aggregates(self, db_session, seed_panchayat, seed_machine, seed_session):
        panchayat = await seed_panchayat(utilization_score=20, id="p-1")
        machine = await seed_machine(panchayat=panchayat)
        start = minutes_ago(600)
        await seed_session(
            machine,
            start_time=start,
            end_time=start + timedelta(hours=3),
            panchayat_id=panchayat.id,
            verified=True,
            acres_covered=12.5,
        )

        result = await LeaderboardService(db_session).calculate_leaderboard()

        entry = result.top_performers[0]
        assert entry.total_sessions == 1
        assert entry.total_acres_covered == 12.5
        assert entry.avg_session_duration_hours == pytest.approx(3.0)


# =============================================================================
# Endpoint
# =============================================================================

class TestLeaderboardEndpoint:

    async def test_get_leaderboard(self, client, seed_field):
        await seed_field()

        response = await client.get("/api/leaderboard")

        assert response.status_code == 200
        body = response.json()
        assert body["total_panchayats"] == 7
        assert body["top_performers"][0]["medal"] == "GOLD"
        assert body["top_performers"][0]["utilization_score"] == 90
        assert [e["rank"] for e in body["bottom_performers"]] == [7, 6, 5, 4, 3]
        assert "last_updated" in body

    async def test_state_filter(self, client, seed_panchayat):
        await seed_panchayat(state="Punjab", utilization_score=10, id="p-pb")
        await seed_panchayat(state="Haryana", utilization_score=90, id="p-hr")

        response = await client.get("/api/leaderboard", params={"state": "Punjab"})

        assert [e["id"] for e in response.json()["top_performers"]] == ["p-pb"]

    async def test_recompute_refreshes_stale_scores(self, client, seed_panchayat, seed_machine, seed_session):
        stale = await seed_panchayat(utilization_score=95, id="p-stale")
        worker = await seed_panchayat(utilization_score=0, id="p-worker")
        machine = await seed_machine(panchayat=worker)
        start = minutes_ago(2000)
        for day in range(3):
            begin = start + timedelta(hours=8 * day)
            await seed_session(
                machine,
                start_time=begin,
                end_time=begin + timedelta(hours=8),
                panchayat_id=worker.id,
                verified=True,
                acres_covered=40.0,
                subsidy_amount=20000.0,
            )

        response = await client.get("/api/leaderboard", params={"recompute": "true"})

        top = response.json()["top_performers"]
        assert [e["id"] for e in top] == ["p-worker", "p-stale"]
        # 40 (acres) + 1.8 (sessions) + 20 (duration) + 10 (subsidy/acre)
        assert top[0]["utilization_score"] == 72
        assert top[1]["utilization_score"] == 0
