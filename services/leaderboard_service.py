"""Krishi Drishti — Panchayat Leaderboard.

Ranks Panchayats by stored utilization score (ties broken by id), writes
the rank back to every Panchayat, and returns the top three with medals
plus the bottom five, worst first.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from core.enums import Medal
from db.base import utcnow
from db.models import Panchayat
from schemas.leaderboard import LeaderboardEntry, LeaderboardResult
from services.base import BaseService
from services.scoring_service import ScoringService, summarize_sessions

MEDALS = (Medal.GOLD, Medal.SILVER, Medal.BRONZE)
BOTTOM_COUNT = 5


class LeaderboardService(BaseService[Panchayat]):
    """Builds national, state and district leaderboards."""

    def __init__(self, db: AsyncSession):
        super().__init__(Panchayat, db)
        self.scoring = ScoringService(db)

    async def calculate_leaderboard(
        self,
        state: str | None = None,
        district: str | None = None,
        recompute: bool = False,
    ) -> LeaderboardResult:
        """Rank the Panchayats in scope and persist their ranks.

        Args:
            state: Restrict to one state.
            district: Restrict to one district.
            recompute: Refresh every score from sessions before ranking.
        """
        if recompute:
            await self.scoring.recompute_all(state, district)

        criteria = []
        if state:
            criteria.append(Panchayat.state == state)
        if district:
            criteria.append(Panchayat.district == district)
        panchayats = await self.list_where(*criteria)
        panchayats.sort(key=lambda p: (-(p.utilization_score or 0), p.id))

        grouped = await self.scoring.qualifying_sessions([p.id for p in panchayats])

        entries: list[LeaderboardEntry] = []
        for rank, panchayat in enumerate(panchayats, start=1):
            panchayat.rank = rank
            agg = summarize_sessions(grouped.get(panchayat.id, []))
            entries.append(
                LeaderboardEntry(
                    id=panchayat.id,
                    name=panchayat.name,
                    district=panchayat.district,
                    state=panchayat.state,
                    utilization_score=panchayat.utilization_score or 0,
                    rank=rank,
                    total_sessions=agg.session_count,
                    total_acres_covered=agg.total_acres,
                    avg_session_duration_hours=agg.avg_duration_hours,
                )
            )
        await self.flush()

        top = [
            entry.model_copy(update={"medal": medal})
            for entry, medal in zip(entries[:len(MEDALS)], MEDALS)
        ]
        bottom = list(reversed(entries[-BOTTOM_COUNT:]))

        self.logger.info(
            "Leaderboard ranked",
            state=state,
            district=district,
            total_panchayats=len(entries),
            leader=top[0].id if top else None,
        )
        return LeaderboardResult(
            top_performers=top,
            bottom_performers=bottom,
            total_panchayats=len(entries),
            last_updated=utcnow(),
        )

    async def get_national_leaderboard(self) -> LeaderboardResult:
        return await self.calculate_leaderboard()

    async def get_state_leaderboard(self, state: str) -> LeaderboardResult:
        return await self.calculate_leaderboard(state=state)

    async def get_district_leaderboard(self, state: str, district: str) -> LeaderboardResult:
        return await self.calculate_leaderboard(state=state, district=district)
