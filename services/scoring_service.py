"""
Krishi Drishti — Utilization Scoring Engine.

A Panchayat's score (0-100) is built from its verified, completed
sessions:

    acres     min(total_acres / 100, 1)              x 40
    sessions  min(session_count / 50, 1)             x 30
    duration  min(avg_session_hours / 8, 1)          x 20
    subsidy   min((total_subsidy / total_acres) / 500, 1) x 10   (acres > 0)

The sum is rounded half-up to an integer. No qualifying sessions scores 0.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Panchayat, UtilizationSession
from services.base import BaseService

ACRES_TARGET, ACRES_WEIGHT = 100.0, 40.0
SESSIONS_TARGET, SESSIONS_WEIGHT = 50.0, 30.0
HOURS_TARGET, HOURS_WEIGHT = 8.0, 20.0
SUBSIDY_PER_ACRE_TARGET, SUBSIDY_WEIGHT = 500.0, 10.0


class SessionAggregate(BaseModel):
    """Totals over a Panchayat's verified, completed sessions."""
    session_count: int = 0
    total_acres: float = 0.0
    total_subsidy: float = 0.0
    avg_duration_hours: float = 0.0


def summarize_sessions(sessions: Iterable[Any]) -> SessionAggregate:
    """Aggregate sessions; rows without an end_time are ignored."""
    count = 0
    acres = 0.0
    subsidy = 0.0
    hours = 0.0
    for s in sessions:
        if s.end_time is None or s.start_time is None:
            continue
        count += 1
        acres += s.acres_covered or 0.0
        subsidy += s.subsidy_amount or 0.0
        hours += (s.end_time - s.start_time).total_seconds() / 3600
    return SessionAggregate(
        session_count=count,
        total_acres=acres,
        total_subsidy=subsidy,
        avg_duration_hours=hours / count if count else 0.0,
    )


def compute_utilization_score(agg: SessionAggregate) -> int:
    if agg.session_count == 0:
        return 0

    acres_score = min(agg.total_acres / ACRES_TARGET, 1) * ACRES_WEIGHT
    session_score = min(agg.session_count / SESSIONS_TARGET, 1) * SESSIONS_WEIGHT
    duration_score = min(agg.avg_duration_hours / HOURS_TARGET, 1) * HOURS_WEIGHT
    subsidy_per_acre = agg.total_subsidy / agg.total_acres if agg.total_acres > 0 else 0.0
    efficiency_score = min(subsidy_per_acre / SUBSIDY_PER_ACRE_TARGET, 1) * SUBSIDY_WEIGHT

    # half-up, not banker's rounding
    return math.floor(acres_score + session_score + duration_score + efficiency_score + 0.5)


class ScoringService(BaseService[Panchayat]):
    """Recomputes and persists Panchayat utilization scores."""

    def __init__(self, db: AsyncSession):
        super().__init__(Panchayat, db)

    async def qualifying_sessions(
        self,
        panchayat_ids: Iterable[str] | None = None,
    ) -> dict[str, list[UtilizationSession]]:
        """Verified, completed sessions grouped by panchayat id."""
        stmt = select(UtilizationSession).where(
            UtilizationSession.verified.is_(True),
            UtilizationSession.end_time.is_not(None),
            UtilizationSession.panchayat_id.is_not(None),
        )
        if panchayat_ids is not None:
            stmt = stmt.where(UtilizationSession.panchayat_id.in_(list(panchayat_ids)))

        grouped: dict[str, list[UtilizationSession]] = defaultdict(list)
        for session in (await self.db.execute(stmt)).scalars():
            grouped[session.panchayat_id].append(session)
        return grouped

    async def update_panchayat_score(self, panchayat_id: str) -> int:
        """Recompute one Panchayat's score and store it.

        Raises:
            ResourceNotFound: Unknown panchayat id.
        """
        panchayat = await self.get_or_404(panchayat_id)
        sessions = (await self.qualifying_sessions([panchayat_id])).get(panchayat_id, [])
        score = compute_utilization_score(summarize_sessions(sessions))

        previous = panchayat.utilization_score
        panchayat.utilization_score = score
        await self.flush()

        self.logger.info(
            "Panchayat score updated",
            panchayat_id=panchayat_id,
            previous_score=previous,
            score=score,
            qualifying_sessions=len(sessions),
        )
        return score

    async def recompute_all(
        self,
        state: str | None = None,
        district: str | None = None,
    ) -> dict[str, int]:
        """Recompute every (optionally filtered) Panchayat's score."""
        criteria = []
        if state:
            criteria.append(Panchayat.state == state)
        if district:
            criteria.append(Panchayat.district == district)
        panchayats = await self.list_where(*criteria)
        grouped = await self.qualifying_sessions([p.id for p in panchayats])

        scores: dict[str, int] = {}
        for panchayat in panchayats:
            score = compute_utilization_score(summarize_sessions(grouped.get(panchayat.id, [])))
            panchayat.utilization_score = score
            scores[panchayat.id] = score
        await self.flush()

        self.logger.info("Panchayat scores recomputed", panchayats=len(panchayats), state=state, district=district)
        return scores
