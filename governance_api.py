"""Krishi Drishti — Governance API.

Endpoints:
- GET|POST /api/cron/close-sessions         : stale-session sweep
- GET      /api/leaderboard                 : Panchayat leaderboard
- POST     /api/panchayats/{id}/score       : recompute one Panchayat's score
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from dependencies import (
    CronAuthorized,
    LeaderboardServiceDep,
    ScoringServiceDep,
    SessionReaperDep,
)
from schemas import (
    ERROR_RESPONSES,
    ErrorResponse,
    LeaderboardResult,
    PanchayatScoreResponse,
    SweepResult,
)

governance_router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)


@governance_router.api_route(
    "/cron/close-sessions",
    methods=["GET", "POST"],
    response_model=SweepResult,
    dependencies=[CronAuthorized],
    responses={401: {"model": ErrorResponse, "description": "Cron secret mismatch"}},
    tags=["Cron"],
)
async def close_stale_sessions(reaper: SessionReaperDep):
    """
    Close sessions whose machine has stopped reporting. Meant to be hit
    every 15 minutes by an external scheduler; POST is the manual trigger.
    """
    return await reaper.sweep()


@governance_router.get("/leaderboard", response_model=LeaderboardResult, tags=["Leaderboard"])
async def get_leaderboard(
    service: LeaderboardServiceDep,
    state: str | None = Query(None),
    district: str | None = Query(None),
    recompute: bool = Query(False, description="Refresh scores from sessions first"),
):
    return await service.calculate_leaderboard(state=state, district=district, recompute=recompute)


@governance_router.post(
    "/panchayats/{panchayat_id}/score",
    response_model=PanchayatScoreResponse,
    tags=["Leaderboard"],
)
async def update_panchayat_score(panchayat_id: str, service: ScoringServiceDep):
    """Recompute a Panchayat's score after its sessions were verified."""
    score = await service.update_panchayat_score(panchayat_id)
    return PanchayatScoreResponse(panchayat_id=panchayat_id, utilization_score=score)
