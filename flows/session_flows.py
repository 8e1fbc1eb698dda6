"""
Prefect flows for scheduled session housekeeping.

Flows: stale-session sweep (every 15 minutes), nightly Panchayat score
recomputation and re-ranking.
"""

from __future__ import annotations

from typing import Any

from prefect import flow, task

from database import get_db_context, init_database
from logger import get_logger
from services import LeaderboardService, SessionReaper

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Stale-session sweep
# -----------------------------------------------------------------------------


@task(name="sweep-open-sessions")
async def _sweep_task() -> dict[str, Any]:
    async with get_db_context() as db:
        result = await SessionReaper(db).sweep()
    return result.model_dump(mode="json")


@flow(name="close-stale-sessions")
async def close_stale_sessions_flow() -> dict[str, Any]:
    """Close sessions of machines that stopped reporting."""
    await init_database()
    result = await _sweep_task()
    logger.info("Stale-session flow finished", **result["summary"])
    return result


# -----------------------------------------------------------------------------
# Score recomputation
# -----------------------------------------------------------------------------


@task(name="recompute-and-rank")
async def _recompute_task(state: str | None, district: str | None) -> dict[str, Any]:
    async with get_db_context() as db:
        board = await LeaderboardService(db).calculate_leaderboard(
            state=state, district=district, recompute=True
        )
    return board.model_dump(mode="json")


@flow(name="recompute-panchayat-scores")
async def recompute_panchayat_scores_flow(
    state: str | None = None,
    district: str | None = None,
) -> dict[str, Any]:
    """Refresh every Panchayat's score from verified sessions and re-rank."""
    await init_database()
    board = await _recompute_task(state, district)
    logger.info(
        "Score recomputation finished",
        total_panchayats=board["total_panchayats"],
        state=state,
        district=district,
    )
    return board
