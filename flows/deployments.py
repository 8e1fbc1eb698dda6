"""
Prefect deployment definitions with schedules.

- close-stale-sessions: every 15 minutes
- recompute-panchayat-scores: daily 00:30
"""

from prefect import serve

from flows.session_flows import (
    close_stale_sessions_flow,
    recompute_panchayat_scores_flow,
)


def get_scheduled_deployments():
    """Build deployment objects with schedules for serve()."""
    return [
        close_stale_sessions_flow.to_deployment(
            name="close-stale-sessions",
            cron="*/15 * * * *",
            tags=["sessions", "reaper"],
        ),
        recompute_panchayat_scores_flow.to_deployment(
            name="recompute-panchayat-scores",
            cron="30 0 * * *",  # daily 00:30
            tags=["leaderboard", "scoring"],
        ),
    ]


if __name__ == "__main__":
    deployments = get_scheduled_deployments()
    serve(*deployments)
