"""Prefect flows for Krishi Drishti session housekeeping."""

from flows.session_flows import (
    close_stale_sessions_flow,
    recompute_panchayat_scores_flow,
)

__all__ = [
    "close_stale_sessions_flow",
    "recompute_panchayat_scores_flow",
]
