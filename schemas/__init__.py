"""Krishi Drishti — Pydantic schemas for the HTTP surface."""

from .leaderboard import LeaderboardEntry, LeaderboardResult, PanchayatScoreResponse
from .response import ERROR_RESPONSES, ErrorResponse, ORJSONResponse
from .session import ClosedSessionSummary, SweepResult, SweepSummary
from .telemetry import (
    ActiveSessionInfo,
    FleetStatusResponse,
    FleetStatusSummary,
    GeoPoint,
    MachineLiveStatus,
    SessionAction,
    TelemetryIngestResponse,
    TelemetryListResponse,
    TelemetryLogOut,
    TelemetryReading,
    TelemetrySnapshot,
)

__all__ = [
    "ActiveSessionInfo",
    "ClosedSessionSummary",
    "ERROR_RESPONSES",
    "ErrorResponse",
    "FleetStatusResponse",
    "FleetStatusSummary",
    "GeoPoint",
    "LeaderboardEntry",
    "LeaderboardResult",
    "MachineLiveStatus",
    "ORJSONResponse",
    "PanchayatScoreResponse",
    "SessionAction",
    "SweepResult",
    "SweepSummary",
    "TelemetryIngestResponse",
    "TelemetryListResponse",
    "TelemetryLogOut",
    "TelemetryReading",
    "TelemetrySnapshot",
]
