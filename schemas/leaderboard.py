"""Krishi Drishti — Leaderboard Schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from core.enums import Medal


class LeaderboardEntry(BaseModel):
    """A ranked Panchayat with its session aggregates."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    district: str
    state: str
    utilization_score: int = Field(..., ge=0, le=100)
    rank: int = Field(..., ge=1)
    medal: Medal | None = None
    total_sessions: int
    total_acres_covered: float
    avg_session_duration_hours: float


class LeaderboardResult(BaseModel):
    top_performers: list[LeaderboardEntry]
    bottom_performers: list[LeaderboardEntry]
    total_panchayats: int
    last_updated: datetime


class PanchayatScoreResponse(BaseModel):
    success: bool = True
    panchayat_id: str
    utilization_score: int
