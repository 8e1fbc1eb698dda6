"""Krishi Drishti — Stale-session sweep schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ClosedSessionSummary(BaseModel):
    session_id: str
    machine_id: str
    reason: str


class SweepSummary(BaseModel):
    total_open_sessions: int
    sessions_closed: int


class SweepResult(BaseModel):
    """Outcome of one reaper pass."""

    success: bool = True
    timestamp: datetime
    summary: SweepSummary
    closed_sessions: list[ClosedSessionSummary]
