"""
Krishi Drishti — Stale Session Reaper.

Periodic sweep that force-closes open sessions whose machine has gone
silent. Per open session:

    no telemetry at all      close once the session is older than the grace period
    telemetry older than 15m close, "No recent telemetry (stale data)"
    IDLE/OFFLINE older 15m   close, "Machine <status> for >15 minutes"
    otherwise                leave open

The IDLE/OFFLINE rule is only reachable when the stale rule is not, so
with equal thresholds it never fires; it is kept for deployments that
tune the two thresholds apart.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config import get_settings
from core.enums import TelemetryStatus
from db.base import utcnow
from db.models import TelemetryLog, UtilizationSession
from schemas.session import ClosedSessionSummary, SweepResult, SweepSummary
from services.base import BaseService
from services.session_lifecycle import SessionLifecycleService
from services.telemetry_classifier import RESTING_STATUSES
from services.telemetry_service import latest_telemetry_by_machine

REASON_NO_TELEMETRY = "No telemetry data available"
REASON_STALE = "No recent telemetry (stale data)"


def evaluate_open_session(
    start_time: datetime,
    latest_status: TelemetryStatus | None,
    latest_timestamp: datetime | None,
    now: datetime,
    stale_after: timedelta = timedelta(minutes=15),
    idle_after: timedelta = timedelta(minutes=15),
    no_telemetry_grace: timedelta = timedelta(minutes=30),
) -> str | None:
    """Return the closure reason for an open session, or None to keep it."""
    if latest_timestamp is None:
        if start_time < now - no_telemetry_grace:
            return REASON_NO_TELEMETRY
        return None

    if now - latest_timestamp > stale_after:
        return REASON_STALE

    if latest_status in RESTING_STATUSES and latest_timestamp < now - idle_after:
        minutes = int(idle_after.total_seconds() // 60)
        return f"Machine {latest_status.value.lower()} for >{minutes} minutes"

    return None


class SessionReaper(BaseService[UtilizationSession]):
    """Closes sessions left open by machines that stopped reporting."""

    def __init__(self, db: AsyncSession):
        super().__init__(UtilizationSession, db)
        self.lifecycle = SessionLifecycleService(db)
        settings = get_settings().session
        self.stale_after = timedelta(minutes=settings.stale_telemetry_minutes)
        self.no_telemetry_grace = timedelta(minutes=settings.no_telemetry_grace_minutes)

    async def sweep(self, now: datetime | None = None) -> SweepResult:
        """Run one pass over every open session.

        Closing is conditional, so a session closed concurrently by the
        ingestion path is skipped rather than closed twice.
        """
        now = now or utcnow()

        result = await self.db.execute(
            select(UtilizationSession)
            .options(selectinload(UtilizationSession.machine))
            .where(UtilizationSession.end_time.is_(None))
            .order_by(UtilizationSession.start_time)
            .execution_options(populate_existing=True)
        )
        open_sessions = list(result.scalars())
        latest = await latest_telemetry_by_machine(
            self.db, [s.machine_id for s in open_sessions]
        )

        closed: list[ClosedSessionSummary] = []
        for session in open_sessions:
            telemetry: TelemetryLog | None = latest.get(session.machine_id)
            reason = evaluate_open_session(
                session.start_time,
                TelemetryStatus(telemetry.status) if telemetry else None,
                telemetry.timestamp if telemetry else None,
                now,
                stale_after=self.stale_after,
                idle_after=self.stale_after,
                no_telemetry_grace=self.no_telemetry_grace,
            )
            if reason is None:
                continue

            end_lat = telemetry.latitude if telemetry else session.start_lat
            end_lng = telemetry.longitude if telemetry else session.start_lng

            was_closed = await self.lifecycle.close_session(
                session.id,
                now,
                end_lat,
                end_lng,
                notes=f"Auto-closed by cron: {reason}",
            )
            if not was_closed:
                continue

            duration_minutes = math.floor((now - session.start_time).total_seconds() / 60)
            await self.lifecycle.alerts.session_auto_closed(
                session,
                session.machine.registration_number,
                reason,
                duration_minutes,
            )
            self.logger.info(
                "Session reaped",
                session_id=session.id,
                machine_id=session.machine_id,
                reason=reason,
                duration_minutes=duration_minutes,
            )
            closed.append(
                ClosedSessionSummary(
                    session_id=session.id,
                    machine_id=session.machine_id,
                    reason=reason,
                )
            )

        self.logger.info(
            "Sweep complete",
            total_open_sessions=len(open_sessions),
            sessions_closed=len(closed),
        )
        return SweepResult(
            timestamp=now,
            summary=SweepSummary(
                total_open_sessions=len(open_sessions),
                sessions_closed=len(closed),
            ),
            closed_sessions=closed,
        )
