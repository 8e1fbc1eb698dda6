"""
Krishi Drishti — Session Lifecycle Manager.

Opens and closes utilization sessions from consecutive telemetry statuses.

    previous IDLE/OFFLINE → current ACTIVE/MOVING, no open session  → OPEN
    previous ACTIVE/MOVING → current IDLE/OFFLINE, open session     → CLOSE
    anything else                                                   → NONE

A CLOSE is only carried out once the session has run for the minimum
duration; shorter dips are treated as noise and leave the session open.
The elapsed time is measured on the reading's own clock (reading timestamp
minus ``start_time``), not the server's wall clock, so buffered or replayed
readings debounce the same way they would have live.
Closing is conditional on ``end_time IS NULL`` so that two closers (the
ingestion path and the reaper) can race safely.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.enums import SessionActionType, TelemetryStatus
from db.base import utcnow
from db.models import Machine, UtilizationSession
from schemas.telemetry import SessionAction
from services.alert_service import AlertService
from services.base import BaseService
from services.telemetry_classifier import RESTING_STATUSES, WORKING_STATUSES


class Transition(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    NONE = "none"


def decide_transition(
    previous: TelemetryStatus | None,
    current: TelemetryStatus,
    session_open: bool,
) -> Transition:
    """Pure transition rule over (previous, current, session-exists).

    A machine with no prior reading has no previous status and never
    opens a session on its first reading.
    """
    if previous is None:
        return Transition.NONE
    if previous in RESTING_STATUSES and current in WORKING_STATUSES and not session_open:
        return Transition.OPEN
    if session_open and current in RESTING_STATUSES and previous in WORKING_STATUSES:
        return Transition.CLOSE
    return Transition.NONE


def session_old_enough(start_time: datetime, at: datetime, min_duration: timedelta) -> bool:
    return at - start_time >= min_duration


class SessionLifecycleService(BaseService[UtilizationSession]):
    """Applies the transition rule to the persisted session state."""

    def __init__(self, db: AsyncSession):
        super().__init__(UtilizationSession, db)
        self.alerts = AlertService(db)
        self.min_duration = timedelta(minutes=get_settings().session.min_session_minutes)

    async def get_open_session(self, machine_id: str) -> UtilizationSession | None:
        sessions = await self.list_where(
            UtilizationSession.machine_id == machine_id,
            UtilizationSession.end_time.is_(None),
            order_by=UtilizationSession.start_time.desc(),
        )
        return sessions[0] if sessions else None

    async def apply(
        self,
        machine: Machine,
        panchayat_id: str | None,
        previous: TelemetryStatus | None,
        current: TelemetryStatus,
        latitude: float,
        longitude: float,
        at: datetime,
    ) -> SessionAction | None:
        """Run the lifecycle for one reading taken at ``at``.

        Returns the action taken, or None when the session state is
        unchanged.
        """
        open_session = await self.get_open_session(machine.id)
        transition = decide_transition(previous, current, open_session is not None)

        if transition is Transition.OPEN:
            session = await self.open_session(machine, panchayat_id, latitude, longitude, at)
            return SessionAction(type=SessionActionType.SESSION_STARTED, session_id=session.id)

        if transition is Transition.CLOSE:
            if not session_old_enough(open_session.start_time, at, self.min_duration):
                self.logger.info(
                    "Session close debounced",
                    session_id=open_session.id,
                    machine_id=machine.id,
                    elapsed_seconds=int((at - open_session.start_time).total_seconds()),
                )
                return None

            closed = await self.close_session(open_session.id, at, latitude, longitude)
            if not closed:
                return None
            machine.last_active = utcnow()
            return SessionAction(type=SessionActionType.SESSION_CLOSED, session_id=open_session.id)

        return None

    async def open_session(
        self,
        machine: Machine,
        panchayat_id: str | None,
        latitude: float,
        longitude: float,
        at: datetime,
    ) -> UtilizationSession:
        if panchayat_id is None:
            self.logger.warning(
                "Opening session without panchayat",
                machine_id=machine.id,
                chc_id=machine.chc_id,
            )

        session = UtilizationSession(
            machine_id=machine.id,
            panchayat_id=panchayat_id,
            start_time=at,
            start_lat=latitude,
            start_lng=longitude,
            operator_id=machine.operator_id,
            verified=False,
        )
        await self.add(session)
        await self.alerts.session_started(machine, session)

        self.logger.info(
            "Session opened",
            session_id=session.id,
            machine_id=machine.id,
            panchayat_id=panchayat_id,
            start_time=at.isoformat(),
        )
        return session

    async def close_session(
        self,
        session_id: str,
        end_time: datetime,
        end_lat: float,
        end_lng: float,
        notes: str | None = None,
    ) -> bool:
        """Close a session if it is still open.

        Returns False when another closer got there first.
        """
        values = {
            "end_time": end_time,
            "end_lat": end_lat,
            "end_lng": end_lng,
            "updated_at": utcnow(),
        }
        if notes is not None:
            values["notes"] = notes

        result = await self.db.execute(
            update(UtilizationSession)
            .where(
                UtilizationSession.id == session_id,
                UtilizationSession.end_time.is_(None),
            )
            .values(**values)
            .returning(UtilizationSession.id)
            .execution_options(synchronize_session="fetch")
        )
        closed = result.scalar_one_or_none() is not None

        if closed:
            self.logger.info("Session closed", session_id=session_id, end_time=end_time.isoformat())
        else:
            self.logger.info("Session already closed", session_id=session_id)
        return closed
