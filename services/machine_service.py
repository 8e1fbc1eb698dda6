"""Krishi Drishti — Machine Service.

Fleet real-time status: each machine's freshest reading, its open
session, and summary counts by live status.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from db.base import utcnow
from db.models import HiringCentre, Machine, UtilizationSession
from schemas.telemetry import (
    ActiveSessionInfo,
    FleetStatusResponse,
    FleetStatusSummary,
    GeoPoint,
    MachineLiveStatus,
    TelemetrySnapshot,
)
from services.base import BaseService
from services.telemetry_service import latest_telemetry_by_machine

OFFLINE = "offline"


class MachineService(BaseService[Machine]):
    """Read-side queries over the machine fleet."""

    def __init__(self, db: AsyncSession):
        super().__init__(Machine, db)
        self.freshness = timedelta(minutes=get_settings().session.status_freshness_minutes)

    async def fleet_status(
        self,
        machine_ids: list[str] | None = None,
        panchayat_id: str | None = None,
        state: str | None = None,
        now: datetime | None = None,
    ) -> FleetStatusResponse:
        now = now or utcnow()

        criteria = []
        if machine_ids:
            criteria.append(Machine.id.in_(machine_ids))
        if state:
            criteria.append(Machine.state == state)
        if panchayat_id:
            criteria.append(
                Machine.chc_id.in_(
                    select(HiringCentre.id).where(HiringCentre.panchayat_id == panchayat_id)
                )
            )
        machines = await self.list_where(*criteria, order_by=Machine.registration_number)
        ids = [m.id for m in machines]

        latest = await latest_telemetry_by_machine(self.db, ids)
        open_sessions: dict[str, UtilizationSession] = {}
        if ids:
            result = await self.db.execute(
                select(UtilizationSession).where(
                    UtilizationSession.machine_id.in_(ids),
                    UtilizationSession.end_time.is_(None),
                )
            )
            for session in result.scalars():
                open_sessions.setdefault(session.machine_id, session)

        entries: list[MachineLiveStatus] = []
        for machine in machines:
            telemetry = latest.get(machine.id)
            session = open_sessions.get(machine.id)

            live_status = OFFLINE
            if telemetry is not None and now - telemetry.timestamp < self.freshness:
                live_status = telemetry.status.lower()

            entries.append(
                MachineLiveStatus(
                    machine_id=machine.id,
                    registration_number=machine.registration_number,
                    machine_type=machine.machine_type,
                    status=live_status,
                    location=GeoPoint(lat=machine.latitude, lng=machine.longitude),
                    last_updated=telemetry.timestamp if telemetry else machine.last_active,
                    telemetry=TelemetrySnapshot(
                        ignition_on=telemetry.ignition_status,
                        speed=telemetry.speed,
                        rpm=telemetry.rpm,
                    ) if telemetry else None,
                    active_session=ActiveSessionInfo(
                        session_id=session.id,
                        started_at=session.start_time,
                        farmer_name=session.farmer_name,
                        duration_minutes=math.floor((now - session.start_time).total_seconds() / 60),
                    ) if session else None,
                )
            )

        counts = Counter(entry.status for entry in entries)
        summary = FleetStatusSummary(
            total=len(entries),
            active=counts["active"],
            moving=counts["moving"],
            idle=counts["idle"],
            offline=counts[OFFLINE],
            with_active_session=sum(1 for entry in entries if entry.active_session),
        )
        return FleetStatusResponse(timestamp=now, summary=summary, machines=entries)
