"""Krishi Drishti — Telemetry Service.

Ingests device readings: classifies each one, persists the raw log,
drives the session lifecycle, and refreshes the machine's live fields.
Also serves telemetry history.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config import get_settings
from core.enums import SessionActionType, TelemetryStatus
from core.exceptions import InvalidInput, PersistenceFailure, ResourceNotFound
from db.base import utcnow
from db.models import Machine, MachinePosition, TelemetryLog
from schemas.telemetry import (
    TelemetryIngestResponse,
    TelemetryListResponse,
    TelemetryLogOut,
    TelemetryReading,
)
from services.base import BaseService
from services.machine_locks import machine_lock
from services.session_lifecycle import SessionLifecycleService
from services.telemetry_classifier import classify, coarse_machine_status

INGEST_MESSAGES = {
    None: "Telemetry received",
    SessionActionType.SESSION_STARTED: "Telemetry received and new session started",
    SessionActionType.SESSION_CLOSED: "Telemetry received and session closed",
}


async def latest_telemetry_by_machine(
    db: AsyncSession,
    machine_ids: Sequence[str] | None = None,
) -> dict[str, TelemetryLog]:
    """Most recent telemetry row per machine, keyed by machine id."""
    latest = select(
        TelemetryLog.machine_id,
        func.max(TelemetryLog.timestamp).label("max_ts"),
    ).group_by(TelemetryLog.machine_id)
    if machine_ids is not None:
        if not machine_ids:
            return {}
        latest = latest.where(TelemetryLog.machine_id.in_(machine_ids))
    latest = latest.subquery()

    result = await db.execute(
        select(TelemetryLog)
        .join(
            latest,
            and_(
                TelemetryLog.machine_id == latest.c.machine_id,
                TelemetryLog.timestamp == latest.c.max_ts,
            ),
        )
        .order_by(TelemetryLog.created_at.desc())
    )
    rows: dict[str, TelemetryLog] = {}
    for row in result.scalars():
        rows.setdefault(row.machine_id, row)
    return rows


class TelemetryService(BaseService[TelemetryLog]):
    """Service for telemetry ingestion and retrieval."""

    def __init__(self, db: AsyncSession):
        super().__init__(TelemetryLog, db)
        self.lifecycle = SessionLifecycleService(db)
        self.settings = get_settings().session

    async def _resolve_machine(self, gps_device_id: str) -> Machine:
        result = await self.db.execute(
            select(Machine)
            .options(selectinload(Machine.hiring_centre))
            .where(Machine.gps_device_id == gps_device_id)
            .execution_options(populate_existing=True)
        )
        machine = result.scalar_one_or_none()
        if machine is None:
            self.logger.warning("Unknown GPS device", gps_device_id=gps_device_id)
            raise ResourceNotFound("Machine", gps_device_id)
        return machine

    async def _previous_status(self, machine_id: str) -> TelemetryStatus | None:
        result = await self.db.execute(
            select(TelemetryLog.status)
            .where(TelemetryLog.machine_id == machine_id)
            .order_by(TelemetryLog.timestamp.desc(), TelemetryLog.created_at.desc())
            .limit(1)
        )
        status = result.scalar_one_or_none()
        return TelemetryStatus(status) if status is not None else None

    async def ingest(self, reading: TelemetryReading) -> TelemetryIngestResponse:
        """Process one device reading end to end.

        Raises:
            ResourceNotFound: The device id maps to no machine.
            PersistenceFailure: The store rejected a write.
        """
        status = classify(reading.ignition_status, reading.speed, reading.rpm)
        at = reading.timestamp or utcnow()

        try:
            machine = await self._resolve_machine(reading.gps_device_id)
            panchayat_id = machine.hiring_centre.panchayat_id if machine.hiring_centre else None

            async with machine_lock(machine.id):
                previous = await self._previous_status(machine.id)

                log = TelemetryLog(
                    machine_id=machine.id,
                    timestamp=at,
                    latitude=reading.latitude,
                    longitude=reading.longitude,
                    speed=reading.speed,
                    heading=reading.heading,
                    ignition_status=reading.ignition_status,
                    vibration_level=reading.vibration_level,
                    rpm=reading.rpm,
                    status=status.value,
                )
                await self.add(log)

                action = await self.lifecycle.apply(
                    machine,
                    panchayat_id,
                    previous,
                    status,
                    reading.latitude,
                    reading.longitude,
                    at,
                )

                machine.latitude = reading.latitude
                machine.longitude = reading.longitude
                machine.status = coarse_machine_status(status).value
                machine.last_active = utcnow()

                await self.add(
                    MachinePosition(
                        machine_id=machine.id,
                        lat=reading.latitude,
                        lng=reading.longitude,
                        timestamp=at,
                        speed=reading.speed,
                        heading=reading.heading,
                    )
                )
                await self.db.commit()

        except SQLAlchemyError as exc:
            await self.db.rollback()
            self.logger.error(
                "Telemetry ingestion failed",
                gps_device_id=reading.gps_device_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise PersistenceFailure("telemetry_ingest") from exc

        self.logger.info(
            "Telemetry received",
            machine_id=machine.id,
            telemetry_id=log.id,
            status=status.value,
            previous_status=previous.value if previous else None,
            session_action=action.type.value if action else None,
        )

        return TelemetryIngestResponse(
            telemetry_id=log.id,
            status=status,
            session_action=action,
            message=INGEST_MESSAGES[action.type if action else None],
        )

    async def list_logs(self, machine_id: str | None, limit: int | None = None) -> TelemetryListResponse:
        """Newest-first telemetry history for one machine."""
        if not machine_id:
            raise InvalidInput("machine_id", "Missing required parameter: machine_id")

        limit = min(limit or self.settings.telemetry_default_limit, self.settings.telemetry_query_cap)

        result = await self.db.execute(
            select(TelemetryLog)
            .options(selectinload(TelemetryLog.machine))
            .where(TelemetryLog.machine_id == machine_id)
            .order_by(TelemetryLog.timestamp.desc(), TelemetryLog.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        logs = [TelemetryLogOut.model_validate(row) for row in result.scalars()]
        return TelemetryListResponse(count=len(logs), data=logs)
