"""Krishi Drishti — IoT API.

Endpoints:
- POST /api/iot/telemetry : ingest one device reading
- GET  /api/iot/telemetry : telemetry history for a machine
- GET  /api/iot/status    : fleet real-time status
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from dependencies import MachineServiceDep, TelemetryServiceDep
from schemas import (
    ERROR_RESPONSES,
    FleetStatusResponse,
    TelemetryIngestResponse,
    TelemetryListResponse,
    TelemetryReading,
)

iot_router = APIRouter(prefix="/api/iot", tags=["IoT"], responses=ERROR_RESPONSES)


@iot_router.post("/telemetry", response_model=TelemetryIngestResponse)
async def ingest_telemetry(reading: TelemetryReading, service: TelemetryServiceDep):
    """
    Ingest a GPS/CAN reading. Opens or closes the machine's utilization
    session when the reading changes its activity status.
    """
    return await service.ingest(reading)


@iot_router.get("/telemetry", response_model=TelemetryListResponse)
async def get_telemetry(
    service: TelemetryServiceDep,
    machine_id: str | None = Query(None, description="Machine id (required)"),
    limit: int | None = Query(None, ge=1, description="Max rows, capped at 1000"),
):
    return await service.list_logs(machine_id, limit)


@iot_router.get("/status", response_model=FleetStatusResponse)
async def get_fleet_status(
    service: MachineServiceDep,
    machine_ids: str | None = Query(None, description="Comma-separated machine ids"),
    panchayat_id: str | None = Query(None),
    state: str | None = Query(None),
):
    """
    Live status of every machine; a machine without a reading in the last
    few minutes is reported offline.
    """
    ids = [m.strip() for m in machine_ids.split(",") if m.strip()] if machine_ids else None
    return await service.fleet_status(machine_ids=ids, panchayat_id=panchayat_id, state=state)
