"""Krishi Drishti — Telemetry Schemas.

Request and response models for IoT telemetry ingestion, retrieval and
the fleet real-time status view.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import get_settings
from core.enums import SessionActionType, TelemetryStatus


# =============================================================================
# Ingestion
# =============================================================================

class TelemetryReading(BaseModel):
    """One reading pushed by a GPS/CAN device on a machine.

    ``gps_device_id``, ``latitude``, ``longitude`` and ``ignition_status``
    are mandatory; everything else is optional. Unknown keys sent by
    device firmware are ignored.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "gps_device_id": "GPS-HR-0042",
                "latitude": 28.4089,
                "longitude": 77.3178,
                "speed": 5.2,
                "heading": 270.0,
                "ignition_status": True,
                "rpm": 1800,
                "timestamp": "2026-10-19T06:30:00Z",
            }
        },
    )

    gps_device_id: str = Field(..., min_length=1, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    speed: float | None = Field(default=None, ge=0, description="km/h")
    heading: float | None = Field(default=None, ge=0, le=360, description="Degrees")
    ignition_status: bool
    vibration_level: float | None = Field(default=None, ge=0)
    rpm: int | None = Field(default=None, ge=0)
    timestamp: datetime | None = Field(
        default=None,
        description="Device time; ingestion time is used when absent",
    )

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp_not_future(cls, v: datetime | None) -> datetime | None:
        """Reject readings from the future beyond the allowed clock drift."""
        if v is None:
            return v

        now = datetime.now(timezone.utc)
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)

        tolerance = timedelta(minutes=get_settings().session.future_tolerance_minutes)
        if v > now + tolerance:
            raise ValueError(
                f"Timestamp cannot be in the future. "
                f"Received: {v.isoformat()}, Current UTC: {now.isoformat()}"
            )
        return v.astimezone(timezone.utc)


class SessionAction(BaseModel):
    type: SessionActionType
    session_id: str


class TelemetryIngestResponse(BaseModel):
    success: bool = True
    telemetry_id: str
    status: TelemetryStatus
    session_action: SessionAction | None = None
    message: str


# =============================================================================
# Retrieval
# =============================================================================

class MachineBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    registration_number: str
    machine_type: str


class TelemetryLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    machine_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    speed: float | None = None
    heading: float | None = None
    ignition_status: bool
    vibration_level: float | None = None
    rpm: int | None = None
    status: TelemetryStatus
    created_at: datetime
    machine: MachineBrief | None = None


class TelemetryListResponse(BaseModel):
    success: bool = True
    count: int
    data: list[TelemetryLogOut]


# =============================================================================
# Fleet Real-Time Status
# =============================================================================

class GeoPoint(BaseModel):
    lat: float
    lng: float


class TelemetrySnapshot(BaseModel):
    ignition_on: bool
    speed: float | None = None
    rpm: int | None = None


class ActiveSessionInfo(BaseModel):
    session_id: str
    started_at: datetime
    farmer_name: str | None = None
    duration_minutes: int


class MachineLiveStatus(BaseModel):
    """Real-time view of one machine.

    ``status`` is the lower-cased status of the latest reading while that
    reading is fresh, ``offline`` otherwise.
    """

    machine_id: str
    registration_number: str
    machine_type: str
    status: str
    location: GeoPoint
    last_updated: datetime | None = None
    telemetry: TelemetrySnapshot | None = None
    active_session: ActiveSessionInfo | None = None


class FleetStatusSummary(BaseModel):
    total: int = 0
    active: int = 0
    moving: int = 0
    idle: int = 0
    offline: int = 0
    with_active_session: int = 0


class FleetStatusResponse(BaseModel):
    success: bool = True
    timestamp: datetime
    summary: FleetStatusSummary
    machines: list[MachineLiveStatus]
