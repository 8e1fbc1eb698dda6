"""Krishi Drishti — Domain enumerations."""

from enum import Enum


class TelemetryStatus(str, Enum):
    """Activity status derived from a single telemetry reading."""

    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    MOVING = "MOVING"
    OFFLINE = "OFFLINE"


class MachineStatus(str, Enum):
    """Coarse display status stored on the machine record."""

    ACTIVE = "active"
    IDLE = "idle"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"


class AlertType(str, Enum):
    SESSION_ANOMALY = "session_anomaly"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class SessionActionType(str, Enum):
    """Outcome of the session lifecycle decision for one reading."""

    SESSION_STARTED = "session_started"
    SESSION_CLOSED = "session_closed"


class Medal(str, Enum):
    GOLD = "GOLD"
    SILVER = "SILVER"
    BRONZE = "BRONZE"
