"""ORM models; importing this package registers every table on Base.metadata."""

from db.models.alert import Alert
from db.models.machine import Machine, MachinePosition
from db.models.panchayat import HiringCentre, Panchayat
from db.models.session import UtilizationSession
from db.models.telemetry import TelemetryLog

__all__ = [
    "Alert",
    "HiringCentre",
    "Machine",
    "MachinePosition",
    "Panchayat",
    "TelemetryLog",
    "UtilizationSession",
]
