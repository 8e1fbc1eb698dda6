"""
Krishi Drishti — Telemetry Classifier.

Maps raw device signals to an activity status. Rules, first match wins:
ignition off → OFFLINE; speed > 0.5 and rpm > 100 → ACTIVE; rpm > 100 →
MOVING (engine loaded, e.g. stationary tillage); otherwise IDLE.
"""

from __future__ import annotations

from core.enums import MachineStatus, TelemetryStatus

SPEED_THRESHOLD_KMH = 0.5
RPM_LOAD_THRESHOLD = 100

WORKING_STATUSES = frozenset({TelemetryStatus.ACTIVE, TelemetryStatus.MOVING})
RESTING_STATUSES = frozenset({TelemetryStatus.IDLE, TelemetryStatus.OFFLINE})


def classify(ignition: bool, speed: float | None = None, rpm: int | None = None) -> TelemetryStatus:
    """Derive the activity status of one reading. Missing speed/rpm count as 0."""
    if not ignition:
        return TelemetryStatus.OFFLINE
    speed = speed or 0
    rpm = rpm or 0
    if speed > SPEED_THRESHOLD_KMH and rpm > RPM_LOAD_THRESHOLD:
        return TelemetryStatus.ACTIVE
    if rpm > RPM_LOAD_THRESHOLD:
        return TelemetryStatus.MOVING
    return TelemetryStatus.IDLE


def coarse_machine_status(status: TelemetryStatus) -> MachineStatus:
    """Collapse an activity status into the machine's display status."""
    if status in WORKING_STATUSES:
        return MachineStatus.ACTIVE
    if status == TelemetryStatus.IDLE:
        return MachineStatus.IDLE
    return MachineStatus.OFFLINE
