"""Krishi Drishti — Governance Alert Service.

Creates the alerts emitted as side effects of session lifecycle events.
The acknowledge/resolve lifecycle of an alert is handled elsewhere.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from core.enums import AlertSeverity, AlertStatus, AlertType
from db.models import Alert, Machine, UtilizationSession
from services.base import BaseService


class AlertService(BaseService[Alert]):
    """Service for raising governance alerts."""

    def __init__(self, db: AsyncSession):
        super().__init__(Alert, db)

    async def raise_alert(
        self,
        *,
        alert_type: AlertType,
        severity: AlertSeverity,
        message: str,
        description: str | None = None,
        machine_id: str | None = None,
        panchayat_id: str | None = None,
    ) -> Alert:
        """Persist a new open alert."""
        alert = Alert(
            alert_type=alert_type.value,
            severity=severity.value,
            status=AlertStatus.OPEN.value,
            message=message,
            description=description,
            machine_id=machine_id,
            panchayat_id=panchayat_id,
        )
        await self.add(alert)
        self.logger.info(
            "Alert raised",
            alert_id=alert.id,
            alert_type=alert.alert_type,
            severity=alert.severity,
            machine_id=machine_id,
        )
        return alert

    async def session_started(
        self,
        machine: Machine,
        session: UtilizationSession,
    ) -> Alert:
        return await self.raise_alert(
            alert_type=AlertType.SESSION_ANOMALY,
            severity=AlertSeverity.LOW,
            message=(
                f"New work session started for "
                f"{machine.machine_type} {machine.registration_number}"
            ),
            description=(
                f"Session auto-created at ({session.start_lat}, {session.start_lng}). "
                f"Operator: {machine.operator_id or 'Unknown'}"
            ),
            machine_id=machine.id,
            panchayat_id=session.panchayat_id,
        )

    async def session_auto_closed(
        self,
        session: UtilizationSession,
        registration_number: str,
        reason: str,
        duration_minutes: int,
    ) -> Alert:
        return await self.raise_alert(
            alert_type=AlertType.SESSION_ANOMALY,
            severity=AlertSeverity.LOW,
            message=f"Session auto-closed for machine {registration_number}",
            description=(
                f"Session was automatically closed due to: {reason}. "
                f"Duration: {duration_minutes} minutes"
            ),
            machine_id=session.machine_id,
            panchayat_id=session.panchayat_id,
        )
