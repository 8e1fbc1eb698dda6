"""Krishi Drishti — Service Layer.

Business logic services that encapsulate domain operations and keep
API routes and scheduled flows thin.

Services:
    - TelemetryService: Reading ingestion and history
    - SessionLifecycleService: Opens/closes utilization sessions
    - SessionReaper: Force-closes sessions of silent machines
    - ScoringService: Panchayat utilization scores
    - LeaderboardService: Ranked Panchayat leaderboards
    - MachineService: Fleet real-time status
    - AlertService: Governance alerts
    - BaseService: Shared persistence helpers

Usage:
    from services import TelemetryService

    async def ingest(reading: TelemetryReading, db: AsyncSession = Depends(get_db)):
        return await TelemetryService(db).ingest(reading)
"""

from services.alert_service import AlertService
from services.base import BaseService
from services.leaderboard_service import LeaderboardService
from services.machine_service import MachineService
from services.scoring_service import ScoringService
from services.session_lifecycle import SessionLifecycleService
from services.session_reaper import SessionReaper
from services.telemetry_service import TelemetryService

__all__ = [
    "AlertService",
    "BaseService",
    "LeaderboardService",
    "MachineService",
    "ScoringService",
    "SessionLifecycleService",
    "SessionReaper",
    "TelemetryService",
]
