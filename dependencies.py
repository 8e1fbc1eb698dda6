"""Krishi Drishti — FastAPI Dependencies.

Dependency injection for the shared-secret cron guard and the service
layer.

Usage:
    from dependencies import CronAuthorized, TelemetryServiceDep

    @router.post("/telemetry")
    async def ingest(reading: TelemetryReading, service: TelemetryServiceDep):
        ...
"""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import Unauthorized
from database import get_db
from logger import get_logger
from services import (
    LeaderboardService,
    MachineService,
    ScoringService,
    SessionReaper,
    TelemetryService,
)

logger = get_logger(__name__)

# =============================================================================
# Security Scheme
# =============================================================================

# The secret is optional, so a missing header must not fail before the
# configured value is consulted.
_cron_bearer = HTTPBearer(
    scheme_name="CronSecret",
    description="Shared secret configured as SECURITY_CRON_SECRET",
    auto_error=False,
)


async def verify_cron_secret(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_cron_bearer)],
) -> None:
    """Reject the call unless it carries the configured bearer secret.

    Open when no secret is configured.

    Raises:
        Unauthorized: Header missing or secret mismatch.
    """
    secret = get_settings().security.cron_secret
    if secret is None:
        return

    presented = credentials.credentials if credentials else ""
    if not hmac.compare_digest(presented.encode(), secret.get_secret_value().encode()):
        logger.warning("Cron secret rejected", header_present=credentials is not None)
        raise Unauthorized()


CronAuthorized = Depends(verify_cron_secret)


# =============================================================================
# Service Dependencies
# =============================================================================

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_telemetry_service(db: DbSession) -> TelemetryService:
    return TelemetryService(db)


def get_machine_service(db: DbSession) -> MachineService:
    return MachineService(db)


def get_session_reaper(db: DbSession) -> SessionReaper:
    return SessionReaper(db)


def get_scoring_service(db: DbSession) -> ScoringService:
    return ScoringService(db)


def get_leaderboard_service(db: DbSession) -> LeaderboardService:
    return LeaderboardService(db)


TelemetryServiceDep = Annotated[TelemetryService, Depends(get_telemetry_service)]
MachineServiceDep = Annotated[MachineService, Depends(get_machine_service)]
SessionReaperDep = Annotated[SessionReaper, Depends(get_session_reaper)]
ScoringServiceDep = Annotated[ScoringService, Depends(get_scoring_service)]
LeaderboardServiceDep = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
