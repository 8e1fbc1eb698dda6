"""Tests for the stale-session reaper."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from core.enums import TelemetryStatus
from db.models import Alert, UtilizationSession
from services.session_reaper import (
    REASON_NO_TELEMETRY,
    REASON_STALE,
    SessionReaper,
    evaluate_open_session,
)

from tests.helpers import minutes_ago

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Closure rule
# =============================================================================

class TestEvaluateOpenSession:

    def test_stale_just_past_threshold_closes(self):
        latest = NOW - timedelta(minutes=15, seconds=1)
        reason = evaluate_open_session(NOW - timedelta(hours=1), TelemetryStatus.ACTIVE, latest, NOW)
        assert reason == REASON_STALE

    def test_stale_just_inside_threshold_stays_open(self):
        latest = NOW - timedelta(minutes=14, seconds=59)
        assert evaluate_open_session(NOW - timedelta(hours=1), TelemetryStatus.ACTIVE, latest, NOW) is None

    def test_exactly_fifteen_minutes_stays_open(self):
        latest = NOW - timedelta(minutes=15)
        assert evaluate_open_session(NOW - timedelta(hours=1), TelemetryStatus.IDLE, latest, NOW) is None

    def test_fresh_idle_stays_open(self):
        latest = NOW - timedelta(minutes=2)
        assert evaluate_open_session(NOW - timedelta(hours=1), TelemetryStatus.IDLE, latest, NOW) is None

    def test_no_telemetry_within_grace_stays_open(self):
        assert evaluate_open_session(NOW - timedelta(minutes=29), None, None, NOW) is None

    def test_no_telemetry_past_grace_closes(self):
        reason = evaluate_open_session(NOW - timedelta(minutes=31), None, None, NOW)
        assert reason == REASON_NO_TELEMETRY

    def test_idle_rule_when_thresholds_differ(self):
        latest = NOW - timedelta(minutes=12)
        reason = evaluate_open_session(
            NOW - timedelta(hours=1),
            TelemetryStatus.OFFLINE,
            latest,
            NOW,
            stale_after=timedelta(minutes=30),
            idle_after=timedelta(minutes=10),
        )
        assert reason == "Machine offline for >10 minutes"

    def test_working_machine_is_not_idle_closed(self):
        latest = NOW - timedelta(minutes=12)
        reason = evaluate_open_session(
            NOW - timedelta(hours=1),
            TelemetryStatus.MOVING,
            latest,
            NOW,
            stale_after=timedelta(minutes=30),
            idle_after=timedelta(minutes=10),
        )
        assert reason is None


# =============================================================================
# Sweep against the store
# =============================================================================

@pytest.mark.asyncio
class TestSweep:

    async def test_sweep_closes_only_stale_sessions(
        self, db_session, seed_machine, seed_telemetry, seed_session
    ):
        now = datetime.now(timezone.utc)
        stale = await seed_machine(gps_device_id="D1")
        silent = await seed_machine(gps_device_id="D2")
        busy = await seed_machine(gps_device_id="D3")

        await seed_telemetry(stale, TelemetryStatus.ACTIVE, now - timedelta(minutes=16), latitude=28.9, longitude=77.9)
        await seed_telemetry(busy, TelemetryStatus.ACTIVE, now - timedelta(minutes=5))
        stale_session = await seed_session(stale, start_time=now - timedelta(minutes=60))
        silent_session = await seed_session(silent, start_time=now - timedelta(minutes=31))
        busy_session = await seed_session(busy, start_time=now - timedelta(minutes=60))

        result = await SessionReaper(db_session).sweep(now=now)
        await db_session.commit()

        assert result.success is True
        assert result.summary.total_open_sessions == 3
        assert result.summary.sessions_closed == 2
        reasons = {c.session_id: c.reason for c in result.closed_sessions}
        assert reasons == {
            stale_session.id: REASON_STALE,
            silent_session.id: REASON_NO_TELEMETRY,
        }

        await db_session.refresh(stale_session)
        assert stale_session.end_time == now
        assert (stale_session.end_lat, stale_session.end_lng) == (28.9, 77.9)
        assert stale_session.notes == f"Auto-closed by cron: {REASON_STALE}"

        await db_session.refresh(silent_session)
        assert (silent_session.end_lat, silent_session.end_lng) == (
            silent_session.start_lat,
            silent_session.start_lng,
        )

        await db_session.refresh(busy_session)
        assert busy_session.end_time is None

    async def test_sweep_raises_auto_close_alert(self, db_session, seed_machine, seed_telemetry, seed_session):
        now = datetime.now(timezone.utc)
        machine = await seed_machine()
        await seed_telemetry(machine, TelemetryStatus.IDLE, now - timedelta(minutes=20))
        await seed_session(machine, start_time=now - timedelta(minutes=45, seconds=30))

        await SessionReaper(db_session).sweep(now=now)
        await db_session.commit()

        alert = (await db_session.execute(select(Alert))).scalar_one()
        assert alert.message == f"Session auto-closed for machine {machine.registration_number}"
        assert alert.description == (
            f"Session was automatically closed due to: {REASON_STALE}. Duration: 45 minutes"
        )

    async def test_second_sweep_is_noop(self, db_session, seed_machine, seed_session):
        now = datetime.now(timezone.utc)
        machine = await seed_machine()
        await seed_session(machine, start_time=now - timedelta(hours=2))
        reaper = SessionReaper(db_session)

        first = await reaper.sweep(now=now)
        second = await reaper.sweep(now=now + timedelta(minutes=15))

        assert first.summary.sessions_closed == 1
        assert second.summary.total_open_sessions == 0
        assert second.closed_sessions == []

    async def test_closed_sessions_are_ignored(self, db_session, seed_machine, seed_session):
        machine = await seed_machine()
        await seed_session(machine, start_time=minutes_ago(120), end_time=minutes_ago(100))

        result = await SessionReaper(db_session).sweep()

        assert result.summary.total_open_sessions == 0
        count = len((await db_session.execute(select(UtilizationSession))).scalars().all())
        assert count == 1
