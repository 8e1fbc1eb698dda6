"""Krishi Drishti — Pytest Configuration & Fixtures.

Provides an isolated testing environment with:
1. A fresh in-memory SQLite database per test (aiosqlite + StaticPool).
2. AsyncClient for testing FastAPI endpoints through the app's get_db.
3. Factory fixtures for seeding panchayats, machines, telemetry and sessions.

Usage:
    async def test_my_endpoint(client, seed_machine):
        machine = await seed_machine()
        response = await client.get("/api/iot/status")
        assert response.status_code == 200
"""

import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api_server import app
from config import get_settings
from core.enums import MachineStatus, TelemetryStatus
from database import get_db
from db.base import Base
from db.models import HiringCentre, Machine, Panchayat, TelemetryLog, UtilizationSession


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings for every test so monkeypatched env vars apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Database Engine & Session
# =============================================================================

@pytest_asyncio.fixture
async def db_engine():
    """In-memory database with the full schema, discarded after the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test body and the app under test."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()

    # Force the app to use OUR session
    app.dependency_overrides[get_db] = lambda: session

    yield session

    app.dependency_overrides.pop(get_db, None)
    await session.close()


# =============================================================================
# API Client
# =============================================================================

@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app without a network socket."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Seed Factories
# =============================================================================

@pytest.fixture
def seed_panchayat(db_session):
    async def _create(
        name: str = "Tigaon",
        state: str = "Haryana",
        district: str = "Faridabad",
        utilization_score: int = 0,
        id: str | None = None,
    ) -> Panchayat:
        panchayat = Panchayat(
            name=name,
            state=state,
            district=district,
            block="Ballabgarh",
            population=5200,
            utilization_score=utilization_score,
        )
        if id is not None:
            panchayat.id = id
        db_session.add(panchayat)
        await db_session.commit()
        return panchayat

    return _create


@pytest.fixture
def seed_machine(db_session, seed_panchayat):
    """Create a machine (and its hiring centre) reporting as ``gps_device_id``."""

    async def _create(
        gps_device_id: str = "D1",
        registration_number: str | None = None,
        panchayat: Panchayat | None = None,
        with_panchayat: bool = True,
        operator_id: str | None = "op-7",
        state: str = "Haryana",
    ) -> Machine:
        if with_panchayat and panchayat is None:
            panchayat = await seed_panchayat()
        centre = HiringCentre(
            name="Tigaon CHC",
            district="Faridabad",
            state=state,
            panchayat_id=panchayat.id if panchayat else None,
        )
        db_session.add(centre)
        await db_session.flush()

        machine = Machine(
            registration_number=registration_number or f"HR-{gps_device_id}",
            machine_type="happy_seeder",
            chc_id=centre.id,
            hiring_centre=centre,
            gps_device_id=gps_device_id,
            operator_id=operator_id,
            status=MachineStatus.IDLE.value,
            latitude=28.40,
            longitude=77.30,
            district="Faridabad",
            state=state,
        )
        db_session.add(machine)
        await db_session.commit()
        return machine

    return _create


@pytest.fixture
def seed_telemetry(db_session):
    """Insert a stored reading directly, bypassing ingestion."""

    async def _create(
        machine: Machine,
        status: TelemetryStatus,
        at: datetime,
        latitude: float = 28.41,
        longitude: float = 77.31,
    ) -> TelemetryLog:
        log = TelemetryLog(
            machine_id=machine.id,
            timestamp=at,
            latitude=latitude,
            longitude=longitude,
            ignition_status=status != TelemetryStatus.OFFLINE,
            speed=0.0,
            rpm=0,
            status=status.value,
        )
        db_session.add(log)
        await db_session.commit()
        return log

    return _create


@pytest.fixture
def seed_session(db_session):
    """Insert a utilization session directly."""

    async def _create(
        machine: Machine,
        start_time: datetime,
        end_time: datetime | None = None,
        panchayat_id: str | None = None,
        verified: bool = False,
        acres_covered: float | None = None,
        subsidy_amount: float | None = None,
    ) -> UtilizationSession:
        session = UtilizationSession(
            machine_id=machine.id,
            panchayat_id=panchayat_id,
            start_time=start_time,
            end_time=end_time,
            start_lat=28.40,
            start_lng=77.30,
            end_lat=28.40 if end_time else None,
            end_lng=77.30 if end_time else None,
            verified=verified,
            acres_covered=acres_covered,
            subsidy_amount=subsidy_amount,
        )
        db_session.add(session)
        await db_session.commit()
        return session

    return _create


@pytest.fixture
def count_open_sessions(db_session):
    async def _count(machine_id: str) -> int:
        result = await db_session.execute(
            select(func.count())
            .select_from(UtilizationSession)
            .where(
                UtilizationSession.machine_id == machine_id,
                UtilizationSession.end_time.is_(None),
            )
        )
        return result.scalar_one()

    return _count
