"""Krishi Drishti — Telemetry Log ORM Model."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from db.base import Base, UTCDateTime, new_id, utcnow


class TelemetryLog(Base):
    """One raw sensor reading plus its derived activity status.

    Rows are immutable once written.
    """
    __tablename__ = "telemetry_logs"
    __table_args__ = (
        Index("ix_telemetry_logs_machine_ts", "machine_id", "timestamp"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    machine_id = Column(String(36), ForeignKey("machines.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(UTCDateTime, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    ignition_status = Column(Boolean, nullable=False)
    vibration_level = Column(Float, nullable=True)
    rpm = Column(Integer, nullable=True)
    status = Column(String(10), nullable=False)  # see core.enums.TelemetryStatus

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    machine = relationship("Machine")
