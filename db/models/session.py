"""Krishi Drishti — Utilization Session ORM Model."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship

from db.base import Base, UTCDateTime, new_id, utcnow


class UtilizationSession(Base):
    """One continuous episode of agricultural work by a machine.

    A machine has at most one session with a NULL ``end_time``; the partial
    unique index enforces it in the store.
    """
    __tablename__ = "utilization_sessions"
    __table_args__ = (
        Index(
            "uq_utilization_sessions_open_machine",
            "machine_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
        Index("ix_utilization_sessions_panchayat_verified", "panchayat_id", "verified"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    machine_id = Column(String(36), ForeignKey("machines.id", ondelete="CASCADE"), nullable=False)
    # Denormalized so sessions survive hiring-centre reassignment; NULL when
    # the machine's centre had no panchayat at session start.
    panchayat_id = Column(String(36), ForeignKey("panchayats.id"), nullable=True)

    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=True)
    start_lat = Column(Float, nullable=False)
    start_lng = Column(Float, nullable=False)
    end_lat = Column(Float, nullable=True)
    end_lng = Column(Float, nullable=True)

    operator_id = Column(String(36), nullable=True)
    farmer_name = Column(String(255), nullable=True)
    acres_covered = Column(Float, nullable=True)
    subsidy_amount = Column(Float, nullable=True)

    verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(String(36), nullable=True)
    verified_at = Column(UTCDateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    machine = relationship("Machine")
