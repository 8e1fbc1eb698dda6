"""Krishi Drishti — Machine ORM Models.

Defines the Machine entity and its position breadcrumbs.
"""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from core.enums import MachineStatus
from db.base import Base, UTCDateTime, new_id, utcnow


class Machine(Base):
    """Machine entity representing a piece of farm equipment."""
    __tablename__ = "machines"

    id = Column(String(36), primary_key=True, default=new_id)
    registration_number = Column(String(50), nullable=False, unique=True)
    machine_type = Column(String(50), nullable=False)  # happy_seeder, baler, mulcher, ...
    chc_id = Column(String(36), ForeignKey("hiring_centres.id"), nullable=False, index=True)
    gps_device_id = Column(String(100), nullable=True, unique=True)
    operator_id = Column(String(36), nullable=True)

    status = Column(String(20), nullable=False, default=MachineStatus.IDLE.value)
    latitude = Column(Float, nullable=False, default=0.0)
    longitude = Column(Float, nullable=False, default=0.0)
    district = Column(String(100), nullable=False, default="")
    state = Column(String(100), nullable=False, default="")
    last_active = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    hiring_centre = relationship("HiringCentre", back_populates="machines")


class MachinePosition(Base):
    """Append-only location breadcrumb used for trail rendering."""
    __tablename__ = "machine_positions"
    __table_args__ = (
        Index("ix_machine_positions_machine_ts", "machine_id", "timestamp"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    machine_id = Column(String(36), ForeignKey("machines.id", ondelete="CASCADE"), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    timestamp = Column(UTCDateTime, nullable=False)
    speed = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
