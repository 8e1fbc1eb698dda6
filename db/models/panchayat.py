"""Krishi Drishti — Panchayat and Hiring Centre ORM Models."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from db.base import Base, UTCDateTime, new_id, utcnow


class Panchayat(Base):
    """Administrative unit accumulating utilization sessions.

    ``utilization_score`` and ``rank`` are derived fields owned by the
    scoring engine; everything else belongs to the CRUD layer.
    """
    __tablename__ = "panchayats"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    district = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False, index=True)
    block = Column(String(100), nullable=False, default="")
    population = Column(Integer, nullable=False, default=0)

    utilization_score = Column(Integer, nullable=False, default=0)
    rank = Column(Integer, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    hiring_centres = relationship("HiringCentre", back_populates="panchayat")


class HiringCentre(Base):
    """Custom Hiring Centre (CHC) that owns machines."""
    __tablename__ = "hiring_centres"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    district = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    contact_number = Column(String(20), nullable=True)
    panchayat_id = Column(String(36), ForeignKey("panchayats.id"), nullable=True, index=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    panchayat = relationship("Panchayat", back_populates="hiring_centres")
    machines = relationship("Machine", back_populates="hiring_centre")
