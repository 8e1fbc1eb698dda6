"""Krishi Drishti — Governance Alert ORM Model."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, String, Text

from core.enums import AlertStatus
from db.base import Base, UTCDateTime, new_id, utcnow


class Alert(Base):
    """Governance notification tied to a machine and/or panchayat."""
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_status_created", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    machine_id = Column(String(36), ForeignKey("machines.id", ondelete="SET NULL"), nullable=True, index=True)
    chc_id = Column(String(36), ForeignKey("hiring_centres.id", ondelete="SET NULL"), nullable=True)
    panchayat_id = Column(String(36), ForeignKey("panchayats.id", ondelete="SET NULL"), nullable=True, index=True)

    alert_type = Column(String(30), nullable=False)  # see core.enums.AlertType
    severity = Column(String(10), nullable=False)
    status = Column(String(15), nullable=False, default=AlertStatus.OPEN.value)
    message = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
