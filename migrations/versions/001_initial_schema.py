"""Initial schema: panchayats, hiring centres, machines, telemetry, sessions, alerts.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    ]


def upgrade() -> None:
    op.create_table(
        "panchayats",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("district", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("block", sa.String(100), nullable=False, server_default=""),
        sa.Column("population", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("utilization_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("utilization_score BETWEEN 0 AND 100", name="ck_panchayats_score_range"),
    )
    op.create_index("ix_panchayats_state", "panchayats", ["state"])
    op.create_index("ix_panchayats_district", "panchayats", ["district"])

    op.create_table(
        "hiring_centres",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("district", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("contact_number", sa.String(20), nullable=True),
        sa.Column("panchayat_id", sa.String(36), sa.ForeignKey("panchayats.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_hiring_centres_panchayat_id", "hiring_centres", ["panchayat_id"])

    op.create_table(
        "machines",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("registration_number", sa.String(50), nullable=False),
        sa.Column("machine_type", sa.String(50), nullable=False),
        sa.Column("chc_id", sa.String(36), sa.ForeignKey("hiring_centres.id"), nullable=False),
        sa.Column("gps_device_id", sa.String(100), nullable=True),
        sa.Column("operator_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="idle"),
        sa.Column("latitude", sa.Float(), nullable=False, server_default="0"),
        sa.Column("longitude", sa.Float(), nullable=False, server_default="0"),
        sa.Column("district", sa.String(100), nullable=False, server_default=""),
        sa.Column("state", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("registration_number", name="uq_machines_registration_number"),
        sa.UniqueConstraint("gps_device_id", name="uq_machines_gps_device_id"),
    )
    op.create_index("ix_machines_chc_id", "machines", ["chc_id"])

    op.create_table(
        "telemetry_logs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("machine_id", sa.String(36), sa.ForeignKey("machines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("heading", sa.Float(), nullable=True),
        sa.Column("ignition_status", sa.Boolean(), nullable=False),
        sa.Column("vibration_level", sa.Float(), nullable=True),
        sa.Column("rpm", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_telemetry_logs_machine_ts", "telemetry_logs", ["machine_id", "timestamp"])

    op.create_table(
        "machine_positions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("machine_id", sa.String(36), sa.ForeignKey("machines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("heading", sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_machine_positions_machine_ts", "machine_positions", ["machine_id", "timestamp"])

    op.create_table(
        "utilization_sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("machine_id", sa.String(36), sa.ForeignKey("machines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("panchayat_id", sa.String(36), sa.ForeignKey("panchayats.id"), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("start_lat", sa.Float(), nullable=False),
        sa.Column("start_lng", sa.Float(), nullable=False),
        sa.Column("end_lat", sa.Float(), nullable=True),
        sa.Column("end_lng", sa.Float(), nullable=True),
        sa.Column("operator_id", sa.String(36), nullable=True),
        sa.Column("farmer_name", sa.String(255), nullable=True),
        sa.Column("acres_covered", sa.Float(), nullable=True),
        sa.Column("subsidy_amount", sa.Float(), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_by", sa.String(36), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    # At most one open session per machine
    op.create_index(
        "uq_utilization_sessions_open_machine",
        "utilization_sessions",
        ["machine_id"],
        unique=True,
        postgresql_where=sa.text("end_time IS NULL"),
    )
    op.create_index(
        "ix_utilization_sessions_panchayat_verified",
        "utilization_sessions",
        ["panchayat_id", "verified"],
    )

    op.create_table(
        "alerts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("machine_id", sa.String(36), sa.ForeignKey("machines.id", ondelete="SET NULL"), nullable=True),
        sa.Column("chc_id", sa.String(36), sa.ForeignKey("hiring_centres.id", ondelete="SET NULL"), nullable=True),
        sa.Column("panchayat_id", sa.String(36), sa.ForeignKey("panchayats.id", ondelete="SET NULL"), nullable=True),
        sa.Column("alert_type", sa.String(30), nullable=False),
        sa.Column("severity", sa.String(10), nullable=False),
        sa.Column("status", sa.String(15), nullable=False, server_default="open"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alerts_machine_id", "alerts", ["machine_id"])
    op.create_index("ix_alerts_panchayat_id", "alerts", ["panchayat_id"])
    op.create_index("ix_alerts_status_created", "alerts", ["status", "created_at"])


def downgrade() -> None:
    op.drop_table("alerts")
    op.drop_index("ix_utilization_sessions_panchayat_verified", table_name="utilization_sessions")
    op.drop_index("uq_utilization_sessions_open_machine", table_name="utilization_sessions")
    op.drop_table("utilization_sessions")
    op.drop_table("machine_positions")
    op.drop_table("telemetry_logs")
    op.drop_table("machines")
    op.drop_table("hiring_centres")
    op.drop_table("panchayats")
