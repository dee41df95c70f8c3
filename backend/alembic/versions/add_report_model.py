"""add_report_model

Revision ID: add_report_model
Revises: add_profiles_and_auth_sessions
Create Date: 2026-09-14

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "add_report_model"
down_revision: Union[str, Sequence[str], None] = "add_profiles_and_auth_sessions"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reports table with status enum and indexes."""
    report_status_enum = postgresql.ENUM(
        "pending-patient-input",
        "pending-doctor-review",
        "doctor-approved",
        "doctor-modified",
        "rejected",
        name="report_status",
        create_type=True,
    )
    report_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("patient_id", sa.String(128), nullable=False),
        sa.Column("doctor_id", sa.String(128), nullable=True, comment="Set once when the patient routes the report"),
        sa.Column(
            "status",
            postgresql.ENUM(name="report_status", create_type=False),
            nullable=False,
            server_default="pending-patient-input",
        ),
        sa.Column("report_name", sa.String(120), nullable=False),
        sa.Column("ai_report", postgresql.JSONB, nullable=False, comment="Structured model output (AIReport); never mutated"),
        sa.Column("photo_data_uri", sa.Text, nullable=True),
        sa.Column("doctor_notes", sa.Text, nullable=False, server_default=""),
        sa.Column("prescription", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("modified_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "(doctor_id IS NULL) = (status = 'pending-patient-input')",
            name="ck_report_doctor_assignment",
        ),
    )

    op.create_index("ix_reports_patient_id", "reports", ["patient_id"])
    op.create_index("ix_reports_doctor_id", "reports", ["doctor_id"])
    op.create_index("ix_reports_status", "reports", ["status"])
    op.create_index("idx_report_doctor_created", "reports", ["doctor_id", "created_at"])
    op.create_index("idx_report_patient_created", "reports", ["patient_id", "created_at"])


def downgrade() -> None:
    """Drop reports table and enum."""
    op.drop_table("reports")
    op.execute("DROP TYPE IF EXISTS report_status")
